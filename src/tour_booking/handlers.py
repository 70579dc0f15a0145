"""Generic CRUD handlers returning JSON envelopes.

Every handler takes a `Repository` plus request data and returns a
`(status_code, body)` pair, so any web framework can serve them. Wrap a
handler with `catch_errors` to turn raised exceptions into error envelopes.
"""
from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Iterable, Mapping

from tour_booking.errors import AppError, error_envelope
from tour_booking.persistence.repository import Repository
from tour_booking.query.builder import build_query

log = logging.getLogger(__name__)

Envelope = tuple[int, dict[str, Any]]

NOT_FOUND = "No document found with that ID"


def get_all(
    repo: Repository,
    params: Mapping[str, Any],
    parent_filter: Mapping[str, Any] | None = None,
) -> Envelope:
    """List documents matching the request parameters.

    Args:
        repo: Repository to query.
        params: Request parameters (filters plus page/sort/limit/fields).
        parent_filter: Fixed filter for nested listings, e.g. the reviews
            of one tour.
    """
    docs = repo.find(build_query(params, parent_filter, repo.cast))
    return 200, {"status": "success", "results": len(docs), "data": {"data": docs}}


def get_one(
    repo: Repository,
    doc_id: Any,
    populate: Iterable[Callable[[dict[str, Any]], dict[str, Any]]] = (),
) -> Envelope:
    """Return one document.

    Args:
        repo: Repository to read from.
        doc_id: Id of the document.
        populate: Extra populations for this read only, on top of the
            repository's own (e.g. a tour's reviews).
    """
    doc = repo.find_by_id(doc_id)
    if doc is None:
        raise AppError(NOT_FOUND, 404)
    for fill in populate:
        doc = fill(doc)
    return 200, {"status": "success", "data": {"data": doc}}


def create_one(repo: Repository, body: Mapping[str, Any]) -> Envelope:
    doc = repo.create(body)
    return 201, {"status": "success", "data": {"data": doc}}


def update_one(repo: Repository, doc_id: Any, body: Mapping[str, Any]) -> Envelope:
    doc = repo.update_by_id(doc_id, body)
    if doc is None:
        raise AppError(NOT_FOUND, 404)
    return 200, {"status": "success", "data": {"data": doc}}


def delete_one(repo: Repository, doc_id: Any) -> Envelope:
    doc = repo.delete_by_id(doc_id)
    if doc is None:
        raise AppError(NOT_FOUND, 404)
    return 204, {"status": "success", "data": None}


def catch_errors(
    handler: Callable[..., Envelope],
    app_env: str = "production",
) -> Callable[..., Envelope]:
    """Wrap `handler` so failures come back as error envelopes."""

    @functools.wraps(handler)
    def wrapper(*args: Any, **kwargs: Any) -> Envelope:
        try:
            return handler(*args, **kwargs)
        except Exception as exc:
            status_code, body = error_envelope(exc, app_env)
            log.info("%s failed with %d: %s", handler.__name__, status_code, exc)
            return status_code, body

    return wrapper
