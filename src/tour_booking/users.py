"""Self-service handlers for the current user's account.

Authentication happens upstream: these handlers receive the id of the
already authenticated user. Administrators manage other accounts through the
generic handlers.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping

from tour_booking.errors import AppError
from tour_booking.handlers import Envelope, NOT_FOUND, get_one
from tour_booking.persistence.repository import Repository

log = logging.getLogger(__name__)

ACTIVE_USER_FILTER: dict[str, Any] = {"active": {"$ne": False}}

# fields a user may change on their own profile
SELF_UPDATABLE = ("name", "email", "photo")
PASSWORD_FIELDS = ("password", "password_confirm")


def filter_obj(body: Mapping[str, Any], *allowed: str) -> dict[str, Any]:
    """Return the entries of `body` whose key is one of `allowed`."""
    return {k: v for k, v in body.items() if k in allowed}


def hide_active_flag(doc: dict[str, Any]) -> dict[str, Any]:
    """Drop the internal `active` flag from a user document."""
    doc.pop("active", None)
    return doc


def get_me(users: Repository, user_id: Any) -> Envelope:
    return get_one(users, user_id)


def update_me(users: Repository, user_id: Any, body: Mapping[str, Any]) -> Envelope:
    """Update the profile of the current user.

    Only name, email and photo are taken from `body`; anything else (role,
    active) is silently dropped.

    Raises:
        AppError: (400) if `body` carries password fields, (404) if the user
            does not exist or is deactivated.
    """
    if any(body.get(f) for f in PASSWORD_FIELDS):
        raise AppError(
            "This route is not for password updates. Please use /updateMyPassword", 400
        )

    user = users.update_by_id(user_id, filter_obj(body, *SELF_UPDATABLE))
    if user is None:
        raise AppError(NOT_FOUND, 404)
    return 200, {"status": "success", "data": {"user": user}}


def delete_me(users: Repository, user_id: Any) -> Envelope:
    """Deactivate the current user; the document is kept but hidden."""
    if users.update_by_id(user_id, {"active": False}) is None:
        raise AppError(NOT_FOUND, 404)
    log.info("Deactivated user %s", user_id)
    return 204, {"status": "success", "data": None}
