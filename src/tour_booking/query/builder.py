"""Fluent construction and execution of list queries."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping

from pymongo.collection import Collection

from tour_booking.query.spec import (
    Caster,
    QuerySpec,
    apply_filter,
    apply_pagination,
    apply_projection,
    apply_sort,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryBuilder:
    """Chainable wrapper around the `apply_*` functions.

    Every step returns a new builder, so a partially built query can be
    reused without one chain leaking into another.

    Example:
        spec = QueryBuilder.from_params(params).filter().sort().limit_fields().paginate().build()
    """
    params: Mapping[str, Any]
    spec: QuerySpec = field(default_factory=QuerySpec)
    cast: Caster | None = None

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, Any],
        base_filter: Mapping[str, Any] | None = None,
        cast: Caster | None = None,
    ) -> "QueryBuilder":
        """Start a chain from request parameters and an optional fixed filter."""
        return cls(
            params=MappingProxyType(dict(params)),
            spec=QuerySpec(filter=dict(base_filter or {})),
            cast=cast,
        )

    def filter(self) -> "QueryBuilder":
        return replace(self, spec=apply_filter(self.spec, self.params, self.cast))

    def sort(self) -> "QueryBuilder":
        return replace(self, spec=apply_sort(self.spec, self.params))

    def limit_fields(self) -> "QueryBuilder":
        return replace(self, spec=apply_projection(self.spec, self.params))

    def paginate(self) -> "QueryBuilder":
        return replace(self, spec=apply_pagination(self.spec, self.params))

    def build(self) -> QuerySpec:
        return self.spec


def build_query(
    params: Mapping[str, Any],
    base_filter: Mapping[str, Any] | None = None,
    cast: Caster | None = None,
) -> QuerySpec:
    """Apply all four facets to `params` and return the resulting spec."""
    return (
        QueryBuilder.from_params(params, base_filter, cast)
        .filter()
        .sort()
        .limit_fields()
        .paginate()
        .build()
    )


def run_query(collection: Collection[dict[str, Any]], spec: QuerySpec) -> list[dict[str, Any]]:
    """Execute `spec` against `collection` and return the matching documents.

    Args:
        collection: PyMongo collection (or a compatible handle).
        spec: Query to run.

    Returns:
        List of documents in the requested order and page.
    """
    projection = dict(spec.projection) if spec.projection is not None else None
    cursor = collection.find(dict(spec.filter), projection)
    if spec.sort:
        cursor = cursor.sort(list(spec.sort))
    if spec.skip:
        cursor = cursor.skip(spec.skip)
    if spec.limit:
        cursor = cursor.limit(spec.limit)

    docs = list(cursor)
    log.debug("Query on %s returned %d documents", collection.name, len(docs))
    return docs
