"""Query building for list requests.

Flat request parameters (usually a parsed query string) are turned into an
immutable `QuerySpec` covering filter, sort, projection and pagination. Only
`run_query` touches the database.
"""
from __future__ import annotations

from tour_booking.query.builder import QueryBuilder, build_query, run_query
from tour_booking.query.params import coerce_value, parse_query_string
from tour_booking.query.spec import (
    Caster,
    QuerySpec,
    apply_filter,
    apply_pagination,
    apply_projection,
    apply_sort,
)

__all__ = [
    "Caster",
    "QueryBuilder",
    "QuerySpec",
    "apply_filter",
    "apply_pagination",
    "apply_projection",
    "apply_sort",
    "build_query",
    "coerce_value",
    "parse_query_string",
    "run_query",
]
