"""The immutable query specification and the four functions that build it.

Each `apply_*` function takes a `QuerySpec` and the request parameters and
returns a new `QuerySpec` with one facet set. The facets are independent, so
the functions compose in any order.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Mapping

from pymongo import ASCENDING, DESCENDING

from tour_booking.errors import AppError
from tour_booking.query.params import coerce_value

RESERVED_PARAMS = frozenset({"page", "sort", "limit", "fields"})

OPERATORS: Mapping[str, str] = MappingProxyType({
    "gt": "$gt",
    "gte": "$gte",
    "lt": "$lt",
    "lte": "$lte",
})

VERSION_FIELD = "__v"

Caster = Callable[[str, Any], Any]
DEFAULT_SORT = (("created_at", DESCENDING),)
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 100


@dataclass(frozen=True)
class QuerySpec:
    """A fully described find query that has not been executed.

    Attributes:
        filter: Mongo filter document.
        sort: Ordered `(field, direction)` pairs; empty means natural order.
        projection: Mongo projection document, or None for whole documents.
        skip: Number of documents to skip.
        limit: Maximum number of documents; 0 means unbounded.
    """
    filter: Mapping[str, Any] = field(default_factory=dict)
    sort: tuple[tuple[str, int], ...] = ()
    projection: Mapping[str, int] | None = None
    skip: int = 0
    limit: int = 0


def _split_list(value: Any) -> list[str]:
    if not isinstance(value, str):
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _coerce(field_name: str, value: Any) -> Any:
    return coerce_value(value)


def _predicate(field_name: str, value: Any, cast: Caster) -> Any:
    if not isinstance(value, Mapping):
        return cast(field_name, value)
    predicate = {}
    for op, operand in value.items():
        if op not in OPERATORS:
            raise AppError(f"Invalid filter operator '{op}' for field '{field_name}'.", 400)
        predicate[OPERATORS[op]] = cast(field_name, operand)
    return predicate


def and_filters(left: Mapping[str, Any], right: Mapping[str, Any]) -> dict[str, Any]:
    """Combine two filters with `$and`, skipping empty ones."""
    if not left:
        return dict(right)
    if not right:
        return dict(left)
    return {"$and": [dict(left), dict(right)]}


def apply_filter(
    spec: QuerySpec,
    params: Mapping[str, Any],
    cast: Caster | None = None,
) -> QuerySpec:
    """Add the non-reserved parameters as predicates to the spec's filter.

    Scalars become equality predicates; `{op: value}` mappings become Mongo
    comparison operators. Existing predicates are kept and combined with
    `$and`. `params` is not modified.

    Args:
        spec: Spec to extend.
        params: Request parameters.
        cast: `(field, value) -> value` converting each raw value to the
            stored type; defaults to numeric coercion.

    Raises:
        AppError: (400) if a nested mapping uses an operator outside
            gt/gte/lt/lte.
    """
    predicates = {
        key: _predicate(key, value, cast or _coerce)
        for key, value in params.items()
        if key not in RESERVED_PARAMS
    }
    return replace(spec, filter=and_filters(spec.filter, predicates))


def apply_sort(spec: QuerySpec, params: Mapping[str, Any]) -> QuerySpec:
    """Sort by the comma-separated `sort` parameter, `-field` descending.

    Without a usable `sort` parameter the spec sorts newest first.
    """
    fields = _split_list(params.get("sort"))
    if not fields:
        return replace(spec, sort=DEFAULT_SORT)
    return replace(
        spec,
        sort=tuple(
            (f[1:], DESCENDING) if f.startswith("-") else (f, ASCENDING)
            for f in fields
        ),
    )


def apply_projection(spec: QuerySpec, params: Mapping[str, Any]) -> QuerySpec:
    """Select the comma-separated `fields`, `-field` excluding.

    Without a `fields` parameter the internal version field is excluded.
    """
    fields = _split_list(params.get("fields"))
    if not fields:
        return replace(spec, projection={VERSION_FIELD: 0})
    projection = {}
    for f in fields:
        if f.startswith("-"):
            projection[f[1:]] = 0
        else:
            projection[f] = 1
    return replace(spec, projection=projection)


def _positive_int(value: Any, default: int) -> int:
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


def apply_pagination(spec: QuerySpec, params: Mapping[str, Any]) -> QuerySpec:
    """Bound the spec to one page; bad or missing values use page 1, limit 100."""
    page = _positive_int(params.get("page"), DEFAULT_PAGE)
    limit = _positive_int(params.get("limit"), DEFAULT_LIMIT)
    return replace(spec, skip=(page - 1) * limit, limit=limit)
