"""Casting of query-string filter values to a model's field types.

Filter values arrive as strings. Before they reach MongoDB they have to be
converted to the stored type, otherwise `tour=<id>` compares a string against
an ObjectId and `paid=true` a string against a boolean.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, get_args, get_origin

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainValidator, TypeAdapter

from tour_booking.query.params import coerce_value

# Range and length constraints describe stored documents, not filter bounds
# (`ratings_average[gte]=0` is a valid filter), so only converting
# validators are carried over from a field's metadata.
_CONVERTERS = (BeforeValidator, PlainValidator)
_CONFIG = ConfigDict(arbitrary_types_allowed=True)


def _element_type(annotation: Any) -> Any:
    """Unwrap `list[X]` to `X`; a filter on an array field matches elements."""
    if get_origin(annotation) is list:
        (item,) = get_args(annotation)
        return item
    return annotation


def _to_stored(value: Any) -> Any:
    # BSON datetimes are naive UTC
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class FieldCaster:
    """Callable `(field, value) -> value` typed by a pydantic model.

    Known fields are validated with a `TypeAdapter` built from the field's
    annotation; unknown and dotted fields fall back to `coerce_value`.

    Raises:
        pydantic.ValidationError: when a value cannot be cast to the field's
            type, e.g. `price=cheap`.
    """

    def __init__(self, model: type[BaseModel]) -> None:
        self.model = model
        self._adapters: dict[str, TypeAdapter[Any]] = {}

    def _adapter(self, field: str) -> TypeAdapter[Any] | None:
        if field in self._adapters:
            return self._adapters[field]
        info = self.model.model_fields.get(field)
        if info is None:
            return None
        annotation = _element_type(info.annotation)
        converters = [m for m in info.metadata if isinstance(m, _CONVERTERS)]
        if converters:
            annotation = Annotated[(annotation, *converters)]
        if isinstance(annotation, type) and issubclass(annotation, BaseModel):
            self._adapters[field] = TypeAdapter(annotation)
        else:
            self._adapters[field] = TypeAdapter(annotation, config=_CONFIG)
        return self._adapters[field]

    def __call__(self, field: str, value: Any) -> Any:
        adapter = self._adapter(field)
        if adapter is None:
            return coerce_value(value)
        return _to_stored(adapter.validate_python(value))
