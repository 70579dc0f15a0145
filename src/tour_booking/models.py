"""Pydantic models validating documents before they are written to MongoDB.

These models define the stored schema of tours, reviews, bookings and users. They
run on every create and on every update (against the merged document), so
stored documents always satisfy them.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Annotated, Any, Literal

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)
from slugify import slugify

DEFAULT_RATINGS_AVERAGE = 4.5

Role = Literal["user", "guide", "lead-guide", "admin"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as exc:
        raise ValueError(f"{value!r} is not a valid id") from exc


ObjectIdField = Annotated[ObjectId, BeforeValidator(_to_object_id)]


def round_half_up(value: float, digits: int = 1) -> float:
    """Round like a JavaScript `Math.round` scaled to `digits` decimals."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


class GeoPoint(BaseModel):
    """GeoJSON point with an optional address label."""
    model_config = ConfigDict(extra="forbid")
    type: Literal["Point"] = "Point"
    coordinates: list[float] = Field(default_factory=list)
    address: str | None = None
    description: str | None = None


class Location(GeoPoint):
    """A stop on the tour itinerary."""
    day: int | None = None


class Tour(BaseModel):
    """Schema for a tour document.

    Attributes:
        name: Unique display name, 10 to 40 characters after trimming.
        slug: URL slug, always derived from `name`.
        difficulty: One of "easy", "medium" or "difficult".
        ratings_average: Mean review rating, rounded to one decimal.
        ratings_quantity: Number of reviews.
        price_discount: Optional discounted price, lower than `price`.
        secret_tour: Hidden from every catalog query when true.
    """
    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        arbitrary_types_allowed=True,
    )
    name: str = Field(..., min_length=10, max_length=40)
    slug: str | None = None
    duration: int = Field(..., gt=0)
    max_group_size: int = Field(..., ge=1)
    difficulty: Literal["easy", "medium", "difficult"]
    ratings_average: float = Field(DEFAULT_RATINGS_AVERAGE, ge=1, le=5)
    ratings_quantity: int = Field(0, ge=0)
    price: float = Field(..., ge=0)
    price_discount: float | None = None
    summary: str = Field(..., min_length=1)
    description: str | None = None
    image_cover: str
    images: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    start_dates: list[datetime] = Field(default_factory=list)
    secret_tour: bool = False
    start_location: GeoPoint | None = None
    locations: list[Location] = Field(default_factory=list)
    guides: list[ObjectIdField] = Field(default_factory=list)

    @field_validator("ratings_average")
    @classmethod
    def _round_average(cls, v: float) -> float:
        return round_half_up(v)

    @model_validator(mode="after")
    def _derive(self) -> "Tour":
        if self.price_discount is not None and self.price_discount >= self.price:
            raise ValueError(
                f"Discount price ({self.price_discount}) should be less than the price"
            )
        self.slug = slugify(self.name)
        return self


class Review(BaseModel):
    """Schema for a review left by a user on a tour."""
    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        arbitrary_types_allowed=True,
    )
    review: str = Field(..., min_length=1)
    rating: float | None = Field(None, ge=1, le=5)
    created_at: datetime = Field(default_factory=_utcnow)
    tour: ObjectIdField
    user: ObjectIdField


class Booking(BaseModel):
    """Schema for a paid booking of a tour."""
    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)
    tour: ObjectIdField
    user: ObjectIdField
    price: float = Field(..., ge=0)
    paid: bool = True
    created_at: datetime = Field(default_factory=_utcnow)


class User(BaseModel):
    """Schema for a user account.

    Credentials are managed outside this package; a user document only
    carries the profile. `active` is false once the user deactivated the
    account, which hides it from every read.
    """
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)
    name: str = Field(..., min_length=1)
    email: EmailStr
    photo: str = "default.jpg"
    role: Role = "user"
    active: bool = True

    @field_validator("email", mode="before")
    @classmethod
    def _lowercase_email(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v
