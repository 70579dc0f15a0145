"""Collection wrappers that validate writes and announce lifecycle events."""
from __future__ import annotations

from tour_booking.persistence.hooks import (
    AFTER_CREATE,
    AFTER_MUTATE,
    BEFORE_MUTATE,
    LifecycleHooks,
    MutationContext,
)
from tour_booking.persistence.populate import Populate
from tour_booking.persistence.repository import Repository, object_id

__all__ = [
    "AFTER_CREATE",
    "AFTER_MUTATE",
    "BEFORE_MUTATE",
    "LifecycleHooks",
    "MutationContext",
    "Populate",
    "Repository",
    "object_id",
]
