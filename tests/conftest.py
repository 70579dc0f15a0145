from __future__ import annotations

from typing import Any

import mongomock
import pytest

from tour_booking.db import ensure_indexes
from tour_booking.services import Services, build_services


@pytest.fixture()
def db() -> Any:
    client = mongomock.MongoClient()
    database = client["tour_booking_test"]
    # mongomock has no geo index support
    ensure_indexes(database, geo=False)
    return database


@pytest.fixture()
def services(db: Any) -> Services:
    return build_services(db)


def tour_payload(**overrides: Any) -> dict[str, Any]:
    payload = {
        "name": "The Forest Hiker",
        "duration": 5,
        "max_group_size": 25,
        "difficulty": "easy",
        "price": 397,
        "summary": "Breathtaking hike through the Canadian Banff National Park",
        "image_cover": "tour-1-cover.jpg",
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def make_tour(services: Services):
    def _make(**overrides: Any) -> dict[str, Any]:
        return services.tours.create(tour_payload(**overrides))

    return _make


def user_payload(**overrides: Any) -> dict[str, Any]:
    payload = {"name": "Laura Wilson", "email": "laura@natours.io"}
    payload.update(overrides)
    return payload


@pytest.fixture()
def make_user(services: Services):
    def _make(**overrides: Any) -> dict[str, Any]:
        return services.users.create(user_payload(**overrides))

    return _make
