from __future__ import annotations

from datetime import datetime, timezone

import pytest
from bson import ObjectId

from tour_booking.handlers import catch_errors, get_all
from tour_booking.models import Tour
from tour_booking.persistence.casting import FieldCaster
from tour_booking.query.params import parse_query_string


def _results(repo, qs: str) -> list[dict]:
    status, body = get_all(repo, parse_query_string(qs))
    assert status == 200
    return body["data"]["data"]


def test_caster_uses_field_types() -> None:
    cast = FieldCaster(Tour)
    assert cast("name", "1984") == "1984"
    assert cast("price", "397") == 397.0
    assert cast("secret_tour", "false") is False
    oid = ObjectId()
    assert cast("guides", str(oid)) == oid


def test_caster_ignores_storage_constraints() -> None:
    # ratings_average is stored within 1..5, but a bound below 1 is a valid filter
    assert FieldCaster(Tour)("ratings_average", "0") == 0.0


def test_unknown_fields_fall_back_to_numeric_coercion() -> None:
    cast = FieldCaster(Tour)
    assert cast("start_location.day", "3") == 3
    assert cast("nickname", "forest") == "forest"


def test_datetime_values_are_naive_utc() -> None:
    value = FieldCaster(Tour)("created_at", "2024-01-01T02:00:00+02:00")
    assert value == datetime(2024, 1, 1, 0, 0)
    assert value.tzinfo is None


def test_filter_reviews_by_tour_id(services, make_tour) -> None:
    hiker = make_tour(name="The Forest Hiker")
    explorer = make_tour(name="The Sea Explorer")
    for tour in (hiker, explorer):
        services.reviews.create({"review": "Lovely", "rating": 4, "tour": tour["_id"], "user": ObjectId()})

    docs = _results(services.reviews, f"tour={hiker['_id']}")
    assert [d["tour"] for d in docs] == [hiker["_id"]]


def test_filter_bookings_by_user_and_paid(services, make_tour) -> None:
    tour = make_tour()
    alice, bob = ObjectId(), ObjectId()
    services.bookings.create({"tour": tour["_id"], "user": alice, "price": 397})
    services.bookings.create({"tour": tour["_id"], "user": bob, "price": 397, "paid": False})

    assert [d["user"] for d in _results(services.bookings, f"user={alice}")] == [alice]
    assert [d["user"] for d in _results(services.bookings, "paid=true")] == [alice]
    assert [d["user"] for d in _results(services.bookings, "paid=false")] == [bob]


def test_filter_by_date_range(services, make_tour) -> None:
    tour = make_tour()
    for year in (2023, 2024):
        services.bookings.create({
            "tour": tour["_id"],
            "user": ObjectId(),
            "price": year,
            "created_at": datetime(year, 6, 1, tzinfo=timezone.utc),
        })

    docs = _results(services.bookings, "created_at[gte]=2024-01-01")
    assert [d["price"] for d in docs] == [2024]

    docs = _results(services.bookings, "created_at[lt]=2024-01-01T00:00:00Z")
    assert [d["price"] for d in docs] == [2023]


def test_numeric_looking_names_stay_strings(services, make_tour) -> None:
    make_tour(name="Winter 2024 Expedition")
    docs = _results(services.tours, "name=Winter 2024 Expedition")
    assert len(docs) == 1


@pytest.mark.parametrize("qs", ["price=cheap", "tour=not-an-id"])
def test_uncastable_filter_value_is_400(services, qs: str) -> None:
    repo = services.tours if qs.startswith("price") else services.reviews
    status, body = catch_errors(get_all)(repo, parse_query_string(qs))
    assert status == 400
    assert body["message"].startswith("Invalid input data.")
