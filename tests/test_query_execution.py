from __future__ import annotations

from typing import Any

from tour_booking.handlers import get_all
from tour_booking.query import build_query, run_query


def _names(envelope: dict[str, Any]) -> list[str]:
    return [d["name"] for d in envelope["data"]["data"]]


def _seed(make_tour) -> None:
    make_tour(name="The Forest Hiker", price=397, duration=5, ratings_average=4.7)
    make_tour(name="The Sea Explorer", price=497, duration=7, ratings_average=4.8, difficulty="medium")
    make_tour(name="The Snow Adventurer", price=997, duration=4, ratings_average=4.5, difficulty="difficult")
    make_tour(name="The City Wanderer", price=1197, duration=9, ratings_average=4.6)
    make_tour(name="The Park Camper", price=497, duration=10, ratings_average=4.9, difficulty="medium")


def test_comparison_operators_filter_results(services, make_tour) -> None:
    _seed(make_tour)
    _, body = get_all(services.tours, {"price": {"gt": "397", "lte": "997"}})
    assert sorted(_names(body)) == ["The Park Camper", "The Sea Explorer", "The Snow Adventurer"]

    _, body = get_all(services.tours, {"duration": {"gte": "7", "lt": "10"}})
    assert sorted(_names(body)) == ["The City Wanderer", "The Sea Explorer"]


def test_equality_filter(services, make_tour) -> None:
    _seed(make_tour)
    _, body = get_all(services.tours, {"difficulty": "medium", "price": "497"})
    assert body["results"] == 2
    assert all(d["difficulty"] == "medium" for d in body["data"]["data"])


def test_sort_breaks_ties_with_later_fields(services, make_tour) -> None:
    _seed(make_tour)
    _, body = get_all(services.tours, {"sort": "price,-ratings_average"})
    assert _names(body) == [
        "The Forest Hiker",
        "The Park Camper",
        "The Sea Explorer",
        "The Snow Adventurer",
        "The City Wanderer",
    ]


def test_default_projection_hides_version_field(db, services, make_tour) -> None:
    _seed(make_tour)
    assert db["tours"].find_one({})["__v"] == 0
    _, body = get_all(services.tours, {})
    assert body["results"] == 5
    assert all("__v" not in d for d in body["data"]["data"])


def test_fields_select_only_requested(services, make_tour) -> None:
    _seed(make_tour)
    docs = run_query(services.tours.collection, build_query({"fields": "name,price"}))
    assert docs
    assert all(set(d) == {"_id", "name", "price"} for d in docs)


def test_pagination_pages_through_results(services, make_tour) -> None:
    _seed(make_tour)
    _, first = get_all(services.tours, {"sort": "price,name", "limit": "2"})
    _, second = get_all(services.tours, {"sort": "price,name", "limit": "2", "page": "2"})
    _, third = get_all(services.tours, {"sort": "price,name", "limit": "2", "page": "3"})
    assert _names(first) == ["The Forest Hiker", "The Park Camper"]
    assert _names(second) == ["The Sea Explorer", "The Snow Adventurer"]
    assert _names(third) == ["The City Wanderer"]
