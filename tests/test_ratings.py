from __future__ import annotations

from typing import Any

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from tour_booking.ratings import RatingStats


def _review(tour: dict[str, Any], rating: float, user: ObjectId | None = None) -> dict[str, Any]:
    return {
        "review": "Loved every minute of it",
        "rating": rating,
        "tour": tour["_id"],
        "user": user or ObjectId(),
    }


def _stats(db, tour: dict[str, Any]) -> tuple[int, float]:
    doc = db["tours"].find_one({"_id": tour["_id"]})
    return doc["ratings_quantity"], doc["ratings_average"]


def test_new_tour_starts_with_default_stats(db, make_tour) -> None:
    tour = make_tour()
    assert _stats(db, tour) == (0, 4.5)


def test_recompute_without_reviews_yields_defaults(services, make_tour) -> None:
    tour = make_tour()
    assert services.ratings.recompute(tour["_id"]) == RatingStats(count=0, mean=4.5)


def test_creating_reviews_updates_parent(db, services, make_tour) -> None:
    tour = make_tour()
    for rating in (4, 5, 3):
        services.reviews.create(_review(tour, rating))
    assert _stats(db, tour) == (3, 4.0)


def test_mean_is_rounded_to_one_decimal(db, services, make_tour) -> None:
    tour = make_tour()
    for rating in (4, 5, 5):
        services.reviews.create(_review(tour, rating))
    assert _stats(db, tour) == (3, 4.7)


def test_updating_review_recomputes(db, services, make_tour) -> None:
    tour = make_tour()
    first = services.reviews.create(_review(tour, 5))
    services.reviews.create(_review(tour, 3))
    assert _stats(db, tour) == (2, 4.0)

    services.reviews.update_by_id(str(first["_id"]), {"rating": 1})
    assert _stats(db, tour) == (2, 2.0)


def test_deleting_only_review_restores_defaults(db, services, make_tour) -> None:
    tour = make_tour()
    review = services.reviews.create(_review(tour, 2))
    assert _stats(db, tour) == (1, 2.0)

    services.reviews.delete_by_id(review["_id"])
    assert _stats(db, tour) == (0, 4.5)


def test_moving_review_recomputes_both_tours(db, services, make_tour) -> None:
    origin = make_tour(name="The Forest Hiker")
    target = make_tour(name="The Sea Explorer")
    review = services.reviews.create(_review(origin, 5))

    services.reviews.update_by_id(review["_id"], {"tour": target["_id"]})
    assert _stats(db, origin) == (0, 4.5)
    assert _stats(db, target) == (1, 5.0)


def test_mutating_missing_review_is_a_noop(db, services, make_tour) -> None:
    tour = make_tour()
    assert services.reviews.delete_by_id(ObjectId()) is None
    assert services.reviews.update_by_id(ObjectId(), {"rating": 2}) is None
    assert _stats(db, tour) == (0, 4.5)


def test_interleaved_triggers_converge(db, services, make_tour) -> None:
    tour = make_tour()
    # both reviews land before either trigger runs
    db["reviews"].insert_many([_review(tour, 4), _review(tour, 2)])

    stale = services.ratings.compute(tour["_id"])
    db["reviews"].insert_one(_review(tour, 5))
    services.ratings.recompute(tour["_id"])

    # a slow writer overwrites with stats computed before the third review
    db["tours"].update_one(
        {"_id": tour["_id"]},
        {"$set": {"ratings_quantity": stale.count, "ratings_average": stale.mean}},
    )
    assert _stats(db, tour) == (2, 3.0)

    # the next trigger recomputes from the full set
    services.ratings.recompute(tour["_id"])
    assert _stats(db, tour) == (3, 3.7)


def test_reconcile_all_repairs_every_tour(db, services, make_tour) -> None:
    first = make_tour(name="The Forest Hiker")
    second = make_tour(name="The Sea Explorer", secret_tour=True)
    db["reviews"].insert_many([_review(first, 4), _review(second, 5), _review(second, 4)])

    assert services.ratings.reconcile_all() == 2
    assert _stats(db, first) == (1, 4.0)
    assert _stats(db, second) == (2, 4.5)


def test_one_review_per_user_per_tour(services, make_tour) -> None:
    tour = make_tour()
    user = ObjectId()
    services.reviews.create(_review(tour, 4, user))
    with pytest.raises(DuplicateKeyError):
        services.reviews.create(_review(tour, 5, user))


def test_tour_update_keeps_stats_recomputed_meanwhile(db, services, make_tour, monkeypatch) -> None:
    tour = make_tour()
    collection = services.tours.collection
    write = collection.find_one_and_update

    def review_lands_first(*args, **kwargs):
        # a review trigger runs between the update's read and its write
        services.reviews.create(_review(tour, 2))
        return write(*args, **kwargs)

    monkeypatch.setattr(collection, "find_one_and_update", review_lands_first)
    updated = services.tours.update_by_id(tour["_id"], {"price": 500})

    assert updated["price"] == 500
    assert (updated["ratings_quantity"], updated["ratings_average"]) == (1, 2.0)
    assert _stats(db, tour) == (1, 2.0)


def test_tour_update_writes_only_changed_and_derived_fields(db, services, make_tour) -> None:
    tour = make_tour()
    db["tours"].update_one({"_id": tour["_id"]}, {"$set": {"ratings_quantity": 7}})

    updated = services.tours.update_by_id(tour["_id"], {"name": "The Forest Trekker"})
    assert updated["slug"] == "the-forest-trekker"
    assert updated["ratings_quantity"] == 7


def test_reviews_without_ratings_keep_default_average(db, services, make_tour) -> None:
    tour = make_tour()
    services.reviews.create({"review": "No stars given", "tour": tour["_id"], "user": ObjectId()})
    assert _stats(db, tour) == (1, 4.5)
