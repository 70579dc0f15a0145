"""Wiring of repositories and the rating aggregator for one database."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pymongo.database import Database

from tour_booking.db import BOOKINGS, REVIEWS, TOURS, USERS
from tour_booking.models import Booking, Review, Tour, User
from tour_booking.persistence.populate import Populate
from tour_booking.persistence.repository import Repository, object_id
from tour_booking.ratings.aggregator import RatingAggregator
from tour_booking.tours.catalog import SECRET_TOUR_FILTER, add_tour_virtuals
from tour_booking.users import ACTIVE_USER_FILTER, hide_active_flag

REVIEW_AUTHOR_FIELDS = {"name": 1, "photo": 1}


@dataclass(frozen=True)
class Services:
    """Repositories of one database, with review events wired to ratings.

    Attributes:
        tour_reviews: Population of a tour's reviews, used when reading a
            single tour.
    """
    tours: Repository
    reviews: Repository
    bookings: Repository
    users: Repository
    ratings: RatingAggregator
    tour_reviews: Populate

    def repository(self, resource: str) -> Repository:
        """Return the repository named `resource` ("tours", "reviews", "bookings", "users")."""
        repos = {
            TOURS: self.tours,
            REVIEWS: self.reviews,
            BOOKINGS: self.bookings,
            USERS: self.users,
        }
        try:
            return repos[resource]
        except KeyError:
            raise ValueError(f"Unknown resource: {resource}") from None


def build_services(db: Database[dict[str, Any]]) -> Services:
    """Create the repositories for `db` and attach the rating aggregator."""
    users = Repository(
        db[USERS],
        User,
        base_filter=ACTIVE_USER_FILTER,
        present=hide_active_flag,
    )
    tours = Repository(
        db[TOURS],
        Tour,
        base_filter=SECRET_TOUR_FILTER,
        present=add_tour_virtuals,
        populate=[Populate("guides", users, many=True)],
    )
    reviews = Repository(
        db[REVIEWS],
        Review,
        populate=[Populate("user", users, projection=REVIEW_AUTHOR_FIELDS)],
    )
    bookings = Repository(db[BOOKINGS], Booking)

    ratings = RatingAggregator(children=db[REVIEWS], parents=db[TOURS])
    ratings.attach(reviews)

    return Services(
        tours=tours,
        reviews=reviews,
        bookings=bookings,
        users=users,
        ratings=ratings,
        tour_reviews=Populate("reviews", reviews, local_field="_id", foreign_field="tour", many=True),
    )


def tour_reviews_filter(tour_id: Any) -> dict[str, Any]:
    """Parent filter listing the reviews of one tour."""
    return {"tour": object_id(tour_id, "tour")}
