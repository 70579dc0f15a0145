"""Payment-triggered bookings.

A booking is recorded once the payment processor reports a completed
checkout; the webhook plumbing itself lives outside this package.
"""
from __future__ import annotations

import logging
from typing import Any

from tour_booking.errors import AppError
from tour_booking.persistence.repository import Repository, object_id

log = logging.getLogger(__name__)


def create_booking_checkout(
    tours: Repository,
    bookings: Repository,
    tour_id: Any,
    user_id: Any,
) -> dict[str, Any]:
    """Record a paid booking of `tour_id` by `user_id` at the tour's price.

    Raises:
        AppError: (404) if the tour does not exist or is secret, (400) for a
            malformed id.
    """
    tour = tours.find_by_id(tour_id)
    if tour is None:
        raise AppError("No tour found with that ID", 404)

    booking = bookings.create(
        {"tour": tour["_id"], "user": object_id(user_id, "user"), "price": tour["price"]}
    )
    log.info("Booking %s recorded for tour %s", booking["_id"], tour["_id"])
    return booking


def user_bookings_filter(user_id: Any) -> dict[str, Any]:
    """Parent filter listing the bookings of one user."""
    return {"user": object_id(user_id, "user")}
