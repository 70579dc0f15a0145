"""Denormalized rating statistics kept on tours."""
from __future__ import annotations

from tour_booking.ratings.aggregator import RatingAggregator, RatingStats

__all__ = ["RatingAggregator", "RatingStats"]
