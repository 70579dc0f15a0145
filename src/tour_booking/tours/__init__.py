"""Tour catalog queries beyond generic CRUD."""
from __future__ import annotations

from tour_booking.tours.catalog import (
    SECRET_TOUR_FILTER,
    add_tour_virtuals,
    alias_top_tours,
    distances,
    distances_pipeline,
    monthly_plan,
    monthly_plan_pipeline,
    tour_stats,
    tour_stats_pipeline,
    tours_within,
    tours_within_filter,
)

__all__ = [
    "SECRET_TOUR_FILTER",
    "add_tour_virtuals",
    "alias_top_tours",
    "distances",
    "distances_pipeline",
    "monthly_plan",
    "monthly_plan_pipeline",
    "tour_stats",
    "tour_stats_pipeline",
    "tours_within",
    "tours_within_filter",
]
