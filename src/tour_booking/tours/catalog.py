"""Catalog helpers: popular-query aliases, statistics and geo search.

Pipelines are built by pure `*_pipeline`/`*_filter` functions and executed
by thin wrappers taking the tours collection. Secret tours never appear in
any result.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, Mapping

from pymongo.collection import Collection

from tour_booking.errors import AppError

log = logging.getLogger(__name__)

SECRET_TOUR_FILTER: dict[str, Any] = {"secret_tour": {"$ne": True}}

EARTH_RADIUS = {"mi": 3963.2, "km": 6378.1}
METERS_TO_UNIT = {"mi": 0.000621371, "km": 0.001}


def add_tour_virtuals(doc: dict[str, Any]) -> dict[str, Any]:
    """Add read-only derived fields (`duration_weeks`) to a tour document."""
    if doc.get("duration") is not None:
        doc["duration_weeks"] = doc["duration"] / 7
    return doc


def alias_top_tours(params: Mapping[str, Any]) -> dict[str, Any]:
    """Return `params` preset to the five best-rated, cheapest tours."""
    aliased = dict(params)
    aliased["limit"] = "5"
    aliased["sort"] = "-ratings_average,price"
    aliased["fields"] = "name,price,ratings_average,summary,difficulty"
    return aliased


# --------------------------------------------------
# Statistics
# --------------------------------------------------
def tour_stats_pipeline() -> list[dict[str, Any]]:
    """Per-difficulty statistics over well-rated tours (average >= 4.5)."""
    return [
        {"$match": SECRET_TOUR_FILTER},
        {"$match": {"ratings_average": {"$gte": 4.5}}},
        {
            "$group": {
                "_id": {"$toUpper": "$difficulty"},
                "num_tours": {"$sum": 1},
                "num_ratings": {"$sum": "$ratings_quantity"},
                "avg_rating": {"$avg": "$ratings_average"},
                "avg_price": {"$avg": "$price"},
                "min_price": {"$min": "$price"},
                "max_price": {"$max": "$price"},
            }
        },
        {"$sort": {"avg_price": 1}},
    ]


def tour_stats(tours: Collection[dict[str, Any]]) -> list[dict[str, Any]]:
    return list(tours.aggregate(tour_stats_pipeline()))


def monthly_plan_pipeline(year: int) -> list[dict[str, Any]]:
    """Tour starts per month of `year`, busiest month first.

    Args:
        year: Calendar year to report.
    """
    start = datetime(year, 1, 1, tzinfo=timezone.utc)
    end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    return [
        {"$match": SECRET_TOUR_FILTER},
        {"$unwind": "$start_dates"},
        {"$match": {"start_dates": {"$gte": start, "$lt": end}}},
        {
            "$group": {
                "_id": {"$month": "$start_dates"},
                "num_tour_starts": {"$sum": 1},
                "tours": {"$push": "$name"},
            }
        },
        {"$addFields": {"month": "$_id"}},
        {"$project": {"_id": 0}},
        {"$sort": {"num_tour_starts": -1}},
        {"$limit": 12},
    ]


def monthly_plan(tours: Collection[dict[str, Any]], year: int) -> list[dict[str, Any]]:
    return list(tours.aggregate(monthly_plan_pipeline(year)))


# --------------------------------------------------
# Geo search
# --------------------------------------------------
def _parse_latlng(latlng: str) -> tuple[float, float]:
    try:
        lat_text, lng_text = latlng.split(",")
        return float(lat_text), float(lng_text)
    except (AttributeError, ValueError):
        raise AppError(
            "Please provide latitude and longitude in the format lat,lng.", 400
        ) from None


def _parse_distance(distance: Any) -> float:
    try:
        value = float(distance)
    except (TypeError, ValueError):
        raise AppError(f"Invalid distance: {distance}.", 400) from None
    if value < 0 or not math.isfinite(value):
        raise AppError(f"Invalid distance: {distance}.", 400)
    return value


def _unit(unit: str) -> str:
    return "mi" if unit == "mi" else "km"


def tours_within_filter(distance: float | str, latlng: str, unit: str) -> dict[str, Any]:
    """Filter for tours starting within `distance` of `latlng`.

    Args:
        distance: Search radius in `unit`.
        latlng: "lat,lng" string.
        unit: "mi" for miles; anything else means kilometres.

    Raises:
        AppError: (400) for a malformed `latlng` or a non-numeric or
            negative `distance`.
    """
    lat, lng = _parse_latlng(latlng)
    radius = _parse_distance(distance) / EARTH_RADIUS[_unit(unit)]
    return {
        "start_location": {
            "$geoWithin": {"$centerSphere": [[lng, lat], radius]}
        }
    }


def tours_within(
    tours: Collection[dict[str, Any]],
    distance: float,
    latlng: str,
    unit: str,
) -> list[dict[str, Any]]:
    flt = {"$and": [SECRET_TOUR_FILTER, tours_within_filter(distance, latlng, unit)]}
    docs = [add_tour_virtuals(d) for d in tours.find(flt, {"__v": 0})]
    log.info("Found %d tours within %s %s of %s", len(docs), distance, _unit(unit), latlng)
    return docs


def distances_pipeline(latlng: str, unit: str) -> list[dict[str, Any]]:
    """Distance from `latlng` to every tour start, nearest first.

    Requires the `2dsphere` index on `start_location`.
    """
    lat, lng = _parse_latlng(latlng)
    return [
        {
            "$geoNear": {
                "near": {"type": "Point", "coordinates": [lng, lat]},
                "distanceField": "distance",
                "distanceMultiplier": METERS_TO_UNIT[_unit(unit)],
                "query": SECRET_TOUR_FILTER,
            }
        },
        {"$project": {"distance": 1, "name": 1}},
    ]


def distances(tours: Collection[dict[str, Any]], latlng: str, unit: str) -> list[dict[str, Any]]:
    return list(tours.aggregate(distances_pipeline(latlng, unit)))
