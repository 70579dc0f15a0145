"""MongoDB helpers and index setup.

Centralizes creation of Mongo clients and the indexes every collection of
the service relies on (uniqueness of tour names, user emails and of one
review per user per tour, geo queries on tour start locations).
"""

from __future__ import annotations

import logging
from typing import Any

import certifi
from pymongo import ASCENDING, DESCENDING, GEOSPHERE, MongoClient
from pymongo.database import Database

log = logging.getLogger(__name__)

TOURS = "tours"
REVIEWS = "reviews"
BOOKINGS = "bookings"
USERS = "users"


def get_client(uri: str, tls: bool = False) -> MongoClient:
    """Return a configured PyMongo MongoClient for the provided URI.

    Args:
        uri: MongoDB connection URI.
        tls: Connect over TLS, trusting the certifi CA bundle.

    Returns:
        Configured MongoClient instance.
    """
    options: dict[str, Any] = {
        "serverSelectionTimeoutMS": 30000,
        "socketTimeoutMS": 30000,
        "connectTimeoutMS": 30000,
    }
    if tls:
        options.update(tls=True, tlsCAFile=certifi.where())
    return MongoClient(uri, **options)


def get_db(
    client: MongoClient[dict[str, Any]],
    db_name: str,
) -> Database[dict[str, Any]]:
    """Return the named Database instance from a MongoClient.

    Args:
        client: PyMongo MongoClient.
        db_name: Database name.

    Returns:
        A Database object.
    """
    return client[db_name]


def ensure_indexes(db: Database[dict[str, Any]], geo: bool = True) -> None:
    """Create the indexes the service depends on.

    Args:
        db: Target database.
        geo: Also create the `2dsphere` index on tour start locations.
    """
    tours = db[TOURS]
    tours.create_index([("name", ASCENDING)], unique=True)
    tours.create_index([("slug", ASCENDING)])
    tours.create_index([("price", ASCENDING), ("ratings_average", DESCENDING)])
    if geo:
        tours.create_index([("start_location", GEOSPHERE)])

    # one review per user per tour
    db[REVIEWS].create_index([("tour", ASCENDING), ("user", ASCENDING)], unique=True)

    db[BOOKINGS].create_index([("user", ASCENDING)])

    db[USERS].create_index([("email", ASCENDING)], unique=True)

    log.info("Indexes ensured on database %s", db.name)
