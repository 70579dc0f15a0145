"""tour_booking package.

Backend for a tour-booking service: tour catalog browsing, reviews with
aggregated ratings, and payment-triggered bookings stored in MongoDB.

Architecture:
- `query` turns flat request parameters into filter/sort/projection/pagination
- `persistence` wraps collections and emits explicit lifecycle events
- `ratings` subscribes to review events and recomputes tour statistics
- `handlers` exposes generic CRUD operations returning JSON envelopes
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
