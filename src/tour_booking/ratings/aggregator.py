"""Recompute a tour's rating statistics from its reviews.

Statistics are never patched incrementally: every trigger re-runs a
`$match`/`$group` aggregation over all reviews of the affected tour and
overwrites `ratings_quantity` and `ratings_average`. Two concurrent review
writes on one tour may race (last recompute wins), but the next trigger
recomputes from the full set again, so the stored values converge.

Notes:
- Handlers run synchronously inside the repository call that triggered
  them, so a failed recompute surfaces as an error of that create, update
  or delete.
- `reconcile_all` is the explicit repair path for tours whose statistics
  drifted (for instance after reviews were written around the repository).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from bson import ObjectId
from pymongo.collection import Collection

from tour_booking.models import DEFAULT_RATINGS_AVERAGE, round_half_up
from tour_booking.persistence.hooks import (
    AFTER_CREATE,
    AFTER_MUTATE,
    BEFORE_MUTATE,
    MutationContext,
)
from tour_booking.persistence.repository import Repository

log = logging.getLogger(__name__)

_CAPTURED_PARENT = "rating_parent"


@dataclass(frozen=True)
class RatingStats:
    """Aggregate statistics of one parent.

    Attributes:
        count: Number of child documents.
        mean: Mean of the rated field, rounded to one decimal, or the
            default average when no child carries a rating.
    """
    count: int
    mean: float


class RatingAggregator:
    """Keeps parent statistics in sync with a child collection.

    Args:
        children: Collection holding the rated documents (reviews).
        parents: Collection holding the statistics (tours).
        parent_field: Field in a child referencing its parent.
        value_field: Numeric field averaged over the children.
    """

    def __init__(
        self,
        children: Collection[dict[str, Any]],
        parents: Collection[dict[str, Any]],
        parent_field: str = "tour",
        value_field: str = "rating",
    ) -> None:
        self.children = children
        self.parents = parents
        self.parent_field = parent_field
        self.value_field = value_field

    def attach(self, repo: Repository) -> None:
        """Subscribe to the lifecycle events of the child repository."""
        repo.hooks.subscribe(AFTER_CREATE, self._on_created)
        repo.hooks.subscribe(BEFORE_MUTATE, self._snapshot_parent)
        repo.hooks.subscribe(AFTER_MUTATE, self._on_mutated)

    # --------------------------------------------------
    # Event handlers
    # --------------------------------------------------
    def _on_created(self, doc: dict[str, Any]) -> None:
        self.recompute(doc[self.parent_field])

    def _snapshot_parent(self, ctx: MutationContext) -> None:
        # the child is gone once a delete has run, so read its parent now
        child = self.children.find_one({"_id": ctx.document_id}, {self.parent_field: 1})
        if child is not None:
            ctx.captured[_CAPTURED_PARENT] = child.get(self.parent_field)

    def _on_mutated(self, ctx: MutationContext) -> None:
        parent_id = ctx.captured.get(_CAPTURED_PARENT)
        if parent_id is None or ctx.result is None:
            return
        self.recompute(parent_id)

        moved_to = ctx.result.get(self.parent_field) if ctx.operation == "update" else None
        if moved_to is not None and moved_to != parent_id:
            self.recompute(moved_to)

    # --------------------------------------------------
    # Recompute
    # --------------------------------------------------
    def compute(self, parent_id: ObjectId) -> RatingStats:
        """Aggregate the current children of `parent_id` without writing."""
        pipeline = [
            {"$match": {self.parent_field: parent_id}},
            {
                "$group": {
                    "_id": f"${self.parent_field}",
                    "n_rating": {"$sum": 1},
                    "avg_rating": {"$avg": f"${self.value_field}"},
                }
            },
        ]
        stats = list(self.children.aggregate(pipeline))
        if not stats or stats[0]["avg_rating"] is None:
            count = stats[0]["n_rating"] if stats else 0
            return RatingStats(count=count, mean=DEFAULT_RATINGS_AVERAGE)
        return RatingStats(
            count=int(stats[0]["n_rating"]),
            mean=round_half_up(float(stats[0]["avg_rating"])),
        )

    def recompute(self, parent_id: ObjectId) -> RatingStats:
        """Recompute and persist the statistics of `parent_id`."""
        stats = self.compute(parent_id)
        result = self.parents.update_one(
            {"_id": parent_id},
            {"$set": {"ratings_quantity": stats.count, "ratings_average": stats.mean}},
        )
        if result.matched_count == 0:
            log.warning("Rating recompute found no %s document %s", self.parents.name, parent_id)
        else:
            log.info(
                "Recomputed ratings for %s %s: count=%d mean=%.1f",
                self.parents.name,
                parent_id,
                stats.count,
                stats.mean,
            )
        return stats

    def reconcile_all(self) -> int:
        """Recompute every parent document; returns how many were processed."""
        processed = 0
        for parent in self.parents.find({}, {"_id": 1}):
            self.recompute(parent["_id"])
            processed += 1
        log.info("Reconciled ratings for %d %s documents", processed, self.parents.name)
        return processed
