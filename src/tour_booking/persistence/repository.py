"""Repository: validated CRUD over one MongoDB collection.

Writes go through the collection's pydantic model. Creates, updates and
deletes are announced on the repository's `LifecycleHooks`, which is how the
rating aggregation learns about review changes.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Iterable, Mapping

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import ReturnDocument
from pymongo.collection import Collection

from tour_booking.errors import AppError
from tour_booking.persistence.casting import FieldCaster
from tour_booking.persistence.hooks import (
    AFTER_CREATE,
    AFTER_MUTATE,
    BEFORE_MUTATE,
    LifecycleHooks,
    MutationContext,
)
from tour_booking.query.builder import run_query
from tour_booking.query.spec import VERSION_FIELD, QuerySpec, and_filters

log = logging.getLogger(__name__)

INTERNAL_FIELDS = ("_id", VERSION_FIELD)


def object_id(value: Any, field: str = "_id") -> ObjectId:
    """Parse `value` as an ObjectId.

    Raises:
        AppError: (400) when `value` is not a valid id.
    """
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise AppError(f"Invalid {field}: {value}.", 400) from None


class Repository:
    """Validated access to one collection.

    Args:
        collection: Backing PyMongo collection.
        model: Pydantic model every stored document must satisfy.
        hooks: Lifecycle registry; a private one is created when omitted.
        base_filter: Filter applied to every read, update and delete.
        present: Optional transform applied to documents before they are
            returned (virtual fields).
        populate: Transforms applied to every document read through `find`,
            `find_where` or `find_by_id`, typically `Populate` instances
            replacing references with the referenced documents.
    """

    def __init__(
        self,
        collection: Collection[dict[str, Any]],
        model: type[BaseModel],
        hooks: LifecycleHooks | None = None,
        base_filter: Mapping[str, Any] | None = None,
        present: Callable[[dict[str, Any]], dict[str, Any]] | None = None,
        populate: Iterable[Callable[[dict[str, Any]], dict[str, Any]]] = (),
    ) -> None:
        self.collection = collection
        self.model = model
        self.hooks = hooks or LifecycleHooks()
        self.base_filter = dict(base_filter or {})
        self._present_fn = present
        self.populate = tuple(populate)
        self.cast = FieldCaster(model)

    @property
    def name(self) -> str:
        return self.collection.name

    def _scoped(self, flt: Mapping[str, Any]) -> dict[str, Any]:
        return and_filters(self.base_filter, flt)

    def _present(self, doc: dict[str, Any] | None) -> dict[str, Any] | None:
        if doc is None or self._present_fn is None:
            return doc
        return self._present_fn(doc)

    def _read(self, doc: dict[str, Any] | None) -> dict[str, Any] | None:
        if doc is not None:
            for populate in self.populate:
                doc = populate(doc)
        return self._present(doc)

    # --------------------------------------------------
    # Reads
    # --------------------------------------------------
    def find(self, spec: QuerySpec) -> list[dict[str, Any]]:
        """Run a list query, restricted to this repository's base filter."""
        docs = run_query(self.collection, replace(spec, filter=self._scoped(spec.filter)))
        return [self._read(d) for d in docs]

    def find_where(
        self,
        flt: Mapping[str, Any],
        projection: Mapping[str, int] | None = None,
    ) -> list[dict[str, Any]]:
        """Return every document matching `flt` within the base filter, unsorted."""
        return self.find(QuerySpec(filter=dict(flt), projection=projection))

    def find_by_id(self, doc_id: Any) -> dict[str, Any] | None:
        doc = self.collection.find_one(
            self._scoped({"_id": object_id(doc_id)}),
            {VERSION_FIELD: 0},
        )
        return self._read(doc)

    # --------------------------------------------------
    # Writes
    # --------------------------------------------------
    def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Validate and insert a document, then emit `after_create`.

        Raises:
            pydantic.ValidationError: if `data` does not satisfy the model.
            pymongo.errors.DuplicateKeyError: on a unique index violation.
        """
        doc = self.model.model_validate(dict(data)).model_dump()
        doc[VERSION_FIELD] = 0
        self.collection.insert_one(doc)
        log.info("Created %s document %s", self.name, doc["_id"])

        self.hooks.emit(AFTER_CREATE, doc)
        return self._present({k: v for k, v in doc.items() if k != VERSION_FIELD})

    def update_by_id(self, doc_id: Any, changes: Mapping[str, Any]) -> dict[str, Any] | None:
        """Apply `changes`, re-validating the merged document.

        Only the changed fields and the fields the model derives from them
        (such as a tour's slug) are written, so values maintained elsewhere,
        like rating statistics, are never overwritten with the copy read here.

        Returns:
            The updated document, or None when no document matched.
        """
        ctx = MutationContext("update", object_id(doc_id), changes=dict(changes))
        self.hooks.emit(BEFORE_MUTATE, ctx)

        scoped = self._scoped({"_id": ctx.document_id})
        current = self.collection.find_one(scoped)
        if current is not None:
            merged = {k: v for k, v in current.items() if k not in INTERNAL_FIELDS}
            merged.update(ctx.changes)
            validated = self.model.model_validate(merged).model_dump()
            updates = {
                k: v for k, v in validated.items()
                if k in ctx.changes or v != current.get(k)
            }
            if updates:
                ctx.result = self.collection.find_one_and_update(
                    scoped,
                    {"$set": updates},
                    projection={VERSION_FIELD: 0},
                    return_document=ReturnDocument.AFTER,
                )
            else:
                ctx.result = self.collection.find_one(scoped, {VERSION_FIELD: 0})
            log.info("Updated %s document %s", self.name, ctx.document_id)

        self.hooks.emit(AFTER_MUTATE, ctx)
        return self._present(ctx.result)

    def delete_by_id(self, doc_id: Any) -> dict[str, Any] | None:
        """Delete one document.

        Returns:
            The deleted document, or None when no document matched.
        """
        ctx = MutationContext("delete", object_id(doc_id))
        self.hooks.emit(BEFORE_MUTATE, ctx)

        ctx.result = self.collection.find_one_and_delete(self._scoped({"_id": ctx.document_id}))
        if ctx.result is not None:
            log.info("Deleted %s document %s", self.name, ctx.document_id)

        self.hooks.emit(AFTER_MUTATE, ctx)
        return ctx.result
