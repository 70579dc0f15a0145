"""Replacing stored references with the documents they point to."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from tour_booking.persistence.repository import Repository


@dataclass(frozen=True)
class Populate:
    """Fill `field` of a document with documents read from `source`.

    Two shapes are supported:

    - references stored on the document: `Populate("user", users)` replaces
      the id in `user` with that user; with `many=True` a list of ids is
      replaced by the list of documents, in the stored order.
    - virtual back-references: `Populate("reviews", reviews, local_field="_id",
      foreign_field="tour", many=True)` lists the reviews whose `tour` is the
      document's id.

    Referenced documents are read through the source repository, so its base
    filter applies (a deactivated user is populated as None) and so do its
    own populations.

    Attributes:
        field: Field receiving the populated value.
        source: Repository of the referenced documents.
        local_field: Field holding the reference; defaults to `field`.
        foreign_field: Field of the referenced documents matched against it.
        projection: Projection applied to the referenced documents.
        many: Populate a list rather than a single document.
    """
    field: str
    source: "Repository"
    local_field: str | None = None
    foreign_field: str = "_id"
    projection: Mapping[str, int] | None = None
    many: bool = False

    def __call__(self, doc: dict[str, Any]) -> dict[str, Any]:
        key = doc.get(self.local_field or self.field)
        if key is None:
            return doc

        if isinstance(key, list):
            found = []
            if key:
                found = self.source.find_where({self.foreign_field: {"$in": key}}, self.projection)
            # keep the order of the stored references
            by_key = {d.get(self.foreign_field): d for d in found}
            found = [by_key[k] for k in key if k in by_key]
        else:
            found = self.source.find_where({self.foreign_field: key}, self.projection)

        if self.many:
            value: Any = found
        else:
            value = found[0] if found else None
        return {**doc, self.field: value}
