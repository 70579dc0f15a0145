"""Explicit lifecycle events emitted by repositories.

Subscribers register plain callables per event. Handlers run synchronously,
in subscription order, on the thread performing the write; an exception in
a handler propagates to whoever performed the write.

Events:
- `after_create`: payload is the inserted document (with `_id`).
- `before_mutate`: payload is a `MutationContext` before an update or
  delete reaches the database.
- `after_mutate`: the same `MutationContext`, with `result` set to the
  updated or deleted document (None when nothing matched).
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable

from bson import ObjectId

log = logging.getLogger(__name__)

AFTER_CREATE = "after_create"
BEFORE_MUTATE = "before_mutate"
AFTER_MUTATE = "after_mutate"
EVENTS = (AFTER_CREATE, BEFORE_MUTATE, AFTER_MUTATE)

Handler = Callable[[Any], None]


@dataclass
class MutationContext:
    """State shared by the before/after handlers of one update or delete.

    Attributes:
        operation: "update" or "delete".
        document_id: Id of the targeted document.
        changes: Requested field changes (updates only).
        result: Document after the update, or the deleted document.
        captured: Scratch space for subscribers to carry values from the
            before-event to the after-event.
    """
    operation: str
    document_id: ObjectId
    changes: dict[str, Any] | None = None
    result: dict[str, Any] | None = None
    captured: dict[str, Any] = field(default_factory=dict)


class LifecycleHooks:
    """Registry of event handlers for one repository."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, event: str, handler: Handler) -> None:
        if event not in EVENTS:
            raise ValueError(f"Unknown lifecycle event: {event}")
        self._handlers[event].append(handler)

    def emit(self, event: str, payload: Any) -> None:
        for handler in self._handlers.get(event, ()):
            log.debug("Dispatching %s to %s", event, getattr(handler, "__qualname__", handler))
            handler(payload)
