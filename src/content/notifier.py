"""In-process change broadcasting.

Delivery is synchronous and ordered: events published while handlers are
running (a handler that writes to the store, for instance) are queued and
delivered after the current event has reached every subscriber, never
nested inside it.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from folio.content.models import EntityKind
from folio.storage.base import PersistenceAdapter, StorageEvent

logger = logging.getLogger(__name__)


class Operation(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    REORDER = "reorder"
    BULK_UPDATE = "bulk_update"
    BULK_DELETE = "bulk_delete"
    PUBLISH = "publish"
    UNPUBLISH = "unpublish"
    RESTORE = "restore"
    IMPORT = "import"
    RESET = "reset"
    EXTERNAL = "external"


class ChangeEvent(BaseModel):
    """What changed: the kind, how, and an operation-specific payload."""

    kind: EntityKind
    operation: Operation
    payload: Any = None
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))


Handler = Callable[[ChangeEvent], None]


class Subscription:
    """Token returned by :meth:`ChangeNotifier.subscribe`."""

    def __init__(self, cancel: Callable[[], None]) -> None:
        self._cancel = cancel
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._cancel()


class ChangeNotifier:
    """Fan change events out to per-kind and catch-all subscribers."""

    def __init__(self) -> None:
        self._handlers: list[tuple[EntityKind | None, Handler]] = []
        self._queue: deque[ChangeEvent] = deque()
        self._dispatching = False

    def subscribe(self, kind: EntityKind | str | None, handler: Handler) -> Subscription:
        """Call ``handler`` for every event of ``kind`` (all kinds when None)."""
        entry = (EntityKind(kind) if kind is not None else None, handler)
        self._handlers.append(entry)

        def cancel() -> None:
            if entry in self._handlers:
                self._handlers.remove(entry)

        return Subscription(cancel)

    def publish(
        self, kind: EntityKind | str, operation: Operation | str, payload: Any = None
    ) -> None:
        self._queue.append(
            ChangeEvent(kind=EntityKind(kind), operation=Operation(operation), payload=payload)
        )
        if self._dispatching:
            return
        self._dispatching = True
        try:
            while self._queue:
                self._deliver(self._queue.popleft())
        finally:
            self._dispatching = False

    def _deliver(self, event: ChangeEvent) -> None:
        for kind, handler in list(self._handlers):
            if kind is not None and kind != event.kind:
                continue
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Change handler %r failed for %s/%s", handler, event.kind, event.operation
                )

    def bridge(
        self,
        adapter: PersistenceAdapter,
        reconcile: Callable[[StorageEvent], EntityKind | None],
    ) -> Subscription:
        """Republish foreign writes on ``adapter`` as EXTERNAL events.

        ``reconcile`` brings the owner's in-memory copy up to date and returns
        the affected kind, or None when the key is not an entity (a backup,
        an unrelated key, an unusable value).
        """

        def listener(event: StorageEvent) -> None:
            kind = reconcile(event)
            if kind is not None:
                self.publish(kind, Operation.EXTERNAL, {"key": event.key})

        adapter.add_listener(listener)
        return Subscription(lambda: adapter.remove_listener(listener))
