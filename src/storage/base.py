"""Persistence adapter contract.

An adapter moves opaque text blobs under string keys and knows nothing
about entity semantics.  ``set`` is atomic from the caller's point of view:
either the new value is fully committed or the previous value is kept.
Capacity and availability failures surface as distinct ``StorageError``
subclasses so callers can decide whether to retry, fall back or report.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageEvent:
    """A write to the shared medium that did not come from this adapter."""

    key: str
    old_value: str | None
    new_value: str | None


StorageListener = Callable[[StorageEvent], None]


class PersistenceAdapter(ABC):
    """Durable key-value medium."""

    def __init__(self) -> None:
        self._listeners: list[StorageListener] = []

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key`` atomically.

        Raises QuotaExceededError or StorageUnavailableError on failure.
        """

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete ``key``.  Removing an absent key is a no-op."""

    @abstractmethod
    def list_keys(self, prefix: str = "") -> list[str]:
        """Return every key starting with ``prefix``, sorted."""

    # ── External change listeners ────────────────────────────────

    def add_listener(self, listener: StorageListener) -> None:
        """Register ``listener`` for writes made through other adapters."""
        self._listeners.append(listener)

    def remove_listener(self, listener: StorageListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: StorageEvent) -> None:
        for listener in list(self._listeners):
            listener(event)
