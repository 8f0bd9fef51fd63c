"""In-memory medium shared by any number of adapters.

A :class:`MemoryMedium` plays the role of browser local storage: every
adapter attached to it sees the same keys, and a write through one adapter
is announced to the listeners of all the *other* adapters, the way a
second tab receives a storage event.
"""

from __future__ import annotations

import logging

from folio.errors import QuotaExceededError, StorageUnavailableError
from folio.storage.base import PersistenceAdapter, StorageEvent

logger = logging.getLogger(__name__)


class MemoryMedium:
    """Shared key-value space with an optional byte quota."""

    def __init__(self, quota_bytes: int | None = None) -> None:
        self.quota_bytes = quota_bytes
        self.available = True
        self.data: dict[str, str] = {}
        self._adapters: list[MemoryAdapter] = []

    def used_bytes(self, exclude: str | None = None) -> int:
        return sum(
            len(key.encode("utf-8")) + len(value.encode("utf-8"))
            for key, value in self.data.items()
            if key != exclude
        )

    def attach(self, adapter: MemoryAdapter) -> None:
        self._adapters.append(adapter)

    def broadcast(self, origin: MemoryAdapter, event: StorageEvent) -> None:
        for adapter in list(self._adapters):
            if adapter is not origin:
                adapter._emit(event)


class MemoryAdapter(PersistenceAdapter):
    """Adapter over a :class:`MemoryMedium` (a private one by default)."""

    def __init__(self, medium: MemoryMedium | None = None) -> None:
        super().__init__()
        self.medium = medium if medium is not None else MemoryMedium()
        self.medium.attach(self)

    def _check_available(self, key: str) -> None:
        if not self.medium.available:
            raise StorageUnavailableError("Storage medium is unavailable", key=key)

    def get(self, key: str) -> str | None:
        self._check_available(key)
        return self.medium.data.get(key)

    def set(self, key: str, value: str) -> None:
        self._check_available(key)
        quota = self.medium.quota_bytes
        if quota is not None:
            needed = self.medium.used_bytes(exclude=key) + len(key.encode("utf-8"))
            needed += len(value.encode("utf-8"))
            if needed > quota:
                raise QuotaExceededError(
                    f"Writing {key} needs {needed} bytes, quota is {quota}", key=key
                )
        old_value = self.medium.data.get(key)
        self.medium.data[key] = value
        self.medium.broadcast(self, StorageEvent(key, old_value, value))

    def remove(self, key: str) -> None:
        self._check_available(key)
        old_value = self.medium.data.pop(key, None)
        if old_value is not None:
            self.medium.broadcast(self, StorageEvent(key, old_value, None))

    def list_keys(self, prefix: str = "") -> list[str]:
        self._check_available(prefix)
        return sorted(key for key in self.medium.data if key.startswith(prefix))
