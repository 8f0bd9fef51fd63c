"""Rolling, timestamped snapshots of persisted entity values.

A snapshot lives next to its entity under
``<entity_key>_backup_<milliseconds>``.  Snapshots are write-once; the only
ways they disappear are :meth:`BackupManager.prune` and
:meth:`BackupManager.delete`.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel

from folio.content.kinds import BACKUP_MARKER
from folio.storage.base import PersistenceAdapter

logger = logging.getLogger(__name__)

DEFAULT_KEEP = 5


class Backup(BaseModel):
    """One snapshot: its storage key, its timestamp in ms and the decoded value."""

    key: str
    timestamp: int
    value: Any = None


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class BackupManager:
    """Create, list, restore and rotate snapshots on a persistence adapter."""

    def __init__(
        self,
        adapter: PersistenceAdapter,
        keep: int = DEFAULT_KEEP,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        if keep < 1:
            raise ValueError("keep must be at least 1")
        self._adapter = adapter
        self.keep = keep
        self._clock = clock
        self._last_timestamp = 0

    # ── Private helpers ──────────────────────────────────────────

    @staticmethod
    def _prefix(entity_key: str) -> str:
        return entity_key + BACKUP_MARKER

    def _timestamps(self, entity_key: str) -> list[tuple[int, str]]:
        prefix = self._prefix(entity_key)
        found: list[tuple[int, str]] = []
        for key in self._adapter.list_keys(prefix):
            suffix = key[len(prefix):]
            if not suffix.isdigit():
                logger.warning("Ignoring backup with malformed key %s", key)
                continue
            found.append((int(suffix), key))
        found.sort(reverse=True)
        return found

    def _next_timestamp(self, entity_key: str) -> int:
        existing = self._timestamps(entity_key)
        newest = existing[0][0] if existing else 0
        timestamp = max(self._clock(), self._last_timestamp + 1, newest + 1)
        self._last_timestamp = timestamp
        return timestamp

    # ── Operations ───────────────────────────────────────────────

    def snapshot(self, entity_key: str, value: Any, *, rotate: bool = True) -> str:
        """Persist ``value`` as a new snapshot of ``entity_key``.

        With ``rotate`` the oldest snapshots beyond ``keep`` are pruned right
        away; callers that may still withdraw the snapshot pass False and
        call :meth:`prune` themselves.  Raises StorageError if the medium
        refuses the write.
        """
        backup_key = f"{self._prefix(entity_key)}{self._next_timestamp(entity_key)}"
        self._adapter.set(backup_key, json.dumps(value, ensure_ascii=False))
        if rotate:
            self.prune(entity_key)
        logger.debug("Snapshot %s written", backup_key)
        return backup_key

    def list_backups(self, entity_key: str) -> list[Backup]:
        """Return readable snapshots of ``entity_key``, newest first."""
        backups: list[Backup] = []
        for timestamp, key in self._timestamps(entity_key):
            raw = self._adapter.get(key)
            if raw is None:
                continue
            try:
                value = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("Skipping unreadable backup %s", key)
                continue
            backups.append(Backup(key=key, timestamp=timestamp, value=value))
        return backups

    def restore(self, entity_key: str, backup_key: str) -> Any:
        """Return the decoded value of ``backup_key``.

        Raises KeyError when the snapshot does not exist or does not belong
        to ``entity_key``, ValueError when it cannot be decoded.
        """
        if not backup_key.startswith(self._prefix(entity_key)):
            raise KeyError(backup_key)
        raw = self._adapter.get(backup_key)
        if raw is None:
            raise KeyError(backup_key)
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Backup {backup_key} is not valid JSON") from exc

    def prune(self, entity_key: str, keep: int | None = None) -> int:
        """Delete all but the newest ``keep`` snapshots; return how many were removed."""
        keep = self.keep if keep is None else keep
        stale = self._timestamps(entity_key)[keep:]
        for _, key in stale:
            self._adapter.remove(key)
        if stale:
            logger.debug("Pruned %d backups of %s", len(stale), entity_key)
        return len(stale)

    def delete(self, backup_key: str) -> None:
        self._adapter.remove(backup_key)
