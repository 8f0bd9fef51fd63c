"""Directory-backed adapter: one file per key.

Writes go to a temporary file in the same directory and are moved into
place with ``os.replace``, so a reader never observes a half-written value.
Other processes sharing the directory are detected by :meth:`FileAdapter.poll`,
which compares the directory against the last state this adapter saw.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from urllib.parse import quote, unquote

from folio.errors import QuotaExceededError, StorageUnavailableError
from folio.storage.base import PersistenceAdapter, StorageEvent

logger = logging.getLogger(__name__)

SUFFIX = ".json"


class FileAdapter(PersistenceAdapter):
    """Persist each key as ``<directory>/<quoted key>.json``."""

    def __init__(self, directory: Path, quota_bytes: int | None = None) -> None:
        super().__init__()
        self.directory = Path(directory)
        self.quota_bytes = quota_bytes
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailableError(
                f"Cannot create storage directory {self.directory}: {exc}"
            ) from exc
        self._seen: dict[str, str] = self._scan()

    # ── Private helpers ──────────────────────────────────────────

    def _path(self, key: str) -> Path:
        return self.directory / (quote(key, safe="") + SUFFIX)

    def _scan(self) -> dict[str, str]:
        state: dict[str, str] = {}
        try:
            paths = list(self.directory.glob("*" + SUFFIX))
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot list {self.directory}: {exc}") from exc
        for path in paths:
            key = unquote(path.name[: -len(SUFFIX)])
            try:
                state[key] = path.read_text(encoding="utf-8")
            except OSError:
                # Removed between listing and reading.
                continue
        return state

    def _used_bytes(self, exclude: str) -> int:
        total = 0
        for path in self.directory.glob("*" + SUFFIX):
            if path == self._path(exclude):
                continue
            try:
                total += path.stat().st_size
            except OSError:
                continue
        return total

    # ── Adapter contract ─────────────────────────────────────────

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot read {path}: {exc}", key=key) from exc

    def set(self, key: str, value: str) -> None:
        encoded = value.encode("utf-8")
        if self.quota_bytes is not None:
            needed = self._used_bytes(exclude=key) + len(encoded)
            if needed > self.quota_bytes:
                raise QuotaExceededError(
                    f"Writing {key} needs {needed} bytes, quota is {self.quota_bytes}",
                    key=key,
                )

        path = self._path(key)
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-", suffix=".part")
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(encoded)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot write {path}: {exc}", key=key) from exc

        self._seen[key] = value
        logger.debug("Wrote %s (%d bytes)", key, len(encoded))

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot remove {key}: {exc}", key=key) from exc
        self._seen.pop(key, None)

    def list_keys(self, prefix: str = "") -> list[str]:
        keys = []
        for path in self.directory.glob("*" + SUFFIX):
            key = unquote(path.name[: -len(SUFFIX)])
            if key.startswith(prefix):
                keys.append(key)
        return sorted(keys)

    # ── External changes ─────────────────────────────────────────

    def poll(self) -> list[StorageEvent]:
        """Emit and return events for keys changed by anyone but this adapter."""
        current = self._scan()
        events: list[StorageEvent] = []
        for key in sorted(set(current) | set(self._seen)):
            old_value = self._seen.get(key)
            new_value = current.get(key)
            if old_value != new_value:
                events.append(StorageEvent(key, old_value, new_value))
        self._seen = current
        for event in events:
            self._emit(event)
        return events
