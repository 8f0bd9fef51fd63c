"""Key-value persistence media for the content store."""

from folio.storage.base import PersistenceAdapter, StorageEvent, StorageListener
from folio.storage.files import FileAdapter
from folio.storage.memory import MemoryAdapter, MemoryMedium

__all__ = [
    "FileAdapter",
    "MemoryAdapter",
    "MemoryMedium",
    "PersistenceAdapter",
    "StorageEvent",
    "StorageListener",
]
