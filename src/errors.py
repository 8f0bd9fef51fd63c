"""Error taxonomy for the content store.

``ValidationError`` is caller-correctable and never mutates state.
``StorageError`` means the primary write did not happen.  ``CorruptionError``
flags a persisted blob that no longer parses or validates, and
``VersioningError`` rejects import documents from a newer format.
"""

from __future__ import annotations


class FolioError(Exception):
    """Base class for every error raised by folio."""


class ValidationError(FolioError):
    """A candidate value failed validation.

    ``errors`` maps wire field names (dotted for nesting) to messages.
    """

    def __init__(self, errors: dict[str, str], kind: str | None = None) -> None:
        self.errors = dict(errors)
        self.kind = kind
        fields = ", ".join(sorted(self.errors))
        prefix = f"{kind}: " if kind else ""
        super().__init__(f"{prefix}validation failed for {fields}")


class StorageError(FolioError):
    """The persistence medium rejected an operation."""

    def __init__(self, message: str, key: str | None = None) -> None:
        self.key = key
        super().__init__(message)


class QuotaExceededError(StorageError):
    """The write would exceed the medium's capacity."""


class StorageUnavailableError(StorageError):
    """The medium cannot be reached or is not writable."""


class CorruptionError(FolioError):
    """A persisted value failed to parse or re-validate."""

    def __init__(self, kind: str, issues: list[str]) -> None:
        self.kind = kind
        self.issues = list(issues)
        super().__init__(f"{kind}: " + "; ".join(self.issues))


class VersioningError(FolioError):
    """An import document uses a format newer than this build supports."""

    def __init__(self, version: str, supported: str) -> None:
        self.version = version
        self.supported = supported
        super().__init__(
            f"Document version {version} is newer than supported version {supported}"
        )


class ImportDocumentError(FolioError):
    """An import document is not structurally usable (bad JSON, missing sections)."""
