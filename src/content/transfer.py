"""Whole-site export and validated import.

An export document looks like::

    {
      "version": "1.0",
      "exportedAt": "2026-01-01T00:00:00+00:00",
      "entities": {"heroContent": {...}, "services": [...], ...},
      "metadata": {"totalItems": 12, "checksum": "<sha256>", "includeMessages": true}
    }

Import validates every entity before applying any of them, and applies
each accepted entity on its own so that one bad entity does not block the
rest.  Documents from older format versions are migrated first; documents
from newer versions are refused.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from folio import validation
from folio.content.kinds import KINDS, KindSpec, spec_for
from folio.content.models import EntityKind
from folio.content.notifier import Operation
from folio.content.store import ContentStore
from folio.errors import ImportDocumentError, StorageError, VersioningError

logger = logging.getLogger(__name__)

FORMAT_VERSION = "1.0"


class _Document(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExportMetadata(_Document):
    total_items: int = 0
    checksum: str = ""
    include_messages: bool = True


class ExportDocument(_Document):
    version: str
    exported_at: datetime | None = None
    entities: dict[str, Any]
    metadata: ExportMetadata | None = None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


class ImportReport(BaseModel):
    """Which entities were applied, which were rejected and why."""

    applied: list[EntityKind] = Field(default_factory=list)
    rejected: dict[str, dict[str, str]] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.rejected


def checksum(entities: dict[str, Any]) -> str:
    """Stable sha256 over the entities section."""
    canonical = json.dumps(entities, sort_keys=True, ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _count_items(entities: dict[str, Any]) -> int:
    return sum(len(value) if isinstance(value, list) else 1 for value in entities.values())


def _parse_version(version: str) -> tuple[int, int]:
    # A bare major tag ("2") means minor 0.
    parts = version.split(".")
    try:
        return int(parts[0]), int(parts[1]) if len(parts) > 1 else 0
    except ValueError as exc:
        raise ImportDocumentError(f"Unrecognised document version {version!r}") from exc


# ── Migrations ──────────────────────────────────────────────────

def _migrate_0_9(entities: dict[str, Any]) -> dict[str, Any]:
    """0.9 documents predate explicit ordering of services and projects."""
    for kind in (EntityKind.SERVICES, EntityKind.PROJECTS):
        items = entities.get(kind)
        if not isinstance(items, list):
            continue
        for position, item in enumerate(items):
            if isinstance(item, dict):
                item.setdefault("order", position)
    return entities


MIGRATIONS: list[tuple[tuple[int, int], Callable[[dict[str, Any]], dict[str, Any]]]] = [
    ((0, 9), _migrate_0_9),
]


def migrate(version: str, entities: dict[str, Any]) -> dict[str, Any]:
    """Bring ``entities`` from ``version`` up to the current format.

    Raises VersioningError for versions newer than this build understands.
    """
    found = _parse_version(version)
    if found > _parse_version(FORMAT_VERSION):
        raise VersioningError(version, FORMAT_VERSION)
    for upto, step in MIGRATIONS:
        if found <= upto:
            logger.info("Migrating import document from %s", version)
            entities = step(entities)
    return entities


class ImportExport:
    """Export the store's content and import it back, entity by entity."""

    def __init__(self, store: ContentStore, id_factory: Callable[[], str] | None = None) -> None:
        self._store = store
        self._new_id = id_factory or (lambda: uuid4().hex)

    # ── Export ───────────────────────────────────────────────────

    def _current(self, spec: KindSpec) -> Any:
        if spec.collection:
            return [item.to_wire() for item in self._store.list(spec.kind)]
        return self._store.get(spec.kind).to_wire()

    def _document(self, entities: dict[str, Any], include_messages: bool) -> ExportDocument:
        return ExportDocument(
            version=FORMAT_VERSION,
            exported_at=datetime.now(tz=UTC),
            entities=entities,
            metadata=ExportMetadata(
                total_items=_count_items(entities),
                checksum=checksum(entities),
                include_messages=include_messages,
            ),
        )

    def export_all(self, include_messages: bool = True) -> ExportDocument:
        entities = {
            spec.kind.value: self._current(spec)
            for spec in KINDS.values()
            if include_messages or spec.kind != EntityKind.CONTACT_MESSAGES
        }
        return self._document(entities, include_messages)

    def export_entity(self, kind: EntityKind | str) -> ExportDocument:
        spec = spec_for(kind)
        return self._document(
            {spec.kind.value: self._current(spec)},
            include_messages=spec.kind == EntityKind.CONTACT_MESSAGES,
        )

    # ── Import ───────────────────────────────────────────────────

    @staticmethod
    def _load(document: ExportDocument | dict[str, Any] | str) -> ExportDocument:
        if isinstance(document, ExportDocument):
            return document.model_copy(deep=True)
        if isinstance(document, str):
            try:
                document = json.loads(document)
            except json.JSONDecodeError as exc:
                raise ImportDocumentError(f"Import file is not valid JSON: {exc.msg}") from exc
        if not isinstance(document, dict):
            raise ImportDocumentError("Import document must be a JSON object")
        try:
            return ExportDocument.model_validate(document)
        except PydanticValidationError as exc:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
            raise ImportDocumentError(f"Import document is malformed: {fields}") from exc

    def _prepare_collection(
        self, spec: KindSpec, data: Any, merge: bool
    ) -> tuple[list[Any] | None, dict[str, str]]:
        if not isinstance(data, list):
            return None, {"__root__": "Expected a list of items"}
        errors: dict[str, str] = {}
        items = []
        seen: set[str] = set()
        for index, raw in enumerate(data):
            candidate = dict(raw) if isinstance(raw, dict) else raw
            if isinstance(candidate, dict) and not candidate.get("id"):
                candidate["id"] = self._new_id()
            result = validation.validate(spec.kind, candidate, self._store.options)
            if not result.valid:
                for field, message in result.errors.items():
                    errors.setdefault(f"{index}.{field}", message)
                continue
            if result.sanitized.id in seen:
                errors.setdefault(f"{index}.id", f"Duplicate id {result.sanitized.id}")
                continue
            seen.add(result.sanitized.id)
            items.append(result.sanitized)
        if errors:
            return None, errors

        if merge:
            incoming = {item.id: item for item in items}
            merged = [incoming.pop(item.id, item) for item in self._store.list(spec.kind)]
            items = merged + list(incoming.values())
        return items, {}

    def _prepare_singleton(
        self, spec: KindSpec, data: Any, merge: bool
    ) -> tuple[Any, dict[str, str]]:
        if not isinstance(data, dict):
            return None, {"__root__": "Expected an object"}
        candidate = data
        if merge:
            candidate = self._store.get(spec.kind).to_wire()
            for field, value in data.items():
                if isinstance(value, dict) and isinstance(candidate.get(field), dict):
                    candidate[field] = {**candidate[field], **value}
                else:
                    candidate[field] = value
        result = validation.validate(spec.kind, candidate, self._store.options)
        if not result.valid:
            return None, result.errors
        return result.sanitized, {}

    def import_all(
        self, document: ExportDocument | dict[str, Any] | str, merge: bool = False
    ) -> ImportReport:
        """Validate every entity in ``document``, then apply the valid ones.

        ``merge`` upserts collection items by id and overlays singleton
        fields instead of replacing each entity wholesale.

        Raises ImportDocumentError for unusable documents and
        VersioningError for documents from a newer format.
        """
        doc = self._load(document)
        report = ImportReport()

        if doc.metadata is not None and doc.metadata.checksum:
            if checksum(doc.entities) != doc.metadata.checksum:
                report.warnings.append("Checksum mismatch: the document may have been edited")
                logger.warning("Import document checksum mismatch")

        entities = migrate(doc.version, doc.entities)

        prepared: dict[EntityKind, Any] = {}
        for name, data in entities.items():
            try:
                spec = spec_for(name)
            except ValueError:
                report.warnings.append(f"Unknown entity {name!r} ignored")
                continue
            prepare = self._prepare_collection if spec.collection else self._prepare_singleton
            value, errors = prepare(spec, data, merge)
            if errors:
                report.rejected[spec.kind.value] = errors
                logger.warning("Import rejected %s: %s", spec.kind, errors)
            else:
                prepared[spec.kind] = value

        for kind, value in prepared.items():
            try:
                self._store.replace(kind, value, Operation.IMPORT)
            except StorageError as exc:
                report.rejected[kind.value] = {"__storage__": str(exc)}
                logger.warning("Import could not store %s: %s", kind, exc)
                continue
            report.applied.append(kind)

        logger.info(
            "Import applied %d entities, rejected %d", len(report.applied), len(report.rejected)
        )
        return report

    def import_entity(
        self, kind: EntityKind | str, data: Any, merge: bool = False
    ) -> ImportReport:
        """Import a single entity value, either bare or wrapped in an export document."""
        spec = spec_for(kind)
        if isinstance(data, dict) and "entities" in data and "version" in data:
            document = dict(data)
            # The checksum covers the whole entities section.
            document.pop("metadata", None)
            document["entities"] = {
                name: value for name, value in data["entities"].items() if name == spec.kind
            }
        else:
            document = {"version": FORMAT_VERSION, "entities": {spec.kind.value: data}}
        return self.import_all(document, merge=merge)
