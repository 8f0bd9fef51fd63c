"""Authoritative in-memory content store, written through to a persistence medium.

Every mutation follows the same path: merge, validate, snapshot the
previous value, persist, update memory, notify.  A rejected candidate or a
refused write leaves both memory and the medium untouched.  On start the
store hydrates every kind from the medium, falling back to the newest
usable backup and then to the built-in default when a blob is corrupt.
"""

from __future__ import annotations

import json
import logging
from collections import deque
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from folio import validation
from folio.content.backups import Backup, BackupManager
from folio.content.defaults import default_value
from folio.content.kinds import KINDS, KindSpec, kind_for_key, spec_for
from folio.content.models import BlogStatus, ContentModel, EntityKind
from folio.content.notifier import ChangeNotifier, Operation, Subscription
from folio.errors import CorruptionError, StorageError, ValidationError
from folio.storage.base import PersistenceAdapter, StorageEvent

logger = logging.getLogger(__name__)

# Alias to avoid shadowing by ContentStore.list method
_list = list

Where = Callable[[Any], bool] | Mapping[str, Any]


class IntegrityReport(BaseModel):
    """Result of comparing one kind's persisted blob with memory."""

    kind: EntityKind
    valid: bool
    issues: list[str] = Field(default_factory=list)


class MessageStats(BaseModel):
    total: int = 0
    unread: int = 0
    read: int = 0
    today: int = 0


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _wire(value: Any) -> Any:
    if isinstance(value, _list):
        return [item.to_wire() for item in value]
    return value.to_wire()


def _copy(value: Any) -> Any:
    if isinstance(value, _list):
        return [item.model_copy(deep=True) for item in value]
    return value.model_copy(deep=True)


def _as_wire_dict(value: Any) -> dict[str, Any]:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_unset=True)
    if isinstance(value, Mapping):
        return dict(value)
    raise TypeError(f"Expected a mapping or model, got {type(value).__name__}")


def _prefixed(errors: dict[str, str], prefix: str) -> list[str]:
    return [f"{prefix}{field}: {message}" for field, message in errors.items()]


class ContentStore:
    """Validated, backed-up, observable store for every entity kind.

    Args:
        adapter: Persistence medium the store writes through to.
        backups: Snapshot manager; defaults to one on ``adapter``.
        notifier: Change broadcaster; defaults to a private one.
        options: Validation policy.
        clock: Source of "now" for publish dates and message timestamps.
        id_factory: Generates ids for new collection items.
        listen_external: Reconcile and republish writes made by other
            adapters on the same medium.
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        *,
        backups: BackupManager | None = None,
        notifier: ChangeNotifier | None = None,
        options: validation.ValidationOptions | None = None,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] | None = None,
        listen_external: bool = True,
    ) -> None:
        self._adapter = adapter
        self.backups = backups if backups is not None else BackupManager(adapter)
        self.notifier = notifier if notifier is not None else ChangeNotifier()
        self.options = options if options is not None else validation.ValidationOptions()
        self._clock = clock
        self._new_id = id_factory or (lambda: uuid4().hex)
        self.warnings: deque[str] = deque(maxlen=100)
        self._data: dict[EntityKind, Any] = {}
        self.bootstrap()
        self._bridge: Subscription | None = None
        if listen_external:
            self._bridge = self.notifier.bridge(adapter, self._reconcile)

    def close(self) -> None:
        """Stop listening for external writes."""
        if self._bridge is not None:
            self._bridge.unsubscribe()
            self._bridge = None

    # ── Private helpers ──────────────────────────────────────────

    def _warn(self, message: str, *args: Any) -> None:
        logger.warning(message, *args)
        self.warnings.append(message % args if args else message)

    @staticmethod
    def _spec(kind: EntityKind | str, *, collection: bool | None = None) -> KindSpec:
        spec = spec_for(kind)
        if collection is True and not spec.collection:
            raise TypeError(f"{spec.kind} is a singleton, not a collection")
        if collection is False and spec.collection:
            raise TypeError(f"{spec.kind} is a collection, not a singleton")
        return spec

    def _validate(self, spec: KindSpec, candidate: Any) -> ContentModel:
        result = validation.validate(spec.kind, candidate, self.options)
        if not result.valid:
            raise ValidationError(result.errors, kind=spec.kind)
        return result.sanitized

    def _decode_value(self, spec: KindSpec, data: Any) -> Any:
        """Turn decoded JSON into validated models; raise CorruptionError otherwise."""
        if not spec.collection:
            result = validation.validate(spec.kind, data, self.options)
            if not result.valid:
                raise CorruptionError(spec.kind, _prefixed(result.errors, ""))
            return result.sanitized

        if not isinstance(data, _list):
            raise CorruptionError(spec.kind, ["expected a list of items"])
        items: list[ContentModel] = []
        issues: list[str] = []
        seen: set[str] = set()
        for index, item in enumerate(data):
            result = validation.validate(spec.kind, item, self.options)
            if not result.valid:
                issues.extend(_prefixed(result.errors, f"{index}."))
                continue
            item_id = result.sanitized.id
            if not item_id:
                issues.append(f"{index}.id: missing id")
            elif item_id in seen:
                issues.append(f"{index}.id: duplicate id {item_id}")
            seen.add(item_id)
            items.append(result.sanitized)
        if issues:
            raise CorruptionError(spec.kind, issues)
        return items

    def _decode(self, spec: KindSpec, raw: str) -> Any:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise CorruptionError(spec.kind, [f"stored value is not valid JSON ({exc.msg})"]) from exc
        return self._decode_value(spec, data)

    def _hydrate(self, spec: KindSpec) -> Any:
        try:
            raw = self._adapter.get(spec.storage_key)
        except StorageError as exc:
            self._warn("Cannot read %s (%s), using built-in default", spec.kind, exc)
            return default_value(spec.kind)
        if raw is None:
            return default_value(spec.kind)
        try:
            return self._decode(spec, raw)
        except CorruptionError as exc:
            self._warn("Stored %s is corrupt: %s", spec.kind, "; ".join(exc.issues))

        for backup in self.backups.list_backups(spec.storage_key):
            try:
                value = self._decode_value(spec, backup.value)
            except CorruptionError:
                logger.warning("Backup %s is unusable, trying an older one", backup.key)
                continue
            self._warn("Recovered %s from backup %s", spec.kind, backup.key)
            self._repair(spec, value)
            return value

        self._warn("No usable backup for %s, using built-in default", spec.kind)
        value = default_value(spec.kind)
        self._repair(spec, value)
        return value

    def _repair(self, spec: KindSpec, value: Any) -> None:
        try:
            self._adapter.set(spec.storage_key, json.dumps(_wire(value), ensure_ascii=False))
        except StorageError as exc:
            self._warn("Could not rewrite %s after recovery: %s", spec.kind, exc)

    def _commit(
        self, spec: KindSpec, value: Any, operation: Operation, payload: Any = None
    ) -> None:
        """Snapshot the current value, persist ``value``, then publish.

        A StorageError from the primary write propagates with memory untouched,
        and the snapshot taken for it is withdrawn so the newest backup still
        holds the value before the last successful write.
        """
        backup_key: str | None = None
        try:
            backup_key = self.backups.snapshot(
                spec.storage_key, _wire(self._data[spec.kind]), rotate=False
            )
        except StorageError as exc:
            self._warn("Backup of %s failed: %s", spec.kind, exc)
        try:
            self._adapter.set(spec.storage_key, json.dumps(_wire(value), ensure_ascii=False))
        except StorageError:
            if backup_key is not None:
                self._withdraw_backup(backup_key)
            raise
        self._data[spec.kind] = value
        if backup_key is not None:
            try:
                self.backups.prune(spec.storage_key)
            except StorageError as exc:
                self._warn("Pruning backups of %s failed: %s", spec.kind, exc)
        logger.debug("Committed %s %s", spec.kind, operation)
        self.notifier.publish(spec.kind, operation, payload)

    def _withdraw_backup(self, backup_key: str) -> None:
        try:
            self.backups.delete(backup_key)
        except StorageError as exc:
            self._warn("Could not withdraw backup %s: %s", backup_key, exc)

    def _items(self, spec: KindSpec) -> list[ContentModel]:
        return self._data[spec.kind]

    def _index(self, spec: KindSpec, item_id: str) -> int:
        for index, item in enumerate(self._items(spec)):
            if item.id == item_id:
                return index
        raise KeyError(item_id)

    def _patch(self, spec: KindSpec, partial: Any) -> dict[str, Any]:
        """Coerce ``partial`` through the kind's patch model into a wire dict."""
        try:
            patch = spec.patch_model.model_validate(_as_wire_dict(partial))
        except PydanticValidationError as exc:
            errors: dict[str, str] = {}
            for error in exc.errors():
                field = ".".join(str(part) for part in error["loc"]) or "__root__"
                errors.setdefault(field, error["msg"])
            raise ValidationError(errors, kind=spec.kind) from exc
        return patch.model_dump(mode="json", by_alias=True, exclude_unset=True)

    def _merge(self, spec: KindSpec, current: ContentModel, patch: dict[str, Any]) -> dict[str, Any]:
        merged = current.to_wire()
        for field, value in patch.items():
            if isinstance(value, str) and isinstance(merged.get(field), dict):
                value = {"vi": value, "en": value}
            if isinstance(value, dict) and isinstance(merged.get(field), dict):
                sides = {side: text for side, text in value.items() if text is not None}
                merged[field] = {**merged[field], **sides}
            else:
                merged[field] = value

        if spec.kind == EntityKind.BLOG_POSTS and "status" in patch:
            if patch["status"] != current.status:
                if patch["status"] == BlogStatus.PUBLISHED and "publishDate" not in patch:
                    merged["publishDate"] = self._clock().isoformat()
                elif patch["status"] == BlogStatus.DRAFT:
                    merged["publishDate"] = None
        return merged

    def _updated_item(self, spec: KindSpec, current: ContentModel, patch: dict[str, Any]) -> ContentModel:
        if spec.collection and "id" in patch and patch["id"] != current.id:
            raise ValidationError({"id": "Id cannot be changed"}, kind=spec.kind)
        if spec.kind == EntityKind.CONTACT_MESSAGES:
            locked = sorted(set(patch) - {"read", "id"})
            if locked:
                raise ValidationError(
                    {field: "Contact messages can only be marked read or unread" for field in locked},
                    kind=spec.kind,
                )
        return self._validate(spec, self._merge(spec, current, patch))

    def _next_order(self, spec: KindSpec) -> int:
        items = self._items(spec)
        return max(item.order for item in items) + 1 if items else 0

    # ── Read operations ──────────────────────────────────────────

    def get(self, kind: EntityKind | str) -> ContentModel:
        """Return a copy of a singleton's current value."""
        return _copy(self._data[self._spec(kind, collection=False).kind])

    def list(self, kind: EntityKind | str, where: Where | None = None) -> _list[ContentModel]:
        """Return copies of a collection's items, optionally filtered.

        ``where`` is a predicate or a mapping of attribute name to required
        value.  Ordered kinds come back sorted by ``order``.
        """
        spec = self._spec(kind, collection=True)
        items = self._items(spec)
        if spec.ordered:
            items = sorted(items, key=lambda item: item.order)
        if isinstance(where, Mapping):
            conditions = dict(where)
            items = [
                item for item in items
                if all(getattr(item, name) == value for name, value in conditions.items())
            ]
        elif where is not None:
            items = [item for item in items if where(item)]
        return _copy(_list(items))

    def find(self, kind: EntityKind | str, item_id: str) -> ContentModel | None:
        spec = self._spec(kind, collection=True)
        for item in self._items(spec):
            if item.id == item_id:
                return item.model_copy(deep=True)
        return None

    def list_backups(self, kind: EntityKind | str) -> _list[Backup]:
        return self.backups.list_backups(spec_for(kind).storage_key)

    def preview(
        self, kind: EntityKind | str, candidate: Any, item_id: str | None = None
    ) -> validation.ValidationResult:
        """Validate what an update (or create, without ``item_id``) would produce.

        Nothing is written and nobody is notified.
        """
        spec = spec_for(kind)
        try:
            if spec.collection and item_id is None:
                return validation.validate(spec.kind, _as_wire_dict(candidate), self.options)
            if spec.collection:
                current = self._items(spec)[self._index(spec, item_id)]
            else:
                current = self._data[spec.kind]
            sanitized = self._updated_item(spec, current, self._patch(spec, candidate))
        except ValidationError as exc:
            return validation.ValidationResult.failed(exc.errors)
        return validation.ValidationResult.ok(sanitized)

    # ── Write operations ─────────────────────────────────────────

    def update(
        self, kind: EntityKind | str, partial: Any, item_id: str | None = None
    ) -> ContentModel:
        """Merge ``partial`` onto the current value and commit it.

        Raises ValidationError (nothing changes), KeyError for an unknown
        item, TypeError when ``item_id`` does not fit the kind's shape.
        """
        spec = spec_for(kind)
        if spec.collection and item_id is None:
            raise TypeError(f"{spec.kind} updates need an item id")
        if not spec.collection and item_id is not None:
            raise TypeError(f"{spec.kind} is a singleton and takes no item id")

        patch = self._patch(spec, partial)
        if not spec.collection:
            value = self._updated_item(spec, self._data[spec.kind], patch)
            self._commit(spec, value, Operation.UPDATE)
            return _copy(value)

        items = _list(self._items(spec))
        index = self._index(spec, item_id)
        items[index] = self._updated_item(spec, items[index], patch)
        self._commit(spec, items, Operation.UPDATE, {"id": item_id})
        return _copy(items[index])

    def create(self, kind: EntityKind | str, value: Any) -> ContentModel:
        """Add a new collection item with a fresh id and return it."""
        spec = self._spec(kind, collection=True)
        data = _as_wire_dict(value)
        existing = {item.id for item in self._items(spec)}
        item_id = self._new_id()
        while item_id in existing:
            item_id = self._new_id()
        data["id"] = item_id

        if spec.ordered and data.get("order") is None:
            data["order"] = self._next_order(spec)
        if spec.kind == EntityKind.BLOG_POSTS:
            if data.get("status") == BlogStatus.PUBLISHED and not data.get("publishDate"):
                data["publishDate"] = self._clock().isoformat()
        if spec.kind == EntityKind.CONTACT_MESSAGES and not data.get("timestamp"):
            data["timestamp"] = self._clock().isoformat()

        item = self._validate(spec, data)
        self._commit(spec, [*self._items(spec), item], Operation.CREATE, {"id": item_id})
        return _copy(item)

    def remove(self, kind: EntityKind | str, item_id: str) -> bool:
        """Hard-delete an item; False when it does not exist."""
        spec = self._spec(kind, collection=True)
        items = self._items(spec)
        remaining = [item for item in items if item.id != item_id]
        if len(remaining) == len(items):
            return False
        self._commit(spec, remaining, Operation.DELETE, {"id": item_id})
        return True

    def bulk_remove(self, kind: EntityKind | str, ids: Iterable[str]) -> int:
        spec = self._spec(kind, collection=True)
        targets = set(ids)
        items = self._items(spec)
        remaining = [item for item in items if item.id not in targets]
        removed = len(items) - len(remaining)
        if removed:
            self._commit(
                spec, remaining, Operation.BULK_DELETE, {"ids": sorted(targets), "count": removed}
            )
        return removed

    def reorder(self, kind: EntityKind | str, ordered_ids: Iterable[str]) -> bool:
        """Set ``order`` to each listed id's position; others keep theirs.

        Returns False for an empty list.  Unknown or repeated ids raise
        ValidationError.
        """
        spec = self._spec(kind, collection=True)
        if not spec.ordered:
            raise TypeError(f"{spec.kind} has no explicit order")
        ordered_ids = _list(ordered_ids)
        if not ordered_ids:
            return False
        if len(set(ordered_ids)) != len(ordered_ids):
            raise ValidationError({"order": "Order contains duplicate ids"}, kind=spec.kind)
        positions = {item_id: position for position, item_id in enumerate(ordered_ids)}
        known = {item.id for item in self._items(spec)}
        unknown = [item_id for item_id in ordered_ids if item_id not in known]
        if unknown:
            raise ValidationError(
                {"order": f"Unknown ids: {', '.join(unknown)}"}, kind=spec.kind
            )

        items = [
            item.model_copy(update={"order": positions[item.id]}) if item.id in positions else item
            for item in self._items(spec)
        ]
        self._commit(spec, items, Operation.REORDER, {"ids": ordered_ids})
        return True

    def bulk_update(self, kind: EntityKind | str, ids: Iterable[str], patch: Any) -> int:
        """Apply ``patch`` to each id independently; return how many were applied.

        Unknown ids and items whose merged value fails validation are skipped.
        The accepted items are committed together.
        """
        spec = self._spec(kind, collection=True)
        wire_patch = self._patch(spec, patch)
        items = _list(self._items(spec))
        applied: list[str] = []
        for item_id in dict.fromkeys(ids):
            try:
                index = self._index(spec, item_id)
                items[index] = self._updated_item(spec, items[index], wire_patch)
            except KeyError:
                logger.warning("Bulk update of %s skipped unknown id %s", spec.kind, item_id)
                continue
            except ValidationError as exc:
                logger.warning(
                    "Bulk update of %s skipped %s: %s", spec.kind, item_id, exc.errors
                )
                continue
            applied.append(item_id)
        if applied:
            self._commit(spec, items, Operation.BULK_UPDATE, {"ids": applied})
        return len(applied)

    def replace(
        self, kind: EntityKind | str, value: Any, operation: Operation = Operation.IMPORT
    ) -> None:
        """Commit an already validated value for ``kind`` wholesale."""
        spec = spec_for(kind)
        if spec.collection != isinstance(value, _list):
            raise TypeError(f"Value shape does not match {spec.kind}")
        self._commit(spec, _copy(value), operation)

    def reset(self, kind: EntityKind | str) -> None:
        """Return ``kind`` to its built-in default (empty for collections)."""
        spec = spec_for(kind)
        self._commit(spec, default_value(spec.kind), Operation.RESET)

    def restore_backup(self, kind: EntityKind | str, backup_key: str) -> Any:
        """Re-validate a snapshot and commit it as the current value.

        Raises KeyError for an unknown snapshot, CorruptionError when it no
        longer decodes or validates.
        """
        spec = spec_for(kind)
        try:
            data = self.backups.restore(spec.storage_key, backup_key)
        except ValueError as exc:
            raise CorruptionError(spec.kind, [str(exc)]) from exc
        value = self._decode_value(spec, data)
        self._commit(spec, value, Operation.RESTORE, {"backup": backup_key})
        logger.info("Restored %s from %s", spec.kind, backup_key)
        return _copy(value)

    # ── Blog lifecycle ───────────────────────────────────────────

    def _set_blog_status(self, item_id: str, published: bool) -> ContentModel:
        spec = spec_for(EntityKind.BLOG_POSTS)
        items = _list(self._items(spec))
        index = self._index(spec, item_id)
        data = items[index].to_wire()
        if published:
            data.update(status=BlogStatus.PUBLISHED.value, publishDate=self._clock().isoformat())
        else:
            data.update(status=BlogStatus.DRAFT.value, publishDate=None)
        items[index] = self._validate(spec, data)
        operation = Operation.PUBLISH if published else Operation.UNPUBLISH
        self._commit(spec, items, operation, {"id": item_id})
        return _copy(items[index])

    def publish(self, item_id: str) -> ContentModel:
        """Publish a post and stamp ``publishDate`` with now (again, if already published)."""
        return self._set_blog_status(item_id, published=True)

    def unpublish(self, item_id: str) -> ContentModel:
        return self._set_blog_status(item_id, published=False)

    # ── Projects and messages ────────────────────────────────────

    def toggle_featured(self, item_id: str) -> bool:
        """Flip a project's ``featured`` flag and return the new value."""
        project = self.find(EntityKind.PROJECTS, item_id)
        if project is None:
            raise KeyError(item_id)
        featured = not project.featured
        self.update(EntityKind.PROJECTS, {"featured": featured}, item_id=item_id)
        return featured

    def mark_read(self, item_id: str, read: bool = True) -> ContentModel:
        return self.update(EntityKind.CONTACT_MESSAGES, {"read": read}, item_id=item_id)

    def add_message(self, name: str, email: str, message: str) -> ContentModel:
        """Record a submission from the public contact form."""
        return self.create(
            EntityKind.CONTACT_MESSAGES,
            {
                "name": name,
                "email": email,
                "message": message,
                "timestamp": self._clock().isoformat(),
                "read": False,
            },
        )

    def message_stats(self) -> MessageStats:
        messages = self._items(spec_for(EntityKind.CONTACT_MESSAGES))
        today = self._clock().astimezone(UTC).date()
        unread = sum(1 for message in messages if not message.read)
        return MessageStats(
            total=len(messages),
            unread=unread,
            read=len(messages) - unread,
            today=sum(
                1 for message in messages
                if message.timestamp.astimezone(UTC).date() == today
            ),
        )

    # ── Integrity ────────────────────────────────────────────────

    def check_integrity(
        self, kind: EntityKind | str, raise_on_error: bool = False
    ) -> IntegrityReport:
        """Re-read and re-validate the persisted blob and compare it with memory."""
        spec = spec_for(kind)
        current = self._data[spec.kind]
        issues: list[str] = []
        try:
            raw = self._adapter.get(spec.storage_key)
        except StorageError as exc:
            raw = None
            issues.append(f"storage unavailable: {exc}")
        if raw is None:
            if not issues and _wire(current) != _wire(default_value(spec.kind)):
                issues.append("no persisted value")
        else:
            try:
                persisted = self._decode(spec, raw)
            except CorruptionError as exc:
                issues.extend(exc.issues)
            else:
                if _wire(persisted) != _wire(current):
                    issues.append("persisted value differs from memory")

        report = IntegrityReport(kind=spec.kind, valid=not issues, issues=issues)
        if issues and raise_on_error:
            raise CorruptionError(spec.kind, issues)
        return report

    def check_all(self) -> _list[IntegrityReport]:
        return [self.check_integrity(kind) for kind in KINDS]

    # ── Lifecycle ────────────────────────────────────────────────

    def bootstrap(self) -> None:
        """(Re)load every kind from the medium."""
        for spec in KINDS.values():
            self._data[spec.kind] = self._hydrate(spec)
        logger.info("Content store loaded %d kinds", len(self._data))

    def _reconcile(self, event: StorageEvent) -> EntityKind | None:
        kind = kind_for_key(event.key)
        if kind is None:
            return None
        spec = spec_for(kind)
        if event.new_value is None:
            self._data[kind] = default_value(kind)
            return kind
        try:
            self._data[kind] = self._decode(spec, event.new_value)
        except CorruptionError as exc:
            self._warn("Ignoring unusable external write to %s: %s", event.key, exc)
            return None
        logger.info("Picked up external change to %s", kind)
        return kind
