"""Tests for ImportExport: versioned export documents and validated import."""

import json
from datetime import UTC, datetime

import pytest
from folio.content.models import EntityKind
from folio.content.store import ContentStore
from folio.content.transfer import FORMAT_VERSION, ImportExport, checksum, migrate
from folio.errors import ImportDocumentError, VersioningError
from folio.storage.memory import MemoryAdapter, MemoryMedium

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _store(medium: MemoryMedium | None = None) -> ContentStore:
    return ContentStore(MemoryAdapter(medium or MemoryMedium()), clock=lambda: NOW)


def _service(**overrides: object) -> dict:
    data = {
        "title": {"vi": "Thiết kế", "en": "Design"},
        "description": {"vi": "Thiết kế giao diện", "en": "Interface design"},
        "icon": "palette",
        "color": "#F59E0B",
        "bgColor": "#FEF3C7",
    }
    data.update(overrides)
    return data


def _populated() -> ContentStore:
    store = _store()
    store.update(EntityKind.HERO, {"ctaLink": "#services"})
    store.create(EntityKind.SERVICES, _service())
    store.create(
        EntityKind.PROJECTS,
        {
            "title": {"vi": "Ứng dụng", "en": "App"},
            "description": {"vi": "Ứng dụng di động", "en": "Mobile app"},
            "image": "/uploads/app.png",
            "technologies": ["Flutter"],
            "category": "mobile",
            "featured": True,
        },
    )
    store.add_message("Minh", "minh@gmail.com", "Can we talk about a project?")
    return store


class TestExport:
    def test_document_shape(self):
        document = ImportExport(_populated()).export_all()

        assert document.version == FORMAT_VERSION
        assert set(document.entities) == {kind.value for kind in EntityKind}
        assert document.metadata.checksum == checksum(document.entities)
        # four singletons, one service, one project, one message, no posts
        assert document.metadata.total_items == 7

    def test_json_uses_wire_names(self):
        data = json.loads(ImportExport(_populated()).export_all().to_json())
        assert "exportedAt" in data
        assert data["metadata"]["includeMessages"] is True
        assert data["entities"]["heroContent"]["ctaLink"] == "#services"

    def test_messages_can_be_excluded(self):
        document = ImportExport(_populated()).export_all(include_messages=False)
        assert "contactMessages" not in document.entities
        assert document.metadata.include_messages is False

    def test_export_entity(self):
        document = ImportExport(_populated()).export_entity(EntityKind.SERVICES)
        assert list(document.entities) == ["services"]
        assert document.entities["services"][0]["icon"] == "palette"


class TestRoundTrip:
    def test_export_then_import_reproduces_content(self):
        source = _populated()
        text = ImportExport(source).export_all().to_json()

        target = _store()
        report = ImportExport(target).import_all(text)

        assert report.ok
        assert set(report.applied) == set(EntityKind)
        for kind in EntityKind:
            if kind in (EntityKind.SERVICES, EntityKind.PROJECTS, EntityKind.BLOG_POSTS,
                        EntityKind.CONTACT_MESSAGES):
                assert [i.to_wire() for i in target.list(kind)] == [
                    i.to_wire() for i in source.list(kind)
                ]
            else:
                assert target.get(kind).to_wire() == source.get(kind).to_wire()


class TestImportValidation:
    def test_invalid_entity_rejected_others_applied(self):
        store = _store()
        report = ImportExport(store).import_all(
            {
                "version": "1.0",
                "entities": {
                    "heroContent": {"greeting": "hi"},
                    "services": [_service(id="svc-1")],
                },
            }
        )

        assert report.applied == [EntityKind.SERVICES]
        assert "heroContent" in report.rejected
        assert store.get(EntityKind.HERO).cta_link == "#portfolio"
        assert [s.id for s in store.list(EntityKind.SERVICES)] == ["svc-1"]

    def test_item_errors_are_indexed(self):
        report = ImportExport(_store()).import_all(
            {"version": "1.0", "entities": {"services": [_service(), _service(color="red")]}}
        )
        assert "1.color" in report.rejected["services"]

    def test_duplicate_ids_rejected(self):
        report = ImportExport(_store()).import_all(
            {
                "version": "1.0",
                "entities": {"services": [_service(id="same"), _service(id="same")]},
            }
        )
        assert "1.id" in report.rejected["services"]

    def test_items_without_id_get_one(self):
        store = _store()
        ImportExport(store, id_factory=lambda: "fresh").import_all(
            {"version": "1.0", "entities": {"services": [_service()]}}
        )
        assert [s.id for s in store.list(EntityKind.SERVICES)] == ["fresh"]

    def test_unknown_entity_is_a_warning(self):
        report = ImportExport(_store()).import_all(
            {"version": "1.0", "entities": {"testimonials": []}}
        )
        assert report.ok
        assert report.warnings == ["Unknown entity 'testimonials' ignored"]

    def test_checksum_mismatch_is_a_warning(self):
        document = ImportExport(_populated()).export_all().model_dump(by_alias=True)
        document["metadata"]["checksum"] = "0" * 64

        report = ImportExport(_store()).import_all(document)

        assert report.ok
        assert any("Checksum mismatch" in w for w in report.warnings)

    def test_storage_failure_is_reported_per_entity(self):
        medium = MemoryMedium()
        store = _store(medium)
        medium.available = False

        report = ImportExport(store).import_all(
            {"version": "1.0", "entities": {"services": [_service(id="s")]}}
        )

        assert report.applied == []
        assert "__storage__" in report.rejected["services"]


class TestDocumentErrors:
    def test_not_json(self):
        with pytest.raises(ImportDocumentError):
            ImportExport(_store()).import_all("{nope")

    def test_missing_entities(self):
        with pytest.raises(ImportDocumentError):
            ImportExport(_store()).import_all({"version": "1.0"})

    @pytest.mark.parametrize("version", ["1.1", "2.0", "2"])
    def test_newer_version_refused(self, version):
        with pytest.raises(VersioningError):
            ImportExport(_store()).import_all({"version": version, "entities": {}})

    def test_garbage_version(self):
        with pytest.raises(ImportDocumentError):
            ImportExport(_store()).import_all({"version": "latest", "entities": {}})

    def test_bare_major_version_is_current(self):
        report = ImportExport(_store()).import_all({"version": "1", "entities": {}})
        assert report.ok
        assert report.applied == []


class TestMigration:
    def test_0_9_fills_in_order(self):
        entities = {"services": [{"id": "a"}, {"id": "b", "order": 7}]}
        migrated = migrate("0.9", entities)
        assert [s["order"] for s in migrated["services"]] == [0, 7]

    def test_current_version_untouched(self):
        entities = {"services": [{"id": "a"}]}
        assert migrate("1.0", entities) == {"services": [{"id": "a"}]}

    def test_old_document_imports(self):
        store = _store()
        legacy = [
            {k: v for k, v in _service(id=f"s{n}").items() if k != "order"} for n in range(2)
        ]
        report = ImportExport(store).import_all(
            {"version": "0.9", "entities": {"services": legacy}}
        )
        assert report.ok
        assert [(s.id, s.order) for s in store.list(EntityKind.SERVICES)] == [
            ("s0", 0),
            ("s1", 1),
        ]


class TestMerge:
    def test_collections_upsert_by_id(self):
        store = _store()
        kept = store.create(EntityKind.SERVICES, _service(icon="keep"))
        changed = store.create(EntityKind.SERVICES, _service(icon="old"))

        ImportExport(store).import_all(
            {
                "version": "1.0",
                "entities": {
                    "services": [
                        _service(id=changed.id, icon="new", order=1),
                        _service(id="added", order=2),
                    ]
                },
            },
            merge=True,
        )

        icons = {s.id: s.icon for s in store.list(EntityKind.SERVICES)}
        assert icons == {kept.id: "keep", changed.id: "new", "added": "palette"}

    def test_replace_is_default(self):
        store = _store()
        store.create(EntityKind.SERVICES, _service())
        ImportExport(store).import_all(
            {"version": "1.0", "entities": {"services": [_service(id="only")]}}
        )
        assert [s.id for s in store.list(EntityKind.SERVICES)] == ["only"]

    def test_singleton_fields_overlay(self):
        store = _store()
        report = ImportExport(store).import_all(
            {"version": "1.0", "entities": {"heroContent": {"ctaLink": "#blog"}}},
            merge=True,
        )
        assert report.ok
        assert store.get(EntityKind.HERO).cta_link == "#blog"
        assert store.get(EntityKind.HERO).greeting.vi == "Xin chào! Tôi là"


class TestImportEntity:
    def test_bare_value(self):
        store = _store()
        report = ImportExport(store).import_entity(
            EntityKind.CONTACT_INFO, {"email": "hello@gmail.com"}
        )
        assert report.applied == [EntityKind.CONTACT_INFO]
        assert store.get(EntityKind.CONTACT_INFO).email == "hello@gmail.com"

    def test_picks_entity_out_of_full_document(self):
        source = _populated()
        document = ImportExport(source).export_all().model_dump(mode="json", by_alias=True)

        store = _store()
        report = ImportExport(store).import_entity(EntityKind.SERVICES, document)

        assert report.applied == [EntityKind.SERVICES]
        assert report.warnings == []
        assert store.get(EntityKind.HERO).cta_link == "#portfolio"
