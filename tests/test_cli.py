"""Smoke tests for the CLI."""

import json
from pathlib import Path

import pytest
from folio.cli import app
from typer.testing import CliRunner

ENV_VARS = (
    "FOLIO_STORAGE_DIR",
    "FOLIO_STORAGE_QUOTA",
    "FOLIO_BACKUP_KEEP",
    "FOLIO_REQUIRE_IMAGE",
)


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def storage_dir(tmp_path: Path, monkeypatch) -> Path:
    """Isolated storage directory with no config file or env overrides in play."""
    for key in ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path / "data"


def _invoke(runner: CliRunner, storage_dir: Path, *args: str):
    return runner.invoke(app, ["--storage-dir", str(storage_dir), *args])


class TestCLI:
    """Tests for the CLI entry point."""

    def test_main_help(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "export" in result.output

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "folio 0.1.0" in result.output


class TestShow:
    def test_singleton_defaults(self, runner: CliRunner, storage_dir: Path) -> None:
        result = _invoke(runner, storage_dir, "show", "heroContent")
        assert result.exit_code == 0
        assert '"ctaLink"' in result.output

    def test_empty_collection(self, runner: CliRunner, storage_dir: Path) -> None:
        result = _invoke(runner, storage_dir, "show", "services")
        assert result.exit_code == 0
        assert "[]" in result.output

    def test_unknown_kind(self, runner: CliRunner, storage_dir: Path) -> None:
        result = _invoke(runner, storage_dir, "show", "widgets")
        assert result.exit_code == 1
        assert "Unknown kind" in result.output

    def test_missing_item(self, runner: CliRunner, storage_dir: Path) -> None:
        result = _invoke(runner, storage_dir, "show", "projects", "--id", "nope")
        assert result.exit_code == 1


class TestCheck:
    def test_fresh_store_is_valid(self, runner: CliRunner, storage_dir: Path) -> None:
        result = _invoke(runner, storage_dir, "check")
        assert result.exit_code == 0
        assert "Integrity" in result.output

    def test_corrupt_file_is_repaired_and_reported(
        self, runner: CliRunner, storage_dir: Path
    ) -> None:
        storage_dir.mkdir(parents=True)
        (storage_dir / "admin_services.json").write_text("{not json")

        result = _invoke(runner, storage_dir, "check")

        assert result.exit_code == 0
        assert "Warning" in result.output
        assert json.loads((storage_dir / "admin_services.json").read_text()) == []


class TestExportImport:
    def test_export_to_file_then_import(
        self, runner: CliRunner, storage_dir: Path, tmp_path: Path
    ) -> None:
        target = tmp_path / "export.json"

        exported = _invoke(runner, storage_dir, "export", "--output", str(target))
        assert exported.exit_code == 0
        assert "Exported" in exported.output
        document = json.loads(target.read_text())
        assert document["version"] == "1.0"
        assert "heroContent" in document["entities"]

        imported = _invoke(runner, tmp_path / "other", "import", str(target))
        assert imported.exit_code == 0
        assert "Imported" in imported.output

    def test_export_without_messages(
        self, runner: CliRunner, storage_dir: Path, tmp_path: Path
    ) -> None:
        target = tmp_path / "export.json"
        result = _invoke(runner, storage_dir, "export", "-o", str(target), "--no-messages")
        assert result.exit_code == 0
        assert "contactMessages" not in json.loads(target.read_text())["entities"]

    def test_import_missing_file(self, runner: CliRunner, storage_dir: Path) -> None:
        result = _invoke(runner, storage_dir, "import", "missing.json")
        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_import_rejected_entity_exits_nonzero(
        self, runner: CliRunner, storage_dir: Path, tmp_path: Path
    ) -> None:
        source = tmp_path / "bad.json"
        source.write_text(
            json.dumps(
                {
                    "version": "1.0",
                    "entities": {"systemSettings": {"colorPalette": ["#FFFFFF"]}},
                }
            )
        )
        result = _invoke(runner, storage_dir, "import", str(source))
        assert result.exit_code == 1
        assert "Rejected systemSettings" in result.output

    def test_import_not_json(self, runner: CliRunner, storage_dir: Path, tmp_path: Path) -> None:
        source = tmp_path / "bad.json"
        source.write_text("nope")
        result = _invoke(runner, storage_dir, "import", str(source))
        assert result.exit_code == 1


class TestBackupsAndReset:
    def test_no_backups(self, runner: CliRunner, storage_dir: Path) -> None:
        result = _invoke(runner, storage_dir, "backups", "heroContent")
        assert result.exit_code == 0
        assert "No backups" in result.output

    def test_reset_then_list_and_restore(self, runner: CliRunner, storage_dir: Path) -> None:
        reset = _invoke(runner, storage_dir, "reset", "heroContent", "--yes")
        assert reset.exit_code == 0
        assert (storage_dir / "admin_hero_content.json").exists()

        listed = _invoke(runner, storage_dir, "backups", "heroContent")
        assert listed.exit_code == 0
        assert "Backups of heroContent" in listed.output

        backup_files = sorted(storage_dir.glob("admin_hero_content_backup_*.json"))
        assert len(backup_files) == 1
        backup_key = backup_files[0].name.removesuffix(".json")

        restored = _invoke(runner, storage_dir, "restore", "heroContent", backup_key)
        assert restored.exit_code == 0
        assert "Restored" in restored.output

    def test_reset_asks_for_confirmation(self, runner: CliRunner, storage_dir: Path) -> None:
        result = runner.invoke(
            app, ["--storage-dir", str(storage_dir), "reset", "services"], input="n\n"
        )
        assert result.exit_code == 1
        assert not (storage_dir / "admin_services.json").exists()

    def test_restore_unknown_backup(self, runner: CliRunner, storage_dir: Path) -> None:
        result = _invoke(runner, storage_dir, "restore", "heroContent", "admin_hero_content_backup_1")
        assert result.exit_code == 1
        assert "No backup" in result.output


class TestGlobalOptions:
    def test_keep_limits_backups(self, runner: CliRunner, storage_dir: Path) -> None:
        for _ in range(3):
            result = _invoke(runner, storage_dir, "--keep", "1", "reset", "heroContent", "--yes")
            assert result.exit_code == 0

        assert len(list(storage_dir.glob("admin_hero_content_backup_*.json"))) == 1

    def test_quota_refuses_large_writes(self, runner: CliRunner, storage_dir: Path) -> None:
        result = _invoke(runner, storage_dir, "--quota", "10", "reset", "heroContent", "--yes")
        assert result.exit_code == 1
        assert "quota" in result.output
        assert not (storage_dir / "admin_hero_content.json").exists()

    def test_no_require_image(self, runner: CliRunner, storage_dir: Path, tmp_path: Path) -> None:
        source = tmp_path / "about.json"
        source.write_text(
            json.dumps(
                {
                    "version": "1.0",
                    "entities": {
                        "aboutContent": {"profileImage": ""},
                    },
                }
            )
        )
        result = _invoke(
            runner, storage_dir, "--no-require-image", "import", str(source), "--merge"
        )
        assert result.exit_code == 0

        strict = _invoke(runner, storage_dir, "import", str(source), "--merge")
        assert strict.exit_code == 1
        assert "profileImage" in strict.output
