"""Unified configuration loaded from .folio.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field

from folio.content.backups import DEFAULT_KEEP

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".folio.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
]
GLOBAL_CONFIG = Path.home() / ".config" / "folio" / "config.toml"


class StorageSectionConfig(BaseModel):
    """[storage] section."""

    directory: str = "./.folio-data"
    quota_bytes: int | None = None


class BackupsSectionConfig(BaseModel):
    """[backups] section."""

    keep: int = Field(default=DEFAULT_KEEP, ge=1)


class ValidationSectionConfig(BaseModel):
    """[validation] section."""

    require_image: bool = True


class ExportSectionConfig(BaseModel):
    """[export] section."""

    include_messages: bool = True


class FolioConfig(BaseModel):
    """Top-level configuration for the content store and its CLI."""

    storage: StorageSectionConfig = Field(default_factory=StorageSectionConfig)
    backups: BackupsSectionConfig = Field(default_factory=BackupsSectionConfig)
    validation: ValidationSectionConfig = Field(default_factory=ValidationSectionConfig)
    export: ExportSectionConfig = Field(default_factory=ExportSectionConfig)

    @property
    def storage_path(self) -> Path:
        return Path(self.storage.directory).expanduser()


def load_config(path: str | Path | None = None) -> FolioConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .folio.toml in CWD
    3. ~/.config/folio/config.toml

    Then overlay environment variables.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        if not data and GLOBAL_CONFIG.exists():
            data = _load_toml(GLOBAL_CONFIG)
            logger.info("Loaded config from %s", GLOBAL_CONFIG)

    config = FolioConfig.model_validate(data) if data else FolioConfig()
    return _apply_env_vars(config)


def merge_cli_overrides(config: FolioConfig, **cli_kwargs: object) -> FolioConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was explicitly provided
    (i.e., not None).  Keys are ``<section>_<field>`` flattened, e.g.
    ``storage_directory``.
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "storage_directory": ("storage", "directory"),
        "storage_quota": ("storage", "quota_bytes"),
        "backup_keep": ("backups", "keep"),
        "require_image": ("validation", "require_image"),
        "include_messages": ("export", "include_messages"),
    }

    for key, value in cli_kwargs.items():
        if value is None:
            continue
        if key in mapping:
            section, field = mapping[key]
            data[section][field] = value

    return FolioConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: FolioConfig) -> FolioConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "FOLIO_STORAGE_DIR": ("storage", "directory"),
    }
    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    quota_raw = os.environ.get("FOLIO_STORAGE_QUOTA")
    if quota_raw is not None:
        data["storage"]["quota_bytes"] = int(quota_raw) if quota_raw.strip() else None
    keep_raw = os.environ.get("FOLIO_BACKUP_KEEP")
    if keep_raw is not None:
        data["backups"]["keep"] = int(keep_raw)
    image_raw = os.environ.get("FOLIO_REQUIRE_IMAGE")
    if image_raw is not None:
        data["validation"]["require_image"] = image_raw.lower() in ("true", "1", "yes")

    return FolioConfig.model_validate(data)
