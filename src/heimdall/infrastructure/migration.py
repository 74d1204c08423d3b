"""Legacy configuration migration.

Two sources are recognized, checked in this order:

- ``config.yaml`` next to the canonical file (older heimdall releases):
  parsed with ruamel.yaml, written as ``config.json``, backed up to
  ``config.yaml.backup`` and removed.
- ``<legacy_dir>/cli.json`` from the predecessor tool: theme flags and
  workspace toggles are carried over into a sparse ``config.json`` with
  ``migrated_from`` set; the legacy file is backed up, not removed.

INVARIANT: An existing ``config.json`` is never overwritten.
"""

from __future__ import annotations

import logging
import shutil
from datetime import date
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from heimdall.domain.errors import ConfigIOError, ConfigParseError, ManagerStateError
from heimdall.domain.models import CONFIG_VERSION
from heimdall.domain.types import PRIMARY_DOMAIN, ConfigPaths
from heimdall.infrastructure.filesystem import (
    encode_json,
    read_json_document,
    write_bytes_atomic,
)

logger = logging.getLogger(__name__)

YAML_FILENAME = "config.yaml"
LEGACY_FILENAME = "cli.json"
LEGACY_TOOL = "caelestia"
BACKUP_SUFFIX = ".backup"

LEGACY_THEME_FLAGS: tuple[str, ...] = (
    "enableTerm",
    "enableHypr",
    "enableDiscord",
    "enableSpicetify",
    "enableFuzzel",
    "enableBtop",
    "enableGtk",
    "enableQt",
)
_LEGACY_APP_FIELDS = ("enable", "match", "command", "move")


class MigrationSource(StrEnum):
    YAML = "yaml"
    LEGACY = "legacy"


class MigrationResult(BaseModel):
    """What a migration wrote and where the original went."""

    model_config = {"frozen": True}

    source: MigrationSource
    source_path: Path
    target_path: Path
    backup_path: Path
    removed_source: bool = False


def _target(paths: ConfigPaths) -> Path:
    return paths.domain_file(PRIMARY_DOMAIN)


def _backup_beside(path: Path) -> Path:
    backup = path.with_name(path.name + BACKUP_SUFFIX)
    try:
        shutil.copy2(path, backup)
    except OSError as exc:
        msg = f"failed to back up {path}: {exc}"
        raise ConfigIOError(msg) from exc
    return backup


def needs_migration(paths: ConfigPaths, legacy_dir: Path) -> bool:
    """True when no ``config.json`` exists but a migratable source does."""
    if _target(paths).exists():
        return False
    if (paths.base_dir / YAML_FILENAME).is_file():
        return True
    return (legacy_dir / LEGACY_FILENAME).is_file()


def migrate(paths: ConfigPaths, legacy_dir: Path) -> MigrationResult | None:
    """Run whichever migration applies; None when there is nothing to do."""
    if not needs_migration(paths, legacy_dir):
        return None
    yaml_path = paths.base_dir / YAML_FILENAME
    if yaml_path.is_file():
        return migrate_from_yaml(yaml_path, _target(paths))
    return migrate_from_legacy(legacy_dir / LEGACY_FILENAME, _target(paths))


def _json_scalars(value: Any) -> Any:
    """Turn YAML-only scalars (unquoted dates and timestamps) into ISO strings."""
    if isinstance(value, dict):
        return {key: _json_scalars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_json_scalars(item) for item in value]
    if isinstance(value, date):
        return value.isoformat()
    return value


def migrate_from_yaml(yaml_path: Path, target: Path) -> MigrationResult:
    if target.exists():
        msg = f"refusing to overwrite existing {target}"
        raise ManagerStateError(msg)
    try:
        text = yaml_path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"failed to read YAML config {yaml_path}: {exc}"
        raise ConfigIOError(msg) from exc
    try:
        document = YAML(typ="safe").load(text) or {}
    except YAMLError as exc:
        msg = f"failed to parse YAML config {yaml_path}: {exc}"
        raise ConfigParseError(msg) from exc
    if not isinstance(document, dict):
        msg = f"failed to parse YAML config {yaml_path}: top level must be a mapping"
        raise ConfigParseError(msg)

    try:
        data = encode_json(_json_scalars(document), target=yaml_path)
    except ConfigIOError as exc:
        msg = f"failed to parse YAML config {yaml_path}: {exc}"
        raise ConfigParseError(msg) from exc

    backup = _backup_beside(yaml_path)
    write_bytes_atomic(target, data)
    removed = True
    try:
        yaml_path.unlink()
    except OSError as exc:
        removed = False
        logger.warning("Failed to remove old YAML config %s: %s", yaml_path, exc)
    logger.debug("Migrated %s to %s (backup %s)", yaml_path, target, backup)
    return MigrationResult(
        source=MigrationSource.YAML,
        source_path=yaml_path,
        target_path=target,
        backup_path=backup,
        removed_source=removed,
    )


def convert_legacy(document: dict[str, Any]) -> dict[str, Any]:
    """Map a predecessor-tool ``cli.json`` onto a sparse heimdall document."""
    converted: dict[str, Any] = {"version": CONFIG_VERSION, "migrated_from": LEGACY_TOOL}

    theme = document.get("theme")
    if isinstance(theme, dict):
        flags = {flag: bool(theme[flag]) for flag in LEGACY_THEME_FLAGS if flag in theme}
        if flags:
            converted["theme"] = flags

    toggles = document.get("toggles")
    if isinstance(toggles, dict):
        converted_toggles: dict[str, Any] = {}
        for name, toggle in toggles.items():
            apps = toggle.get("apps") if isinstance(toggle, dict) else None
            if not isinstance(apps, dict):
                apps = {}
            converted_toggles[name] = {
                "apps": {
                    app_name: {k: app[k] for k in _LEGACY_APP_FIELDS if k in app}
                    for app_name, app in apps.items()
                    if isinstance(app, dict)
                }
            }
        converted["toggles"] = converted_toggles
    return converted


def migrate_from_legacy(legacy_path: Path, target: Path) -> MigrationResult:
    if target.exists():
        msg = f"refusing to overwrite existing {target}"
        raise ManagerStateError(msg)
    data = encode_json(convert_legacy(read_json_document(legacy_path)), target=legacy_path)
    backup = _backup_beside(legacy_path)
    write_bytes_atomic(target, data)
    logger.debug("Migrated %s to %s (backup %s)", legacy_path, target, backup)
    return MigrationResult(
        source=MigrationSource.LEGACY,
        source_path=legacy_path,
        target_path=target,
        backup_path=backup,
    )
