"""Default-layering store for the primary (``cli``) domain.

Each load cycle recomputes the full default tree, reads the (possibly
absent, possibly partial) user file, records every dot-path physically
present in it, and deep-merges the file over the defaults.

INVARIANT: ``load`` never writes. With no file, the effective tree equals
the defaults and nothing is created on disk.
INVARIANT: Every field defined by the section models has a value in the
effective tree, even if the user's file predates it.
INVARIANT: ``save`` writes whole top-level sections, and only those the user
touched (present in the file at load time, or set this session). Defaults
for untouched sections are never baked into the file.
"""

from __future__ import annotations

import logging
import shutil
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from heimdall.domain.checks import ValidationReport, check_config
from heimdall.domain.errors import SchemaValidationError
from heimdall.domain.metadata import ConfigMetadata
from heimdall.domain.models import HeimdallConfig, build_defaults
from heimdall.domain.schema import Schema
from heimdall.domain.types import PRIMARY_DOMAIN, XdgDirs
from heimdall.domain.values import (
    collect_paths,
    deep_copy,
    deep_merge,
    diff_paths,
    find_new_fields,
    get_path,
    set_path,
    values_equal,
)
from heimdall.infrastructure.filesystem import (
    atomic_write_json,
    backup_file,
    ensure_dir,
    read_json_document,
)
from heimdall.infrastructure.providers.base import Provider

logger = logging.getLogger(__name__)


def _section(path: str) -> str:
    return path.split(".", 1)[0]


class CliProvider(Provider):
    """Layers sparse user overrides over versioned, code-baked defaults.

    Args:
        config_path: The canonical ``config.json``.
        dirs: XDG directories used for path-valued defaults.
        scheme_paths: When given, replaces ``scheme.user_paths`` in the
            effective tree after every load (environment override).
        which: PATH lookup used by the semantic checks.
        path_exists: Filesystem probe used by the semantic checks.
    """

    def __init__(
        self,
        config_path: Path,
        *,
        dirs: XdgDirs,
        scheme_paths: list[str] | None = None,
        which: Callable[[str], str | None] = shutil.which,
        path_exists: Callable[[Path], bool] = Path.exists,
    ) -> None:
        self._config_path = config_path
        self._dirs = dirs
        self._scheme_paths = list(scheme_paths) if scheme_paths else None
        self._which = which
        self._path_exists = path_exists
        self._lock = threading.RLock()

        self._defaults = build_defaults(dirs)
        self._effective = deep_copy(self._defaults)
        self._user: dict[str, Any] = {}
        self._user_set_keys: set[str] = set()
        self._touched: set[str] = set()
        self._schema: Schema | None = None

    @property
    def domain(self) -> str:
        return PRIMARY_DOMAIN

    @property
    def config_path(self) -> Path:
        return self._config_path

    # ------------------------------------------------------------------
    # Provider contract
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        ensure_dir(self._config_path.parent)
        self.load()

    def get_schema(self) -> Schema:
        with self._lock:
            if self._schema is None:
                document = ConfigMetadata(HeimdallConfig, self._defaults).generate_schema()
                self._schema = Schema.from_document(document)
            return self._schema

    def load(self) -> None:
        defaults = build_defaults(self._dirs)
        user: dict[str, Any] = {}
        if self._config_path.is_file():
            user = read_json_document(self._config_path)
        effective = deep_merge(defaults, user)
        if self._scheme_paths is not None:
            set_path(effective, "scheme.user_paths", list(self._scheme_paths))

        with self._lock:
            self._defaults = defaults
            self._user = user
            self._user_set_keys = collect_paths(user)
            self._effective = effective
            self._touched = set()
        logger.debug(
            "Loaded cli config (file=%s, user keys=%d)",
            self._config_path.is_file(),
            len(self._user_set_keys),
        )

    def save(self) -> None:
        with self._lock:
            sections = {_section(path) for path in self._user_set_keys | self._touched}
            document = {
                key: deep_copy(value) for key, value in self._effective.items() if key in sections
            }
        atomic_write_json(self._config_path, document)
        with self._lock:
            self._user = deep_copy(document)
            self._user_set_keys = collect_paths(document)
            self._touched = set()
        logger.debug("Saved cli config sections: %s", sorted(document))

    def get(self, path: str) -> Any:
        with self._lock:
            return deep_copy(get_path(self._effective, path))

    def set(self, path: str, value: Any) -> None:
        with self._lock:
            set_path(self._effective, path, deep_copy(value))
            self._touched.add(path)

    def get_all(self) -> dict[str, Any]:
        with self._lock:
            return deep_copy(self._effective)

    def set_all(self, tree: dict[str, Any]) -> None:
        """Replace the effective tree.

        Fields missing from *tree* fall back to defaults; top-level
        sections whose value changed are marked as touched. Sections left
        out of *tree* are no longer written by :meth:`save`.
        """
        with self._lock:
            replacement = deep_merge(self._defaults, tree)
            kept = set(tree)
            self._user_set_keys = {p for p in self._user_set_keys if _section(p) in kept}
            self._touched = {p for p in self._touched if _section(p) in kept}
            for key in kept:
                previous = self._effective.get(key)
                if key not in self._effective or not values_equal(previous, replacement[key]):
                    self._touched.add(key)
            self._effective = replacement

    def validate(self) -> None:
        """Schema validation plus the semantic battery.

        Warnings are logged; errors are aggregated into one exception.
        """
        report = self.check()
        for warning in report.warnings:
            logger.warning("%s", warning)
        if not report.ok:
            raise SchemaValidationError(report.summary(), errors=report.errors)

    # ------------------------------------------------------------------
    # Layering queries
    # ------------------------------------------------------------------

    def check(self) -> ValidationReport:
        """Run every check without raising."""
        effective = self.get_all()
        with self._lock:
            user = deep_copy(self._user)
        errors: list[str] = []
        try:
            self.get_schema().validate(effective)
        except SchemaValidationError as exc:
            errors.append(str(exc))
        report = check_config(
            effective, user, which=self._which, path_exists=self._path_exists
        )
        return ValidationReport(errors=errors + report.errors, warnings=report.warnings)

    def is_user_set(self, path: str) -> bool:
        with self._lock:
            return path in self._user_set_keys

    def user_set_keys(self) -> set[str]:
        with self._lock:
            return set(self._user_set_keys)

    def defaults(self) -> dict[str, Any]:
        with self._lock:
            return deep_copy(self._defaults)

    def effective(self) -> dict[str, Any]:
        return self.get_all()

    def has_user_config(self) -> bool:
        return self._config_path.is_file()

    def user_config(self) -> dict[str, Any]:
        """The on-disk document as it is now, ``{}`` when absent."""
        if not self._config_path.is_file():
            return {}
        return read_json_document(self._config_path)

    def modified_paths(self) -> list[str]:
        """Leaf paths whose effective value diverges from the default."""
        with self._lock:
            return diff_paths(self._defaults, self._effective)

    def typed(self) -> HeimdallConfig:
        """The effective tree as a typed model."""
        try:
            return HeimdallConfig.model_validate(self.get_all())
        except ValidationError as exc:
            msg = f"configuration does not match the section models: {exc}"
            raise SchemaValidationError(msg) from exc

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def reset(self, backup_dir: Path) -> Path | None:
        """Back up and remove the user file, then reload defaults.

        Returns the backup path, or None when there was no file.
        """
        backup: Path | None = None
        if self._config_path.is_file():
            backup = backup_file(self._config_path, backup_dir)
            self._config_path.unlink()
            logger.debug("Reset cli config; backup at %s", backup)
        self.load()
        return backup

    def refresh(self, backup_dir: Path) -> list[str]:
        """Rewrite the user file so touched sections gain newly introduced fields.

        Returns the dot-paths that were added to the file. A missing file
        is left missing.
        """
        if not self._config_path.is_file():
            self.load()
            return []
        before = read_json_document(self._config_path)
        backup_file(self._config_path, backup_dir)
        self.load()
        self.save()
        return find_new_fields(before, self.user_config())
