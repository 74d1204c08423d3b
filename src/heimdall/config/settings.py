"""Settings for the heimdall CLI itself — CLI flags and env vars in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``HEIMDALL_*`` prefix
  3. Code defaults

The settings object is built once per invocation; the manager and its
providers receive plain values from it and never consult the environment.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic_settings import BaseSettings

from heimdall.domain.types import ConfigPaths, XdgDirs
from heimdall.infrastructure.filesystem import resolve_xdg_dirs


class HeimdallSettings(BaseSettings):
    """Unified settings for the heimdall CLI.

    Attributes:
        config_dir: Base directory override for every domain's file.
        schema_dir: Where registered schemas are cached.
        backup_dir: Where reset/refresh backups are written.
        config: Bootstrap file whose ``config_paths`` object replaces the
            computed path layout.
        shell_schema: External schema source for the shell domain.
        shell_output: Output path for the shell domain's document.
        scheme_paths: ``os.pathsep``-separated override for
            ``scheme.user_paths``.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "HEIMDALL_",
    }

    # --- Paths ---
    config_dir: Path | None = None
    schema_dir: Path | None = None
    backup_dir: Path | None = None
    config: Path | None = None

    # --- Shell domain ---
    shell_schema: Path | None = None
    shell_output: Path | None = None

    # --- Cli domain overrides ---
    scheme_paths: str | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    @classmethod
    def from_cli(cls, **cli_flags: Any) -> HeimdallSettings:
        """Construct settings from a CLI invocation.

        Flags that were not given (``None``) fall through to the
        environment and code defaults.
        """
        return cls(**{key: value for key, value in cli_flags.items() if value is not None})

    def xdg_dirs(self) -> XdgDirs:
        return resolve_xdg_dirs()

    def config_paths(self) -> ConfigPaths:
        """Path layout with directory overrides applied."""
        base_dir = self.config_dir or self.xdg_dirs().heimdall_config
        return ConfigPaths(
            base_dir=base_dir,
            schema_dir=self.schema_dir or base_dir / "schemas",
            backup_dir=self.backup_dir or base_dir / "backups",
        )

    def scheme_path_list(self) -> list[str] | None:
        """Parsed ``scheme_paths``; None when unset or blank."""
        if not self.scheme_paths:
            return None
        parts = [part for part in self.scheme_paths.split(os.pathsep) if part]
        return parts or None
