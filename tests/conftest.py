"""Shared pytest fixtures and test helpers for heimdall tests."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from heimdall.domain.types import ConfigPaths, XdgDirs
from heimdall.infrastructure.filesystem import resolve_xdg_dirs
from heimdall.infrastructure.manager import ConfigManager


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Point HOME and every XDG directory into tmp_path; drop HEIMDALL_* overrides.

    Also restores root logger state, since CLI invocations reconfigure it.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(home / ".local" / "share"))
    monkeypatch.setenv("XDG_PICTURES_DIR", str(home / "Pictures"))
    monkeypatch.setenv("XDG_VIDEOS_DIR", str(home / "Videos"))
    for key in list(os.environ):
        if key.startswith("HEIMDALL_"):
            monkeypatch.delenv(key)

    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    heimdall_level = logging.getLogger("heimdall").level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    logging.getLogger("heimdall").setLevel(heimdall_level)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def xdg_dirs() -> XdgDirs:
    """XDG directories resolved from the isolated environment."""
    return resolve_xdg_dirs()


@pytest.fixture
def config_paths(tmp_path: Path) -> ConfigPaths:
    """Path layout rooted in a fresh temp config directory."""
    return ConfigPaths.under(tmp_path / "config")


@pytest.fixture
def manager(config_paths: ConfigPaths, xdg_dirs: XdgDirs) -> ConfigManager:
    """Initialized manager with the built-in cli and shell domains.

    PATH lookups always succeed so tool warnings stay out of the way.
    """
    m = ConfigManager(config_paths, dirs=xdg_dirs, which=lambda name: f"/usr/bin/{name}")
    m.initialize()
    return m


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def write_json(path: Path, document: dict[str, Any]) -> Path:
    """Write *document* to *path* (creating parents) and return the path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


def read_json(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text(encoding="utf-8"))
