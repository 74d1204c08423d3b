"""Filesystem operations for configuration artifacts.

INVARIANT: Writes are atomic. A document is serialized to a sibling temp
file and moved into place with ``os.replace``; a failed write leaves the
previous file untouched and removes the temp file.
"""

from __future__ import annotations

import json
import os
import shutil
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from heimdall.domain.errors import ConfigIOError, ConfigParseError
from heimdall.domain.types import XdgDirs

# ---------------------------------------------------------------------------
# Directory resolution
# ---------------------------------------------------------------------------


def _env_dir(env: Mapping[str, str], key: str, fallback: Path) -> Path:
    value = env.get(key, "")
    return Path(value) if value else fallback


def resolve_xdg_dirs(env: Mapping[str, str] | None = None) -> XdgDirs:
    """Resolve XDG user directories from *env* (defaults to ``os.environ``)."""
    env = os.environ if env is None else env
    home = Path(env.get("HOME") or Path.home())
    return XdgDirs(
        config_home=_env_dir(env, "XDG_CONFIG_HOME", home / ".config"),
        data_home=_env_dir(env, "XDG_DATA_HOME", home / ".local" / "share"),
        pictures=_env_dir(env, "XDG_PICTURES_DIR", home / "Pictures"),
        videos=_env_dir(env, "XDG_VIDEOS_DIR", home / "Videos"),
    )


def ensure_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        msg = f"failed to create directory {path}: {exc}"
        raise ConfigIOError(msg) from exc


# ---------------------------------------------------------------------------
# JSON documents
# ---------------------------------------------------------------------------


def read_json_document(path: Path) -> dict[str, Any]:
    """Read a JSON object from *path*.

    Raises:
        ConfigIOError: The file cannot be read.
        ConfigParseError: The file is not a JSON object.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"failed to read config file {path}: {exc}"
        raise ConfigIOError(msg) from exc
    try:
        document = json.loads(text) if text.strip() else {}
    except json.JSONDecodeError as exc:
        msg = f"failed to parse config file {path}: {exc}"
        raise ConfigParseError(msg) from exc
    if not isinstance(document, dict):
        msg = f"failed to parse config file {path}: top level must be an object"
        raise ConfigParseError(msg)
    return document


def write_bytes_atomic(path: Path, data: bytes) -> None:
    ensure_dir(path.parent)
    tmp = path.with_name(f"{path.name}.tmp")
    try:
        tmp.write_bytes(data)
        os.replace(tmp, path)
    except OSError as exc:
        tmp.unlink(missing_ok=True)
        msg = f"failed to write config file {path}: {exc}"
        raise ConfigIOError(msg) from exc


def encode_json(document: Mapping[str, Any], *, target: object = "document") -> bytes:
    """Serialize *document* as indented UTF-8 JSON.

    Non-finite floats and values with no JSON form are rejected rather than
    written as tokens a strict reader would refuse.

    Raises:
        ConfigIOError: *document* has no JSON representation.
    """
    try:
        text = json.dumps(document, indent=2, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        msg = f"cannot serialize {target} as JSON: {exc}"
        raise ConfigIOError(msg) from exc
    return (text + "\n").encode("utf-8")


def atomic_write_json(path: Path, document: dict[str, Any]) -> None:
    """Serialize *document* as indented JSON and move it into place."""
    write_bytes_atomic(path, encode_json(document, target=path))


def backup_file(path: Path, backup_dir: Path, *, suffix: str | None = None) -> Path:
    """Copy *path* into *backup_dir* with a timestamp; returns the copy's path."""
    stamp = suffix or datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    ensure_dir(backup_dir)
    target = backup_dir / f"{path.stem}.{stamp}{path.suffix}"
    try:
        shutil.copy2(path, target)
    except OSError as exc:
        msg = f"failed to back up {path}: {exc}"
        raise ConfigIOError(msg) from exc
    return target
