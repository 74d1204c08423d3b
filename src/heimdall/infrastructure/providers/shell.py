"""Provider for the companion shell daemon's settings.

The shell's schema is owned by the daemon, not by this tool, so it is
discovered at construction time from an external file:

1. A config document carrying ``$schema`` -> a schema is inferred from its
   values (every value becomes the default of a typed property).
2. A document with an embedded ``x-schema`` object -> that object is used.
3. A document declaring ``properties`` -> parsed as a schema directly.
4. Anything else, or no file at all -> the bundled default schema.

``save`` writes the internal file and, when the daemon reads from a
different location, the same document to that output path.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from heimdall.domain.errors import ConfigError
from heimdall.domain.schema import Schema, infer_schema
from heimdall.domain.types import ConfigPaths
from heimdall.infrastructure.filesystem import atomic_write_json, read_json_document
from heimdall.infrastructure.providers.base import JsonFileProvider

logger = logging.getLogger(__name__)

SHELL_DOMAIN = "shell"
SHELL_SCHEMA_TITLE = "Shell Configuration"

DEFAULT_SHELL_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": SHELL_SCHEMA_TITLE,
    "description": "Configuration for shell integration",
    "type": "object",
    "properties": {
        "version": {
            "type": "string",
            "description": "Configuration version",
            "default": "1.0.0",
        },
        "appearance": {
            "type": "object",
            "description": "Visual appearance settings",
            "properties": {
                "colorScheme": {
                    "type": "string",
                    "description": "Color scheme identifier",
                    "default": "catppuccin-mocha",
                },
                "fontSize": {
                    "type": "integer",
                    "description": "Base font size in pixels",
                    "minimum": 8,
                    "maximum": 32,
                    "default": 12,
                },
                "animations": {
                    "type": "boolean",
                    "description": "Enable UI animations",
                    "default": True,
                },
            },
        },
        "bar": {
            "type": "object",
            "description": "Status bar configuration",
            "properties": {
                "position": {"type": "string", "enum": ["top", "bottom"], "default": "top"},
                "height": {"type": "integer", "minimum": 20, "maximum": 100, "default": 30},
                "modules": {
                    "type": "array",
                    "description": "Active bar modules",
                    "items": {
                        "type": "object",
                        "properties": {
                            "name": {"type": "string", "description": "Module identifier"},
                            "enabled": {"type": "boolean", "default": True},
                            "config": {
                                "type": "object",
                                "description": "Module-specific configuration",
                                "additionalProperties": True,
                            },
                        },
                        "required": ["name"],
                    },
                    "default": [],
                },
            },
        },
    },
}


def quickshell_default_path(config_home: Path) -> Path:
    """Where the shell daemon keeps its own config by default."""
    return config_home / "quickshell" / "config" / "default.json"


def default_shell_schema() -> Schema:
    return Schema.from_json(json.dumps(DEFAULT_SHELL_SCHEMA, indent=2))


def discover_schema(source: Path) -> Schema | None:
    """Derive a schema from *source*, or None when it yields nothing usable."""
    try:
        document = read_json_document(source)
    except ConfigError as exc:
        logger.warning("Ignoring shell schema source %s: %s", source, exc)
        return None

    if isinstance(document.get("$schema"), str) and document["$schema"]:
        return infer_schema(
            document, title=SHELL_SCHEMA_TITLE, skip=frozenset({"$schema", "x-schema"})
        )

    embedded = document.get("x-schema")
    if isinstance(embedded, dict):
        try:
            return Schema.from_json(json.dumps(embedded))
        except ConfigError as exc:
            logger.warning("Embedded x-schema in %s is invalid: %s", source, exc)

    if isinstance(document.get("properties"), dict):
        try:
            return Schema.from_json(source.read_bytes())
        except (ConfigError, OSError) as exc:
            logger.warning("Shell schema %s is invalid: %s", source, exc)
    return None


class ShellProvider(JsonFileProvider):
    """JSON-file provider with daemon-owned schema discovery and mirrored output.

    Args:
        config_path: Internal file under the tool's config directory.
        paths: Path layout; its ``output_paths["shell"]`` is consulted
            when *output_path* is not given.
        config_home: XDG config home used for the daemon's default paths.
        external_schema: Schema source; defaults to the daemon's config.
        output_path: Where the daemon reads its document from.
    """

    def __init__(
        self,
        config_path: Path,
        paths: ConfigPaths,
        *,
        config_home: Path,
        external_schema: Path | None = None,
        output_path: Path | None = None,
    ) -> None:
        super().__init__(SHELL_DOMAIN, config_path)
        self._paths = paths
        daemon_default = quickshell_default_path(config_home)
        self._external_schema = external_schema or daemon_default
        self._output_path = output_path or paths.output_path(SHELL_DOMAIN) or daemon_default
        self._load_external_schema()

    @property
    def external_schema(self) -> Path:
        return self._external_schema

    @property
    def output_path(self) -> Path:
        return self._output_path

    def set_external_schema(self, path: Path) -> None:
        self._external_schema = path
        self._load_external_schema()

    def set_output_path(self, path: Path) -> None:
        self._output_path = path

    def _load_external_schema(self) -> None:
        schema = None
        if self._external_schema.is_file():
            schema = discover_schema(self._external_schema)
        if schema is None:
            logger.debug("Using bundled shell schema")
            schema = default_shell_schema()
        else:
            logger.debug("Shell schema discovered from %s", self._external_schema)
        self.set_schema(schema)

    def save(self) -> None:
        super().save()
        if self._output_path != self.config_path:
            atomic_write_json(self._output_path, self.get_all())
            logger.debug("Mirrored shell config to %s", self._output_path)
