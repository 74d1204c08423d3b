"""Path layout shared by the manager and its providers."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_FILE_PATTERN = "%s.json"
CANONICAL_FILENAME = "config.json"
PRIMARY_DOMAIN = "cli"


class ConfigPaths(BaseModel):
    """Where each domain's artifacts live on disk.

    Immutable: the manager swaps the whole object (only before it is
    initialized) rather than editing fields in place.
    """

    model_config = {"frozen": True}

    base_dir: Path
    file_pattern: str = DEFAULT_FILE_PATTERN
    schema_dir: Path
    backup_dir: Path
    output_paths: dict[str, Path] = Field(default_factory=dict)

    @classmethod
    def under(cls, base_dir: Path) -> ConfigPaths:
        """Default layout rooted at *base_dir* (``schemas/`` and ``backups/`` inside it)."""
        return cls(
            base_dir=base_dir,
            schema_dir=base_dir / "schemas",
            backup_dir=base_dir / "backups",
        )

    def domain_file(self, domain: str) -> Path:
        """On-disk file for *domain*; the primary domain uses ``config.json``."""
        if domain == PRIMARY_DOMAIN:
            return self.base_dir / CANONICAL_FILENAME
        return self.base_dir / (self.file_pattern % domain)

    def schema_file(self, domain: str) -> Path:
        return self.schema_dir / f"{domain}.schema.json"

    def output_path(self, domain: str) -> Path | None:
        return self.output_paths.get(domain)


class XdgDirs(BaseModel):
    """User directories that path-valued defaults are derived from."""

    model_config = {"frozen": True}

    config_home: Path
    data_home: Path
    pictures: Path
    videos: Path

    @property
    def heimdall_config(self) -> Path:
        return self.config_home / "heimdall"

    @property
    def heimdall_data(self) -> Path:
        return self.data_home / "heimdall"
