"""Provider contract and the generic JSON-file provider.

Every domain implements :class:`Provider`. The manager only ever talks to
this interface, so the dot-path/validate/save contract is identical across
domains even when a provider writes a different on-disk shape.

INVARIANT: Values handed in or out are deep copies; callers never alias a
provider's in-memory tree.
INVARIANT: ``load`` either replaces the tree completely or leaves it as it
was (parse failures raise before any state changes).
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from heimdall.domain.errors import ProviderError
from heimdall.domain.schema import Schema
from heimdall.domain.values import deep_copy, get_path, set_path
from heimdall.infrastructure.filesystem import atomic_write_json, ensure_dir, read_json_document

logger = logging.getLogger(__name__)


class Provider(ABC):
    """Owns one domain's in-memory value tree and its on-disk artifact."""

    @property
    @abstractmethod
    def domain(self) -> str:
        """Domain name this provider serves."""

    @property
    @abstractmethod
    def config_path(self) -> Path:
        """Path of the on-disk artifact."""

    @abstractmethod
    def initialize(self) -> None:
        """Prepare directories and initial state. Called once per registration."""

    @abstractmethod
    def get_schema(self) -> Schema:
        """Return the domain schema; failure aborts registration."""

    @abstractmethod
    def load(self) -> None:
        """Read the on-disk artifact into memory."""

    @abstractmethod
    def save(self) -> None:
        """Write the in-memory tree to disk."""

    @abstractmethod
    def get(self, path: str) -> Any:
        """Value at dot-path *path*; raises ``PathNotFoundError``."""

    @abstractmethod
    def set(self, path: str, value: Any) -> None:
        """Write *value* at *path*, creating intermediate objects."""

    @abstractmethod
    def get_all(self) -> dict[str, Any]:
        """Copy of the whole tree."""

    @abstractmethod
    def set_all(self, tree: dict[str, Any]) -> None:
        """Replace the whole tree."""

    @abstractmethod
    def validate(self) -> None:
        """Validate the current tree against the schema."""


class JsonFileProvider(Provider):
    """Provider backed by a single JSON document.

    When no file exists at initialization the tree is seeded with the
    schema's defaults. Guards its tree with its own re-entrant lock so
    instances can be shared across threads.
    """

    def __init__(self, domain: str, config_path: Path, schema: Schema | None = None) -> None:
        self._domain = domain
        self._config_path = config_path
        self._schema = schema
        self._data: dict[str, Any] = {}
        self._lock = threading.RLock()

    @property
    def domain(self) -> str:
        return self._domain

    @property
    def config_path(self) -> Path:
        return self._config_path

    def set_schema(self, schema: Schema) -> None:
        with self._lock:
            self._schema = schema

    def initialize(self) -> None:
        ensure_dir(self._config_path.parent)
        if self._config_path.is_file():
            self.load()
            return
        with self._lock:
            if self._schema is not None:
                self._data = self._schema.defaults()

    def get_schema(self) -> Schema:
        with self._lock:
            if self._schema is None:
                msg = f"no schema defined for provider {self._domain}"
                raise ProviderError(msg)
            return self._schema

    def load(self) -> None:
        if not self._config_path.is_file():
            logger.debug("No file for %s at %s; keeping state", self._domain, self._config_path)
            return
        document = read_json_document(self._config_path)
        with self._lock:
            self._data = document
        logger.debug("Loaded %s from %s", self._domain, self._config_path)

    def save(self) -> None:
        with self._lock:
            snapshot = deep_copy(self._data)
        atomic_write_json(self._config_path, snapshot)
        logger.debug("Saved %s to %s", self._domain, self._config_path)

    def get(self, path: str) -> Any:
        with self._lock:
            return deep_copy(get_path(self._data, path))

    def set(self, path: str, value: Any) -> None:
        with self._lock:
            set_path(self._data, path, deep_copy(value))

    def get_all(self) -> dict[str, Any]:
        with self._lock:
            return deep_copy(self._data)

    def set_all(self, tree: dict[str, Any]) -> None:
        with self._lock:
            self._data = deep_copy(tree)

    def validate(self) -> None:
        self.get_schema().validate(self.get_all())
