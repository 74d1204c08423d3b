"""ConfigManager — orchestrates every registered configuration domain.

Lifecycle: ``Uninitialized -> Initialized`` (one-way). Paths may only be
changed before :meth:`ConfigManager.initialize`; initialization registers the
built-in ``cli`` and ``shell`` domains plus any plugin-contributed ones.

INVARIANT: One reader/writer lock guards the provider map and the path
layout. It is never held across provider I/O: single-domain operations
resolve the provider under the read lock and release it before delegating;
fan-out operations work on a snapshot of the provider map.
INVARIANT: Initialization runs at most once, even with concurrent callers.
INVARIANT: Fan-out operations attempt every domain and report every failure
in one :class:`AggregateError`; a failing domain never skips its siblings.
INVARIANT: ``set`` validates against the domain schema before delegating,
so a rejected value leaves the provider untouched.
"""

from __future__ import annotations

import logging
import shutil
import threading
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from readerwriterlock import rwlock

from heimdall.domain.errors import (
    AggregateError,
    ConfigError,
    ConfigParseError,
    ManagerStateError,
    PathNotFoundError,
    ProviderError,
    SchemaValidationError,
    UnknownDomainError,
)
from heimdall.domain.schema import Schema
from heimdall.domain.types import PRIMARY_DOMAIN, ConfigPaths, XdgDirs
from heimdall.domain.values import get_path
from heimdall.infrastructure.filesystem import (
    ensure_dir,
    read_json_document,
    resolve_xdg_dirs,
    write_bytes_atomic,
)
from heimdall.infrastructure.providers.base import Provider
from heimdall.infrastructure.providers.cli import CliProvider
from heimdall.infrastructure.providers.shell import SHELL_DOMAIN, ShellProvider
from heimdall.infrastructure.registry import SchemaRegistry

if TYPE_CHECKING:
    from heimdall.config.settings import HeimdallSettings
    from heimdall.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

DomainOperation = Callable[[str, Provider], None]


class ConfigManager:
    """Registry of domain providers with uniform dot-path access.

    Args:
        paths: Path layout; defaults to ``$XDG_CONFIG_HOME/heimdall``.
        dirs: XDG directories for path-valued defaults.
        scheme_paths: ``scheme.user_paths`` override for the cli domain.
        shell_schema: External schema source for the shell domain.
        shell_output: Output path for the shell domain's document.
        plugins: Loaded plugin manager contributing extra domains.
        which: PATH lookup for the cli domain's tool checks.
    """

    def __init__(
        self,
        paths: ConfigPaths | None = None,
        *,
        dirs: XdgDirs | None = None,
        scheme_paths: list[str] | None = None,
        shell_schema: Path | None = None,
        shell_output: Path | None = None,
        plugins: PluginManager | None = None,
        which: Callable[[str], str | None] = shutil.which,
    ) -> None:
        self._dirs = dirs or resolve_xdg_dirs()
        self._paths = paths or ConfigPaths.under(self._dirs.heimdall_config)
        self._scheme_paths = scheme_paths
        self._shell_schema = shell_schema
        self._shell_output = shell_output
        self._plugins = plugins
        self._which = which

        self._providers: dict[str, Provider] = {}
        self._registry = SchemaRegistry()
        self._lock = rwlock.RWLockFair()
        # Serializes initialize() and set_paths() against each other.
        self._init_lock = threading.Lock()
        self._initialized = False

    @classmethod
    def from_settings(
        cls, settings: HeimdallSettings, *, plugins: PluginManager | None = None
    ) -> ConfigManager:
        """Build a manager from resolved settings, applying the bootstrap config."""
        manager = cls(
            settings.config_paths(),
            dirs=settings.xdg_dirs(),
            scheme_paths=settings.scheme_path_list(),
            shell_schema=settings.shell_schema,
            shell_output=settings.shell_output,
            plugins=plugins,
        )
        if settings.config is not None:
            manager.load_paths_from_config(settings.config)
        return manager

    # ------------------------------------------------------------------
    # Paths and lifecycle
    # ------------------------------------------------------------------

    @property
    def initialized(self) -> bool:
        with self._lock.gen_rlock():
            return self._initialized

    def get_paths(self) -> ConfigPaths:
        with self._lock.gen_rlock():
            return self._paths

    def set_paths(self, paths: ConfigPaths) -> None:
        with self._init_lock, self._lock.gen_wlock():
            if self._initialized:
                msg = "cannot change paths after initialization"
                raise ManagerStateError(msg)
            self._paths = paths

    def load_paths_from_config(self, config_path: Path) -> None:
        """Apply the ``config_paths`` object of a bootstrap file, if it has one."""
        document = read_json_document(config_path)
        raw = document.get("config_paths")
        if raw is None:
            return
        try:
            paths = ConfigPaths.model_validate(raw)
        except ValidationError as exc:
            msg = f"failed to parse config_paths in {config_path}: {exc}"
            raise ConfigParseError(msg) from exc
        self.set_paths(paths)

    def initialize(self) -> None:
        """Create directories and register every domain. Idempotent."""
        with self._init_lock:
            self._initialize()

    def _initialize(self) -> None:
        with self._lock.gen_rlock():
            if self._initialized:
                return
            paths = self._paths

        for directory in (paths.base_dir, paths.schema_dir, paths.backup_dir):
            ensure_dir(directory)

        cli = CliProvider(
            paths.domain_file(PRIMARY_DOMAIN),
            dirs=self._dirs,
            scheme_paths=self._scheme_paths,
            which=self._which,
        )
        self.register_provider(PRIMARY_DOMAIN, cli)

        shell = ShellProvider(
            paths.domain_file(SHELL_DOMAIN),
            paths,
            config_home=self._dirs.config_home,
            external_schema=self._shell_schema,
            output_path=self._shell_output,
        )
        self.register_provider(SHELL_DOMAIN, shell)

        if self._plugins is not None:
            self._register_plugin_providers(self._plugins, paths)

        with self._lock.gen_wlock():
            self._initialized = True
        logger.debug("Config manager initialized at %s", paths.base_dir)

    def _register_plugin_providers(self, plugins: PluginManager, paths: ConfigPaths) -> None:
        for domain, provider in plugins.collect_providers(paths):
            try:
                self.register_provider(domain, provider)
            except Exception:
                logger.warning("Skipping plugin domain %s", domain, exc_info=True)

    def register_provider(self, domain: str, provider: Provider) -> None:
        """Initialize *provider*, register its schema, and store it.

        Any failure aborts the registration and leaves no state behind for
        *domain*.
        """
        provider.initialize()
        schema = provider.get_schema()
        if schema is None:
            msg = "cannot register nil schema"
            raise ProviderError(msg)

        with self._lock.gen_wlock():
            self._registry.register(domain, schema)
            self._providers[domain] = provider
        logger.debug("Registered provider %s (%s)", domain, provider.config_path)

        self._cache_schema(domain, schema)

    def _cache_schema(self, domain: str, schema: Schema) -> None:
        target = self.get_paths().schema_file(domain)
        try:
            write_bytes_atomic(target, schema.to_json())
        except ConfigError as exc:
            logger.warning("Could not cache schema for %s: %s", domain, exc)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def provider(self, domain: str) -> Provider:
        """The provider for *domain*; raises :class:`UnknownDomainError`."""
        with self._lock.gen_rlock():
            found = self._providers.get(domain)
        if found is None:
            raise UnknownDomainError(domain)
        return found

    def list_domains(self) -> list[str]:
        with self._lock.gen_rlock():
            return sorted(self._providers)

    def get_schema(self, domain: str) -> Schema:
        schema = self._registry.get_schema(domain)
        if schema is None:
            msg = f"no schema found for domain: {domain}"
            raise ProviderError(msg)
        return schema

    def _snapshot(self) -> list[tuple[str, Provider]]:
        with self._lock.gen_rlock():
            return sorted(self._providers.items())

    # ------------------------------------------------------------------
    # Single-domain operations
    # ------------------------------------------------------------------

    def get(self, domain: str, path: str) -> Any:
        return self.provider(domain).get(path)

    def set(self, domain: str, path: str, value: Any) -> None:
        provider = self.provider(domain)
        schema = self._registry.get_schema(domain)
        if schema is not None:
            try:
                schema.validate_value(path, value)
            except (SchemaValidationError, PathNotFoundError) as exc:
                raise SchemaValidationError(f"validation failed: {exc}", path=path) from exc
        provider.set(path, value)

    def get_all(self, domain: str) -> dict[str, Any]:
        return self.provider(domain).get_all()

    def set_all(self, domain: str, tree: dict[str, Any]) -> None:
        provider = self.provider(domain)
        schema = self._registry.get_schema(domain)
        if schema is not None:
            try:
                schema.validate(tree)
            except SchemaValidationError as exc:
                raise SchemaValidationError(f"validation failed: {exc}", path=exc.path) from exc
        provider.set_all(tree)

    def save(self, domain: str) -> None:
        self.provider(domain).save()

    def load(self, domain: str) -> None:
        self.provider(domain).load()

    def validate(self, domain: str) -> None:
        self.provider(domain).validate()

    # ------------------------------------------------------------------
    # Fan-out operations
    # ------------------------------------------------------------------

    def apply_all(self, fn: DomainOperation, *, operation: str = "operation") -> None:
        """Run *fn* on every domain, then raise one aggregate of all failures."""
        failures: list[tuple[str, Exception]] = []
        for domain, provider in self._snapshot():
            try:
                fn(domain, provider)
            except Exception as exc:
                failures.append((domain, exc))
        if failures:
            raise AggregateError(operation, failures)

    def save_all(self) -> None:
        self.apply_all(lambda _domain, provider: provider.save(), operation="save")

    def load_all(self) -> None:
        self.apply_all(lambda _domain, provider: provider.load(), operation="load")

    def find_everywhere(self, path: str) -> dict[str, Any]:
        """Value of *path* in every domain whose tree contains it."""
        found: dict[str, Any] = {}
        for domain, provider in self._snapshot():
            tree = provider.get_all()
            try:
                found[domain] = get_path(tree, path)
            except PathNotFoundError:
                continue
        return found
