"""Plugin discovery and provider collection.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints
in the ``heimdall.plugins`` group.
"""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any

import pluggy

from heimdall.plugins.hookspecs import HeimdallHookSpec

if TYPE_CHECKING:
    from heimdall.domain.types import ConfigPaths
    from heimdall.infrastructure.providers.base import Provider

PROJECT_NAME = "heimdall"
ENTRY_POINT_GROUP = "heimdall.plugins"

logger = logging.getLogger(__name__)

Registration = tuple[str, "Provider"]


class PluginManager:
    """Owns the pluggy manager and turns plugin hooks into provider registrations."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(HeimdallHookSpec)
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def discover_and_load(self) -> list[str]:
        """Load entry-point plugins; returns the names of all registered plugins."""
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        for plugin in list(self._pm.get_plugins()):
            if inspect.isclass(plugin):
                self._instantiate(plugin)
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        name = name or type(plugin).__name__
        self._pm.register(plugin, name=name)
        logger.debug("Registered plugin: %s", name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    def list_plugin_names(self) -> list[str]:
        return [self._name_of(plugin) for plugin in self._pm.get_plugins()]

    def collect_providers(self, paths: ConfigPaths) -> list[Registration]:
        """Gather ``(domain, provider)`` pairs contributed by every plugin.

        A plugin whose hook raises or returns something malformed is skipped
        with a warning; the remaining plugins still contribute.
        """
        collected: list[Registration] = []
        for plugin in self._pm.get_plugins():
            hook = getattr(plugin, "register_config_providers", None)
            if hook is None:
                continue
            name = self._name_of(plugin)
            try:
                contributed = hook(paths=paths)
            except Exception:
                logger.warning(
                    "Failed to collect config providers from plugin %s", name, exc_info=True
                )
                continue
            collected.extend(_registrations(name, contributed))
        return collected

    def _name_of(self, plugin: object) -> str:
        return self._pm.get_name(plugin) or getattr(plugin, "__name__", type(plugin).__name__)

    def _instantiate(self, plugin_cls: type) -> None:
        """Swap an entry point that registered a bare class for an instance of it."""
        name = self._name_of(plugin_cls)
        self._pm.unregister(plugin_cls)
        try:
            instance = plugin_cls()
        except Exception:
            logger.warning("Failed to instantiate entry-point plugin %s", name, exc_info=True)
            return
        self._pm.register(instance, name=name)
        logger.debug("Instantiated entry-point plugin: %s", name)


def _registrations(plugin_name: str, contributed: Any) -> list[Registration]:
    if contributed is None:
        return []
    if not isinstance(contributed, list):
        logger.warning("Plugin %s returned non-list provider registrations", plugin_name)
        return []
    valid: list[Registration] = []
    for entry in contributed:
        if isinstance(entry, tuple) and len(entry) == 2:
            valid.append(entry)
        else:
            logger.warning(
                "Skipping malformed provider registration %r from plugin %s", entry, plugin_name
            )
    return valid
