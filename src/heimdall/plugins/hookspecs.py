"""Pluggy hook specifications for heimdall configuration extensions.

One setup-time hook lets installed packages contribute whole configuration
domains: each returned provider is registered with the manager exactly like
the built-in ``cli`` and ``shell`` domains.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from heimdall.domain.types import ConfigPaths
    from heimdall.infrastructure.providers.base import Provider

hookspec = pluggy.HookspecMarker("heimdall")
hookimpl = pluggy.HookimplMarker("heimdall")


class HeimdallHookSpec:
    """Hook specifications for the heimdall plugin system."""

    @hookspec
    def register_config_providers(self, paths: ConfigPaths) -> list[tuple[str, Provider]] | None:
        """Return ``(domain, provider)`` pairs to register with the manager.

        *paths* is the manager's final path layout; providers should place
        their files with ``paths.domain_file(domain)``.
        """
