"""Per-domain configuration providers."""

from heimdall.infrastructure.providers.base import JsonFileProvider, Provider
from heimdall.infrastructure.providers.cli import CliProvider
from heimdall.infrastructure.providers.shell import ShellProvider

__all__ = ["CliProvider", "JsonFileProvider", "Provider", "ShellProvider"]
