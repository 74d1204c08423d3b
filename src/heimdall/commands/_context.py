"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Builds the manager and service lazily and owns result
emission: stdout for success, stderr for failures and warnings, exit
code 1 on failure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import click

from heimdall.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from heimdall.config.settings import HeimdallSettings
    from heimdall.domain.errors import ConfigError
    from heimdall.infrastructure.manager import ConfigManager
    from heimdall.services.config import ConfigService
    from heimdall.services.result import ServiceResult


class AppContext:
    """Per-invocation state shared by every command.

    Nothing touches the config directory until a command asks for
    :attr:`manager`, so ``--help`` and ``--version`` stay side-effect free.
    """

    def __init__(self, settings: HeimdallSettings) -> None:
        from heimdall.config.logging import configure_logging

        self.settings = settings
        self.output = OutputSettings(
            json_output=settings.json_output, quiet=settings.quiet, verbose=settings.verbose
        )
        self._manager: ConfigManager | None = None
        self._service: ConfigService | None = None
        configure_logging(
            verbose=settings.verbose, quiet=settings.quiet, log_json=settings.log_json
        )

    @property
    def manager(self) -> ConfigManager:
        """The config manager, with entry-point plugins loaded."""
        if self._manager is None:
            from heimdall.domain.errors import ConfigError
            from heimdall.infrastructure.manager import ConfigManager
            from heimdall.plugins.manager import PluginManager

            plugins = PluginManager()
            plugins.discover_and_load()
            try:
                self._manager = ConfigManager.from_settings(self.settings, plugins=plugins)
            except ConfigError as exc:
                self.fail("init", exc)
        return self._manager

    @property
    def service(self) -> ConfigService:
        if self._service is None:
            from heimdall.services.config import ConfigService

            self._service = ConfigService(self.manager)
        return self._service

    def fail(self, op: str, exc: ConfigError) -> NoReturn:
        """Emit *exc* as a failed result for *op*; always exits with code 1."""
        from heimdall.services.config import error_code_for
        from heimdall.services.result import ServiceResult

        self.emit(ServiceResult.failure(op, error_code_for(exc), str(exc)))
        raise SystemExit(1)

    def emit(self, result: ServiceResult) -> None:
        """Print *result* in the selected mode; a failed result exits with code 1.

        Warnings go to stderr as ``WARNING:`` lines unless they are already
        part of the JSON payload. Quiet mode drops them on success.
        """
        click.echo(format_result(result, settings=self.output), err=not result.ok)
        show_warnings = not self.output.json_output and (
            not result.ok or not self.output.quiet
        )
        if show_warnings:
            for warning in result.warnings:
                click.echo(f"WARNING: {warning}", err=True)
        if not result.ok:
            raise SystemExit(1)
