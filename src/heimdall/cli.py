"""Root CLI group for heimdall with global flags and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from heimdall import __version__
from heimdall.commands import register_commands
from heimdall.commands._context import AppContext
from heimdall.config.settings import HeimdallSettings

_PATH = click.Path(path_type=Path)


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="heimdall")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output; errors only in logs.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug logging.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option(
    "-c",
    "--config",
    "bootstrap",
    type=_PATH,
    default=None,
    help="JSON file whose config_paths object replaces the path layout.",
)
@click.option("--config-dir", type=_PATH, default=None, help="Base directory for domain files.")
@click.option("--shell-schema", type=_PATH, default=None, help="Shell domain schema source.")
@click.option("--shell-output", type=_PATH, default=None, help="Shell domain mirror path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    bootstrap: Path | None,
    config_dir: Path | None,
    shell_schema: Path | None,
    shell_output: Path | None,
) -> None:
    """heimdall: schema-validated configuration for the desktop shell."""
    # Unset flags stay None so HEIMDALL_* variables can fill them.
    settings = HeimdallSettings.from_cli(
        config=bootstrap,
        config_dir=config_dir,
        shell_schema=shell_schema,
        shell_output=shell_output,
        json_output=json_output or None,
        quiet=quiet or None,
        verbose=verbose or None,
        log_json=log_json or None,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
