"""Command group: configuration access across every domain."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from heimdall.commands._base import HeimdallGroup
from heimdall.domain.types import PRIMARY_DOMAIN

if TYPE_CHECKING:
    from heimdall.commands._context import AppContext

_CONFIG_EXAMPLES = """\
  heimdall config get cli scheme.default
  heimdall config set cli theme.enableGtk false
  heimdall config set cli wallpaper.threshold 0.6
  heimdall config validate
  heimdall config list --category clipboard
  heimdall config all get version
  heimdall --json config effective"""


def parse_value(raw: str) -> Any:
    """Interpret *raw* as JSON, falling back to the literal string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


@click.group(cls=HeimdallGroup, examples=_CONFIG_EXAMPLES)
@click.pass_obj
def config(app: AppContext) -> None:
    """Read, change, and validate configuration."""


# --- Single-domain commands ---


@config.command()
@click.pass_obj
def domains(app: AppContext) -> None:
    """List registered configuration domains."""
    app.emit(app.service.list_domains())


@config.command(
    examples="""\
  heimdall config get cli scheme.default
  heimdall config get shell appearance
  heimdall -q config get cli clipboard.max_entries"""
)
@click.argument("domain")
@click.argument("path", required=False)
@click.pass_obj
def get(app: AppContext, domain: str, path: str | None) -> None:
    """Print the value at PATH, or the whole DOMAIN when PATH is omitted."""
    if path is None:
        app.emit(app.service.get_all(domain))
    else:
        app.emit(app.service.get(domain, path))


@config.command(
    examples="""\
  heimdall config set cli theme.enableGtk false
  heimdall config set cli scheme.default catppuccin-mocha
  heimdall config set cli scheme.user_paths '["~/schemes"]'
  heimdall config set shell bar.height 36 --no-save"""
)
@click.argument("domain")
@click.argument("path")
@click.argument("value")
@click.option("--no-save", is_flag=True, help="Change the value in memory only.")
@click.pass_obj
def set(app: AppContext, domain: str, path: str, value: str, no_save: bool) -> None:  # noqa: A001
    """Validate and set PATH to VALUE (parsed as JSON, else taken as a string)."""
    app.emit(app.service.set(domain, path, parse_value(value), save=not no_save))


@config.command()
@click.argument("domain", default=PRIMARY_DOMAIN)
@click.pass_obj
def validate(app: AppContext, domain: str) -> None:
    """Validate DOMAIN against its schema (default: cli)."""
    app.emit(app.service.validate(domain))


@config.command()
@click.argument("domain")
@click.pass_obj
def save(app: AppContext, domain: str) -> None:
    """Write DOMAIN to disk."""
    app.emit(app.service.save(domain))


@config.command()
@click.argument("domain")
@click.pass_obj
def load(app: AppContext, domain: str) -> None:
    """Re-read DOMAIN from disk."""
    app.emit(app.service.load(domain))


@config.command()
@click.argument("domain", default=PRIMARY_DOMAIN)
@click.pass_obj
def schema(app: AppContext, domain: str) -> None:
    """Print the JSON schema registered for DOMAIN (default: cli)."""
    app.emit(app.service.schema(domain))


# --- Default-layering store (cli domain) ---


@config.command(
    name="list",
    examples="""\
  heimdall config list
  heimdall config list --category theme
  heimdall config list --type boolean
  heimdall config list --modified""",
)
@click.option("-c", "--category", default=None, help="Only options under this section.")
@click.option("--type", "type_name", default=None, help="Only options of this type.")
@click.option("-m", "--modified", is_flag=True, help="Only options that differ from defaults.")
@click.pass_obj
def list_cmd(app: AppContext, category: str | None, type_name: str | None, modified: bool) -> None:
    """List configuration options with their current values."""
    app.emit(
        app.service.list_fields(category=category, type_name=type_name, modified_only=modified)
    )


@config.command(
    examples="""\
  heimdall config defaults
  heimdall config defaults --reset
  heimdall config defaults --reset --force"""
)
@click.option("--reset", is_flag=True, help="Back up and remove the user file.")
@click.option("-f", "--force", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_obj
def defaults(app: AppContext, reset: bool, force: bool) -> None:
    """Show built-in defaults, or reset the configuration to them."""
    if not reset:
        app.emit(app.service.defaults())
        return
    if not force:
        click.confirm("Reset configuration to defaults? A backup will be kept.", abort=True)
    app.emit(app.service.reset())


@config.command()
@click.pass_obj
def refresh(app: AppContext) -> None:
    """Rewrite the user file so customized sections gain new default fields."""
    app.emit(app.service.refresh())


@config.command()
@click.option("-d", "--diff", is_flag=True, help="Only values that differ from defaults.")
@click.pass_obj
def effective(app: AppContext, diff: bool) -> None:
    """Show the effective configuration (user file merged over defaults)."""
    if diff:
        app.emit(app.service.list_fields(modified_only=True))
    else:
        app.emit(app.service.effective())


@config.command()
@click.argument("query")
@click.pass_obj
def search(app: AppContext, query: str) -> None:
    """Find options whose path or description mentions QUERY."""
    app.emit(app.service.search(query))


@config.command()
@click.argument("path")
@click.pass_obj
def describe(app: AppContext, path: str) -> None:
    """Show type, default, current value, and constraints of one option."""
    app.emit(app.service.describe(path))


@config.command()
@click.pass_obj
def docs(app: AppContext) -> None:
    """Print a markdown reference of every option."""
    app.emit(app.service.docs())


@config.command()
@click.option(
    "--legacy-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Directory holding the predecessor tool's cli.json.",
)
@click.pass_obj
def migrate(app: AppContext, legacy_dir: Path | None) -> None:
    """Import a legacy YAML or predecessor-tool config into config.json."""
    if legacy_dir is None:
        legacy_dir = app.settings.xdg_dirs().config_home / "caelestia"
    app.emit(app.service.migrate(legacy_dir))


# --- Cross-domain commands ---


@config.group(
    name="all",
    examples="""\
  heimdall config all validate
  heimdall config all get version
  heimdall config all set appearance.colorScheme gruvbox-dark""",
)
@click.pass_obj
def all_group(app: AppContext) -> None:
    """Run an operation on every configuration domain."""


@all_group.command(name="validate")
@click.pass_obj
def all_validate(app: AppContext) -> None:
    """Validate every domain; failures in one never skip the others."""
    app.emit(app.service.validate_all())


@all_group.command(name="save")
@click.pass_obj
def all_save(app: AppContext) -> None:
    """Save every domain."""
    app.emit(app.service.save_all())


@all_group.command(name="load")
@click.pass_obj
def all_load(app: AppContext) -> None:
    """Re-read every domain from disk."""
    app.emit(app.service.load_all())


@all_group.command(name="get")
@click.argument("path")
@click.pass_obj
def all_get(app: AppContext, path: str) -> None:
    """Print PATH from every domain that has it."""
    app.emit(app.service.get_everywhere(path))


@all_group.command(name="set")
@click.argument("path")
@click.argument("value")
@click.pass_obj
def all_set(app: AppContext, path: str, value: str) -> None:
    """Set PATH in every domain that already has it, saving each."""
    app.emit(app.service.set_everywhere(path, parse_value(value)))
