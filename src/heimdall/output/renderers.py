"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from heimdall.output.console import create_console, get_output, style_for_type

if TYPE_CHECKING:
    from rich.console import Console

    from heimdall.services.result import ServiceResult

Renderer = Callable[..., None]


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal, script-friendly output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    data = result.data
    if result.op == "get":
        return display_value(data.get("value"))
    if result.op == "get_everywhere":
        return "\n".join(f"{d}: {display_value(v)}" for d, v in data.get("values", {}).items())
    if result.op == "list_domains":
        return "\n".join(data.get("domains", []))
    if result.op in ("list_fields", "search"):
        return "\n".join(row["path"] for row in data.get("fields", []))
    return f"OK: {result.op}"


def display_value(value: Any) -> str:
    """Strings verbatim, everything else as compact JSON."""
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"))


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="hd.ok")
    op = Text(f"  {result.op}", style="hd.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="hd.key")
    if key == "domain":
        v = Text(str(value), style="hd.domain")
    elif key in ("path", "backup"):
        v = Text(str(value), style="hd.path")
    elif isinstance(value, dict | list):
        v = Text(display_value(value))
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _render_warnings_inline(console: Console, result: ServiceResult) -> None:
    if not result.warnings:
        return
    console.print(Text(f"  {len(result.warnings)} warning(s)", style="hd.warning"))


def _config_tree(label: str, config: dict[str, Any], modified: set[str] | None = None) -> Tree:
    """Tree of a config document; leaves on *modified* paths are highlighted."""
    tree = Tree(Text(label, style="hd.domain"))
    _fill_tree(tree, config, "", modified or set())
    return tree


def _fill_tree(node: Tree, value: dict[str, Any], prefix: str, modified: set[str]) -> None:
    for key, child in value.items():
        path = f"{prefix}.{key}" if prefix else key
        if isinstance(child, dict) and child:
            _fill_tree(node.add(Text(key, style="hd.key")), child, path, modified)
            continue
        style = "hd.modified" if path in modified else ""
        line = Text.assemble((key, "hd.key"), ": ", (display_value(child), style))
        if path in modified:
            line.append("  (modified)", style="hd.default")
        node.add(line)


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="hd.error")
    op = Text(f"  {result.op}", style="hd.op")
    sep = Text(" — ")
    console.print(label, op, sep, Text(msg))

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}", markup=False)


# ── Value renderers ───────────────────────────────────────────────────


def _render_get(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """A scalar prints bare; an object prints as a tree under its path."""
    value = result.data.get("value")
    if isinstance(value, dict):
        console.print(_config_tree(result.data.get("path", ""), value))
    else:
        console.print(display_value(value), markup=False)


def _render_config(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render get_all/defaults/effective as a tree."""
    data = result.data
    label = data.get("domain") or result.op
    modified = set(data.get("modified", []))
    console.print(_config_tree(label, data.get("config", {}), modified))
    if result.op == "effective":
        source = "user config + defaults" if data.get("has_user_config") else "defaults only"
        console.print(Text(f"\n{len(modified)} value(s) differ from defaults ({source})"))


def _render_schema(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    console.print_json(data=result.data.get("schema", {}))


def _render_everywhere(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    for domain, value in result.data.get("values", {}).items():
        console.print(Text.assemble((domain, "hd.domain"), ": ", display_value(value)))


# ── Mutation renderers ────────────────────────────────────────────────


def _render_set(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    data = result.data
    target = ".".join(str(part) for part in (data.get("domain"), data.get("path")) if part)
    if result.op == "set_everywhere":
        target = f"{data.get('path')} in {', '.join(data.get('updated', []))}"
    value = display_value(data.get("value"))
    console.print(Text.assemble(("✓ ", "hd.ok"), "Set ", (target, "hd.path"), " to ", value))
    _render_warnings_inline(console, result)


def _render_validate(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    domains = result.data.get("domains") or [result.data.get("domain")]
    for domain in domains:
        console.print(Text.assemble(("✓ ", "hd.ok"), (str(domain), "hd.domain"), " is valid"))
    _render_warnings_inline(console, result)


def _render_refresh(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    if not result.data.get("rewritten"):
        console.print("  No user configuration file; nothing to refresh.")
        return
    new_fields = result.data.get("new_fields", [])
    if not new_fields:
        console.print("  Configuration is up to date.")
        return
    console.print(f"  Added {len(new_fields)} new field(s):")
    for path in new_fields:
        console.print(Text(f"    + {path}", style="hd.path"))


def _render_reset(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    backup = result.data.get("backup")
    if backup:
        _field(console, "backup", backup)
    console.print("  Configuration reset to defaults.")


# ── Listing renderers ─────────────────────────────────────────────────


def _render_domains(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Domain", style="hd.domain")
    table.add_column("File", style="hd.path")
    files = result.data.get("files", {})
    for domain in result.data.get("domains", []):
        table.add_row(domain, files.get(domain, ""))
    console.print(table)


def _render_fields(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render list_fields/search results as a table."""
    rows = result.data.get("fields", [])
    if not rows:
        console.print("No configuration options found matching the filters.")
        return
    table = Table(show_header=True, header_style="bold")
    table.add_column("Path", style="hd.path")
    table.add_column("Type")
    table.add_column("Value")
    if verbose:
        table.add_column("Default", style="hd.default")
    table.add_column("Description")
    for row in rows:
        value = display_value(row.get("value"))
        default = display_value(row.get("default"))
        value_style = "hd.modified" if "value" in row and value != default else ""
        cells = [
            row["path"],
            Text(row["type"], style=style_for_type(row["type"])),
            Text(value, style=value_style),
        ]
        if verbose:
            cells.append(Text(default))
        cells.append(Text(row.get("description", "")))
        table.add_row(*cells)
    console.print(table)
    console.print(f"{len(rows)} option(s)")


def _render_describe(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    data = result.data
    body = Text()
    body.append(f"{data.get('description') or 'No description.'}\n\n")
    body.append("type: ", style="hd.key")
    body.append(f"{data.get('type')}\n", style=style_for_type(str(data.get("type"))))
    if not data.get("is_section"):
        body.append("default: ", style="hd.key")
        body.append(f"{display_value(data.get('default'))}\n")
        body.append("current: ", style="hd.key")
        body.append(f"{display_value(data.get('value'))}\n")
        body.append("user set: ", style="hd.key")
        body.append(f"{'yes' if data.get('user_set') else 'no'}\n")
    if data.get("choices"):
        body.append("choices: ", style="hd.key")
        body.append(", ".join(str(c) for c in data["choices"]) + "\n")
    if data.get("minimum") is not None or data.get("maximum") is not None:
        body.append("range: ", style="hd.key")
        body.append(f"{data.get('minimum')} .. {data.get('maximum')}\n")
    if data.get("examples"):
        body.append("examples: ", style="hd.key")
        body.append(", ".join(display_value(e) for e in data["examples"]) + "\n")
    console.print(Panel(body, title=str(data.get("path")), title_align="left"))


def _render_docs(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    console.print(result.data.get("markdown", ""), markup=False)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    _render_warnings_inline(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Renderer] = {
    # Values
    "get": _render_get,
    "get_all": _render_config,
    "defaults": _render_config,
    "effective": _render_config,
    "schema": _render_schema,
    "get_everywhere": _render_everywhere,
    # Mutations
    "set": _render_set,
    "set_everywhere": _render_set,
    "refresh": _render_refresh,
    "reset": _render_reset,
    # Validation
    "validate": _render_validate,
    "validate_all": _render_validate,
    # Listings
    "list_domains": _render_domains,
    "list_fields": _render_fields,
    "search": _render_fields,
    "describe": _render_describe,
    "docs": _render_docs,
}
