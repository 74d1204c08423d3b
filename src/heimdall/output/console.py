"""Rich Console factory and theme for heimdall output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

HEIMDALL_THEME = Theme(
    {
        "hd.ok": "bold green",
        "hd.error": "bold red",
        "hd.warning": "bold yellow",
        "hd.op": "bold cyan",
        "hd.key": "dim",
        "hd.domain": "bold blue",
        "hd.path": "cyan",
        "hd.modified": "bold magenta",
        "hd.default": "dim",
        "hd.type.boolean": "green",
        "hd.type.string": "yellow",
        "hd.type.integer": "blue",
        "hd.type.number": "blue",
        "hd.type.array": "magenta",
        "hd.type.object": "cyan",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=HEIMDALL_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_type(type_name: str) -> str:
    """Rich style for a schema type name (``""`` when unstyled)."""
    base = type_name.split("[", 1)[0].split(" ", 1)[0]
    style = f"hd.type.{base}"
    return style if style in HEIMDALL_THEME.styles else ""
