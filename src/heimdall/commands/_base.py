"""Click base classes with an ``--examples`` flag.

``HeimdallCommand`` and ``HeimdallGroup`` accept an ``examples`` string.
Passing ``--examples`` prints it (dedented) and exits, so ``--help`` stays
short.
"""

from __future__ import annotations

import inspect
from typing import Any

import click


class ExamplesOption(click.Option):
    """Eager flag that prints a command's examples and exits."""

    def __init__(self, examples: str) -> None:
        self.examples = inspect.cleandoc(examples)
        super().__init__(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=self._show,
            help="Show usage examples.",
        )

    def _show(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        for line in self.examples.splitlines():
            click.echo(f"  {line}")
        ctx.exit(0)


def _with_examples(params: list[click.Parameter], examples: str | None) -> None:
    if examples:
        params.append(ExamplesOption(examples))


class HeimdallCommand(click.Command):
    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        _with_examples(self.params, examples)


class HeimdallGroup(click.Group):
    """Group whose subcommands and subgroups are examples-aware by default."""

    command_class = HeimdallCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        _with_examples(self.params, examples)


HeimdallGroup.group_class = HeimdallGroup
