"""Click classes for lumina commands.

Every command and group built with these classes takes an ``examples``
block.  ``--examples`` prints it and exits before any settings, plugins or
host are touched; ``--help`` stays short and points at it.
"""

from __future__ import annotations

import textwrap
from typing import Any

import click


def format_examples(command_path: str, examples: str) -> str:
    """Heading plus *examples*, re-indented by two spaces."""
    body = textwrap.indent(textwrap.dedent(examples).strip("\n"), "  ")
    return f"Examples for '{command_path}':\n\n{body}"


class ExamplesOption(click.Option):
    """Eager ``--examples`` flag carrying the text it prints."""

    def __init__(self, examples: str) -> None:
        super().__init__(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=self._show,
            help="Show usage examples.",
        )
        self.examples = examples

    def _show(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if value:
            click.echo(format_examples(ctx.command_path, self.examples))
            ctx.exit(0)


class _ExamplesMixin:
    examples: str | None

    def _init_examples(self, examples: str | None) -> None:
        self.examples = examples
        if examples:
            self.params.append(ExamplesOption(examples))  # type: ignore[attr-defined]
            if not self.epilog:  # type: ignore[attr-defined]
                self.epilog = "Run with --examples for sample invocations."


class LuminaCommand(_ExamplesMixin, click.Command):
    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._init_examples(examples)


class LuminaGroup(_ExamplesMixin, click.Group):
    """Group whose subcommands default to :class:`LuminaCommand`."""

    command_class = LuminaCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._init_examples(examples)
