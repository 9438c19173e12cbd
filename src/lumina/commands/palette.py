"""Command group: list, search, and run palette commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from lumina.commands._base import LuminaGroup
from lumina.services.palette import PaletteService

if TYPE_CHECKING:
    from lumina.commands._context import AppContext
    from lumina.services.result import ServiceResult

_PALETTE_EXAMPLES = """\
  lumina palette list
  lumina palette list --query settings
  lumina palette run reload
  lumina palette run new-project open-downloads --no-record"""


@click.group(cls=LuminaGroup, examples=_PALETTE_EXAMPLES)
@click.pass_obj
def palette(app: AppContext) -> None:
    """Browse and run command palette entries."""


@palette.command(
    "list",
    examples="""\
  lumina palette list
  lumina palette list --query ai
  lumina --json palette list -q folder""",
)
@click.option("-q", "--query", default=None, help="Rank commands by label, keywords, and id.")
@click.pass_obj
def list_cmd(app: AppContext, query: str | None) -> None:
    """List registry commands, optionally filtered by a search query."""

    async def _list() -> ServiceResult:
        async with app.build_palette(None) as ctx:
            return await PaletteService(ctx).list_commands(query)

    app.emit(app.run(_list()))


@palette.command(
    examples="""\
  lumina palette run settings
  lumina palette run ask-ai reload
  lumina --json palette run open-downloads --no-record""",
)
@click.argument("command_ids", nargs=-1, required=True)
@click.option(
    "--record/--no-record",
    default=True,
    help="Record successful commands in the session history.",
)
@click.pass_obj
def run(app: AppContext, command_ids: tuple[str, ...], record: bool) -> None:
    """Dispatch commands by id, in order."""

    async def _run() -> ServiceResult:
        bridge = await app.open_bridge()
        try:
            async with app.build_palette(bridge) as ctx:
                return await PaletteService(ctx).run_commands(command_ids, record=record)
        finally:
            await bridge.aclose()

    app.emit(app.run(_run()))
