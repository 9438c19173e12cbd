"""ask — stream one answer from the assistant."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from lumina.bridge.client import HostClient
from lumina.commands._base import LuminaCommand
from lumina.services.assistant import DEFAULT_IDLE_TIMEOUT, AssistantService

if TYPE_CHECKING:
    from lumina.commands._context import AppContext
    from lumina.services.result import ServiceResult


@click.command(
    cls=LuminaCommand,
    examples="""\
  lumina ask "Summarise the release notes"
  lumina ask "Explain this stack trace" --model codellama
  lumina ask "Draft a commit message" --stream
  lumina --json ask "List three risks" """,
)
@click.argument("prompt")
@click.option("-m", "--model", default=None, help="Model name (default: stored settings).")
@click.option("--stream", is_flag=True, help="Print chunks as they arrive.")
@click.option(
    "--timeout",
    "idle_timeout",
    default=DEFAULT_IDLE_TIMEOUT,
    type=float,
    show_default=True,
    help="Seconds to wait between chunks.",
)
@click.pass_obj
def ask(
    app: AppContext,
    prompt: str,
    model: str | None,
    stream: bool,
    idle_timeout: float,
) -> None:
    """Ask the assistant a question and print the answer."""
    streaming = stream and not (app.settings.json_output or app.settings.quiet)

    def _echo(chunk: str) -> None:
        click.echo(chunk, nl=False)

    async def _ask() -> ServiceResult:
        bridge = await app.open_bridge()
        try:
            return await AssistantService(HostClient(bridge)).ask(
                prompt,
                model=model,
                on_chunk=_echo if streaming else None,
                idle_timeout=idle_timeout,
            )
        finally:
            await bridge.aclose()

    result = app.run(_ask())
    if streaming and result.ok:
        click.echo()
        return
    app.emit(result)
