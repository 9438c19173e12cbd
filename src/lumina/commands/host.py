"""Command group: run the host side of the bridge."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from lumina.commands._base import LuminaGroup

if TYPE_CHECKING:
    from lumina.commands._context import AppContext


_HOST_EXAMPLES = """\
  lumina host serve
  lumina -v --log-json host serve 2> host.log"""


@click.group(cls=LuminaGroup, examples=_HOST_EXAMPLES)
@click.pass_obj
def host(app: AppContext) -> None:
    """Host process commands."""


@host.command(
    examples="""\
  # Normally spawned by a client with [bridge] transport = "stdio"
  lumina host serve

  # Debug logging goes to stderr; stdout carries bridge frames
  lumina -v --log-json host serve""",
)
@click.pass_obj
def serve(app: AppContext) -> None:
    """Serve the bridge as JSON lines on stdin/stdout until stdin closes."""
    from lumina.bridge.stdio import serve_stdio
    from lumina.config.logging import configure_logging
    from lumina.host.router import build_host_bridge

    configure_logging(
        verbose=app.settings.verbose, log_json=app.settings.log_json, process="host"
    )

    async def _serve() -> None:
        bridge = build_host_bridge(app.settings, plugin_manager=app.plugin_manager)
        await serve_stdio(bridge)

    app.run(_serve())
