"""Command group: inspect and call bridge channels."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import click

from lumina.bridge.contract import ChannelKind
from lumina.commands._base import LuminaGroup
from lumina.services.bridge import BridgeService, list_channels

if TYPE_CHECKING:
    from lumina.commands._context import AppContext
    from lumina.services.result import ServiceResult

_BRIDGE_EXAMPLES = """\
  lumina bridge channels
  lumina bridge channels --kind subscription
  lumina bridge call settings:load
  lumina bridge call session:rename '{"id": "s1", "title": "Plans"}'"""


@click.group(cls=LuminaGroup, examples=_BRIDGE_EXAMPLES)
@click.pass_obj
def bridge(app: AppContext) -> None:
    """Inspect the host bridge contract and call its channels."""


@bridge.command(
    examples="""\
  lumina bridge channels
  lumina --json bridge channels --kind request""",
)
@click.option(
    "--kind",
    type=click.Choice([k.value for k in ChannelKind]),
    default=None,
    help="Only channels of this kind.",
)
@click.pass_obj
def channels(app: AppContext, kind: str | None) -> None:
    """List every channel in the bridge contract."""
    app.emit(list_channels(kind))


@bridge.command(
    examples="""\
  lumina bridge call project:list
  lumina bridge call ollama:models '"http://127.0.0.1:11434"'
  lumina bridge call project:create '{"id": "demo", "name": "Demo"}'""",
)
@click.argument("channel")
@click.argument("payload_json", required=False, default=None)
@click.pass_obj
def call(app: AppContext, channel: str, payload_json: str | None) -> None:
    """Invoke a request CHANNEL with an optional JSON payload."""
    payload: Any = None
    if payload_json is not None:
        try:
            payload = json.loads(payload_json)
        except json.JSONDecodeError as exc:
            raise click.BadParameter(str(exc), param_hint="PAYLOAD_JSON") from exc

    async def _call() -> ServiceResult:
        host = await app.open_bridge()
        try:
            return await BridgeService(host).call(channel, payload)
        finally:
            await host.aclose()

    app.emit(app.run(_call()))
