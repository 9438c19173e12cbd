"""Dispatcher — routes a Command to its execution path and runs it.

Routing, in order of precedence:

1. inline callable  → awaited, nothing else
2. ``system``       → host-local UI effect by id (``reload``, ``settings``)
3. ``ai``           → ``open_ai`` UI event carrying the command
4. ``action``       → ``command:run`` bridge request with the command id
5. ``file``         → ``os:openPath`` bridge request when ``path`` is set
6. anything else    → no-op

INVARIANT: ``run_command`` never raises.  Every failure becomes a
``ServiceResult`` with ``ok=False`` and is logged here.  Concurrent calls
are independent: no queueing, locking, or de-duplication.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from lumina.bridge.contract import Channel
from lumina.bridge.errors import ChannelUnavailableError
from lumina.domain.command import Command, enrich
from lumina.domain.types import SYSTEM_EFFECTS, CommandType, Route, UiEvent
from lumina.services.result import ErrorCode, ServiceError, ServiceResult

if TYPE_CHECKING:
    from lumina.bridge.transport import Bridge
    from lumina.plugins.event_bus import UiEventBus

logger = logging.getLogger(__name__)

OP = "run_command"


class Dispatcher:
    """Execute commands against the UI event bus and the host bridge.

    Parameters:
        bridge: Host bridge, or None while it is not ready yet.  Bridge
            routes then fail as channel-unavailable dispatch failures.
        events: In-process UI event bus.
        timeout: Per-request timeout in seconds for bridge routes.  None
            keeps the bridge's own default.
    """

    def __init__(
        self,
        bridge: Bridge | None,
        events: UiEventBus,
        *,
        timeout: float | None = None,
    ) -> None:
        self._bridge = bridge
        self._events = events
        self._timeout = timeout

    @property
    def bridge(self) -> Bridge | None:
        return self._bridge

    @bridge.setter
    def bridge(self, bridge: Bridge | None) -> None:
        self._bridge = bridge

    async def run_command(self, command: Command | Mapping[str, Any] | None) -> ServiceResult:
        """Dispatch one command.  Never raises."""
        if command is None:
            return ServiceResult(ok=True, op=OP, data={"id": None, "route": str(Route.NOOP)})

        command_id = _command_id(command)
        try:
            if not isinstance(command, Command | Mapping):
                msg = f"Malformed command: expected a record, got {type(command).__name__}"
                raise TypeError(msg)
            resolved = command if isinstance(command, Command) else enrich(command)
            route, detail = await self._route(resolved)
        except Exception as exc:
            logger.warning("Command %s failed: %s", command_id, exc, exc_info=True)
            return ServiceResult.failure(
                OP,
                ServiceError.from_exception(ErrorCode.DISPATCH_FAILED, exc, id=command_id),
                data={"id": command_id},
            )

        logger.debug("Command %s dispatched via %s", resolved.id, route)
        return ServiceResult(ok=True, op=OP, data={"id": resolved.id, "route": str(route), **detail})

    async def _route(self, command: Command) -> tuple[Route, dict[str, Any]]:
        if command.action is not None:
            await command.action()
            return Route.INLINE, {}

        kind = command.command_type
        if kind is CommandType.SYSTEM:
            event = SYSTEM_EFFECTS.get(command.id)
            if event is None:
                return Route.NOOP, {}
            self._events.publish(event)
            return Route.SYSTEM, {"event": str(event)}

        if kind is CommandType.AI:
            self._events.publish(UiEvent.OPEN_AI, command=command)
            return Route.UI_EVENT, {"event": str(UiEvent.OPEN_AI)}

        if kind is CommandType.ACTION:
            response = await self._invoke(Channel.COMMAND_RUN, command.id)
            return Route.BRIDGE, {"channel": str(Channel.COMMAND_RUN), "response": response}

        if kind is CommandType.FILE:
            if not command.path:
                return Route.NOOP, {}
            response = await self._invoke(Channel.OS_OPEN_PATH, command.path)
            return Route.BRIDGE, {"channel": str(Channel.OS_OPEN_PATH), "response": response}

        return Route.NOOP, {}

    async def _invoke(self, channel: Channel, payload: Any) -> Any:
        if self._bridge is None:
            msg = "Host bridge is not ready"
            raise ChannelUnavailableError(msg)
        if self._timeout is None:
            return await self._bridge.invoke(channel, payload)
        return await self._bridge.invoke(channel, payload, timeout=self._timeout)


def _command_id(command: object) -> Any:
    if isinstance(command, Command):
        return command.id
    if isinstance(command, Mapping):
        return command.get("id")
    return None
