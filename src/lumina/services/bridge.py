"""BridgeService — contract inspection and raw channel calls."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from lumina.bridge.contract import CONTRACT, ChannelKind, channels_of_kind
from lumina.bridge.errors import BridgeError
from lumina.services.result import ErrorCode, ServiceError, ServiceResult

if TYPE_CHECKING:
    from lumina.bridge.transport import Bridge

logger = logging.getLogger(__name__)


def list_channels(kind: ChannelKind | str | None = None) -> ServiceResult:
    """The bridge contract, optionally filtered by channel kind."""
    specs = channels_of_kind(ChannelKind(kind)) if kind else list(CONTRACT.values())
    items = [
        {"channel": str(spec.channel), "kind": str(spec.kind), "summary": spec.summary}
        for spec in specs
    ]
    return ServiceResult(ok=True, op="list_channels", data={"items": items, "count": len(items)})


class BridgeService:
    """Invoke request channels and report the outcome as a ServiceResult."""

    def __init__(self, bridge: Bridge) -> None:
        self._bridge = bridge

    async def call(self, channel: str, payload: Any = None) -> ServiceResult:
        try:
            response = await self._bridge.invoke(channel, payload)
        except BridgeError as exc:
            return self._failure(channel, exc, ErrorCode.BRIDGE_ERROR)
        except Exception as exc:
            logger.warning("Host handler for %s failed", channel, exc_info=True)
            return self._failure(channel, exc, ErrorCode.HOST_ERROR)
        return ServiceResult(
            ok=True, op="bridge_call", data={"channel": channel, "response": response}
        )

    @staticmethod
    def _failure(channel: str, exc: Exception, code: ErrorCode) -> ServiceResult:
        return ServiceResult.failure(
            "bridge_call",
            ServiceError.from_exception(code, exc, channel=channel),
            data={"channel": channel},
        )
