"""Bridge layer — the fixed channel contract and its transports.

Nothing outside this package invents channel names.  The dispatcher and
services reach the host only through :class:`~lumina.bridge.transport.Bridge`.
"""

from lumina.bridge.contract import CONTRACT, Channel, ChannelKind, ChannelSpec, spec_for
from lumina.bridge.errors import (
    BridgeError,
    BridgeTimeoutError,
    ChannelKindError,
    ChannelUnavailableError,
    RemoteError,
    UnknownChannelError,
    WireError,
)
from lumina.bridge.transport import Bridge, LocalBridge, Subscription

__all__ = [
    "CONTRACT",
    "Bridge",
    "BridgeError",
    "BridgeTimeoutError",
    "Channel",
    "ChannelKind",
    "ChannelKindError",
    "ChannelSpec",
    "ChannelUnavailableError",
    "LocalBridge",
    "RemoteError",
    "Subscription",
    "UnknownChannelError",
    "WireError",
    "spec_for",
]
