"""Bridge exception hierarchy.

Every failure raised by a transport derives from :class:`BridgeError` so the
dispatcher and services can treat them uniformly as dispatch failures.
"""

from __future__ import annotations


class BridgeError(Exception):
    """Base class for bridge failures."""


class UnknownChannelError(BridgeError, LookupError):
    """The channel name is not part of the contract."""


class ChannelKindError(BridgeError):
    """A channel was used through the wrong invocation kind."""


class ChannelUnavailableError(BridgeError):
    """The host cannot serve the channel (no handler, or bridge closed)."""


class BridgeTimeoutError(BridgeError):
    """A request/response call did not complete within its timeout."""


class RemoteError(BridgeError):
    """The host handler failed; carries the host's error message."""


class WireError(BridgeError):
    """A frame on the cross-process stream could not be decoded."""
