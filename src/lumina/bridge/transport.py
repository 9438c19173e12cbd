"""Bridge transports — request/response, fire-and-forget, and subscriptions.

:class:`Bridge` enforces the contract (known channel, matching kind) and the
per-call request timeout; concrete transports only move payloads.

:class:`LocalBridge` runs both sides in one event loop.  The host registers
handlers with :meth:`LocalBridge.handle` / :meth:`LocalBridge.on` and pushes
stream payloads with :meth:`LocalBridge.emit`.  It is the host half of
:class:`~lumina.bridge.stdio.BridgeServer` and the default in-process
transport for the CLI and tests.

INVARIANT: Every subscription is released exactly once.  The handle returned
by :meth:`Bridge.subscribe` is idempotent; :meth:`Bridge.subscription` scopes
it to a ``with`` block.
"""

from __future__ import annotations

import abc
import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from typing import Any

from lumina.bridge.contract import Channel, ChannelKind, ChannelSpec, spec_for
from lumina.bridge.errors import BridgeTimeoutError, ChannelKindError, ChannelUnavailableError

logger = logging.getLogger(__name__)

StreamCallback = Callable[[Any], None]
RequestHandler = Callable[[Any], Awaitable[Any]]
FireListener = Callable[[Any], Awaitable[None]]

_UNSET: Any = object()


class Subscription:
    """Handle for one subscription.  Call it to unsubscribe."""

    def __init__(self, channel: Channel, release: Callable[[], None]) -> None:
        self.channel = channel
        self._release: Callable[[], None] | None = release

    @property
    def active(self) -> bool:
        return self._release is not None

    def __call__(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()


class Bridge(abc.ABC):
    """Client-side view of the bridge.

    Parameters:
        request_timeout: Default timeout in seconds for :meth:`invoke`.
            ``None`` waits indefinitely.
    """

    def __init__(self, *, request_timeout: float | None = None) -> None:
        self._request_timeout = request_timeout

    @property
    def request_timeout(self) -> float | None:
        return self._request_timeout

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def invoke(
        self,
        channel: Channel | str,
        payload: Any = None,
        *,
        timeout: float | None = _UNSET,
    ) -> Any:
        """Send a request and await exactly one response.

        Raises:
            BridgeTimeoutError: No response within *timeout* seconds.
            BridgeError: Any other transport or host failure.
        """
        spec = self._require(channel, ChannelKind.REQUEST)
        effective = self._request_timeout if timeout is _UNSET else timeout
        if effective is None:
            return await self._invoke(spec.channel, payload)
        try:
            return await asyncio.wait_for(self._invoke(spec.channel, payload), effective)
        except TimeoutError as exc:
            msg = f"{spec.channel} timed out after {effective}s"
            raise BridgeTimeoutError(msg) from exc

    def send(self, channel: Channel | str, payload: Any = None) -> None:
        """Fire-and-forget.  No response is observed."""
        spec = self._require(channel, ChannelKind.FIRE)
        self._send(spec.channel, payload)

    def subscribe(self, channel: Channel | str, callback: StreamCallback) -> Subscription:
        """Deliver every payload on *channel* to *callback* until unsubscribed."""
        spec = self._require(channel, ChannelKind.SUBSCRIPTION)
        release = self._subscribe(spec.channel, callback)
        logger.debug("Subscribed to %s", spec.channel)
        return Subscription(spec.channel, release)

    @contextmanager
    def subscription(
        self, channel: Channel | str, callback: StreamCallback
    ) -> Iterator[Subscription]:
        """Scoped subscription, released on exit however the block ends."""
        handle = self.subscribe(channel, callback)
        try:
            yield handle
        finally:
            handle()

    async def aclose(self) -> None:
        """Release transport resources.  Subclasses extend."""

    # ------------------------------------------------------------------
    # Transport hooks
    # ------------------------------------------------------------------

    @abc.abstractmethod
    async def _invoke(self, channel: Channel, payload: Any) -> Any: ...

    @abc.abstractmethod
    def _send(self, channel: Channel, payload: Any) -> None: ...

    @abc.abstractmethod
    def _subscribe(self, channel: Channel, callback: StreamCallback) -> Callable[[], None]: ...

    @staticmethod
    def _require(channel: Channel | str, kind: ChannelKind) -> ChannelSpec:
        spec = spec_for(channel)
        if spec.kind is not kind:
            msg = f"{spec.channel} is a {spec.kind} channel, not {kind}"
            raise ChannelKindError(msg)
        return spec


class LocalBridge(Bridge):
    """In-process bridge: host handlers and UI subscribers share one loop."""

    def __init__(self, *, request_timeout: float | None = None) -> None:
        super().__init__(request_timeout=request_timeout)
        self._handlers: dict[Channel, RequestHandler] = {}
        self._fire_listeners: dict[Channel, FireListener] = {}
        self._subscribers: dict[Channel, list[StreamCallback]] = defaultdict(list)
        self._tasks: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Host-side registration
    # ------------------------------------------------------------------

    def handle(self, channel: Channel | str, handler: RequestHandler) -> None:
        """Register the async handler serving a request channel."""
        spec = self._require(channel, ChannelKind.REQUEST)
        self._handlers[spec.channel] = handler

    def on(self, channel: Channel | str, listener: FireListener) -> None:
        """Register the async listener consuming a fire channel."""
        spec = self._require(channel, ChannelKind.FIRE)
        self._fire_listeners[spec.channel] = listener

    def has_handler(self, channel: Channel | str) -> bool:
        spec = spec_for(channel)
        return spec.channel in self._handlers or spec.channel in self._fire_listeners

    def emit(self, channel: Channel | str, payload: Any = None) -> None:
        """Push one payload to every subscriber of a subscription channel.

        Subscribers run in registration order.  A failing subscriber is
        logged and does not stop delivery to the others.
        """
        spec = self._require(channel, ChannelKind.SUBSCRIPTION)
        for callback in list(self._subscribers[spec.channel]):
            try:
                callback(payload)
            except Exception:
                logger.warning("Subscriber on %s failed", spec.channel, exc_info=True)

    def subscriber_count(self, channel: Channel | str) -> int:
        spec = spec_for(channel)
        return len(self._subscribers.get(spec.channel, []))

    async def aclose(self) -> None:
        """Wait for in-flight fire listeners to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Transport hooks
    # ------------------------------------------------------------------

    async def _invoke(self, channel: Channel, payload: Any) -> Any:
        handler = self._handlers.get(channel)
        if handler is None:
            msg = f"No host handler for {channel}"
            raise ChannelUnavailableError(msg)
        return await handler(payload)

    def _send(self, channel: Channel, payload: Any) -> None:
        listener = self._fire_listeners.get(channel)
        if listener is None:
            logger.warning("No host listener for %s; payload dropped", channel)
            return
        task = asyncio.get_running_loop().create_task(listener(payload))
        self._tasks.add(task)
        task.add_done_callback(self._on_fire_done)

    def _subscribe(self, channel: Channel, callback: StreamCallback) -> Callable[[], None]:
        self._subscribers[channel].append(callback)

        def release() -> None:
            try:
                self._subscribers[channel].remove(callback)
            except ValueError:
                pass

        return release

    def _on_fire_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Fire listener failed", exc_info=exc)
