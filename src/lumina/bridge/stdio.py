"""Cross-process bridge over a pair of byte streams.

:class:`StdioBridge` is the UI-side :class:`~lumina.bridge.transport.Bridge`.
It correlates responses to pending requests by id and delivers ``event``
frames to local subscribers in the order the host emitted them.

:class:`BridgeServer` is the host side.  Every inbound frame is checked
against the contract before it reaches a handler; emissions on every
subscription channel are forwarded to the client.

INVARIANT: When the stream closes, every pending request fails with
:class:`ChannelUnavailableError`, and so does every later request or fire.
Nothing waits on a dead host.
"""

from __future__ import annotations

import asyncio
import functools
import itertools
import logging
import sys
from collections import defaultdict
from collections.abc import Callable, Sequence
from contextlib import suppress
from typing import Any

from lumina.bridge.contract import Channel, ChannelKind, channels_of_kind
from lumina.bridge.errors import (
    BridgeError,
    ChannelKindError,
    ChannelUnavailableError,
    RemoteError,
    UnknownChannelError,
    WireError,
)
from lumina.bridge.transport import Bridge, LocalBridge, StreamCallback
from lumina.bridge.wire import (
    EventMessage,
    FireMessage,
    RequestMessage,
    ResponseMessage,
    decode,
    encode,
)

logger = logging.getLogger(__name__)

STREAM_LIMIT = 16 * 1024 * 1024

_ERROR_TYPES: dict[type[BridgeError], str] = {
    UnknownChannelError: "unknown_channel",
    ChannelKindError: "channel_kind",
    ChannelUnavailableError: "unavailable",
}

_ERROR_CLASSES: dict[str, type[BridgeError]] = {v: k for k, v in _ERROR_TYPES.items()}


def _error_type(exc: BaseException) -> str:
    for cls, name in _ERROR_TYPES.items():
        if isinstance(exc, cls):
            return name
    return "remote"


class StdioBridge(Bridge):
    """UI-side bridge speaking JSON lines to a host process.

    Parameters:
        reader: Stream carrying host → client frames.
        writer: Stream carrying client → host frames.
        request_timeout: Default per-request timeout in seconds.
        process: Host subprocess owned by this bridge, if spawned.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        *,
        request_timeout: float | None = None,
        process: asyncio.subprocess.Process | None = None,
    ) -> None:
        super().__init__(request_timeout=request_timeout)
        self._reader = reader
        self._writer = writer
        self._process = process
        self._ids = itertools.count(1)
        self._pending: dict[int, asyncio.Future[Any]] = {}
        self._subscribers: dict[Channel, list[StreamCallback]] = defaultdict(list)
        self._reader_task: asyncio.Task[None] | None = None
        self._closed = False
        self._host_gone = False

    @classmethod
    async def spawn(
        cls,
        argv: Sequence[str] | None = None,
        *,
        request_timeout: float | None = None,
    ) -> StdioBridge:
        """Start a host process and connect to its stdio.

        Defaults to ``python -m lumina host serve``.  The host's stderr is
        inherited so its logs reach the terminal.
        """
        command = list(argv) if argv else [sys.executable, "-m", "lumina", "host", "serve"]
        process = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            limit=STREAM_LIMIT,
        )
        assert process.stdin is not None and process.stdout is not None
        logger.debug("Spawned host process pid=%s", process.pid)
        bridge = cls(
            process.stdout,
            process.stdin,
            request_timeout=request_timeout,
            process=process,
        )
        bridge.start()
        return bridge

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Start the frame reader.  Idempotent."""
        if self._reader_task is None:
            self._reader_task = asyncio.get_running_loop().create_task(self._read_loop())

    async def aclose(self) -> None:
        """Close the stream, fail pending requests, and reap the host process."""
        if self._closed:
            return
        self._closed = True
        if not self._writer.is_closing():
            self._writer.close()
        with suppress(ConnectionError):
            await self._writer.wait_closed()
        if self._reader_task is not None and not self._reader_task.done():
            self._reader_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._reader_task
        self._fail_pending(ChannelUnavailableError("Bridge closed"))
        if self._process is not None:
            try:
                await asyncio.wait_for(self._process.wait(), 5)
            except TimeoutError:
                logger.warning("Host process %s did not exit; killing", self._process.pid)
                self._process.kill()
                await self._process.wait()

    # ------------------------------------------------------------------
    # Transport hooks
    # ------------------------------------------------------------------

    async def _invoke(self, channel: Channel, payload: Any) -> Any:
        self._ensure_open()
        self.start()
        request_id = next(self._ids)
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            self._writer.write(encode(RequestMessage(id=request_id, channel=channel, payload=payload)))
            await self._writer.drain()
            return await future
        finally:
            self._pending.pop(request_id, None)

    def _send(self, channel: Channel, payload: Any) -> None:
        self._ensure_open()
        self._writer.write(encode(FireMessage(channel=channel, payload=payload)))

    def _subscribe(self, channel: Channel, callback: StreamCallback) -> Callable[[], None]:
        self._subscribers[channel].append(callback)

        def release() -> None:
            try:
                self._subscribers[channel].remove(callback)
            except ValueError:
                pass

        return release

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed or self._writer.is_closing():
            msg = "Bridge is closed"
            raise ChannelUnavailableError(msg)
        if self._host_gone:
            msg = "Host closed the bridge"
            raise ChannelUnavailableError(msg)

    async def _read_loop(self) -> None:
        try:
            while True:
                try:
                    line = await self._reader.readline()
                except ValueError:
                    logger.warning("Dropping oversized frame from host")
                    continue
                if not line:
                    break
                if not line.strip():
                    continue
                try:
                    message = decode(line)
                except WireError:
                    logger.warning("Dropping malformed frame from host", exc_info=True)
                    continue
                if isinstance(message, ResponseMessage):
                    self._resolve(message)
                elif isinstance(message, EventMessage):
                    self._deliver(message)
                else:
                    logger.warning("Unexpected %s frame from host", message.kind)
        finally:
            self._host_gone = True
            self._fail_pending(ChannelUnavailableError("Host closed the bridge"))

    def _resolve(self, message: ResponseMessage) -> None:
        future = self._pending.get(message.id)
        if future is None or future.done():
            logger.debug("Discarding late response id=%s", message.id)
            return
        if message.ok:
            future.set_result(message.result)
            return
        error_cls = _ERROR_CLASSES.get(message.error_type or "", RemoteError)
        future.set_exception(error_cls(message.error or "Host handler failed"))

    def _deliver(self, message: EventMessage) -> None:
        try:
            channel = Channel(message.channel)
        except ValueError:
            logger.warning("Dropping event on unknown channel %r", message.channel)
            return
        for callback in list(self._subscribers.get(channel, [])):
            try:
                callback(message.payload)
            except Exception:
                logger.warning("Subscriber on %s failed", channel, exc_info=True)

    def _fail_pending(self, error: BridgeError) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(error)
        self._pending.clear()


class BridgeServer:
    """Host side of the stream bridge, backed by a :class:`LocalBridge`."""

    def __init__(self, bridge: LocalBridge) -> None:
        self._bridge = bridge
        self._tasks: set[asyncio.Task[None]] = set()

    async def serve(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        """Serve frames until EOF, then release every forwarding subscription."""
        subscriptions = [
            self._bridge.subscribe(spec.channel, functools.partial(self._forward, writer, spec.channel))
            for spec in channels_of_kind(ChannelKind.SUBSCRIPTION)
        ]
        try:
            while True:
                try:
                    line = await reader.readline()
                except ValueError:
                    logger.warning("Dropping oversized frame from client")
                    continue
                if not line:
                    break
                if not line.strip():
                    continue
                try:
                    message = decode(line)
                except WireError as exc:
                    logger.warning("Dropping malformed frame from client: %s", exc)
                    continue
                if isinstance(message, RequestMessage):
                    task = asyncio.get_running_loop().create_task(self._answer(writer, message))
                    self._tasks.add(task)
                    task.add_done_callback(self._tasks.discard)
                elif isinstance(message, FireMessage):
                    self._fire(message)
                else:
                    logger.warning("Unexpected %s frame from client", message.kind)
        finally:
            for subscription in subscriptions:
                subscription()
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _answer(self, writer: asyncio.StreamWriter, message: RequestMessage) -> None:
        try:
            result = await self._bridge.invoke(message.channel, message.payload, timeout=None)
            frame = encode(ResponseMessage(id=message.id, ok=True, result=result))
        except Exception as exc:
            if not isinstance(exc, BridgeError):
                logger.warning("Host handler for %s failed", message.channel, exc_info=True)
            frame = encode(
                ResponseMessage(
                    id=message.id,
                    ok=False,
                    error=str(exc) or exc.__class__.__name__,
                    error_type=_error_type(exc),
                )
            )
        if writer.is_closing():
            return
        writer.write(frame)
        with suppress(ConnectionError):
            await writer.drain()

    def _fire(self, message: FireMessage) -> None:
        try:
            self._bridge.send(message.channel, message.payload)
        except BridgeError as exc:
            logger.warning("Rejected fire on %r: %s", message.channel, exc)

    @staticmethod
    def _forward(writer: asyncio.StreamWriter, channel: Channel, payload: Any) -> None:
        if writer.is_closing():
            return
        try:
            writer.write(encode(EventMessage(channel=channel, payload=payload)))
        except WireError:
            logger.warning("Cannot forward payload on %s", channel, exc_info=True)


async def serve_stdio(bridge: LocalBridge) -> None:
    """Serve the bridge on this process's stdin/stdout until stdin closes."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=STREAM_LIMIT)
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    transport, protocol = await loop.connect_write_pipe(
        asyncio.streams.FlowControlMixin, sys.stdout
    )
    writer = asyncio.StreamWriter(transport, protocol, reader, loop)
    try:
        await BridgeServer(bridge).serve(reader, writer)
    finally:
        await bridge.aclose()
        writer.close()
