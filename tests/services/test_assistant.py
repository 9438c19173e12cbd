"""Tests for AssistantService streaming over a LocalBridge."""

from __future__ import annotations

import asyncio
from typing import Any

from lumina.bridge.client import HostClient
from lumina.bridge.contract import STREAM_DONE, Channel
from lumina.bridge.transport import LocalBridge
from lumina.services.assistant import AssistantService


def _bridge_with(listener: Any) -> LocalBridge:
    bridge = LocalBridge()
    bridge.on(Channel.OLLAMA_STREAM_PROMPT, listener)
    return bridge


def _streaming(*pieces: str) -> Any:
    """Fire listener that emits *pieces* on ``ollama:chunk``, one per loop turn."""
    received: list[Any] = []

    def factory(bridge: LocalBridge) -> Any:
        async def listener(payload: Any) -> None:
            received.append(payload)
            for piece in pieces:
                await asyncio.sleep(0)
                bridge.emit(Channel.OLLAMA_CHUNK, piece)

        listener.received = received  # type: ignore[attr-defined]
        return listener

    return factory


def _ask(bridge: LocalBridge, prompt: str = "hi", **kwargs: Any) -> Any:
    async def main() -> Any:
        result = await AssistantService(HostClient(bridge)).ask(prompt, **kwargs)
        await bridge.aclose()
        return result

    return asyncio.run(main())


class TestAsk:
    def test_collects_until_done(self) -> None:
        bridge = LocalBridge()
        listener = _streaming("Hel", "lo", STREAM_DONE, "late")(bridge)
        bridge.on(Channel.OLLAMA_STREAM_PROMPT, listener)
        seen: list[str] = []

        result = _ask(bridge, "Say hello", model="phi3", on_chunk=seen.append)

        assert result.ok
        assert result.op == "ask"
        assert result.data == {"response": "Hello", "model": "phi3", "chunks": 2}
        assert seen == ["Hel", "lo"]
        assert listener.received[0]["prompt"] == "Say hello"
        assert listener.received[0]["model"] == "phi3"

    def test_subscriptions_released(self) -> None:
        bridge = LocalBridge()
        bridge.on(Channel.OLLAMA_STREAM_PROMPT, _streaming(STREAM_DONE)(bridge))

        _ask(bridge)

        assert bridge.subscriber_count(Channel.OLLAMA_CHUNK) == 0
        assert bridge.subscriber_count(Channel.OLLAMA_ERROR) == 0

    def test_error_keeps_partial(self) -> None:
        bridge = LocalBridge()

        async def listener(payload: Any) -> None:
            bridge.emit(Channel.OLLAMA_CHUNK, "par")
            await asyncio.sleep(0)
            bridge.emit(Channel.OLLAMA_ERROR, "Connection Error: refused")

        bridge.on(Channel.OLLAMA_STREAM_PROMPT, listener)
        result = _ask(bridge)

        assert not result.ok
        assert result.error is not None
        assert result.error.code == "ASSISTANT_ERROR"
        assert result.error.message == "Connection Error: refused"
        assert result.data == {"partial": "par"}
        assert bridge.subscriber_count(Channel.OLLAMA_CHUNK) == 0

    def test_idle_timeout(self) -> None:
        async def silent(payload: Any) -> None:
            return None

        result = _ask(_bridge_with(silent), idle_timeout=0.05)

        assert not result.ok
        assert result.error is not None
        assert result.error.code == "STREAM_TIMEOUT"

    def test_slow_but_steady_stream_is_not_idle(self) -> None:
        bridge = LocalBridge()

        async def listener(payload: Any) -> None:
            for piece in ("a", "b", "c"):
                await asyncio.sleep(0.05)
                bridge.emit(Channel.OLLAMA_CHUNK, piece)
            await asyncio.sleep(0.05)
            bridge.emit(Channel.OLLAMA_CHUNK, STREAM_DONE)

        bridge.on(Channel.OLLAMA_STREAM_PROMPT, listener)
        result = _ask(bridge, idle_timeout=0.15)

        assert result.ok
        assert result.data["response"] == "abc"

    def test_no_host_listener_times_out(self) -> None:
        result = _ask(LocalBridge(), idle_timeout=0.01)
        assert result.error is not None
        assert result.error.code == "STREAM_TIMEOUT"
