"""Tests for BridgeService and contract listing."""

from __future__ import annotations

import asyncio

import pytest

from lumina.bridge.contract import CONTRACT, Channel, ChannelKind
from lumina.bridge.transport import LocalBridge
from lumina.services.bridge import BridgeService, list_channels
from tests.conftest import async_returning


class TestListChannels:
    def test_full_contract(self) -> None:
        result = list_channels()
        assert result.ok
        assert result.data["count"] == len(CONTRACT)
        first = result.data["items"][0]
        assert set(first) == {"channel", "kind", "summary"}

    @pytest.mark.parametrize("kind", ["fire", ChannelKind.SUBSCRIPTION])
    def test_filtered_by_kind(self, kind: str) -> None:
        result = list_channels(kind)
        assert result.data["count"] > 0
        assert {item["kind"] for item in result.data["items"]} == {str(kind)}

    def test_unknown_kind(self) -> None:
        with pytest.raises(ValueError):
            list_channels("broadcast")


class TestBridgeCall:
    def test_success(self) -> None:
        bridge = LocalBridge()
        handler = async_returning(["llama3"])
        bridge.handle(Channel.OLLAMA_MODELS, handler)

        result = asyncio.run(BridgeService(bridge).call("ollama:models", "http://x"))

        assert result.ok
        assert result.data == {"channel": "ollama:models", "response": ["llama3"]}
        assert handler.calls == ["http://x"]

    def test_unknown_channel(self) -> None:
        result = asyncio.run(BridgeService(LocalBridge()).call("fs:rm-rf"))
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "BRIDGE_ERROR"
        assert result.error.detail["exception"] == "UnknownChannelError"

    def test_fire_channel_rejected(self) -> None:
        result = asyncio.run(BridgeService(LocalBridge()).call("ollama:stream-prompt"))
        assert result.error is not None
        assert result.error.detail["exception"] == "ChannelKindError"

    def test_host_failure(self) -> None:
        async def broken(payload: object) -> None:
            msg = "disk full"
            raise OSError(msg)

        bridge = LocalBridge()
        bridge.handle(Channel.SETTINGS_LOAD, broken)
        result = asyncio.run(BridgeService(bridge).call("settings:load"))

        assert result.error is not None
        assert result.error.code == "HOST_ERROR"
        assert result.error.message == "disk full"
