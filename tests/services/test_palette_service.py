"""Tests for PaletteService listing and batch dispatch."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from lumina.bridge.contract import Channel
from lumina.bridge.transport import LocalBridge
from lumina.palette.context import PaletteContext
from lumina.palette.dispatcher import Dispatcher
from lumina.palette.hotkey import InputSurface
from lumina.palette.loader import RegistryLoader
from lumina.plugins.event_bus import UiEventBus
from lumina.services.palette import PaletteService
from lumina.services.result import ServiceResult
from tests.conftest import async_returning


@pytest.fixture
def bridge() -> LocalBridge:
    bridge = LocalBridge()
    bridge.handle(Channel.COMMAND_RUN, async_returning({"handled": True}))
    return bridge


def _with_service(
    registry: Path, bridge: LocalBridge | None, events: UiEventBus
) -> Callable[[Callable[[PaletteService], Any]], Any]:
    """Run *scenario* against a freshly mounted palette."""

    def run(scenario: Callable[[PaletteService], Any]) -> Any:
        async def main() -> Any:
            palette = PaletteContext(
                RegistryLoader(registry), Dispatcher(bridge, events), InputSurface()
            )
            async with palette:
                return await scenario(PaletteService(palette))

        return asyncio.run(main())

    return run


class TestListCommands:
    def test_all_in_registry_order(
        self, registry_file: Path, bridge: LocalBridge, event_bus: UiEventBus
    ) -> None:
        result: ServiceResult = _with_service(registry_file, bridge, event_bus)(
            lambda svc: svc.list_commands()
        )
        assert result.ok
        assert result.op == "list_commands"
        ids = [item["id"] for item in result.data["items"]]
        assert ids == ["reload", "settings", "ask-ai", "new-project", "open-notes"]
        assert result.data["count"] == 5
        assert result.warnings == []

    def test_query_filters(
        self, registry_file: Path, bridge: LocalBridge, event_bus: UiEventBus
    ) -> None:
        result = _with_service(registry_file, bridge, event_bus)(
            lambda svc: svc.list_commands("preferences")
        )
        assert [item["id"] for item in result.data["items"]] == ["settings"]
        assert result.data["query"] == "preferences"

    def test_missing_registry_warns(
        self, tmp_path: Path, bridge: LocalBridge, event_bus: UiEventBus
    ) -> None:
        result = _with_service(tmp_path / "absent.json", bridge, event_bus)(
            lambda svc: svc.list_commands()
        )
        assert result.ok
        assert result.data["items"] == []
        assert result.warnings == ["Command registry is empty or unavailable"]


class TestRunCommands:
    def test_batch_records_successes(
        self, registry_file: Path, bridge: LocalBridge, event_bus: UiEventBus
    ) -> None:
        result = _with_service(registry_file, bridge, event_bus)(
            lambda svc: svc.run_commands(["reload", "new-project"])
        )
        assert result.ok
        assert result.data["succeeded"] == 2
        assert result.data["history"] == ["new-project", "reload"]
        assert result.data["items"][1]["response"] == {"handled": True}

    def test_no_record(
        self, registry_file: Path, bridge: LocalBridge, event_bus: UiEventBus
    ) -> None:
        result = _with_service(registry_file, bridge, event_bus)(
            lambda svc: svc.run_commands(["reload"], record=False)
        )
        assert result.ok
        assert result.data["history"] == []

    def test_partial_failure_is_warning(
        self, registry_file: Path, bridge: LocalBridge, event_bus: UiEventBus
    ) -> None:
        # open-notes needs os:openPath, which this bridge does not serve
        result = _with_service(registry_file, bridge, event_bus)(
            lambda svc: svc.run_commands(["open-notes", "ghost", "reload"])
        )
        assert result.ok
        assert result.data["succeeded"] == 1
        assert result.data["history"] == ["reload"]
        items = result.data["items"]
        assert items[0]["ok"] is False
        assert items[1] == {"id": "ghost", "ok": False, "error": "Unknown command"}
        assert len(result.warnings) == 2
        assert result.warnings[1] == "ghost: unknown command"

    def test_all_failed(self, registry_file: Path, event_bus: UiEventBus) -> None:
        result = _with_service(registry_file, None, event_bus)(
            lambda svc: svc.run_commands(["new-project"])
        )
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "RUN_FAILED"
        assert result.data["items"][0]["error"] == "Host bridge is not ready"
        assert result.data["history"] == []

    def test_empty_batch_succeeds(
        self, registry_file: Path, bridge: LocalBridge, event_bus: UiEventBus
    ) -> None:
        result = _with_service(registry_file, bridge, event_bus)(
            lambda svc: svc.run_commands([])
        )
        assert result.ok
        assert result.data["count"] == 0
