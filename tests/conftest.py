"""Shared pytest fixtures and test helpers for lumina tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from lumina.config.settings import LuminaSettings
from lumina.plugins.event_bus import UiEventBus
from lumina.plugins.manager import PluginManager

SAMPLE_COMMANDS: list[dict[str, Any]] = [
    {"id": "reload", "type": "system", "label": "Reload Interface", "iconName": "refresh.svg"},
    {"id": "settings", "type": "system", "label": "Open Settings", "keywords": "preferences"},
    {"id": "ask-ai", "type": "ai", "label": "Ask Lumina", "keywords": "chat assistant"},
    {"id": "new-project", "type": "action", "label": "New Project", "keywords": "create"},
    {"id": "open-notes", "type": "file", "label": "Open Notes", "path": "/tmp/notes"},
]

_PROJECT_TOML = """\
[host]
data_dir = "data"

[plugins]
enabled = false
"""


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def project_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Temporary project with a lumina.toml keeping all host data under tmp_path."""
    monkeypatch.delenv("LUMINA_CONFIG", raising=False)
    (tmp_path / "lumina.toml").write_text(_PROJECT_TOML)
    return tmp_path


@pytest.fixture
def settings(project_root: Path) -> LuminaSettings:
    return LuminaSettings.from_cli(project_root=project_root)


@pytest.fixture
def _isolated_project(project_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to the temp project so the CLI discovers its lumina.toml.

    Use via ``@pytest.mark.usefixtures("_isolated_project")`` on command test
    classes.
    """
    monkeypatch.chdir(project_root)


@pytest.fixture
def registry_file(tmp_path: Path) -> Path:
    """A registry file holding :data:`SAMPLE_COMMANDS`."""
    path = tmp_path / "commands.json"
    path.write_text(json.dumps(SAMPLE_COMMANDS))
    return path


@pytest.fixture
def plugin_manager() -> PluginManager:
    """A plugin manager with no plugins discovered."""
    return PluginManager()


@pytest.fixture
def event_bus(plugin_manager: PluginManager) -> UiEventBus:
    return UiEventBus(plugin_manager)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


class Recorder:
    """Collects calls; usable as a sync callback for any arity."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []

    def __call__(self, *args: Any) -> None:
        self.calls.append(args)

    @property
    def count(self) -> int:
        return len(self.calls)


def record_events(bus: UiEventBus, *events: str) -> dict[str, Recorder]:
    """Subscribe a :class:`Recorder` to each event name."""
    recorders: dict[str, Recorder] = {}
    for event in events:
        recorders[event] = Recorder()
        bus.subscribe(event, recorders[event])
    return recorders


def async_returning(value: Any) -> Callable[[Any], Any]:
    """An async bridge handler that records payloads and returns *value*."""
    calls: list[Any] = []

    async def handler(payload: Any) -> Any:
        calls.append(payload)
        return value

    handler.calls = calls  # type: ignore[attr-defined]
    return handler
