"""Tests for RegistryLoader."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from lumina.palette.loader import RegistryLoader


class TestRegistryLoader:
    def test_loads_and_enriches_in_order(self, registry_file: Path) -> None:
        commands = asyncio.run(RegistryLoader(registry_file, icon_base="icons").load())

        assert [c.id for c in commands] == [
            "reload",
            "settings",
            "ask-ai",
            "new-project",
            "open-notes",
        ]
        assert commands[0].icon == "icons/refresh.svg"
        assert commands[1].icon is None

    def test_builtin_registry(self) -> None:
        commands = asyncio.run(RegistryLoader().load())
        ids = {c.id for c in commands}
        assert {"reload", "settings", "ask-ai"} <= ids
        assert all(c.icon and c.icon.startswith("assets/icons/") for c in commands)

    def test_missing_file_yields_empty(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        loader = RegistryLoader(tmp_path / "absent.json")
        assert asyncio.run(loader.load()) == []
        assert "unavailable" in caplog.text

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            json.dumps({"id": "reload"}),
            json.dumps([{"label": "missing id"}]),
            json.dumps(["reload"]),
        ],
    )
    def test_malformed_registry_yields_empty(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "commands.json"
        path.write_text(content)
        assert asyncio.run(RegistryLoader(path).load()) == []

    def test_duplicate_ids_kept(self, tmp_path: Path) -> None:
        path = tmp_path / "commands.json"
        path.write_text(json.dumps([{"id": "a", "label": "One"}, {"id": "a", "label": "Two"}]))
        assert [c.label for c in asyncio.run(RegistryLoader(path).load())] == ["One", "Two"]
