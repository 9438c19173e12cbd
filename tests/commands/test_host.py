"""Tests for the host command group."""

from __future__ import annotations

from typing import Any

import pytest
from click.testing import CliRunner

import lumina.bridge.stdio as stdio
from lumina.bridge.contract import Channel
from lumina.cli import cli
from lumina.commands._context import AppContext
from lumina.config.settings import LuminaSettings


@pytest.mark.usefixtures("_isolated_project")
def test_serve_runs_host_bridge(cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
    served: list[Any] = []

    async def fake_serve(bridge: Any) -> None:
        served.append(bridge)

    monkeypatch.setattr(stdio, "serve_stdio", fake_serve)
    result = cli_runner.invoke(cli, ["host", "serve"])

    assert result.exit_code == 0
    assert len(served) == 1
    assert served[0].has_handler(Channel.SESSION_LIST)
    assert served[0].has_handler(Channel.OLLAMA_STREAM_PROMPT)
    assert not served[0].has_handler(Channel.PROJECT_GENERATE_GRAPH)


def test_spawned_host_inherits_invocation(settings: LuminaSettings) -> None:
    overridden = settings.model_copy(update={"verbose": True}).with_overrides(
        plugins_enabled=False
    )
    argv = AppContext(overridden).host_argv()

    assert argv[1:3] == ["-m", "lumina"]
    assert argv[-2:] == ["host", "serve"]
    assert "-v" in argv
    assert "--log-json" not in argv
    assert argv[argv.index("-c") + 1] == str(settings.config_path)
    assert argv[argv.index("--data-dir") + 1] == str(settings.data_dir)
    assert "--no-plugins" in argv
