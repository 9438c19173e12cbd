"""Tests for op-specific renderers."""

from __future__ import annotations

from lumina.output.renderers import render_quiet, render_result
from lumina.services.result import ServiceError, ServiceResult


def _failed(op: str = "run_commands") -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(
            code="RUN_FAILED", message="None of 1 command(s) succeeded", detail={"ids": ["x"]}
        ),
    )


class TestRenderResult:
    def test_command_table(self) -> None:
        result = ServiceResult(
            ok=True,
            op="list_commands",
            data={
                "items": [
                    {"id": "ask-ai", "label": "Ask Lumina", "type": "ai", "keywords": "chat"},
                    {"id": "reload", "label": "Reload Interface", "type": "system"},
                ],
                "count": 2,
                "query": "a",
            },
        )
        out = render_result(result)
        assert "ask-ai" in out
        assert "Ask Lumina" in out
        assert "2 commands matching 'a'" in out

    def test_command_table_verbose_shows_icons(self) -> None:
        result = ServiceResult(
            ok=True,
            op="list_commands",
            data={"items": [{"id": "reload", "icon": "./assets/refresh.svg"}], "count": 1},
        )
        assert "Icon" not in render_result(result)
        assert "./assets/refresh.svg" in render_result(result, verbose=True)

    def test_run_batch(self) -> None:
        result = ServiceResult(
            ok=True,
            op="run_commands",
            data={
                "items": [
                    {"id": "reload", "ok": True, "route": "system", "event": "reload_ui"},
                    {"id": "ghost", "ok": False, "error": "Unknown command"},
                ],
                "count": 2,
                "succeeded": 1,
                "history": ["reload"],
            },
        )
        out = render_result(result)
        assert "reload_ui" in out
        assert "failed" in out
        assert "Unknown command" in out
        assert "history: reload" in out

    def test_channels(self) -> None:
        result = ServiceResult(
            ok=True,
            op="list_channels",
            data={
                "items": [{"channel": "ollama:chunk", "kind": "subscription", "summary": "text"}],
                "count": 1,
            },
        )
        out = render_result(result)
        assert "ollama:chunk" in out
        assert "1 channels" in out

    def test_bridge_call_structured_response(self) -> None:
        result = ServiceResult(
            ok=True,
            op="bridge_call",
            data={"channel": "session:list", "response": [{"id": "s1"}]},
        )
        out = render_result(result)
        assert "channel: session:list" in out
        assert '"id": "s1"' in out

    def test_ask(self) -> None:
        result = ServiceResult(
            ok=True, op="ask", data={"response": "[b]Hello[/b]", "model": None, "chunks": 3}
        )
        assert render_result(result) == "[b]Hello[/b]"
        verbose = render_result(result, verbose=True)
        assert "model: (default)" in verbose
        assert "chunks: 3" in verbose

    def test_generic_fallback(self) -> None:
        out = render_result(ServiceResult(ok=True, op="custom", data={"path": "/tmp/x"}))
        assert "OK" in out
        assert "path: /tmp/x" in out

    def test_error(self) -> None:
        out = render_result(_failed())
        assert "ERROR" in out
        assert "None of 1 command(s) succeeded" in out
        assert "detail" not in out
        assert "ids" in render_result(_failed(), verbose=True)


class TestRenderQuiet:
    def test_ids(self) -> None:
        result = ServiceResult(
            ok=True, op="list_commands", data={"items": [{"id": "a"}, {"id": "b"}]}
        )
        assert render_quiet(result) == "a\nb"

    def test_channels(self) -> None:
        result = ServiceResult(
            ok=True, op="list_channels", data={"items": [{"channel": "git:diff"}]}
        )
        assert render_quiet(result) == "git:diff"

    def test_ask_prints_response(self) -> None:
        result = ServiceResult(ok=True, op="ask", data={"response": "42"})
        assert render_quiet(result) == "42"

    def test_ok_without_items(self) -> None:
        assert render_quiet(ServiceResult(ok=True, op="bridge_call")) == "OK: bridge_call"

    def test_error(self) -> None:
        assert render_quiet(_failed()).startswith("ERROR: run_commands")
