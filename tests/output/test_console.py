"""Tests for the Rich console factory and theme lookups."""

from __future__ import annotations

from lumina.output.console import create_console, get_output, style_for


class TestConsole:
    def test_renders_to_buffer(self) -> None:
        console = create_console()
        console.print("[lumina.ok]OK[/lumina.ok] done")
        assert get_output(console) == "OK done\n"

    def test_width(self) -> None:
        assert create_console(width=40).width == 40


class TestStyleFor:
    def test_known_values(self) -> None:
        assert style_for("type", "ai") == "lumina.type.ai"
        assert style_for("kind", "subscription") == "lumina.kind.subscription"

    def test_unknown_or_missing(self) -> None:
        assert style_for("type", "plugin") == ""
        assert style_for("kind", None) == ""
