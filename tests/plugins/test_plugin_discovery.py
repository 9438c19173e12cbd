"""Tests for PluginManager discovery and registration."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from lumina.plugins.hookspecs import hookimpl
from lumina.plugins.manager import PluginManager, implements_hooks

_ACTION_PLUGIN_SRC = """\
import pluggy

hookimpl = pluggy.HookimplMarker("lumina")


class ScaffoldPlugin:
    \"\"\"Claims the new-project action.\"\"\"

    @hookimpl
    def run_action(self, command_id):
        if command_id == "new-project":
            return {"handled": True, "id": command_id}
        return None
"""

_SYNTAX_ERROR_SRC = """\
def broken(
"""

_NO_HOOKS_SRC = """\
class PlainClass:
    def hello(self):
        return "world"
"""


class TestLocalDiscovery:
    def test_discovers_local_plugin(self, tmp_path: Path) -> None:
        (tmp_path / "scaffold.py").write_text(_ACTION_PLUGIN_SRC, encoding="utf-8")
        pm = PluginManager()

        names = pm.discover_and_load(local_dir=tmp_path)

        assert names == ["local:scaffold.ScaffoldPlugin"]
        assert pm.failures == []
        assert pm.run_action("new-project") == {"handled": True, "id": "new-project"}
        assert pm.run_action("other") is None

    def test_skips_broken_plugin(self, tmp_path: Path) -> None:
        (tmp_path / "broken.py").write_text(_SYNTAX_ERROR_SRC, encoding="utf-8")
        pm = PluginManager()

        names = pm.discover_and_load(local_dir=tmp_path)

        assert names == []
        assert "lumina_local_plugin_broken" not in sys.modules
        assert [f.source for f in pm.failures] == ["broken.py"]
        assert pm.failures[0].error.startswith("SyntaxError")

    def test_skips_classes_without_hooks(self, tmp_path: Path) -> None:
        (tmp_path / "plain.py").write_text(_NO_HOOKS_SRC, encoding="utf-8")
        names = PluginManager().discover_and_load(local_dir=tmp_path)
        assert not any("PlainClass" in n for n in names)

    def test_skips_underscore_files(self, tmp_path: Path) -> None:
        (tmp_path / "_private.py").write_text(_ACTION_PLUGIN_SRC, encoding="utf-8")
        names = PluginManager().discover_and_load(local_dir=tmp_path)
        assert not any("_private" in n for n in names)

    def test_missing_directory(self, tmp_path: Path) -> None:
        pm = PluginManager()
        assert pm.discover_and_load(local_dir=tmp_path / "absent") == []
        assert pm.failures == []


class TestRegistration:
    def test_attach_and_release(self) -> None:
        class ReloadPlugin:
            @hookimpl
            def reload_ui(self) -> None:
                return None

        pm = PluginManager()
        plugin = ReloadPlugin()
        release = pm.attach(plugin, "reload")

        assert pm.is_registered(plugin)
        assert pm.names == ["reload"]

        release()
        release()
        assert not pm.is_registered(plugin)
        assert pm.names == []

    def test_first_result_wins(self) -> None:
        class First:
            @hookimpl
            def run_action(self, command_id: str) -> dict[str, Any]:
                return {"by": "first"}

        class Second:
            @hookimpl
            def run_action(self, command_id: str) -> dict[str, Any]:
                return {"by": "second"}

        pm = PluginManager()
        pm.register_plugin(First())
        pm.register_plugin(Second())
        # pluggy calls later registrations first
        assert pm.run_action("x") == {"by": "second"}

    def test_implements_hooks(self) -> None:
        class WithHook:
            @hookimpl
            def open_settings(self) -> None:
                return None

        class WithoutHook:
            def open_settings(self) -> None:
                return None

        assert implements_hooks(WithHook)
        assert implements_hooks(WithHook())
        assert not implements_hooks(WithoutHook)

    def test_unknown_hook_names_do_not_count(self) -> None:
        class Stray:
            @hookimpl
            def on_startup(self) -> None:
                return None

        assert not implements_hooks(Stray)

    def test_failing_constructor_recorded(self, tmp_path: Path) -> None:
        (tmp_path / "fragile.py").write_text(
            _ACTION_PLUGIN_SRC.replace(
                '    """Claims the new-project action."""\n',
                '    def __init__(self):\n        raise RuntimeError("no config")\n',
            ),
            encoding="utf-8",
        )
        pm = PluginManager()

        assert pm.discover_and_load(local_dir=tmp_path) == []
        assert pm.failures[0].source == "fragile.py:ScaffoldPlugin"
        assert pm.failures[0].error == "RuntimeError: no config"
