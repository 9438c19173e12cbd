"""Tests for the host JSON stores."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from lumina.host.stores import ProjectStore, SessionStore, SettingsStore

DEFAULTS = {"ollamaUrl": "http://127.0.0.1:11434", "defaultModel": "llama3", "temperature": 0.7}


class TestSettingsStore:
    def test_defaults_without_file(self, tmp_path: Path) -> None:
        assert SettingsStore(tmp_path / "settings.json", DEFAULTS).load() == DEFAULTS

    def test_stored_keys_override(self, tmp_path: Path) -> None:
        store = SettingsStore(tmp_path / "settings.json", DEFAULTS)
        assert store.save({"defaultModel": "mistral", "extra": 1}) is True
        loaded = store.load()
        assert loaded["defaultModel"] == "mistral"
        assert loaded["temperature"] == 0.7
        assert loaded["extra"] == 1

    @pytest.mark.parametrize("content", ["{broken", "[1, 2]"])
    def test_unreadable_file_yields_defaults(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "settings.json"
        path.write_text(content)
        assert SettingsStore(path, DEFAULTS).load() == DEFAULTS

    def test_save_rejects_non_object(self, tmp_path: Path) -> None:
        with pytest.raises(TypeError):
            SettingsStore(tmp_path / "settings.json", DEFAULTS).save(["nope"])  # type: ignore[arg-type]


class TestSessionStore:
    def test_save_and_load(self, tmp_path: Path) -> None:
        store = SessionStore(tmp_path)
        store.save("s1", title="Plans", messages=[{"role": "user"}], date="2026-01-02")
        assert store.load("s1") == {
            "id": "s1",
            "title": "Plans",
            "messages": [{"role": "user"}],
            "date": "2026-01-02",
        }

    def test_blank_title_defaults(self, tmp_path: Path) -> None:
        store = SessionStore(tmp_path)
        store.save("s1", title=None, messages=[], date=None)
        assert store.load("s1")["title"] == "New Chat"

    def test_custom_title_survives_placeholder_save(self, tmp_path: Path) -> None:
        store = SessionStore(tmp_path)
        store.save("s1", title="Roadmap", messages=[], date="d1")
        store.save("s1", title="New Chat", messages=[{"n": 2}], date="d2")
        session = store.load("s1")
        assert session["title"] == "Roadmap"
        assert session["messages"] == [{"n": 2}]

    def test_list_newest_first_skipping_broken(self, tmp_path: Path) -> None:
        store = SessionStore(tmp_path)
        store.save("old", title="Old", messages=[], date="2025-01-01T00:00:00")
        store.save("new", title="New", messages=[], date="2026-03-01T00:00:00")
        (tmp_path / "broken.json").write_text("{")

        assert store.list() == [
            {"id": "new", "title": "New", "date": "2026-03-01T00:00:00"},
            {"id": "old", "title": "Old", "date": "2025-01-01T00:00:00"},
        ]

    def test_list_without_directory(self, tmp_path: Path) -> None:
        assert SessionStore(tmp_path / "absent").list() == []

    def test_rename(self, tmp_path: Path) -> None:
        store = SessionStore(tmp_path)
        store.save("s1", title="A", messages=[], date=None)
        assert store.rename("s1", "B") is True
        assert store.load("s1")["title"] == "B"
        assert store.rename("missing", "C") is False

    def test_delete(self, tmp_path: Path) -> None:
        store = SessionStore(tmp_path)
        store.save("s1", title="A", messages=[], date=None)
        assert store.delete("s1") is True
        with pytest.raises(FileNotFoundError):
            store.delete("s1")

    @pytest.mark.parametrize("bad_id", ["../escape", "", ".hidden", "a/b", 42])
    def test_unsafe_ids_rejected(self, tmp_path: Path, bad_id: object) -> None:
        with pytest.raises(ValueError, match="Invalid session id"):
            SessionStore(tmp_path).load(bad_id)  # type: ignore[arg-type]


class TestProjectStore:
    def test_create_and_list(self, tmp_path: Path) -> None:
        store = ProjectStore(tmp_path)
        project = store.create("demo", "Demo", root="/src/demo")

        assert project["files"] == []
        assert project["systemPrompt"] == ""
        assert project["root"] == "/src/demo"
        assert [p["id"] for p in store.list()] == ["demo"]
        assert json.loads((tmp_path / "demo.json").read_text())["name"] == "Demo"

    def test_add_files_deduplicates(self, tmp_path: Path) -> None:
        store = ProjectStore(tmp_path)
        store.create("demo", "Demo")

        store.add_files("demo", ["/docs/a.md", "/docs/b.py"])
        files = store.add_files("demo", ["/docs/a.md", "/docs/c.txt"])

        assert [f["path"] for f in files] == ["/docs/a.md", "/docs/b.py", "/docs/c.txt"]
        assert files[1] == {"path": "/docs/b.py", "name": "b.py", "type": "py"}

    def test_add_files_to_missing_project(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            ProjectStore(tmp_path).add_files("ghost", ["/a"])

    def test_add_url(self, tmp_path: Path) -> None:
        store = ProjectStore(tmp_path)
        store.create("demo", "Demo")
        store.add_files("demo", ["/docs/a.md"])

        files = store.add_url("demo", "https://example.com", name="Example", cache_file="web-1.txt")

        assert files[-1] == {
            "path": "https://example.com",
            "name": "Example",
            "type": "url",
            "cacheFile": "web-1.txt",
        }
        assert store.get("demo")["files"] == files

    def test_update_settings(self, tmp_path: Path) -> None:
        store = ProjectStore(tmp_path)
        store.create("demo", "Demo")
        updated = store.update_settings("demo", "Be terse.")
        assert updated is not None
        assert updated["systemPrompt"] == "Be terse."
        assert store.update_settings("ghost", "x") is None
