"""JSON file stores for settings, chat sessions, and projects.

Layout under the host data directory::

    settings.json
    sessions/<id>.json
    projects/<id>.json
    cache/web-<ms>.txt

Methods are synchronous; the bridge router runs them off the event loop.

INVARIANT: Ids become file names only after matching :data:`SAFE_ID`.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

SAFE_ID = re.compile(r"[A-Za-z0-9][A-Za-z0-9_.-]*")

DEFAULT_SESSION_TITLE = "New Chat"


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")


class _RecordDir:
    """A directory of ``<id>.json`` records."""

    kind = "record"

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, record_id: Any) -> Path:
        if not isinstance(record_id, str) or not SAFE_ID.fullmatch(record_id):
            msg = f"Invalid {self.kind} id: {record_id!r}"
            raise ValueError(msg)
        return self._root / f"{record_id}.json"

    def _records(self) -> list[Path]:
        if not self._root.is_dir():
            return []
        return sorted(self._root.glob("*.json"))

    def delete(self, record_id: str) -> bool:
        """Remove a record.

        Raises:
            FileNotFoundError: No such record.
        """
        self._path(record_id).unlink()
        logger.debug("Deleted %s %s", self.kind, record_id)
        return True


class SettingsStore:
    """Assistant settings persisted as one JSON object."""

    def __init__(self, path: Path, defaults: dict[str, Any]) -> None:
        self._path = path
        self._defaults = dict(defaults)

    @property
    def defaults(self) -> dict[str, Any]:
        return dict(self._defaults)

    def load(self) -> dict[str, Any]:
        """Stored keys merged over defaults.  Unreadable files yield defaults."""
        if not self._path.is_file():
            return self.defaults
        try:
            stored = _read_json(self._path)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable settings file %s: %s", self._path, exc)
            return self.defaults
        if not isinstance(stored, dict):
            logger.warning("Ignoring settings file %s: not an object", self._path)
            return self.defaults
        return {**self._defaults, **stored}

    def save(self, settings: dict[str, Any]) -> bool:
        if not isinstance(settings, dict):
            msg = "Settings must be an object"
            raise TypeError(msg)
        _write_json(self._path, settings)
        return True


class SessionStore(_RecordDir):
    """Chat transcripts, one file per session."""

    kind = "session"

    def save(
        self,
        session_id: str,
        *,
        title: str | None,
        messages: list[Any],
        date: str | None,
    ) -> bool:
        """Write a session.

        An existing custom title survives a save whose title is empty or
        the default placeholder.
        """
        path = self._path(session_id)
        resolved = title
        if path.is_file() and (not title or title == DEFAULT_SESSION_TITLE):
            try:
                existing = _read_json(path).get("title")
            except (OSError, ValueError, AttributeError):
                existing = None
            if existing and existing != DEFAULT_SESSION_TITLE:
                resolved = existing
        _write_json(
            path,
            {
                "id": session_id,
                "title": resolved or DEFAULT_SESSION_TITLE,
                "messages": messages,
                "date": date,
            },
        )
        return True

    def list(self) -> list[dict[str, Any]]:
        """Summaries ``{id, title, date}``, newest first.  Unreadable files are skipped."""
        summaries: list[dict[str, Any]] = []
        for path in self._records():
            try:
                data = _read_json(path)
                summaries.append({"id": data["id"], "title": data["title"], "date": data["date"]})
            except (OSError, ValueError, KeyError, TypeError) as exc:
                logger.warning("Skipping unreadable session %s: %s", path.name, exc)
        summaries.sort(key=lambda s: str(s["date"] or ""), reverse=True)
        return summaries

    def load(self, session_id: str) -> dict[str, Any]:
        return _read_json(self._path(session_id))

    def rename(self, session_id: str, title: str) -> bool:
        path = self._path(session_id)
        if not path.is_file():
            return False
        data = _read_json(path)
        data["title"] = title
        _write_json(path, data)
        return True


class ProjectStore(_RecordDir):
    """Project descriptors, one file per project."""

    kind = "project"

    def create(self, project_id: str, name: str, *, root: str | None = None) -> dict[str, Any]:
        project = {
            "id": project_id,
            "name": name,
            "root": root,
            "files": [],
            "systemPrompt": "",
            "createdAt": datetime.now(UTC).isoformat(),
        }
        _write_json(self._path(project_id), project)
        logger.debug("Created project %s", project_id)
        return project

    def list(self) -> list[dict[str, Any]]:
        projects: list[dict[str, Any]] = []
        for path in self._records():
            try:
                projects.append(_read_json(path))
            except (OSError, ValueError) as exc:
                logger.warning("Skipping unreadable project %s: %s", path.name, exc)
        return projects

    def get(self, project_id: str) -> dict[str, Any]:
        """Load a project.

        Raises:
            FileNotFoundError: No such project.
        """
        return _read_json(self._path(project_id))

    def add_files(self, project_id: str, paths: list[str]) -> list[dict[str, Any]]:
        """Attach files, skipping paths already attached.  Returns all files."""
        project = self.get(project_id)
        files: list[dict[str, Any]] = project.setdefault("files", [])
        known = {f.get("path") for f in files}
        for raw in paths:
            p = Path(raw)
            if str(p) in known:
                continue
            known.add(str(p))
            files.append({"path": str(p), "name": p.name, "type": p.suffix[1:]})
        _write_json(self._path(project_id), project)
        return files

    def add_url(
        self, project_id: str, url: str, *, name: str, cache_file: str
    ) -> list[dict[str, Any]]:
        """Attach a captured web page.  Returns all files."""
        project = self.get(project_id)
        files: list[dict[str, Any]] = project.setdefault("files", [])
        files.append({"path": url, "name": name, "type": "url", "cacheFile": cache_file})
        _write_json(self._path(project_id), project)
        return files

    def update_settings(self, project_id: str, system_prompt: str) -> dict[str, Any] | None:
        path = self._path(project_id)
        if not path.is_file():
            return None
        project = _read_json(path)
        project["systemPrompt"] = system_prompt
        _write_json(path, project)
        return project
