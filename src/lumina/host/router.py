"""Host router — binds every implemented contract channel to its handler.

:func:`build_host_bridge` returns a :class:`LocalBridge` ready to serve the
UI directly (in-process) or behind :class:`~lumina.bridge.stdio.BridgeServer`.
Channels without a handler here fail with ``ChannelUnavailableError``.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from lumina.bridge.contract import Channel
from lumina.bridge.transport import LocalBridge
from lumina.host import system
from lumina.host.ollama import Emit, OllamaGateway
from lumina.host.stores import ProjectStore, SessionStore, SettingsStore
from lumina.host.web import fetch_page, write_cache
from lumina.plugins.manager import PluginManager

if TYPE_CHECKING:
    import httpx

    from lumina.config.models import AssistantConfig
    from lumina.config.settings import LuminaSettings

logger = logging.getLogger(__name__)


def assistant_defaults(config: AssistantConfig) -> dict[str, Any]:
    """Stored-settings defaults, in the UI's camelCase keys."""
    return {
        "ollamaUrl": config.ollama_url,
        "defaultModel": config.default_model,
        "contextLength": config.context_length,
        "temperature": config.temperature,
        "systemPrompt": config.system_prompt,
    }


def _require(payload: Any, *keys: str) -> dict[str, Any]:
    if not isinstance(payload, dict):
        msg = f"Expected an object with {', '.join(keys)}"
        raise ValueError(msg)
    missing = [k for k in keys if payload.get(k) is None]
    if missing:
        msg = f"Missing field(s): {', '.join(missing)}"
        raise ValueError(msg)
    return payload


class HostRouter:
    """Request and fire handlers for one host data directory."""

    def __init__(
        self,
        data_dir: Path,
        *,
        defaults: dict[str, Any],
        plugin_manager: PluginManager,
        emit: Emit,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.data_dir = data_dir
        self.settings = SettingsStore(data_dir / "settings.json", defaults)
        self.sessions = SessionStore(data_dir / "sessions")
        self.projects = ProjectStore(data_dir / "projects")
        self.export_dir = data_dir / "exports"
        self.cache_dir = data_dir / "cache"
        self._pm = plugin_manager
        self._http_transport = http_transport
        self.gateway = OllamaGateway(
            emit, self.settings.load, transport=http_transport, cache_dir=self.cache_dir
        )

    def register(self, bridge: LocalBridge) -> None:
        handlers = {
            Channel.OLLAMA_STATUS: self.gateway.status,
            Channel.OLLAMA_MODELS: self.gateway.models,
            Channel.SETTINGS_LOAD: self.load_settings,
            Channel.SETTINGS_SAVE: self.save_settings,
            Channel.SYSTEM_SAVE_FILE: self.save_file,
            Channel.PROJECT_LIST: self.list_projects,
            Channel.PROJECT_CREATE: self.create_project,
            Channel.PROJECT_ADD_FILES: self.add_files,
            Channel.PROJECT_ADD_URL: self.add_url,
            Channel.PROJECT_UPDATE_SETTINGS: self.update_project_settings,
            Channel.PROJECT_DELETE: self.delete_project,
            Channel.SESSION_SAVE: self.save_session,
            Channel.SESSION_LIST: self.list_sessions,
            Channel.SESSION_LOAD: self.load_session,
            Channel.SESSION_DELETE: self.delete_session,
            Channel.SESSION_RENAME: self.rename_session,
            Channel.GIT_STATUS: self.git_status,
            Channel.GIT_DIFF: self.git_diff,
            Channel.COMMAND_RUN: self.run_action,
            Channel.OS_OPEN_PATH: self.open_path,
            Channel.OS_OPEN_APP: self.open_app,
        }
        for channel, handler in handlers.items():
            bridge.handle(channel, handler)
        bridge.on(Channel.OLLAMA_STREAM_PROMPT, self.gateway.stream_prompt)
        logger.debug("Registered %d host handlers", len(handlers) + 1)

    # --- Settings ---

    async def load_settings(self, _payload: Any = None) -> dict[str, Any]:
        return await asyncio.to_thread(self.settings.load)

    async def save_settings(self, payload: Any) -> bool:
        return await asyncio.to_thread(self.settings.save, payload)

    async def save_file(self, payload: Any) -> str:
        p = _require(payload, "content")
        return await asyncio.to_thread(
            system.save_file, self.export_dir, str(p["content"]), p.get("filename")
        )

    # --- Projects ---

    async def list_projects(self, _payload: Any = None) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self.projects.list)

    async def create_project(self, payload: Any) -> dict[str, Any]:
        p = _require(payload, "id", "name")
        return await asyncio.to_thread(
            self.projects.create, p["id"], str(p["name"]), root=p.get("root")
        )

    async def add_files(self, payload: Any) -> list[dict[str, Any]]:
        p = _require(payload, "projectId", "paths")
        return await asyncio.to_thread(self.projects.add_files, p["projectId"], list(p["paths"]))

    async def add_url(self, payload: Any) -> list[dict[str, Any]]:
        p = _require(payload, "projectId", "url")
        project_id, url = p["projectId"], str(p["url"])
        await asyncio.to_thread(self.projects.get, project_id)
        page = await fetch_page(url, transport=self._http_transport)
        cache_file = await asyncio.to_thread(write_cache, self.cache_dir, page.text)
        logger.info("Cached %s as %s", url, cache_file)
        return await asyncio.to_thread(
            self.projects.add_url, project_id, url, name=page.title, cache_file=cache_file
        )

    async def update_project_settings(self, payload: Any) -> dict[str, Any] | None:
        p = _require(payload, "id")
        return await asyncio.to_thread(
            self.projects.update_settings, p["id"], str(p.get("systemPrompt") or "")
        )

    async def delete_project(self, project_id: Any) -> bool:
        return await asyncio.to_thread(self.projects.delete, project_id)

    # --- Sessions ---

    async def save_session(self, payload: Any) -> bool:
        p = _require(payload, "id")
        return await asyncio.to_thread(
            self.sessions.save,
            p["id"],
            title=p.get("title"),
            messages=list(p.get("messages") or []),
            date=p.get("date"),
        )

    async def list_sessions(self, _payload: Any = None) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self.sessions.list)

    async def load_session(self, session_id: Any) -> dict[str, Any]:
        return await asyncio.to_thread(self.sessions.load, session_id)

    async def delete_session(self, session_id: Any) -> bool:
        return await asyncio.to_thread(self.sessions.delete, session_id)

    async def rename_session(self, payload: Any) -> bool:
        p = _require(payload, "id", "title")
        return await asyncio.to_thread(self.sessions.rename, p["id"], str(p["title"]))

    # --- Git ---

    def _project_root(self, project_id: Any) -> Path:
        root = self.projects.get(project_id).get("root")
        if not root:
            msg = f"Project {project_id} has no root directory"
            raise ValueError(msg)
        return Path(root).expanduser()

    async def git_status(self, project_id: Any) -> dict[str, Any]:
        root = await asyncio.to_thread(self._project_root, project_id)
        return await asyncio.to_thread(system.git_status, root)

    async def git_diff(self, project_id: Any) -> dict[str, Any]:
        root = await asyncio.to_thread(self._project_root, project_id)
        return await asyncio.to_thread(system.git_diff, root)

    # --- Dispatch targets ---

    async def run_action(self, command_id: Any) -> dict[str, Any]:
        if not isinstance(command_id, str) or not command_id:
            msg = "command:run expects a command id"
            raise ValueError(msg)
        result = await asyncio.to_thread(self._pm.run_action, command_id)
        if result is None:
            logger.info("No plugin handled action %s", command_id)
            return {"handled": False, "id": command_id}
        return result

    async def open_path(self, path: Any) -> bool:
        if not isinstance(path, str) or not path:
            msg = "os:openPath expects a path"
            raise ValueError(msg)
        return await asyncio.to_thread(system.open_path, path)

    async def open_app(self, app_name: Any) -> bool:
        return await asyncio.to_thread(system.open_app, str(app_name or ""))


def build_host_bridge(
    settings: LuminaSettings,
    *,
    plugin_manager: PluginManager | None = None,
    http_transport: httpx.AsyncBaseTransport | None = None,
) -> LocalBridge:
    """Create a :class:`LocalBridge` with every host handler registered.

    Without *plugin_manager*, plugins are discovered per ``[plugins]``.
    """
    if plugin_manager is None:
        plugin_manager = PluginManager()
        if settings.plugins.enabled:
            plugin_manager.discover_and_load(local_dir=settings.plugins_dir)

    bridge = LocalBridge(request_timeout=settings.bridge.request_timeout)
    router = HostRouter(
        settings.data_dir,
        defaults=assistant_defaults(settings.assistant),
        plugin_manager=plugin_manager,
        emit=bridge.emit,
        http_transport=http_transport,
    )
    router.register(bridge)
    return bridge
