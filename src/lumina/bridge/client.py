"""HostClient — one typed method per bridge channel.

Pure forwarding: payload shapes match the host handlers in
:mod:`lumina.host.router`.  Errors propagate as :class:`BridgeError`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from lumina.bridge.contract import Channel

if TYPE_CHECKING:
    from lumina.bridge.transport import Bridge, StreamCallback, Subscription


class HostClient:
    """Typed façade over a :class:`Bridge`."""

    def __init__(self, bridge: Bridge) -> None:
        self._bridge = bridge

    @property
    def bridge(self) -> Bridge:
        return self._bridge

    # --- Assistant ---

    async def check_status(self, url: str | None = None) -> bool:
        return bool(await self._bridge.invoke(Channel.OLLAMA_STATUS, url))

    async def list_models(self, url: str | None = None) -> list[str]:
        return list(await self._bridge.invoke(Channel.OLLAMA_MODELS, url) or [])

    def send_prompt(
        self,
        prompt: str,
        *,
        model: str | None = None,
        context_files: list[dict[str, Any]] | None = None,
        system_prompt: str | None = None,
        settings: dict[str, Any] | None = None,
        project_id: str | None = None,
    ) -> None:
        """Start a streamed completion.  Output arrives on :meth:`on_response_chunk`."""
        self._bridge.send(
            Channel.OLLAMA_STREAM_PROMPT,
            {
                "prompt": prompt,
                "model": model,
                "contextFiles": context_files or [],
                "systemPrompt": system_prompt,
                "settings": settings,
                "projectId": project_id,
            },
        )

    def on_response_chunk(self, callback: StreamCallback) -> Subscription:
        return self._bridge.subscribe(Channel.OLLAMA_CHUNK, callback)

    def on_ai_error(self, callback: StreamCallback) -> Subscription:
        return self._bridge.subscribe(Channel.OLLAMA_ERROR, callback)

    # --- System ---

    async def load_settings(self) -> dict[str, Any]:
        return dict(await self._bridge.invoke(Channel.SETTINGS_LOAD))

    async def save_settings(self, settings: dict[str, Any]) -> bool:
        return bool(await self._bridge.invoke(Channel.SETTINGS_SAVE, settings))

    async def save_generated_file(self, content: str, filename: str | None = None) -> str:
        return str(
            await self._bridge.invoke(
                Channel.SYSTEM_SAVE_FILE, {"content": content, "filename": filename}
            )
        )

    # --- Projects ---

    async def list_projects(self) -> list[dict[str, Any]]:
        return list(await self._bridge.invoke(Channel.PROJECT_LIST))

    async def create_project(
        self, project_id: str, name: str, *, root: str | None = None
    ) -> dict[str, Any]:
        return await self._bridge.invoke(
            Channel.PROJECT_CREATE, {"id": project_id, "name": name, "root": root}
        )

    async def add_files_to_project(self, project_id: str, paths: list[str]) -> list[dict[str, Any]]:
        return await self._bridge.invoke(
            Channel.PROJECT_ADD_FILES, {"projectId": project_id, "paths": paths}
        )

    async def add_folder_to_project(self, project_id: str) -> Any:
        return await self._bridge.invoke(Channel.PROJECT_ADD_FOLDER, project_id)

    async def add_url_to_project(self, project_id: str, url: str) -> Any:
        return await self._bridge.invoke(
            Channel.PROJECT_ADD_URL, {"projectId": project_id, "url": url}
        )

    async def update_project_settings(
        self, project_id: str, system_prompt: str
    ) -> dict[str, Any] | None:
        return await self._bridge.invoke(
            Channel.PROJECT_UPDATE_SETTINGS, {"id": project_id, "systemPrompt": system_prompt}
        )

    async def delete_project(self, project_id: str) -> bool:
        return bool(await self._bridge.invoke(Channel.PROJECT_DELETE, project_id))

    # --- Sessions ---

    async def save_session(
        self,
        session_id: str,
        *,
        title: str | None,
        messages: list[dict[str, Any]],
        date: str,
    ) -> bool:
        return bool(
            await self._bridge.invoke(
                Channel.SESSION_SAVE,
                {"id": session_id, "title": title, "messages": messages, "date": date},
            )
        )

    async def list_sessions(self) -> list[dict[str, Any]]:
        return list(await self._bridge.invoke(Channel.SESSION_LIST))

    async def load_session(self, session_id: str) -> dict[str, Any]:
        return await self._bridge.invoke(Channel.SESSION_LOAD, session_id)

    async def delete_session(self, session_id: str) -> bool:
        return bool(await self._bridge.invoke(Channel.SESSION_DELETE, session_id))

    async def rename_session(self, session_id: str, title: str) -> bool:
        return bool(
            await self._bridge.invoke(Channel.SESSION_RENAME, {"id": session_id, "title": title})
        )

    # --- Advanced ---

    async def generate_graph(self, project_id: str) -> Any:
        return await self._bridge.invoke(Channel.PROJECT_GENERATE_GRAPH, project_id)

    async def run_deep_research(self, project_id: str, url: str | None = None) -> Any:
        return await self._bridge.invoke(
            Channel.AGENT_DEEP_RESEARCH, {"projectId": project_id, "url": url}
        )

    async def git_status(self, project_id: str) -> dict[str, Any]:
        return await self._bridge.invoke(Channel.GIT_STATUS, project_id)

    async def git_diff(self, project_id: str) -> dict[str, Any]:
        return await self._bridge.invoke(Channel.GIT_DIFF, project_id)

    # --- Dispatch targets ---

    async def run_action(self, command_id: str) -> Any:
        return await self._bridge.invoke(Channel.COMMAND_RUN, command_id)

    async def open_path(self, path: str) -> Any:
        return await self._bridge.invoke(Channel.OS_OPEN_PATH, path)

    async def open_app(self, app_name: str) -> Any:
        return await self._bridge.invoke(Channel.OS_OPEN_APP, app_name)
