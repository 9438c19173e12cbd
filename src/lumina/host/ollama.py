"""OllamaGateway — the host half of the assistant channels.

``ollama:status`` and ``ollama:models`` are plain requests against
``/api/tags``.  ``ollama:stream-prompt`` is fire-and-forget: the gateway
posts to ``/api/generate`` with streaming on and pushes every ``response``
fragment to ``ollama:chunk``, then ``"[DONE]"``.  Any failure ends the
stream with a ``"Connection Error: ..."`` message on ``ollama:error``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx

from lumina.bridge.contract import STREAM_DONE, Channel

logger = logging.getLogger(__name__)

DEFAULT_OLLAMA_URL = "http://127.0.0.1:11434"
READING_FILES_NOTICE = "<thinking>Reading project files...</thinking>"

MAX_CONTEXT_FILE_BYTES = 10 * 1024 * 1024
MAX_CONTEXT_CHARS = 80_000
MAX_WEB_CHARS = 15_000
BINARY_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "gif", "exe", "bin", "zip", "iso", "pdf"})

BASE_SYSTEM_PROMPT = """\
You are Lumina.
PROTOCOL:
1. FIRST, output your thought process inside <thinking>...</thinking> tags.
2. SECOND, provide the final answer after the closing tag.
3. NEVER put thoughts inside code blocks.
4. Use <mermaid>...</mermaid> for diagrams."""

Emit = Callable[[Channel, Any], None]
SettingsProvider = Callable[[], dict[str, Any]]


def _number(value: Any, kind: type, default: float) -> Any:
    try:
        return kind(value)
    except (TypeError, ValueError):
        return default


def read_context_files(files: list[dict[str, Any]], cache_dir: Path | None = None) -> str:
    """Concatenate readable text files into one context block.

    Entries without a ``path``, binary types, files over
    :data:`MAX_CONTEXT_FILE_BYTES`, and files containing NUL bytes are skipped.
    URL entries are read from their cached page text under *cache_dir*, at
    most :data:`MAX_WEB_CHARS` each, and skipped without one.
    """
    parts: list[str] = []
    for entry in files:
        raw_path = entry.get("path")
        if entry.get("type") == "url":
            web = _read_cached_page(entry, cache_dir)
            if web:
                parts.append(web)
            continue
        if not raw_path:
            continue
        path = Path(raw_path)
        file_type = str(entry.get("type") or path.suffix[1:]).lower()
        if file_type in BINARY_EXTENSIONS:
            continue
        name = entry.get("name") or path.name
        try:
            if path.stat().st_size > MAX_CONTEXT_FILE_BYTES:
                continue
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Read error: %s (%s)", name, exc)
            continue
        if "\0" in content:
            continue
        parts.append(f"\n--- FILE: {name} ---\n{content}\n--- END FILE ---\n")
    return "".join(parts)


def _read_cached_page(entry: dict[str, Any], cache_dir: Path | None) -> str | None:
    cache_file = entry.get("cacheFile")
    if cache_dir is None or not cache_file:
        return None
    path = cache_dir / Path(str(cache_file)).name
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Read error: %s (%s)", cache_file, exc)
        return None
    name = entry.get("name") or entry.get("path")
    return f"\n--- WEB: {name} ---\n{content[:MAX_WEB_CHARS]}\n--- END WEB ---\n"


class OllamaGateway:
    """Talks to an Ollama server over HTTP on behalf of the UI.

    Parameters:
        emit: Pushes a payload onto a subscription channel.
        settings: Returns the current assistant settings (camelCase keys).
        transport: Optional httpx transport, used by tests.
        cache_dir: Directory of cached web pages for URL context entries.
    """

    def __init__(
        self,
        emit: Emit,
        settings: SettingsProvider,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
        cache_dir: Path | None = None,
    ) -> None:
        self._emit = emit
        self._settings = settings
        self._transport = transport
        self._timeout = timeout
        self._cache_dir = cache_dir

    def _client(self, *, streaming: bool = False) -> httpx.AsyncClient:
        timeout = httpx.Timeout(self._timeout, read=None) if streaming else self._timeout
        return httpx.AsyncClient(transport=self._transport, timeout=timeout)

    @staticmethod
    def _base_url(url: str | None) -> str:
        return (url or DEFAULT_OLLAMA_URL).rstrip("/")

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def status(self, url: str | None = None) -> bool:
        """True when the server answers ``/api/tags`` successfully."""
        try:
            async with self._client() as client:
                response = await client.get(f"{self._base_url(url)}/api/tags")
        except httpx.HTTPError as exc:
            logger.debug("Ollama status check failed: %s", exc)
            return False
        return response.is_success

    async def models(self, url: str | None = None) -> list[str]:
        """Installed model names, or ``[]`` when the server is unreachable."""
        try:
            async with self._client() as client:
                response = await client.get(f"{self._base_url(url)}/api/tags")
                response.raise_for_status()
                data = response.json()
            return [m["name"] for m in data.get("models", [])]
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.debug("Ollama model listing failed: %s", exc)
            return []

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    async def stream_prompt(self, payload: dict[str, Any] | None) -> None:
        """Run one streamed completion.  Never raises; failures go to ``ollama:error``."""
        try:
            await self._stream(payload or {})
        except Exception as exc:
            logger.warning("Assistant stream failed: %s", exc)
            self._emit(Channel.OLLAMA_ERROR, f"Connection Error: {exc}")

    async def _stream(self, payload: dict[str, Any]) -> None:
        config = payload.get("settings") or await asyncio.to_thread(self._settings)
        prompt = await self.build_prompt(payload, config)
        body = {
            "model": payload.get("model") or config.get("defaultModel"),
            "prompt": prompt,
            "stream": True,
            "options": {
                "num_ctx": _number(config.get("contextLength"), int, 8192),
                "temperature": _number(config.get("temperature"), float, 0.7),
            },
        }
        url = f"{self._base_url(config.get('ollamaUrl'))}/api/generate"
        logger.debug("Streaming %s from %s", body["model"], url)

        async with self._client(streaming=True) as client:
            async with client.stream("POST", url, json=body) as response:
                response.raise_for_status()
                async for line in response.aiter_lines():
                    if not line.strip():
                        continue
                    try:
                        data = json.loads(line)
                    except json.JSONDecodeError:
                        logger.debug("Skipping malformed stream line: %r", line)
                        continue
                    if data.get("response"):
                        self._emit(Channel.OLLAMA_CHUNK, data["response"])
                    if data.get("done"):
                        self._emit(Channel.OLLAMA_CHUNK, STREAM_DONE)

    async def build_prompt(self, payload: dict[str, Any], config: dict[str, Any]) -> str:
        """Assemble system preamble, context files, and the user query."""
        user_system = payload.get("systemPrompt") or config.get("systemPrompt") or ""
        prompt = f"SYSTEM: {BASE_SYSTEM_PROMPT}\n{user_system}\n\n"

        context_files = payload.get("contextFiles") or []
        if context_files:
            self._emit(Channel.OLLAMA_CHUNK, READING_FILES_NOTICE)
            context = await asyncio.to_thread(read_context_files, context_files, self._cache_dir)
            prompt += f"CONTEXT FILES:\n{context[:MAX_CONTEXT_CHARS]}\n\n"

        return prompt + f"USER QUERY: {payload.get('prompt', '')}"
