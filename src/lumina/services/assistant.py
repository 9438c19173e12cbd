"""AssistantService — one streamed assistant answer as a ServiceResult.

Subscribes to ``ollama:chunk`` and ``ollama:error`` for the duration of one
request, fires ``ollama:stream-prompt``, and collects chunks until the
``"[DONE]"`` sentinel.  Both subscriptions are released however the stream
ends.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from contextlib import ExitStack
from typing import TYPE_CHECKING, Any

from lumina.bridge.contract import STREAM_DONE
from lumina.bridge.errors import BridgeError
from lumina.services.result import ErrorCode, ServiceError, ServiceResult

if TYPE_CHECKING:
    from lumina.bridge.client import HostClient

logger = logging.getLogger(__name__)

OP = "ask"
DEFAULT_IDLE_TIMEOUT = 120.0


class AssistantStreamError(Exception):
    """The host reported a failure on ``ollama:error``."""


class AssistantService:
    """Ask the host's assistant and wait for the complete answer."""

    def __init__(self, client: HostClient) -> None:
        self._client = client

    async def ask(
        self,
        prompt: str,
        *,
        model: str | None = None,
        context_files: list[dict[str, Any]] | None = None,
        system_prompt: str | None = None,
        settings: dict[str, Any] | None = None,
        on_chunk: Callable[[str], None] | None = None,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
    ) -> ServiceResult:
        """Stream one answer.

        *idle_timeout* bounds the gap between chunks, not the whole answer.
        """
        loop = asyncio.get_running_loop()
        finished: asyncio.Future[None] = loop.create_future()
        chunks: list[str] = []
        progress = 0

        def _on_chunk(payload: Any) -> None:
            nonlocal progress
            if finished.done():
                return
            progress += 1
            text = str(payload)
            if text == STREAM_DONE:
                finished.set_result(None)
                return
            chunks.append(text)
            if on_chunk is not None:
                on_chunk(text)

        def _on_error(payload: Any) -> None:
            if not finished.done():
                finished.set_exception(AssistantStreamError(str(payload)))

        with ExitStack() as stack:
            stack.callback(self._client.on_response_chunk(_on_chunk))
            stack.callback(self._client.on_ai_error(_on_error))
            try:
                self._client.send_prompt(
                    prompt,
                    model=model,
                    context_files=context_files,
                    system_prompt=system_prompt,
                    settings=settings,
                )
                seen = 0
                while not finished.done():
                    await asyncio.wait({finished}, timeout=idle_timeout)
                    if finished.done():
                        break
                    if progress == seen:
                        finished.cancel()
                        return self._failure(
                            ErrorCode.STREAM_TIMEOUT,
                            f"No response from the assistant for {idle_timeout}s",
                            chunks,
                        )
                    seen = progress
                finished.result()
            except (AssistantStreamError, BridgeError) as exc:
                logger.warning("Assistant request failed: %s", exc)
                return self._failure(ErrorCode.ASSISTANT_ERROR, str(exc), chunks)

        response = "".join(chunks)
        logger.debug("Assistant answered with %d chars in %d chunks", len(response), len(chunks))
        return ServiceResult(
            ok=True,
            op=OP,
            data={"response": response, "model": model, "chunks": len(chunks)},
        )

    @staticmethod
    def _failure(code: ErrorCode, message: str, chunks: list[str]) -> ServiceResult:
        return ServiceResult.failure(
            OP, ServiceError(code=code, message=message), data={"partial": "".join(chunks)}
        )
