"""PaletteService — registry listing and batch dispatch over a mounted palette."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from lumina.services.result import ErrorCode, ServiceError, ServiceResult

if TYPE_CHECKING:
    from lumina.palette.context import PaletteContext

logger = logging.getLogger(__name__)


class PaletteService:
    """Service-layer view of one :class:`PaletteContext`."""

    def __init__(self, palette: PaletteContext) -> None:
        self._palette = palette

    async def list_commands(self, query: str | None = None) -> ServiceResult:
        """All commands in registry order, or the ranked matches for *query*."""
        commands = await self._palette.wait_ready()
        matches = self._palette.search(query) if query else list(commands)
        warnings: list[str] = []
        if not commands:
            warnings.append("Command registry is empty or unavailable")
        return ServiceResult(
            ok=True,
            op="list_commands",
            data={
                "items": [c.to_payload() for c in matches],
                "count": len(matches),
                "query": query,
            },
            warnings=warnings,
        )

    async def run_commands(self, ids: Sequence[str], *, record: bool = True) -> ServiceResult:
        """Dispatch each id in order.

        Successful commands are recorded in history when *record* is set.
        Individual failures become warnings; the result fails only when no
        command succeeded.
        """
        await self._palette.wait_ready()
        items: list[dict[str, Any]] = []
        warnings: list[str] = []

        for command_id in ids:
            command = self._palette.find(command_id)
            if command is None:
                items.append({"id": command_id, "ok": False, "error": "Unknown command"})
                warnings.append(f"{command_id}: unknown command")
                continue

            result = await self._palette.run_command(command)
            item: dict[str, Any] = {"ok": result.ok, **result.data}
            if result.ok:
                if record:
                    self._palette.add_history(command)
            else:
                message = result.error.message if result.error else "failed"
                item["error"] = message
                warnings.append(f"{command_id}: {message}")
            items.append(item)

        succeeded = sum(1 for item in items if item["ok"])
        data = {
            "items": items,
            "count": len(items),
            "succeeded": succeeded,
            "history": [c.id for c in self._palette.history],
        }
        if ids and not succeeded:
            return ServiceResult.failure(
                "run_commands",
                ServiceError(
                    code=ErrorCode.RUN_FAILED,
                    message=f"None of {len(items)} command(s) succeeded",
                    detail={"ids": list(ids)},
                ),
                data=data,
                warnings=warnings,
            )
        return ServiceResult(ok=True, op="run_commands", data=data, warnings=warnings)
