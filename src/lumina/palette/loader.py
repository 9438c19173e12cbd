"""Registry loader — raw command records in, enriched Commands out.

INVARIANT: ``load()`` never raises.  A missing or malformed registry is
logged and degrades to an empty command list.
"""

from __future__ import annotations

import asyncio
import json
import logging
from importlib import resources
from pathlib import Path

from lumina.domain.command import DEFAULT_ICON_BASE, Command, enrich

logger = logging.getLogger(__name__)

BUILTIN_REGISTRY = "commands.json"


class RegistryLoader:
    """Load the command registry from a JSON array of records.

    Parameters:
        source: Path to a registry file.  ``None`` uses the registry bundled
            in ``lumina/data``.
        icon_base: Base path for icons derived from ``iconName``.
    """

    def __init__(
        self,
        source: Path | str | None = None,
        *,
        icon_base: str = DEFAULT_ICON_BASE,
    ) -> None:
        self._source = Path(source).expanduser() if source else None
        self._icon_base = icon_base

    @property
    def source_name(self) -> str:
        return str(self._source) if self._source else f"<builtin {BUILTIN_REGISTRY}>"

    async def load(self) -> list[Command]:
        """Read and enrich every record, in file order.

        Duplicate ids are kept as-is; registry data is trusted to be unique.
        """
        try:
            text = await asyncio.to_thread(self._read)
            records = json.loads(text)
            if not isinstance(records, list):
                msg = f"registry must be a JSON array, got {type(records).__name__}"
                raise TypeError(msg)
            commands = [enrich(dict(record), icon_base=self._icon_base) for record in records]
        except Exception:
            logger.warning(
                "Command registry %s unavailable; continuing with no commands",
                self.source_name,
                exc_info=True,
            )
            return []
        logger.debug("Loaded %d command(s) from %s", len(commands), self.source_name)
        return commands

    def _read(self) -> str:
        if self._source is None:
            bundled = resources.files("lumina") / "data" / BUILTIN_REGISTRY
            return bundled.read_text(encoding="utf-8")
        return self._source.read_text(encoding="utf-8")
