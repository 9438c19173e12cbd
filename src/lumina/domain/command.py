"""Command — the unit of executable intent in the palette registry.

Raw registry records are normalised by :func:`enrich` into frozen
:class:`Command` values.  Enrichment fills display defaults and derives the
icon path from a symbolic ``iconName``; it is idempotent.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator

from lumina.domain.types import CommandType

DEFAULT_ICON_BASE = "assets/icons"

InlineAction = Callable[[], Awaitable[Any]]


class Command(BaseModel):
    """A typed, displayable command.

    Attributes:
        id: Unique within the registry.
        type: Raw type tag.  Unrecognised tags are kept verbatim.
        action: Zero-argument async callable for inline commands.
        label: Display label (enrichment defaults it to ``id``).
        keywords: Space-separated search keywords.
        examples: Example invocations shown in the palette.
        icon: Resolved icon path.
        icon_name: Symbolic icon name (``iconName`` on the wire).
        path: Target path for ``file`` commands.
    """

    model_config = {
        "frozen": True,
        "extra": "allow",
        "populate_by_name": True,
    }

    id: str
    type: str | None = None
    action: InlineAction | None = Field(default=None, exclude=True)
    label: str = ""
    keywords: str = ""
    examples: tuple[str, ...] = ()
    icon: str | None = None
    icon_name: str | None = Field(default=None, alias="iconName")
    path: str | None = None

    @field_validator("keywords", mode="before")
    @classmethod
    def _normalize_keywords(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            return " ".join(str(v) for v in value)
        return value

    @field_validator("examples", mode="before")
    @classmethod
    def _normalize_examples(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            return (value,)
        return value

    @property
    def command_type(self) -> CommandType | None:
        """The recognised type tag, or None for inline/unknown commands."""
        if self.type is None:
            return None
        try:
            return CommandType(self.type)
        except ValueError:
            return None

    @property
    def is_inline(self) -> bool:
        return self.action is not None

    def to_payload(self) -> dict[str, Any]:
        """Serialise for display or the wire (inline callables are dropped)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def enrich(raw: Mapping[str, Any] | Command, *, icon_base: str = DEFAULT_ICON_BASE) -> Command:
    """Normalise a raw registry record (or re-enrich a Command).

    Derives ``icon`` as ``f"{icon_base}/{iconName}"`` when no icon is given
    and defaults ``label`` to ``id``.  Re-enriching returns an equal Command.
    """
    command = raw if isinstance(raw, Command) else Command.model_validate(dict(raw))

    updates: dict[str, Any] = {}
    if not command.icon and command.icon_name:
        updates["icon"] = f"{icon_base}/{command.icon_name}"
    if not command.label:
        updates["label"] = command.id
    if not updates:
        return command
    return command.model_copy(update=updates)


def search_commands(commands: Iterable[Command], query: str) -> list[Command]:
    """Rank commands against a free-text query.

    Case-insensitive substring match: label scores 10, keywords 5, id 3.
    Commands with no match are dropped; ties keep registry order.
    An empty query returns every command unchanged.
    """
    items = list(commands)
    q = query.lower().strip()
    if not q:
        return items

    scored: list[tuple[int, int, Command]] = []
    for index, command in enumerate(items):
        score = 0
        if q in command.label.lower():
            score += 10
        if q in command.keywords.lower():
            score += 5
        if q in command.id.lower():
            score += 3
        if score:
            scored.append((-score, index, command))

    scored.sort(key=lambda row: (row[0], row[1]))
    return [command for _, _, command in scored]
