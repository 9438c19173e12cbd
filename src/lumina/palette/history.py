"""Bounded, most-recent-first record of dispatched commands.

Memory only.  The dispatcher never records; callers opt in per command.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator

from lumina.domain.command import Command

HISTORY_CAPACITY = 50


class HistoryTracker:
    """Prepend-and-truncate history.  Oldest entries drop past capacity."""

    def __init__(self, capacity: int = HISTORY_CAPACITY) -> None:
        if capacity < 1:
            msg = f"History capacity must be positive, got {capacity}"
            raise ValueError(msg)
        self._capacity = capacity
        self._entries: deque[Command] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def entries(self) -> tuple[Command, ...]:
        return tuple(self._entries)

    def add(self, command: Command) -> None:
        self._entries.appendleft(command)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Command]:
        return iter(tuple(self._entries))
