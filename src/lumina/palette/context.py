"""PaletteContext — the single owner of palette state for one UI session.

Lifecycle::

    async with PaletteContext(loader, dispatcher, surface) as palette:
        await palette.wait_ready()
        result = await palette.run_command(palette.find("reload"))
        if result.ok:
            palette.add_history(palette.find("reload"))

``mount()`` starts the one registry load for this mount and attaches the
hotkey listener.  ``unmount()`` detaches the listener, abandons an
unfinished load, and discards visibility, commands and history.

INVARIANT: Nothing outside this class mutates ``visible``, ``commands`` or
``history``; all changes go through the methods below.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import TYPE_CHECKING, Any

from lumina.domain.command import Command, search_commands
from lumina.palette.history import HISTORY_CAPACITY, HistoryTracker
from lumina.palette.hotkey import (
    DEFAULT_BINDING,
    HotkeyBinding,
    HotkeyListener,
    InputSurface,
    Visibility,
    VisibilityController,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from lumina.palette.dispatcher import Dispatcher
    from lumina.palette.loader import RegistryLoader
    from lumina.services.result import ServiceResult

logger = logging.getLogger(__name__)


class PaletteContext:
    """Compose loader, visibility, dispatcher and history into one state object."""

    def __init__(
        self,
        loader: RegistryLoader,
        dispatcher: Dispatcher,
        surface: InputSurface,
        *,
        binding: HotkeyBinding = DEFAULT_BINDING,
    ) -> None:
        self._loader = loader
        self._dispatcher = dispatcher
        self._surface = surface
        self._visibility = VisibilityController()
        self._listener = HotkeyListener(self._visibility, binding)
        self._history = HistoryTracker(HISTORY_CAPACITY)
        self._commands: tuple[Command, ...] = ()
        self._load_task: asyncio.Task[None] | None = None
        self._mounted = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def mounted(self) -> bool:
        return self._mounted

    async def mount(self) -> None:
        """Start the registry load and attach the hotkey listener.

        Raises:
            RuntimeError: Already mounted.
        """
        if self._mounted:
            msg = "Palette is already mounted"
            raise RuntimeError(msg)
        self._mounted = True
        self._load_task = asyncio.get_running_loop().create_task(self._load())
        self._listener.attach(self._surface)
        logger.debug("Palette mounted")

    async def unmount(self) -> None:
        """Detach the listener and discard all state.  Idempotent."""
        if not self._mounted:
            return
        self._listener.detach()
        task, self._load_task = self._load_task, None
        if task is not None and not task.done():
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        self._visibility.close()
        self._commands = ()
        self._history.clear()
        self._mounted = False
        logger.debug("Palette unmounted")

    async def __aenter__(self) -> PaletteContext:
        await self.mount()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.unmount()

    async def wait_ready(self) -> tuple[Command, ...]:
        """Wait for this mount's registry load; returns the commands."""
        task = self._load_task
        if task is not None:
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
        return self._commands

    async def _load(self) -> None:
        self._commands = tuple(await self._loader.load())

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------

    @property
    def visible(self) -> bool:
        return self._visibility.visible

    @property
    def visibility(self) -> Visibility:
        return self._visibility.state

    def open(self) -> None:
        self._visibility.open()

    def close(self) -> None:
        self._visibility.close()

    def toggle(self) -> Visibility:
        return self._visibility.toggle()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @property
    def commands(self) -> tuple[Command, ...]:
        return self._commands

    def find(self, command_id: str) -> Command | None:
        """First command with *command_id*, in registry order."""
        for command in self._commands:
            if command.id == command_id:
                return command
        return None

    def search(self, query: str) -> list[Command]:
        return search_commands(self._commands, query)

    async def run_command(self, command: Command | Mapping[str, Any] | None) -> ServiceResult:
        return await self._dispatcher.run_command(command)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    @property
    def history(self) -> tuple[Command, ...]:
        return self._history.entries

    def add_history(self, command: Command) -> None:
        self._history.add(command)
