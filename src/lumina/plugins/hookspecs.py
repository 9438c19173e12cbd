"""Pluggy hook specifications for lumina.

UI events: one hookspec per :class:`~lumina.domain.types.UiEvent` member.
The dispatcher publishes them; palette views and plugins implement them.
Host actions: ``run_action`` lets host plugins claim ``command:run`` ids.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    from lumina.domain.command import Command

PROJECT_NAME = "lumina"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class LuminaHookSpec:
    """Hook specifications for the lumina plugin system."""

    # --- UI events (closed set, see UiEvent) ---

    @hookspec
    def open_settings(self) -> None:
        """The settings view should open."""

    @hookspec
    def open_ai(self, command: Command) -> None:
        """The assistant view should open for *command*."""

    @hookspec
    def reload_ui(self) -> None:
        """The UI surface should reload."""

    # --- Host actions ---

    @hookspec(firstresult=True)
    def run_action(self, command_id: str) -> dict[str, Any] | None:
        """Execute a host action.  Return a result dict to claim it, or None."""
