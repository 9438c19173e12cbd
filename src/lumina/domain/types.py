"""Command variant and UI event enums."""

from __future__ import annotations

from enum import StrEnum


class CommandType(StrEnum):
    """Recognised command type tags. Any other tag dispatches as a no-op."""

    SYSTEM = "system"
    AI = "ai"
    ACTION = "action"
    FILE = "file"


class UiEvent(StrEnum):
    """Closed set of in-process UI events published by the dispatcher.

    Each value is also the name of a pluggy hookspec in
    :mod:`lumina.plugins.hookspecs`.
    """

    OPEN_SETTINGS = "open_settings"
    OPEN_AI = "open_ai"
    RELOAD_UI = "reload_ui"


class Route(StrEnum):
    """Execution path chosen by the dispatcher for a command."""

    INLINE = "inline"
    SYSTEM = "system"
    UI_EVENT = "ui_event"
    BRIDGE = "bridge"
    NOOP = "noop"


# System command ids with a host-local effect.
SYSTEM_EFFECTS: dict[str, UiEvent] = {
    "reload": UiEvent.RELOAD_UI,
    "settings": UiEvent.OPEN_SETTINGS,
}
