"""Visibility state machine and the global palette hotkey.

:class:`VisibilityController` is the only owner of the ``Hidden``/``Visible``
state.  :class:`HotkeyListener` attaches once to the top-level
:class:`InputSurface` and toggles the controller whenever the binding
matches, suppressing the event's default action.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

logger = logging.getLogger(__name__)


class Visibility(StrEnum):
    HIDDEN = "hidden"
    VISIBLE = "visible"


class VisibilityController:
    """Two-state machine.  ``open``/``close`` set, ``toggle`` flips."""

    def __init__(self) -> None:
        self._state = Visibility.HIDDEN
        self._observers: list[Callable[[Visibility], None]] = []

    @property
    def state(self) -> Visibility:
        return self._state

    @property
    def visible(self) -> bool:
        return self._state is Visibility.VISIBLE

    def open(self) -> None:
        self._set(Visibility.VISIBLE)

    def close(self) -> None:
        self._set(Visibility.HIDDEN)

    def toggle(self) -> Visibility:
        self._set(Visibility.HIDDEN if self.visible else Visibility.VISIBLE)
        return self._state

    def observe(self, observer: Callable[[Visibility], None]) -> Callable[[], None]:
        """Call *observer* with the new state on every change."""
        self._observers.append(observer)

        def release() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return release

    def _set(self, state: Visibility) -> None:
        if state is self._state:
            return
        self._state = state
        for observer in list(self._observers):
            try:
                observer(state)
            except Exception:
                logger.warning("Visibility observer failed", exc_info=True)


@dataclass
class KeyEvent:
    """A platform key-down event."""

    key: str
    meta: bool = False
    ctrl: bool = False
    shift: bool = False
    alt: bool = False
    default_prevented: bool = field(default=False, init=False)

    def prevent_default(self) -> None:
        self.default_prevented = True


KeyListener = Callable[[KeyEvent], None]

# "mod" is the primary command modifier: meta (macOS) or ctrl (elsewhere).
_MODIFIER_ALIASES = {
    "mod": "mod",
    "cmdorctrl": "mod",
    "commandorcontrol": "mod",
    "meta": "meta",
    "cmd": "meta",
    "command": "meta",
    "super": "meta",
    "ctrl": "ctrl",
    "control": "ctrl",
    "shift": "shift",
    "alt": "alt",
    "option": "alt",
}


@dataclass(frozen=True)
class HotkeyBinding:
    """A letter key plus required modifiers."""

    key: str
    modifiers: frozenset[str] = frozenset({"mod"})

    @classmethod
    def parse(cls, spec: str) -> HotkeyBinding:
        """Parse ``"Mod+K"``-style specs.

        Raises:
            ValueError: Empty key or unknown modifier.
        """
        parts = [p.strip() for p in spec.split("+")]
        key = parts[-1].lower()
        if not key:
            msg = f"Hotkey {spec!r} has no key"
            raise ValueError(msg)
        modifiers: set[str] = set()
        for raw in parts[:-1]:
            name = _MODIFIER_ALIASES.get(raw.lower())
            if name is None:
                msg = f"Unknown modifier {raw!r} in hotkey {spec!r}"
                raise ValueError(msg)
            modifiers.add(name)
        return cls(key=key, modifiers=frozenset(modifiers))

    def matches(self, event: KeyEvent) -> bool:
        if event.key.lower() != self.key:
            return False
        for modifier in self.modifiers:
            if modifier == "mod":
                if not (event.meta or event.ctrl):
                    return False
            elif not getattr(event, modifier):
                return False
        return True


DEFAULT_BINDING = HotkeyBinding(key="k")


class InputSurface:
    """Top-level input surface that key listeners attach to."""

    def __init__(self) -> None:
        self._listeners: list[KeyListener] = []

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def add_listener(self, listener: KeyListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: KeyListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def dispatch(self, event: KeyEvent) -> KeyEvent:
        """Deliver *event* to every listener; returns it for inspection."""
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.warning("Key listener failed", exc_info=True)
        return event


class HotkeyListener:
    """Toggles a :class:`VisibilityController` on a matching key event.

    Attached at most once.  Re-attaching to the same surface is a no-op;
    :meth:`detach` is idempotent.
    """

    def __init__(
        self,
        controller: VisibilityController,
        binding: HotkeyBinding = DEFAULT_BINDING,
    ) -> None:
        self._controller = controller
        self._binding = binding
        self._surface: InputSurface | None = None

    @property
    def binding(self) -> HotkeyBinding:
        return self._binding

    @property
    def attached(self) -> bool:
        return self._surface is not None

    def attach(self, surface: InputSurface) -> None:
        if self._surface is surface:
            return
        if self._surface is not None:
            msg = "Hotkey listener is already attached to another surface"
            raise RuntimeError(msg)
        surface.add_listener(self._on_key)
        self._surface = surface

    def detach(self) -> None:
        if self._surface is None:
            return
        self._surface.remove_listener(self._on_key)
        self._surface = None

    def _on_key(self, event: KeyEvent) -> None:
        if not self._binding.matches(event):
            return
        event.prevent_default()
        state = self._controller.toggle()
        logger.debug("Palette hotkey toggled visibility to %s", state)
