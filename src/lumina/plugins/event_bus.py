"""In-process UI event channel keyed by the closed :class:`UiEvent` set.

Each event is a pluggy hookspec.  Subscribers are hookimpls: plugins found
by :class:`PluginManager`, or callbacks wrapped by :meth:`UiEventBus.subscribe`.

Subscribers run in registration order.  Each one is called on its own so a
failing subscriber neither reaches the publisher nor starves the others.

INVARIANT: Subscriber failures are warnings, never errors.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from lumina.domain.types import UiEvent
from lumina.plugins.hookspecs import hookimpl
from lumina.plugins.manager import PluginManager

if TYPE_CHECKING:
    from lumina.domain.command import Command

logger = logging.getLogger(__name__)


class _OpenSettingsRelay:
    def __init__(self, callback: Callable[[], Any]) -> None:
        self._callback = callback

    @hookimpl
    def open_settings(self) -> None:
        self._callback()


class _OpenAiRelay:
    def __init__(self, callback: Callable[[Command], Any]) -> None:
        self._callback = callback

    @hookimpl
    def open_ai(self, command: Command) -> None:
        self._callback(command)


class _ReloadUiRelay:
    def __init__(self, callback: Callable[[], Any]) -> None:
        self._callback = callback

    @hookimpl
    def reload_ui(self) -> None:
        self._callback()


_RELAYS: dict[UiEvent, type] = {
    UiEvent.OPEN_SETTINGS: _OpenSettingsRelay,
    UiEvent.OPEN_AI: _OpenAiRelay,
    UiEvent.RELOAD_UI: _ReloadUiRelay,
}


def _resolve(event: UiEvent | str) -> UiEvent:
    try:
        return UiEvent(event)
    except ValueError:
        msg = f"Unknown UI event: {event!r}"
        raise ValueError(msg) from None


class UiEventBus:
    """Publish/subscribe over the closed set of UI events."""

    def __init__(self, plugin_manager: PluginManager | None = None) -> None:
        self._pm = plugin_manager or PluginManager()

    @property
    def plugin_manager(self) -> PluginManager:
        return self._pm

    def publish(self, event: UiEvent | str, **payload: Any) -> int:
        """Deliver *event* to every subscriber.  Returns the delivery count.

        Raises:
            ValueError: *event* is not a :class:`UiEvent`.
            TypeError: *payload* does not match the event's hookspec.
        """
        resolved = _resolve(event)
        hook_caller = getattr(self._pm.hook, resolved.value)
        expected = set(hook_caller.spec.argnames) if hook_caller.spec else set()
        if set(payload) != expected:
            msg = f"{resolved} expects {sorted(expected)}, got {sorted(payload)}"
            raise TypeError(msg)

        delivered = 0
        for impl in hook_caller.get_hookimpls():
            try:
                impl.function(*(payload[name] for name in impl.argnames))
            except Exception:
                logger.warning(
                    "UI event %s subscriber %s failed", resolved, impl.plugin_name, exc_info=True
                )
                continue
            delivered += 1
        logger.debug("Published %s to %d subscriber(s)", resolved, delivered)
        return delivered

    def subscribe(self, event: UiEvent | str, callback: Callable[..., Any]) -> Callable[[], None]:
        """Register *callback* for *event*.  Returns an idempotent unsubscribe."""
        resolved = _resolve(event)
        relay = _RELAYS[resolved](callback)
        return self._pm.attach(relay, f"ui:{resolved}:{id(relay):x}")
