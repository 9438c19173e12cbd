"""Plugin manager for palette views and host actions.

Plugins are objects carrying ``@hookimpl`` methods named after
:class:`~lumina.plugins.hookspecs.LuminaHookSpec` hooks.  They arrive three
ways: the ``lumina.plugins`` entry-point group, single-file modules in the
local plugins directory, and direct registration (UI relays, tests).

A broken plugin is skipped with a warning and recorded in
:attr:`PluginManager.failures`; it never stops the palette or the host.
"""

from __future__ import annotations

import importlib.util
import logging
import sys
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any

import pluggy

from lumina.plugins.hookspecs import PROJECT_NAME, LuminaHookSpec

ENTRY_POINT_GROUP = "lumina.plugins"
LOCAL_MODULE_PREFIX = "lumina_local_plugin_"

HOOK_NAMES = frozenset(name for name in vars(LuminaHookSpec) if not name.startswith("_"))

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PluginFailure:
    source: str
    error: str


def implements_hooks(obj: object) -> bool:
    """True when *obj* marks at least one lumina hook with ``@hookimpl``."""
    marker = f"{PROJECT_NAME}_impl"
    return any(getattr(getattr(obj, name, None), marker, None) for name in HOOK_NAMES)


class PluginManager:
    """Discovers lumina plugins and exposes their hooks."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(LuminaHookSpec)
        self._failures: list[PluginFailure] = []

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    @property
    def names(self) -> list[str]:
        """Registered plugin names, oldest first."""
        return [name for name, _plugin in self._pm.list_name_plugin()]

    @property
    def failures(self) -> list[PluginFailure]:
        return list(self._failures)

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Load entry-point plugins, then the modules in *local_dir*.

        Returns the names of every registered plugin.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._instantiate_entry_point_classes()
        if local_dir is not None and local_dir.is_dir():
            for py_file in sorted(local_dir.glob("*.py")):
                if not py_file.name.startswith("_"):
                    self._load_local(py_file)
        logger.debug("Plugins loaded: %s", ", ".join(self.names) or "none")
        return self.names

    def register_plugin(self, plugin: object, name: str | None = None) -> str:
        """Register *plugin*; returns the name it was registered under."""
        registered = self._pm.register(plugin, name=name or type(plugin).__name__)
        if registered is None:
            msg = f"Plugin {name or type(plugin).__name__!r} is blocked"
            raise ValueError(msg)
        logger.debug("Registered plugin: %s", registered)
        return registered

    def attach(self, plugin: object, name: str) -> Callable[[], None]:
        """Register *plugin* until the returned release is called.  Release is idempotent."""
        self.register_plugin(plugin, name)

        def release() -> None:
            if self._pm.is_registered(plugin):
                self._pm.unregister(plugin)

        return release

    def is_registered(self, plugin: object) -> bool:
        return self._pm.is_registered(plugin)

    def run_action(self, command_id: str) -> dict[str, Any] | None:
        """First plugin result for a ``command:run`` id, or None when unclaimed."""
        return self._pm.hook.run_action(command_id=command_id)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _instantiate_entry_point_classes(self) -> None:
        # Entry points may name a class; its hookimpls need an instance.
        for name, plugin in list(self._pm.list_name_plugin()):
            if not isinstance(plugin, type) or not implements_hooks(plugin):
                continue
            self._pm.unregister(plugin)
            try:
                self._pm.register(plugin(), name=name)
            except Exception as exc:
                self._fail(f"entry point {name}", exc)

    def _load_local(self, py_file: Path) -> None:
        module = self._import_file(py_file)
        if module is None:
            return
        for cls in _plugin_classes(module):
            try:
                self.register_plugin(cls(), name=f"local:{py_file.stem}.{cls.__name__}")
            except Exception as exc:
                self._fail(f"{py_file.name}:{cls.__name__}", exc)

    def _import_file(self, py_file: Path) -> ModuleType | None:
        module_name = f"{LOCAL_MODULE_PREFIX}{py_file.stem}"
        spec = importlib.util.spec_from_file_location(module_name, py_file)
        if spec is None or spec.loader is None:
            self._fail(py_file.name, ImportError("no module spec"))
            return None
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as exc:
            sys.modules.pop(module_name, None)
            self._fail(py_file.name, exc)
            return None
        return module

    def _fail(self, source: str, exc: BaseException) -> None:
        logger.warning("Skipping plugin %s: %s", source, exc, exc_info=True)
        self._failures.append(PluginFailure(source, f"{type(exc).__name__}: {exc}"))


def _plugin_classes(module: ModuleType) -> Iterator[type]:
    for obj in vars(module).values():
        if isinstance(obj, type) and obj.__module__ == module.__name__ and implements_hooks(obj):
            yield obj
