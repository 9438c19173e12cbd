"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to subcommands via
``@click.pass_obj``.  Builds the bridge and palette on demand and routes
results to stdout/stderr with the right exit code.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Coroutine
from typing import TYPE_CHECKING, Any, TypeVar

import click

from lumina.config.logging import configure_logging
from lumina.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from lumina.bridge.transport import Bridge
    from lumina.config.settings import LuminaSettings
    from lumina.palette.context import PaletteContext
    from lumina.plugins.manager import PluginManager
    from lumina.services.result import ServiceResult

_T = TypeVar("_T")


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Nothing heavy happens at construction, so ``--help`` and ``--version``
    never discover plugins or start a host.
    """

    def __init__(self, settings: LuminaSettings) -> None:
        self.settings = settings
        self._plugin_manager: PluginManager | None = None
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def plugin_manager(self) -> PluginManager:
        """Plugins per ``[plugins]`` (discovered lazily on first access)."""
        if self._plugin_manager is None:
            from lumina.plugins.manager import PluginManager

            self._plugin_manager = PluginManager()
            if self.settings.plugins.enabled:
                self._plugin_manager.discover_and_load(local_dir=self.settings.plugins_dir)
        return self._plugin_manager

    def run(self, coro: Coroutine[Any, Any, _T]) -> _T:
        return asyncio.run(coro)

    def host_argv(self) -> list[str]:
        """Command line for a spawned host that shares this invocation's config."""
        s = self.settings
        argv = [sys.executable, "-m", "lumina"]
        if s.verbose:
            argv.append("-v")
        if s.log_json:
            argv.append("--log-json")
        if s.config_path is not None:
            argv += ["-c", str(s.config_path)]
        argv += ["--data-dir", str(s.data_dir)]
        if not s.plugins.enabled:
            argv.append("--no-plugins")
        return [*argv, "host", "serve"]

    async def open_bridge(self) -> Bridge:
        """Connect to the host: in-process, or a spawned ``host serve``."""
        timeout = self.settings.bridge.request_timeout
        if self.settings.bridge.transport == "stdio":
            from lumina.bridge.stdio import StdioBridge

            return await StdioBridge.spawn(self.host_argv(), request_timeout=timeout)

        from lumina.host.router import build_host_bridge

        return build_host_bridge(self.settings, plugin_manager=self.plugin_manager)

    def build_palette(self, bridge: Bridge | None) -> PaletteContext:
        """An unmounted palette wired to *bridge* and the plugin UI events."""
        from lumina.palette.context import PaletteContext
        from lumina.palette.dispatcher import Dispatcher
        from lumina.palette.hotkey import HotkeyBinding, InputSurface
        from lumina.palette.loader import RegistryLoader
        from lumina.plugins.event_bus import UiEventBus

        palette_cfg = self.settings.palette
        try:
            binding = HotkeyBinding.parse(palette_cfg.hotkey)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="palette.hotkey") from exc

        return PaletteContext(
            RegistryLoader(self.settings.registry_path, icon_base=palette_cfg.icon_base),
            Dispatcher(
                bridge,
                UiEventBus(self.plugin_manager),
                timeout=self.settings.bridge.request_timeout,
            ),
            InputSurface(),
            binding=binding,
        )

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: stdout; warnings to stderr outside JSON mode.
        * Failure: stderr, exit code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
