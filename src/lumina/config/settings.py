"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``LUMINA_*`` prefix, ``__`` for nested sections
  3. TOML file    — ``lumina.toml`` discovered via walk-up
  4. Code defaults — baked into the section models
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from lumina.config.discovery import find_config, project_root_for
from lumina.config.models import (
    AssistantConfig,
    BridgeConfig,
    HostConfig,
    PaletteConfig,
    PluginsConfig,
)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``lumina.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            try:
                self._data = tomllib.loads(toml_path.read_text(encoding="utf-8"))
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# TOML path handed to settings_customise_sources during construction.
_tls = threading.local()


class LuminaSettings(BaseSettings):
    """Settings for the palette, the bridge, and the host process.

    Attributes:
        project_root: Directory of the discovered ``lumina.toml``, or CWD.
            Relative paths in the config resolve against it.
        config_path: The TOML file actually read, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "LUMINA_",
        "env_nested_delimiter": "__",
    }

    project_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    palette: PaletteConfig = Field(default_factory=PaletteConfig)
    bridge: BridgeConfig = Field(default_factory=BridgeConfig)
    assistant: AssistantConfig = Field(default_factory=AssistantConfig)
    host: HostConfig = Field(default_factory=HostConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, getattr(_tls, "toml_path", None)),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        project_root: Path | None = None,
        **cli_flags: Any,
    ) -> LuminaSettings:
        """Construct settings from a CLI invocation.

        An explicit *config_path* that does not exist is ignored, the same
        as when discovery finds nothing.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(project_root)

        resolved_root = project_root
        if resolved_root is None:
            resolved_root = project_root_for(toml_path) if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(project_root=resolved_root, config_path=toml_path, **cli_flags)
        finally:
            _tls.toml_path = None

    def with_overrides(
        self,
        *,
        transport: str | None = None,
        data_dir: str | Path | None = None,
        plugins_enabled: bool | None = None,
    ) -> LuminaSettings:
        """Copy with per-invocation overrides; None keeps the configured value.

        A relative *data_dir* is taken from the working directory, not from
        :attr:`project_root`.
        """
        update: dict[str, Any] = {}
        if transport is not None:
            update["bridge"] = self.bridge.model_copy(update={"transport": transport})
        if data_dir is not None:
            resolved = Path(data_dir).expanduser().absolute()
            update["host"] = self.host.model_copy(update={"data_dir": resolved})
        if plugins_enabled is not None:
            update["plugins"] = self.plugins.model_copy(update={"enabled": plugins_enabled})
        return self.model_copy(update=update) if update else self

    def resolve(self, path: str | Path) -> Path:
        """Resolve *path* against :attr:`project_root` (``~`` expanded)."""
        p = Path(path).expanduser()
        return p if p.is_absolute() else self.project_root / p

    @property
    def registry_path(self) -> Path | None:
        if self.palette.registry_path is None:
            return None
        return self.resolve(self.palette.registry_path)

    @property
    def plugins_dir(self) -> Path:
        return self.resolve(self.plugins.local_dir)

    @property
    def data_dir(self) -> Path:
        return self.resolve(self.host.data_dir)
