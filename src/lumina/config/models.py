"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, lumina.toml only contains overrides.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from lumina.domain.command import DEFAULT_ICON_BASE


class PaletteConfig(BaseModel):
    """[palette] section."""

    model_config = {"frozen": True}

    hotkey: str = "Mod+K"
    registry_path: str | None = None
    icon_base: str = DEFAULT_ICON_BASE


class BridgeConfig(BaseModel):
    """[bridge] section."""

    model_config = {"frozen": True}

    transport: Literal["local", "stdio"] = "local"
    request_timeout: float | None = Field(default=30.0, gt=0)


class AssistantConfig(BaseModel):
    """[assistant] section — defaults for the host's settings file."""

    model_config = {"frozen": True}

    ollama_url: str = "http://127.0.0.1:11434"
    default_model: str = "llama3"
    context_length: int = 8192
    temperature: float = 0.7
    system_prompt: str = ""


class HostConfig(BaseModel):
    """[host] section."""

    model_config = {"frozen": True}

    data_dir: Path = Field(default_factory=lambda: Path.home() / ".lumina")


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    local_dir: str = ".lumina/plugins"
