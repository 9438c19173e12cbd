"""Locate the config file for an invocation.

``LUMINA_CONFIG`` names the file outright.  Otherwise each directory from
the start upward is checked for ``lumina.toml`` and then for
``.lumina/config.toml``, the directory that also holds local plugins.  The
nearest match wins.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

CONFIG_FILENAME = "lumina.toml"
CONFIG_ENV_VAR = "LUMINA_CONFIG"
STATE_DIRNAME = ".lumina"
STATE_CONFIG = Path(STATE_DIRNAME) / "config.toml"

logger = logging.getLogger(__name__)


def find_config(start: Path | None = None) -> Path | None:
    """Config file for *start* (default: cwd), or None when there is none."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = Path(env_path).expanduser()
        if path.is_file():
            return path
        logger.warning("%s points at a missing file: %s", CONFIG_ENV_VAR, path)
        return None

    origin = (start or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        for candidate in (directory / CONFIG_FILENAME, directory / STATE_CONFIG):
            if candidate.is_file():
                return candidate
    return None


def project_root_for(config_path: Path) -> Path:
    """Directory that relative config paths resolve against.

    For ``<root>/.lumina/config.toml`` that is ``<root>``, not ``.lumina``.
    """
    parent = config_path.parent
    if parent.name == STATE_DIRNAME and config_path.name == STATE_CONFIG.name:
        return parent.parent
    return parent
