"""OS integration: exported files, opening paths and apps, git inspection."""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Any

import click

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_NAME = "untitled.txt"


def save_file(export_dir: Path, content: str, filename: str | None = None) -> str:
    """Write *content* to ``export_dir/<basename of filename>``.  Returns the path."""
    name = Path(filename or DEFAULT_EXPORT_NAME).name or DEFAULT_EXPORT_NAME
    export_dir.mkdir(parents=True, exist_ok=True)
    target = export_dir / name
    target.write_text(content, encoding="utf-8")
    logger.debug("Saved %d chars to %s", len(content), target)
    return str(target)


def open_path(path: str) -> bool:
    """Open *path* with the desktop's default handler.

    Raises:
        FileNotFoundError: *path* does not exist.
    """
    target = Path(path).expanduser()
    if not target.exists():
        msg = f"No such file or directory: {target}"
        raise FileNotFoundError(msg)
    click.launch(str(target))
    return True


def _opener_argv(app_name: str) -> list[str]:
    if sys.platform == "darwin":
        return ["open", "-a", app_name]
    if sys.platform == "win32":
        return ["cmd", "/c", "start", "", app_name]
    return [app_name]


def open_app(app_name: str) -> bool:
    """Launch an application by name, detached from this process.

    Raises:
        ValueError: Empty application name.
        OSError: The platform opener could not be started.
    """
    if not app_name or not app_name.strip():
        msg = "Application name is required"
        raise ValueError(msg)
    kwargs: dict[str, Any] = {
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
    }
    if os.name == "posix":
        kwargs["start_new_session"] = True
    subprocess.Popen(_opener_argv(app_name.strip()), **kwargs)
    return True


# ---------------------------------------------------------------------------
# Git
# ---------------------------------------------------------------------------


def _run_git(root: Path, *args: str) -> str:
    """Run a git command in *root*.

    Raises:
        RuntimeError: git is missing or the command failed.
    """
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=root,
            capture_output=True,
            text=True,
            check=True,
        )
    except OSError as exc:
        msg = f"git unavailable: {exc}"
        raise RuntimeError(msg) from exc
    except subprocess.CalledProcessError as exc:
        msg = f"git {args[0]} failed: {(exc.stderr or '').strip() or exc.returncode}"
        raise RuntimeError(msg) from exc
    return result.stdout


def git_status(root: Path) -> dict[str, Any]:
    """Porcelain status of the working tree at *root*."""
    entries = [line for line in _run_git(root, "status", "--porcelain").splitlines() if line]
    return {"root": str(root), "clean": not entries, "entries": entries}


def git_diff(root: Path) -> dict[str, Any]:
    """Unstaged diff of the working tree at *root*."""
    return {"root": str(root), "diff": _run_git(root, "diff")}
