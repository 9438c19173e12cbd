"""Rich Console factory and theme for lumina output.

Consoles render to a StringIO buffer so every renderer keeps the
``render_*() -> str`` contract.  In non-TTY environments (tests, pipes)
Rich disables color codes on its own.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

LUMINA_THEME = Theme(
    {
        "lumina.ok": "bold green",
        "lumina.error": "bold red",
        "lumina.warning": "bold yellow",
        "lumina.op": "bold cyan",
        "lumina.key": "dim",
        "lumina.id": "bold blue",
        "lumina.path": "dim",
        "lumina.label": "bold",
        "lumina.type.system": "magenta",
        "lumina.type.ai": "green",
        "lumina.type.action": "yellow",
        "lumina.type.file": "cyan",
        "lumina.kind.request": "blue",
        "lumina.kind.fire": "yellow",
        "lumina.kind.subscription": "green",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=LUMINA_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for(prefix: str, value: str | None) -> str:
    """Theme style for a command type or channel kind, or ``""``."""
    name = f"lumina.{prefix}.{value}"
    return name if value and name in LUMINA_THEME.styles else ""
