"""Subcommand modules for lumina.

register_commands() keeps command imports in one place.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from lumina.commands.bridge import bridge
    from lumina.commands.host import host
    from lumina.commands.palette import palette

    cli.add_command(palette)
    cli.add_command(bridge)
    cli.add_command(host)

    # --- Standalone commands ---
    from lumina.commands.ask import ask

    cli.add_command(ask)
