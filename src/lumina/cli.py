"""Root ``lumina`` group.

Output and logging flags apply to every subcommand.  ``--transport``,
``--data-dir`` and ``--no-plugins`` override the matching ``lumina.toml``
keys for one invocation.
"""

from __future__ import annotations

import click

from lumina import __version__
from lumina.commands import register_commands
from lumina.commands._context import AppContext
from lumina.config.settings import LuminaSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="lumina")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging to stderr.")
@click.option("--log-json", is_flag=True, help="Log records as JSON lines on stderr.")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Read this lumina.toml instead of searching for one.",
)
@click.option(
    "--transport",
    type=click.Choice(["local", "stdio"]),
    default=None,
    help="Run the host in-process or spawn 'lumina host serve'.",
)
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Host data directory (settings, sessions, projects).",
)
@click.option("--no-plugins", is_flag=True, help="Skip plugin discovery.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    transport: str | None,
    data_dir: str | None,
    no_plugins: bool,
) -> None:
    """lumina: command palette and host bridge."""
    settings = LuminaSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    ).with_overrides(
        transport=transport,
        data_dir=data_dir,
        plugins_enabled=False if no_plugins else None,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
