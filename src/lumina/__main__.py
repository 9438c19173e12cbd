"""Allow ``python -m lumina`` (used to spawn the stdio host process)."""

from lumina.cli import cli

if __name__ == "__main__":
    cli()
