"""Tests for the --examples flag on CLI commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from lumina.cli import cli
from lumina.commands._base import format_examples

# (CLI args, expected keywords in output)
EXAMPLES_COMMANDS: list[tuple[list[str], list[str]]] = [
    (["palette", "--examples"], ["lumina palette list", "--no-record"]),
    (["palette", "list", "--examples"], ["--query ai"]),
    (["palette", "run", "--examples"], ["lumina palette run settings"]),
    (["bridge", "--examples"], ["lumina bridge channels", "session:rename"]),
    (["bridge", "channels", "--examples"], ["--kind request"]),
    (["bridge", "call", "--examples"], ["project:create"]),
    (["host", "--examples"], ["host.log"]),
    (["host", "serve", "--examples"], ["lumina host serve"]),
    (["ask", "--examples"], ["--model codellama", "--stream"]),
]


def _examples_id(item: tuple[list[str], list[str]]) -> str:
    args, _ = item
    return "_".join(a for a in args if a != "--examples")


@pytest.mark.parametrize(
    "args,expected_keywords",
    EXAMPLES_COMMANDS,
    ids=[_examples_id(item) for item in EXAMPLES_COMMANDS],
)
def test_examples_flag(
    cli_runner: CliRunner, args: list[str], expected_keywords: list[str]
) -> None:
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0
    assert result.output.startswith("Examples for ")
    for kw in expected_keywords:
        assert kw in result.output, f"Expected '{kw}' in examples output for {args}"


@pytest.mark.parametrize(
    "args",
    [["palette", "--help"], ["palette", "run", "--help"], ["bridge", "call", "--help"]],
)
def test_examples_listed_in_help(cli_runner: CliRunner, args: list[str]) -> None:
    result = cli_runner.invoke(cli, args)
    assert "--examples" in result.output


def test_root_group_without_examples(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--help"])
    assert "--examples" not in result.output


def test_help_points_at_examples(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["bridge", "call", "--help"])
    assert "Run with --examples for sample invocations." in result.output


def test_examples_reindented() -> None:
    raw = "\n      lumina demo a\n\n      # note\n      lumina demo b\n"
    text = format_examples("lumina demo", raw)
    assert text == "Examples for 'lumina demo':\n\n  lumina demo a\n\n  # note\n  lumina demo b"
