from __future__ import annotations

import logging
import pathlib
from typing import TYPE_CHECKING

import click
import pytest

from vigil import cli

if TYPE_CHECKING:
    from click.testing import CliRunner


def test_cli_help_shows_commands(runner: CliRunner) -> None:
    """Help lists every command with its summary."""
    result = runner.invoke(cli.cli, ["--help"])

    assert result.exit_code == 0
    assert "init" in result.output
    assert "watch" in result.output
    assert "Rerun tests interactively as files change." in result.output


@pytest.mark.parametrize("command", ["init", "watch"])
def test_cli_subcommand_help(runner: CliRunner, command: str) -> None:
    result = runner.invoke(cli.cli, [command, "--help"])

    assert result.exit_code == 0


def test_cli_unknown_command(runner: CliRunner) -> None:
    result = runner.invoke(cli.cli, ["frobnicate"])

    assert result.exit_code != 0
    assert "No such command" in result.output


def test_cli_get_command_resolves_lazily() -> None:
    group = cli.cli
    ctx = click.Context(group)

    command = group.get_command(ctx, "watch")

    assert isinstance(command, click.Command)
    assert command.name == "watch"
    assert group.get_command(ctx, "missing") is None


def test_cli_verbose_and_quiet_are_exclusive(runner: CliRunner) -> None:
    result = runner.invoke(cli.cli, ["--verbose", "--quiet", "init", "--help"])

    assert result.exit_code != 0
    assert "mutually exclusive" in result.output


@pytest.mark.parametrize(
    ("flags", "level"),
    [
        ([], logging.INFO),
        (["--verbose"], logging.DEBUG),
        (["-q"], logging.WARNING),
    ],
)
def test_cli_sets_log_level(
    runner: CliRunner, tmp_path: pathlib.Path, flags: list[str], level: int
) -> None:
    with runner.isolated_filesystem(temp_dir=tmp_path):
        result = runner.invoke(cli.cli, [*flags, "init"])

    assert result.exit_code == 0
    assert logging.getLogger().level == level
