from __future__ import annotations

from typing import TYPE_CHECKING

import click

from vigil import exceptions
from vigil.cli import decorators as cli_decorators

if TYPE_CHECKING:
    from click.testing import CliRunner

# =============================================================================
# vigil_command Tests
# =============================================================================


def test_vigil_command_creates_click_command() -> None:
    @cli_decorators.vigil_command()
    def my_command() -> None:
        pass

    assert isinstance(my_command, click.Command)


def test_vigil_command_with_name() -> None:
    @cli_decorators.vigil_command("custom-name")
    def my_command() -> None:
        pass

    assert my_command.name == "custom-name"


def test_vigil_command_handles_vigil_error(runner: CliRunner) -> None:
    """VigilError becomes a ClickException carrying the suggestion."""

    @cli_decorators.vigil_command()
    def failing_command() -> None:
        raise exceptions.TestCommandError("Could not start test command 'nope'")

    result = runner.invoke(failing_command)

    assert result.exit_code == 1
    assert "Could not start test command 'nope'" in result.output
    assert "Tip: Set test_command in vigil.yaml or pass --command" in result.output


def test_vigil_command_error_without_suggestion(runner: CliRunner) -> None:
    @cli_decorators.vigil_command()
    def failing_command() -> None:
        raise exceptions.ConfigError("broken")

    result = runner.invoke(failing_command)

    assert result.exit_code == 1
    assert "broken" in result.output
    assert "Tip:" not in result.output


def test_vigil_command_handles_generic_exception(runner: CliRunner) -> None:
    """Unexpected exceptions are reported using repr."""

    @cli_decorators.vigil_command()
    def failing_command() -> None:
        raise ValueError("something went wrong")

    result = runner.invoke(failing_command)

    assert result.exit_code == 1
    assert "ValueError('something went wrong')" in result.output


def test_vigil_command_passes_through_click_exception(runner: CliRunner) -> None:
    @cli_decorators.vigil_command()
    def failing_command() -> None:
        raise click.BadParameter("Custom click error")

    result = runner.invoke(failing_command)

    assert result.exit_code == 2
    assert "Custom click error" in result.output


def test_vigil_command_passes_through_exit(runner: CliRunner) -> None:
    """ctx.exit codes reach the caller untouched."""

    @cli_decorators.vigil_command()
    @click.pass_context
    def exiting_command(ctx: click.Context) -> None:
        ctx.exit(3)

    result = runner.invoke(exiting_command)

    assert result.exit_code == 3


def test_vigil_command_preserves_function_behavior(runner: CliRunner) -> None:
    @cli_decorators.vigil_command()
    @click.argument("name")
    def greet(name: str) -> None:
        click.echo(f"Hello, {name}!")

    result = runner.invoke(greet, ["World"])

    assert result.exit_code == 0
    assert "Hello, World!" in result.output
