from __future__ import annotations

import importlib
import logging
from typing import TypedDict, override

import click

# Command name -> (module, attribute, one-line help shown without importing the module)
_COMMANDS: dict[str, tuple[str, str, str]] = {
    "init": ("vigil.cli.init", "init", "Create a vigil.yaml for this project."),
    "watch": ("vigil.cli.watch", "watch", "Rerun tests interactively as files change."),
}

_LOG_LEVELS = {
    (False, False): logging.INFO,
    (True, False): logging.DEBUG,
    (False, True): logging.WARNING,
}


class CliContext(TypedDict):
    """Options of the top-level group, stored on ``ctx.obj``."""

    verbose: bool
    quiet: bool


class VigilGroup(click.Group):
    """Group that imports a command's module the first time it is used.

    ``vigil watch`` pulls in anyio, watchfiles and dulwich; ``vigil --help``
    and ``vigil init`` should not pay for them.
    """

    @override
    def list_commands(self, ctx: click.Context) -> list[str]:
        return sorted(_COMMANDS)

    @override
    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        entry = _COMMANDS.get(cmd_name)
        if entry is None:
            return None
        module_name, attr, _summary = entry
        return getattr(importlib.import_module(module_name), attr)

    @override
    def format_commands(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        rows = [(name, _COMMANDS[name][2]) for name in self.list_commands(ctx)]
        with formatter.section("Commands"):
            formatter.write_dl(rows)


def _setup_logging(verbose: bool, quiet: bool) -> None:
    logging.basicConfig(level=_LOG_LEVELS[verbose, quiet], format="%(message)s", force=True)


@click.group(cls=VigilGroup)
@click.option("--verbose", "-v", is_flag=True, help="Log debug details of each run")
@click.option("--quiet", "-q", is_flag=True, help="Only log warnings and errors")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool) -> None:
    """Interactive watch mode for your test suite."""
    if verbose and quiet:
        raise click.UsageError("--verbose and --quiet are mutually exclusive")
    ctx.obj = CliContext(verbose=verbose, quiet=quiet)
    _setup_logging(verbose, quiet)


def main() -> None:
    """Console script entry point."""
    cli(prog_name="vigil")
