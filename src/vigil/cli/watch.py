from __future__ import annotations

import contextlib
import functools
import logging
import shlex
import sys
from typing import Any

import anyio
import click

from vigil import context as context_mod
from vigil import index, project, runner
from vigil.cli import decorators as cli_decorators
from vigil.config import io as config_io
from vigil.types import RunRequest, WatchMode
from vigil.watch import WatchCollaborators
from vigil.watch import watch as serve_watch
from vigil.watch.terminal import TerminalKeys

logger = logging.getLogger(__name__)


@cli_decorators.vigil_command()
@click.argument("patterns", nargs=-1)
@click.option(
    "--all",
    "watch_all",
    is_flag=True,
    help="Rerun every test on change instead of only tests related to changed files.",
)
@click.option(
    "--test-name-pattern",
    "-t",
    default=None,
    help="Only run tests whose name matches this pattern.",
)
@click.option(
    "--coverage/--no-coverage",
    default=None,
    help="Collect coverage and enable the 'c' key to open the report.",
)
@click.option("--no-scm", is_flag=True, default=False, help="Do not consult git for changes.")
@click.option("--command", "test_command", default=None, help="Test command to run.")
@click.pass_context
def watch(
    ctx: click.Context,
    patterns: tuple[str, ...],
    watch_all: bool,
    test_name_pattern: str | None,
    coverage: bool | None,
    no_scm: bool,
    test_command: str | None,
) -> None:
    """Rerun tests interactively as files change.

    PATTERNS narrow the run to test files whose path matches any of them.
    """
    root = project.get_project_root()
    overrides: dict[str, Any] = {
        "collect_coverage": coverage,
        "no_scm": True if no_scm else None,
        "test_command": shlex.split(test_command) if test_command else None,
        "test_path_pattern": "|".join(patterns) or None,
        "test_name_pattern": test_name_pattern,
    }
    config = config_io.load_config(root, overrides)

    request = RunRequest(
        mode=WatchMode.WATCH_ALL if watch_all else WatchMode.WATCH,
        test_path_pattern=config.test_path_pattern,
        test_name_pattern=config.test_name_pattern,
    )
    contexts = [
        context_mod.create_context(root_config, context_mod.scan_files(root_config.root_dir))
        for root_config in config.roots
    ]
    subscriptions = [
        index.FilesystemIndex(
            context.config.root_dir, debounce=config.watch.debounce, initial=context.files
        )
        for context in contexts
    ]
    keys = TerminalKeys(sys.stdin) if sys.stdin.isatty() else None
    if keys is None:
        logger.info("stdin is not a terminal; keyboard commands are disabled")

    collaborators = WatchCollaborators(run_tests=runner.CommandRunner())
    session = functools.partial(
        serve_watch,
        config,
        contexts,
        request,
        sys.stdout,
        subscriptions,
        keys,
        collaborators=collaborators,
    )

    exit_code = 0
    with contextlib.suppress(KeyboardInterrupt):
        exit_code = anyio.run(session)
    ctx.exit(exit_code)
