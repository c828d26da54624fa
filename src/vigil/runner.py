"""Default test-run collaborator: runs the configured command as a subprocess."""

from __future__ import annotations

import logging
import pathlib
import re
import subprocess
from typing import TYPE_CHECKING

import anyio
import anyio.to_thread
from anyio.streams.text import TextReceiveStream

from vigil import git
from vigil.exceptions import TestCommandError
from vigil.search import SearchSource
from vigil.types import RunResults, SnapshotSummary, TestFileResult, UpdateSnapshot

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from typing import TextIO

    from anyio.abc import Process

    from vigil.config.models import GlobalConfig
    from vigil.context import Context
    from vigil.types import CreateSearchSource, RunRequest
    from vigil.watch.cancellation import CancellationToken

__all__ = ["CommandRunner", "OutputParser", "empty_results"]

logger = logging.getLogger(__name__)

# "tests/test_foo.py::test_bar PASSED [ 50%]" as printed by pytest -v
_RESULT_LINE = re.compile(
    r"^(?P<path>[^\s:]+)::(?P<name>\S+)\s+(?P<outcome>PASSED|FAILED|ERROR|SKIPPED|XFAIL|XPASS)\b"
)
_SNAPSHOT_FAILURE = re.compile(r"\b(\d+) snapshots? failed", re.IGNORECASE)
_FAILED_OUTCOMES = frozenset({"FAILED", "ERROR"})

COVERAGE_REPORT_DIR = "html"


def empty_results() -> RunResults:
    return RunResults(snapshot=SnapshotSummary(failure=False), test_results=[])


class OutputParser:
    """Accumulates per-file results from pytest's verbose output, line by line."""

    _outcomes: dict[str, list[tuple[str, str]]]
    _snapshot_failure: bool

    def __init__(self) -> None:
        self._outcomes = dict[str, list[tuple[str, str]]]()
        self._snapshot_failure = False

    def feed(self, line: str) -> None:
        line = line.strip()
        if not line:
            return
        match = _RESULT_LINE.match(line)
        if match:
            self._outcomes.setdefault(match["path"], []).append((match["name"], match["outcome"]))
            return
        snapshot = _SNAPSHOT_FAILURE.search(line)
        if snapshot and int(snapshot.group(1)) > 0:
            self._snapshot_failure = True

    def results(self) -> RunResults:
        test_results = [
            TestFileResult(
                path=path,
                passed=all(outcome not in _FAILED_OUTCOMES for _, outcome in outcomes),
                test_names=[name for name, _ in outcomes],
            )
            for path, outcomes in self._outcomes.items()
        ]
        return RunResults(
            snapshot=SnapshotSummary(failure=self._snapshot_failure),
            test_results=test_results,
        )


class CommandRunner:
    """Runs ``config.test_command`` against the tests selected by a request.

    Test selection mirrors the watch modes: a path pattern selects matching
    test files, "only changed" selects tests related to files git reports as
    changed, and anything else passes no file arguments so the command runs
    its whole suite.

    The name filter is handed to the command with ``name_pattern_flag``. For
    pytest that is ``-k``, which takes a keyword expression rather than a
    regex: plain substrings select the same tests the name prompt counts,
    while regex syntax such as ``^test_a`` or ``foo|bar`` is rejected by
    pytest as a usage error.
    """

    _poll_interval: float
    _changed_files: Callable[[pathlib.Path], list[pathlib.Path] | None]
    _create_search_source: CreateSearchSource
    _extra_args: tuple[str, ...]
    _name_pattern_flag: str
    _update_snapshot_flag: str

    def __init__(
        self,
        *,
        poll_interval: float = 0.1,
        changed_files: Callable[[pathlib.Path], list[pathlib.Path] | None] = git.changed_files,
        create_search_source: CreateSearchSource = SearchSource,
        extra_args: Sequence[str] = ("-v",),
        name_pattern_flag: str = "-k",
        update_snapshot_flag: str = "--snapshot-update",
    ) -> None:
        self._poll_interval = poll_interval
        self._changed_files = changed_files
        self._create_search_source = create_search_source
        self._extra_args = tuple(extra_args)
        self._name_pattern_flag = name_pattern_flag
        self._update_snapshot_flag = update_snapshot_flag

    def select_tests(
        self,
        config: GlobalConfig,
        contexts: Sequence[Context],
        request: RunRequest,
    ) -> list[pathlib.Path] | None:
        """Test files to pass to the command, or None to run everything."""
        sources = [self._create_search_source(context) for context in contexts]

        if request.test_path_pattern:
            selected = set[pathlib.Path]()
            for source in sources:
                selected.update(source.find_matching_tests(request.test_path_pattern))
            return sorted(selected)

        if not request.only_changed:
            return None
        if not config.scm_enabled:
            logger.debug("Source control disabled, running all tests")
            return None

        selected = set[pathlib.Path]()
        for source in sources:
            changed = self._changed_files(source.context.config.root_dir)
            if changed is None:
                logger.debug(f"No git repository for {source.context.config.root_dir}")
                return None
            selected.update(source.find_related_tests(changed))
        return sorted(selected)

    def build_command(
        self,
        config: GlobalConfig,
        request: RunRequest,
        tests: Sequence[pathlib.Path] | None,
    ) -> list[str]:
        command = [*config.test_command]
        command.extend(arg for arg in self._extra_args if arg not in command)
        if request.test_name_pattern:
            command.extend([self._name_pattern_flag, request.test_name_pattern])
        if config.update_snapshot == UpdateSnapshot.ALL:
            command.append(self._update_snapshot_flag)
        if config.collect_coverage:
            report_dir = config.resolved_coverage_directory / COVERAGE_REPORT_DIR
            command.extend([f"--cov={config.root_dir}", f"--cov-report=html:{report_dir}"])
        if tests:
            command.extend(str(test) for test in tests)
        return command

    async def __call__(
        self,
        config: GlobalConfig,
        contexts: Sequence[Context],
        request: RunRequest,
        output: TextIO,
        token: CancellationToken,
        on_repeat: Callable[[], None],
        on_complete: Callable[[RunResults], None],
    ) -> None:
        # Selection hashes the working tree and globs every indexed file
        tests = await anyio.to_thread.run_sync(self.select_tests, config, contexts, request)
        if token.interrupted:
            output.write("\nTest run interrupted.\n")
            output.flush()
            on_complete(empty_results())
            return
        if tests is not None and not tests:
            if request.test_path_pattern:
                output.write(f"\nNo tests found matching /{request.test_path_pattern}/\n")
            else:
                output.write("\nNo tests found related to files changed since last commit.\n")
            output.flush()
            on_complete(empty_results())
            return

        command = self.build_command(config, request, tests)
        logger.debug(f"Running: {' '.join(command)}")
        try:
            process = await anyio.open_process(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                cwd=config.root_dir,
            )
        except OSError as e:
            raise TestCommandError(f"Could not start test command {command[0]!r}: {e}") from e

        parser = OutputParser()
        async with process, anyio.create_task_group() as tg:
            tg.start_soon(self._watch_token, token, process)
            await self._forward_output(process, output, parser)
            returncode = await process.wait()
            tg.cancel_scope.cancel()

        if token.interrupted:
            output.write("\nTest run interrupted.\n")
            output.flush()
        else:
            logger.debug(f"Test command exited with status {returncode}")
        on_complete(parser.results())

    async def _forward_output(self, process: Process, output: TextIO, parser: OutputParser) -> None:
        if process.stdout is None:
            return
        pending = ""
        async for chunk in TextReceiveStream(process.stdout, errors="replace"):
            output.write(chunk)
            output.flush()
            pending += chunk
            *lines, pending = pending.split("\n")
            for line in lines:
                parser.feed(line)
        parser.feed(pending)

    async def _watch_token(self, token: CancellationToken, process: Process) -> None:
        while process.returncode is None:
            if token.interrupted:
                logger.debug(f"Terminating test process {process.pid}")
                process.terminate()
                return
            await anyio.sleep(self._poll_interval)
