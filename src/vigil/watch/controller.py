"""Watch session controller.

Owns the session state and arbitrates keystrokes and index changes against
it. Every input source calls back into ``start_run``, which enforces that at
most one run is in flight and hands each run a fresh cancellation token.
"""

from __future__ import annotations

import atexit
import contextlib
import dataclasses
import functools
import itertools
import logging
import pathlib
from typing import TYPE_CHECKING

import anyio
import click

from vigil import console as console_mod
from vigil import context as context_mod
from vigil.exceptions import CoverageReportNotFoundError
from vigil.search import SearchSource
from vigil.types import RunRequest, SearchSourceBinding, UpdateSnapshot, WatchMode
from vigil.watch import usage
from vigil.watch.cancellation import CancellationToken
from vigil.watch.dispatcher import KeypressDispatcher
from vigil.watch.listener import ChangeListener
from vigil.watch.prompt import Prompt, TestNamePatternPrompt, TestPathPatternPrompt

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, Iterable, Sequence

    from anyio.abc import TaskGroup, TaskStatus

    from vigil.config.models import GlobalConfig
    from vigil.console import Console
    from vigil.context import Context
    from vigil.types import (
        ConfigOverrides,
        CreateContext,
        CreateSearchSource,
        IndexSubscription,
        IsValidPath,
        OpenFile,
        RunResults,
        RunTests,
    )

__all__ = ["BannerState", "WatchCollaborators", "WatchController", "launch_file"]

_logger = logging.getLogger(__name__)

COVERAGE_REPORT_NAME = "index.html"


def launch_file(path: pathlib.Path) -> None:
    """Open a file with the platform's default application."""
    click.launch(str(path))


@dataclasses.dataclass
class BannerState:
    """Whether the next banner is the full usage text, and whether it is on screen."""

    should_show_full: bool = True
    is_full_shown: bool = False


@dataclasses.dataclass(frozen=True)
class WatchCollaborators:
    """External services the controller delegates to."""

    run_tests: RunTests
    create_context: CreateContext = context_mod.create_context
    is_valid_path: IsValidPath = context_mod.is_valid_path
    create_search_source: CreateSearchSource = SearchSource
    open_file: OpenFile = launch_file


class WatchController:
    """Interactive watch session over one or more roots."""

    _config: GlobalConfig
    _contexts: list[Context]
    _bindings: list[SearchSourceBinding]
    _request: RunRequest
    _console: Console
    _collaborators: WatchCollaborators
    _prompt: Prompt
    _path_prompt: TestPathPatternPrompt
    _name_prompt: TestNamePatternPrompt
    _dispatcher: KeypressDispatcher
    _is_running: bool
    _has_snapshot_failure: bool
    _banner: BannerState
    _run_ids: itertools.count[int]
    _token: CancellationToken
    _active_run_id: int | None
    _task_group: TaskGroup | None
    _exit_hook_installed: bool
    _exit_code: int | None
    _served: bool

    def __init__(
        self,
        config: GlobalConfig,
        contexts: Sequence[Context],
        request: RunRequest,
        console: Console,
        collaborators: WatchCollaborators,
    ) -> None:
        self._config = config
        self._contexts = list(contexts)
        self._request = request
        self._console = console
        self._collaborators = collaborators
        self._bindings = [
            SearchSourceBinding(context, collaborators.create_search_source(context))
            for context in self._contexts
        ]

        self._prompt = Prompt()
        self._path_prompt = TestPathPatternPrompt(console, self._prompt)
        self._path_prompt.update_search_sources(self._bindings)
        self._name_prompt = TestNamePatternPrompt(console, self._prompt)
        self._dispatcher = KeypressDispatcher(self._prompt, self)

        self._is_running = False
        self._has_snapshot_failure = False
        self._banner = BannerState()
        self._run_ids = itertools.count(1)
        self._token = CancellationToken()
        self._active_run_id = None
        self._task_group = None
        self._exit_hook_installed = False
        self._exit_code = None
        self._served = False

    # =========================================================================
    # Session state
    # =========================================================================

    @property
    def config(self) -> GlobalConfig:
        return self._config

    @property
    def contexts(self) -> list[Context]:
        return list(self._contexts)

    @property
    def search_sources(self) -> list[SearchSourceBinding]:
        return list(self._bindings)

    @property
    def request(self) -> RunRequest:
        return self._request

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def has_snapshot_failure(self) -> bool:
        return self._has_snapshot_failure

    @property
    def banner(self) -> BannerState:
        return self._banner

    @property
    def token(self) -> CancellationToken:
        """The current cancellation token."""
        return self._token

    @property
    def prompt(self) -> Prompt:
        return self._prompt

    @property
    def dispatcher(self) -> KeypressDispatcher:
        return self._dispatcher

    @property
    def name_prompt(self) -> TestNamePatternPrompt:
        return self._name_prompt

    # =========================================================================
    # Runs
    # =========================================================================

    def start_run(self, overrides: ConfigOverrides | None = None) -> None:
        """Start a run unless one is already in flight.

        Requests made while a run is in flight are dropped, not queued.
        """
        if self._is_running:
            _logger.debug("Run already in progress, ignoring start request")
            return
        if self._task_group is None:
            raise RuntimeError("WatchController.start_run() called outside serve()")

        run_id = next(self._run_ids)
        self._token = CancellationToken(run_id)
        self._active_run_id = run_id

        self._console.clear()
        self._console.pre_run_message()

        update = dict[str, object](overrides or {})
        update["test_path_pattern"] = self._request.test_path_pattern
        update["test_name_pattern"] = self._request.test_name_pattern
        config = self._config.model_copy(update=update)

        self._is_running = True
        _logger.debug(f"Starting run {run_id} ({self._request})")
        self._task_group.start_soon(
            self._execute, run_id, config, self._contexts, self._request, self._token
        )

    async def _execute(
        self,
        run_id: int,
        config: GlobalConfig,
        contexts: list[Context],
        request: RunRequest,
        token: CancellationToken,
    ) -> None:
        try:
            await self._collaborators.run_tests(
                config,
                contexts,
                request,
                self._console.stream,
                token,
                self.start_run,
                functools.partial(self._on_run_complete, run_id),
            )
        except Exception:
            _logger.exception(f"Test run {run_id} failed")
            if self._active_run_id == run_id:
                self._finish_run(None)
            return

        if self._active_run_id == run_id:
            _logger.debug(f"Run {run_id} returned without reporting results")
            self._finish_run(None)

    def _on_run_complete(self, run_id: int, results: RunResults) -> None:
        if run_id != self._active_run_id:
            _logger.debug(f"Ignoring completion of stale run {run_id}")
            return
        self._finish_run(results)

    def _finish_run(self, results: RunResults | None) -> None:
        self._is_running = False
        self._active_run_id = None
        # The finished run keeps its own token; later interrupts go to this one.
        self._token = CancellationToken()

        if results is not None:
            self._has_snapshot_failure = bool(results["snapshot"]["failure"])

        if self._banner.should_show_full:
            self._console.write(self._usage())
            self._banner.should_show_full = False
            self._banner.is_full_shown = True
        else:
            self._console.write(usage.show_toggle_usage_prompt(color=self._console.use_color))
            self._banner.should_show_full = False
            self._banner.is_full_shown = False

        if results is not None:
            self._name_prompt.update_cached_test_results(results["test_results"])

    def _usage(self) -> str:
        return usage.usage(
            self._request,
            self._has_snapshot_failure,
            scm_enabled=self._config.scm_enabled,
            color=self._console.use_color,
        )

    # =========================================================================
    # Commands
    # =========================================================================

    def quit(self) -> None:
        _logger.debug("Quitting watch mode")
        self._exit_code = 0
        if self._task_group is not None:
            self._task_group.cancel_scope.cancel()

    def interrupt(self) -> None:
        self._token.interrupt()

    def rerun(self) -> None:
        self.start_run()

    def update_snapshots(self) -> None:
        self.start_run({"update_snapshot": UpdateSnapshot.ALL})

    def run_all(self) -> None:
        self._request = RunRequest(mode=WatchMode.WATCH_ALL)
        self.start_run()

    def run_related(self) -> None:
        if not self._config.scm_enabled:
            _logger.debug("Source control disabled, ignoring run-related command")
            return
        self._request = RunRequest(mode=WatchMode.WATCH)
        self.start_run()

    def open_coverage(self) -> None:
        if self._config.collect_coverage:
            try:
                report = self._find_coverage_report()
                _logger.debug(f"Opening coverage report {report}")
                self._collaborators.open_file(report)
            except CoverageReportNotFoundError as e:
                _logger.warning(e.format_user_message())
                self._console.error(e.format_user_message())
            except OSError as e:
                _logger.warning(f"Could not open coverage report: {e}")
                self._console.error(f"Could not open coverage report: {e}")
        self.start_run()

    def _find_coverage_report(self) -> pathlib.Path:
        coverage_dir = self._config.resolved_coverage_directory
        if not coverage_dir.is_dir():
            raise CoverageReportNotFoundError(coverage_dir, "directory does not exist")
        subdirs = sorted(entry for entry in coverage_dir.iterdir() if entry.is_dir())
        if not subdirs:
            raise CoverageReportNotFoundError(coverage_dir, "no report subdirectory")
        return subdirs[0] / COVERAGE_REPORT_NAME

    def filter_by_path(self) -> None:
        self._path_prompt.run(
            self._on_path_pattern,
            self._on_cancel_pattern_prompt,
            header=usage.active_filters(self._request, color=self._console.use_color),
        )

    def filter_by_name(self) -> None:
        self._name_prompt.run(
            self._on_name_pattern,
            self._on_cancel_pattern_prompt,
            header=usage.active_filters(self._request, color=self._console.use_color),
        )

    def _on_path_pattern(self, pattern: str) -> None:
        self._request = RunRequest(mode=WatchMode.WATCH, test_path_pattern=pattern)
        self.start_run()

    def _on_name_pattern(self, pattern: str) -> None:
        self._request = RunRequest(mode=WatchMode.WATCH, test_name_pattern=pattern)
        self.start_run()

    def _on_cancel_pattern_prompt(self) -> None:
        self._console.write(console_mod.CURSOR_HIDE)
        self._console.write(console_mod.CLEAR_SCREEN)
        self._console.write(self._usage())
        self._console.write(console_mod.CURSOR_SHOW)

    def show_more_usage(self) -> None:
        if self._banner.should_show_full or self._banner.is_full_shown:
            return
        self._console.write(console_mod.CURSOR_UP)
        self._console.write(console_mod.ERASE_DOWN)
        self._console.write(self._usage())
        self._banner.is_full_shown = True
        self._banner.should_show_full = False

    # =========================================================================
    # Index changes
    # =========================================================================

    def _get_context(self, index: int) -> Context:
        return self._contexts[index]

    def _on_context_changed(self, index: int, context: Context) -> None:
        contexts = list(self._contexts)
        contexts[index] = context
        self._contexts = contexts

        bindings = list(self._bindings)
        bindings[index] = SearchSourceBinding(
            context, self._collaborators.create_search_source(context)
        )
        self._bindings = bindings
        self._path_prompt.update_search_sources(bindings)

        self._prompt.abort()
        self.start_run()

    def make_listener(self, index: int) -> ChangeListener:
        """Build the change listener for the root at index."""
        return ChangeListener(
            index,
            self._config,
            is_valid_path=self._collaborators.is_valid_path,
            create_context=self._collaborators.create_context,
            get_context=self._get_context,
            on_context_changed=self._on_context_changed,
        )

    # =========================================================================
    # Session loop
    # =========================================================================

    def _restore_terminal(self) -> None:
        if self._prompt.is_entering():
            self._console.write(console_mod.CURSOR_DOWN)
            self._console.write(console_mod.ERASE_DOWN)
            self._prompt.abort()

    def _install_exit_hook(self, stack: contextlib.ExitStack) -> None:
        if self._exit_hook_installed:
            return
        atexit.register(self._restore_terminal)
        self._exit_hook_installed = True

        def _remove() -> None:
            atexit.unregister(self._restore_terminal)
            self._exit_hook_installed = False
            self._restore_terminal()

        stack.callback(_remove)

    async def _read_keys(self, keys: AsyncIterable[str]) -> None:
        async for key in keys:
            self._dispatcher.dispatch(key)
        _logger.debug("Key input closed")

    async def serve(
        self,
        subscriptions: Iterable[IndexSubscription] = (),
        keys: AsyncIterable[str] | None = None,
        *,
        task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
    ) -> int:
        """Run the session until quit, returning the exit status.

        Subscriptions are matched to roots by position. Signals
        ``task_status`` once the listeners are installed and the first run
        has been scheduled.
        """
        if self._served:
            raise RuntimeError("WatchController can only be served once")
        self._served = True

        subscriptions = list(subscriptions)
        if len(subscriptions) > len(self._contexts):
            msg = f"Got {len(subscriptions)} index subscriptions for {len(self._contexts)} roots"
            raise ValueError(msg)

        with contextlib.ExitStack() as stack:
            self._install_exit_hook(stack)
            try:
                async with anyio.create_task_group() as tg:
                    self._task_group = tg
                    for index, subscription in enumerate(subscriptions):
                        tg.start_soon(self.make_listener(index).run, subscription)
                    if keys is not None:
                        tg.start_soon(self._read_keys, keys)
                    self.start_run()
                    task_status.started()
                    await anyio.sleep_forever()
            finally:
                self._task_group = None

        return self._exit_code if self._exit_code is not None else 0
