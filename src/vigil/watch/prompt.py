from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from vigil import console as console_mod
from vigil.search import compile_pattern
from vigil.types import SearchSourceBinding, TestFileResult
from vigil.watch import keys, usage

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from vigil.console import Console

__all__ = ["PatternPrompt", "Prompt", "TestNamePatternPrompt", "TestPathPatternPrompt"]

_logger = logging.getLogger(__name__)


def _noop(*_args: object) -> None:
    pass


class Prompt:
    """Modal one-line text capture shared by every pattern prompt.

    A single instance is shared so at most one capture is ever active. While
    ``is_entering()`` is true the dispatcher forwards every key to ``put``.
    """

    _entering: bool
    _value: str
    _on_change: Callable[[str], None]
    _on_success: Callable[[str], None]
    _on_cancel: Callable[[], None]

    def __init__(self) -> None:
        self._entering = False
        self._value = ""
        self._on_change = _noop
        self._on_success = _noop
        self._on_cancel = _noop

    @property
    def value(self) -> str:
        return self._value

    def enter(
        self,
        on_change: Callable[[str], None],
        on_success: Callable[[str], None],
        on_cancel: Callable[[], None],
    ) -> None:
        """Start capturing, replacing any capture already in progress."""
        self._entering = True
        self._value = ""
        self._on_change = on_change
        self._on_success = on_success
        self._on_cancel = on_cancel
        self._on_change(self._value)

    def put(self, key: str) -> None:
        """Apply one key to the capture."""
        if not self._entering:
            return

        if key in keys.SUBMIT_KEYS:
            value = self._value.strip()
            on_success = self._on_success
            self._reset()
            on_success(value)
        elif key == keys.ESCAPE:
            on_cancel = self._on_cancel
            self._reset()
            on_cancel()
        elif key in keys.ERASE_KEYS:
            self._value = self._value[:-1]
            self._on_change(self._value)
        elif key in keys.ARROW_KEYS or not keys.is_printable(key):
            _logger.debug(f"Ignoring key {key!r} in pattern mode")
        else:
            self._value += key
            self._on_change(self._value)

    def abort(self) -> None:
        """Drop the capture without calling any callback."""
        self._reset()

    def is_entering(self) -> bool:
        return self._entering

    def _reset(self) -> None:
        self._entering = False
        self._value = ""
        self._on_change = _noop
        self._on_success = _noop
        self._on_cancel = _noop


class PatternPrompt:
    """Draws a pattern prompt and runs the shared Prompt for it."""

    _console: Console
    _prompt: Prompt
    _entity_name: str

    def __init__(self, console: Console, prompt: Prompt, entity_name: str) -> None:
        self._console = console
        self._prompt = prompt
        self._entity_name = entity_name

    def run(
        self,
        on_success: Callable[[str], None],
        on_cancel: Callable[[], None],
        *,
        header: str = "",
    ) -> None:
        """Take over the keyboard until the operator submits or cancels."""
        self._console.write(console_mod.CURSOR_HIDE)
        self._console.clear()
        if header:
            self._console.write(header + "\n")
        color = self._console.use_color
        self._console.write(usage.pattern_mode_usage(self._entity_name, color=color))
        self._console.write(console_mod.CURSOR_SHOW)

        def _submit(pattern: str) -> None:
            self._leave()
            on_success(pattern)

        def _cancel() -> None:
            self._leave()
            on_cancel()

        self._prompt.enter(self._on_change, _submit, _cancel)

    def _on_change(self, pattern: str) -> None:
        line = self._console.color("pattern ", "dim") + f"{usage.ARROW} {pattern}"
        summary = self._match_summary(pattern)
        if summary:
            line += "  " + self._console.color(summary, "dim")
        self._console.write(console_mod.ERASE_LINE + console_mod.CURSOR_LEFT + line)

    def _leave(self) -> None:
        self._console.write(console_mod.CURSOR_SHOW + "\n")

    def _match_summary(self, pattern: str) -> str:
        return ""


class TestPathPatternPrompt(PatternPrompt):
    """Prompt for the filename filter."""

    __test__ = False

    _search_sources: list[SearchSourceBinding]

    def __init__(self, console: Console, prompt: Prompt) -> None:
        super().__init__(console, prompt, "filename")
        self._search_sources = list[SearchSourceBinding]()

    def update_search_sources(self, search_sources: Sequence[SearchSourceBinding]) -> None:
        self._search_sources = list(search_sources)

    def _match_summary(self, pattern: str) -> str:
        if not pattern:
            return ""
        count = sum(
            len(binding.search_source.find_matching_tests(pattern))
            for binding in self._search_sources
        )
        return f"({count} matching test file{'' if count == 1 else 's'})"


class TestNamePatternPrompt(PatternPrompt):
    """Prompt for the test name filter."""

    __test__ = False

    _cached_test_results: list[TestFileResult]

    def __init__(self, console: Console, prompt: Prompt) -> None:
        super().__init__(console, prompt, "test name")
        self._cached_test_results = list[TestFileResult]()

    @property
    def cached_test_results(self) -> list[TestFileResult]:
        return list(self._cached_test_results)

    def update_cached_test_results(self, test_results: Sequence[TestFileResult]) -> None:
        self._cached_test_results = list(test_results)

    def _match_summary(self, pattern: str) -> str:
        if not pattern or not self._cached_test_results:
            return ""
        regex = compile_pattern(pattern)
        count = sum(
            1
            for result in self._cached_test_results
            for name in result["test_names"]
            if regex.search(name)
        )
        return f"({count} matching test{'' if count == 1 else 's'} in last run)"
