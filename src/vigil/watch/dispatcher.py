"""Routes raw keys to either the active prompt or the command table."""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Protocol

from vigil.watch import keys

if TYPE_CHECKING:
    from collections.abc import Callable

    from vigil.watch.prompt import Prompt

__all__ = ["DispatchState", "KeypressDispatcher", "WatchCommands"]

_logger = logging.getLogger(__name__)

# Keys that interrupt an in-flight run instead of acting
INTERRUPT_KEYS = frozenset({keys.Q, keys.ENTER, keys.LINE_FEED, keys.A, keys.O, keys.P, keys.T})


class DispatchState(enum.StrEnum):
    COMMAND = "command"
    CAPTURING = "capturing"


class WatchCommands(Protocol):
    """Operations the dispatcher can trigger on the watch session."""

    @property
    def is_running(self) -> bool: ...

    def quit(self) -> None: ...
    def interrupt(self) -> None: ...
    def rerun(self) -> None: ...
    def update_snapshots(self) -> None: ...
    def run_all(self) -> None: ...
    def run_related(self) -> None: ...
    def open_coverage(self) -> None: ...
    def filter_by_path(self) -> None: ...
    def filter_by_name(self) -> None: ...
    def show_more_usage(self) -> None: ...


class KeypressDispatcher:
    """Fixed key table for watch mode.

    Quit keys always win. While the shared prompt is capturing, every other
    key goes to it uninterpreted. In command mode, interrupt keys only flag
    the current run while one is in flight.
    """

    _prompt: Prompt
    _commands: WatchCommands
    _table: dict[str, Callable[[], None]]

    def __init__(self, prompt: Prompt, commands: WatchCommands) -> None:
        self._prompt = prompt
        self._commands = commands
        self._table = {
            keys.Q: commands.quit,
            keys.ENTER: commands.rerun,
            keys.LINE_FEED: commands.rerun,
            keys.U: commands.update_snapshots,
            keys.A: commands.run_all,
            keys.O: commands.run_related,
            keys.C: commands.open_coverage,
            keys.P: commands.filter_by_path,
            keys.T: commands.filter_by_name,
            keys.W: commands.show_more_usage,
        }

    @property
    def state(self) -> DispatchState:
        if self._prompt.is_entering():
            return DispatchState.CAPTURING
        return DispatchState.COMMAND

    def dispatch(self, key: str) -> None:
        if key in keys.QUIT_KEYS:
            self._commands.quit()
            return

        if self.state == DispatchState.CAPTURING:
            self._prompt.put(key)
            return

        if self._commands.is_running and key in INTERRUPT_KEYS:
            _logger.debug(f"Interrupting current run on key {key!r}")
            self._commands.interrupt()
            return

        action = self._table.get(key)
        if action is None:
            return
        action()
