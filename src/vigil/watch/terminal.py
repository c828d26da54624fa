"""Raw-mode keyboard input for the watch session."""

from __future__ import annotations

import codecs
import contextlib
import logging
import os
import sys
import termios
import tty
from typing import TYPE_CHECKING

import anyio

from vigil.watch import keys

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Iterator
    from typing import TextIO

__all__ = ["TerminalKeys", "split_keys"]

_logger = logging.getLogger(__name__)

_READ_SIZE = 1024


def split_keys(text: str) -> list[str]:
    """Split a chunk read from the terminal into individual keys.

    CSI and SS3 escape sequences (arrow keys and the like) stay whole; every
    other character is its own key, so pasted text containing Enter submits
    only after the preceding characters were typed.
    """
    result = list[str]()
    i = 0
    while i < len(text):
        if text[i] == keys.ESCAPE and text[i + 1 : i + 2] in ("[", "O"):
            end = i + 2
            while end < len(text) and not "\x40" <= text[end] <= "\x7e":
                end += 1
            result.append(text[i : end + 1])
            i = end + 1
        else:
            result.append(text[i])
            i += 1
    return result


class TerminalKeys:
    """Async iterable of keys read from a terminal in raw mode.

    Each item is a single key: one character, or a whole escape sequence such
    as an arrow key. Pasted text arrives one character at a time. The
    terminal is in raw mode only while iteration is in progress.
    """

    _fd: int

    def __init__(self, stream: TextIO | None = None) -> None:
        self._fd = (stream or sys.stdin).fileno()

    @contextlib.contextmanager
    def raw_mode(self) -> Iterator[None]:
        """Put the terminal into raw mode, restoring its settings on exit."""
        saved = termios.tcgetattr(self._fd)
        try:
            tty.setraw(self._fd, termios.TCSANOW)
            # Output post-processing stays on so "\n" still returns the carriage
            attrs = termios.tcgetattr(self._fd)
            attrs[tty.OFLAG] |= termios.OPOST
            termios.tcsetattr(self._fd, termios.TCSANOW, attrs)
            yield
        finally:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, saved)

    async def __aiter__(self) -> AsyncGenerator[str]:
        # Multi-byte characters may be split across reads
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        with self.raw_mode():
            while True:
                await anyio.wait_readable(self._fd)
                data = os.read(self._fd, _READ_SIZE)
                if not data:
                    _logger.debug("Terminal input reached end of file")
                    return
                for key in split_keys(decoder.decode(data)):
                    yield key
