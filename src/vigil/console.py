"""Plain-text terminal output for watch mode.

Writes go straight to the output stream; styling is ANSI escape codes and is
only applied when the stream is a color-capable terminal.
"""

import os
import sys
from typing import TextIO

# ANSI color codes
_COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "red": "\033[31m",
    "cyan": "\033[36m",
}

# Cursor and screen control sequences
CLEAR = "\033c" if sys.platform == "win32" else "\033[2J\033[3J\033[H"
CLEAR_SCREEN = "\033c"
CURSOR_UP = "\033[1A"
CURSOR_DOWN = "\033[1B"
CURSOR_LEFT = "\033[G"
CURSOR_HIDE = "\033[?25l"
CURSOR_SHOW = "\033[?25h"
ERASE_DOWN = "\033[J"
ERASE_LINE = "\033[2K"

_CI_ENV_VARS = ("CI", "CONTINUOUS_INTEGRATION", "BUILD_NUMBER", "RUN_ID", "GITHUB_ACTIONS")


def is_ci() -> bool:
    """Check whether we are running under a CI service."""
    return any(os.environ.get(name) for name in _CI_ENV_VARS)


def _isatty(stream: TextIO) -> bool:
    if not hasattr(stream, "isatty"):
        return False
    try:
        return stream.isatty()
    except ValueError:
        # Closed stream
        return False


def is_interactive(stream: TextIO) -> bool:
    """A stream is interactive when it is a terminal outside CI."""
    return _isatty(stream) and not is_ci()


def supports_color(stream: TextIO) -> bool:
    """Check if terminal supports color output."""
    if not _isatty(stream):
        return False
    # Check for NO_COLOR environment variable
    return not os.environ.get("NO_COLOR")


def style(text: str, *codes: str, color: bool) -> str:
    """Apply color codes to text."""
    if not color:
        return text
    prefix = "".join(_COLORS.get(c, "") for c in codes)
    return f"{prefix}{text}{_COLORS['reset']}"


class Console:
    """Output sink wrapper used by the watch controller and prompts."""

    stream: TextIO
    use_color: bool
    interactive: bool

    def __init__(
        self,
        stream: TextIO | None = None,
        color: bool | None = None,
        interactive: bool | None = None,
    ) -> None:
        """Initialize console.

        Args:
            stream: Output stream (default: sys.stdout)
            color: Force color on/off (default: auto-detect)
            interactive: Force interactive mode on/off (default: TTY and not CI)
        """
        self.stream = stream or sys.stdout
        self.use_color = color if color is not None else supports_color(self.stream)
        self.interactive = interactive if interactive is not None else is_interactive(self.stream)

    def write(self, text: str) -> None:
        self.stream.write(text)
        self.stream.flush()

    def color(self, text: str, *codes: str) -> str:
        return style(text, *codes, color=self.use_color)

    def clear(self) -> None:
        """Clear the screen, only when attached to an interactive terminal."""
        if self.interactive:
            self.write(CLEAR)

    def pre_run_message(self) -> None:
        """Print the notice shown while a run is being prepared."""
        if self.interactive:
            self.write(self.color("Determining test suites to run...", "bold", "dim"))

    def error(self, message: str) -> None:
        """Print error message."""
        prefix = self.color("Error:", "red", "bold")
        self.write(f"{prefix} {message}\n")
