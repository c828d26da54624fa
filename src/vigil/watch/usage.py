"""Watch usage banner rendering.

Pure functions of the session state; callers decide where the text goes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from vigil.console import style
from vigil.types import WatchMode

if TYPE_CHECKING:
    from vigil.types import RunRequest

__all__ = ["active_filters", "pattern_mode_usage", "show_toggle_usage_prompt", "usage"]

ARROW = "›"


def _press(key: str, action: str, *, color: bool) -> str:
    return (
        style(f" {ARROW} Press ", "dim", color=color)
        + key
        + style(f" to {action}.", "dim", color=color)
    )


def active_filters(request: RunRequest, *, color: bool = False) -> str:
    """Summary of the active filters, or an empty string when none is set."""
    if not request.has_filters:
        return ""

    filters = list[str]()
    if request.test_path_pattern:
        filters.append(
            style("filename ", "dim", color=color)
            + style(f"/{request.test_path_pattern}/", "yellow", color=color)
        )
    if request.test_name_pattern:
        filters.append(
            style("test name ", "dim", color=color)
            + style(f"/{request.test_name_pattern}/", "yellow", color=color)
        )
    return "\n" + style("Active Filters: ", "bold", color=color) + ", ".join(filters)


def usage(
    request: RunRequest,
    has_snapshot_failure: bool,
    *,
    scm_enabled: bool = True,
    color: bool = False,
    delimiter: str = "\n",
) -> str:
    """Full watch usage banner.

    Contextual hints are included only where they apply. The run-related hint
    needs source control and a selection other than the changed-files default.
    """
    run_related_applies = scm_enabled and (
        request.mode == WatchMode.WATCH_ALL or request.has_filters
    )
    messages = [
        active_filters(request, color=color),
        _press("c", "clear filters", color=color) if request.has_filters else None,
        "\n" + style("Watch Usage", "bold", color=color),
        _press("a", "run all tests", color=color) if request.mode == WatchMode.WATCH else None,
        _press("o", "only run tests related to changed files", color=color)
        if run_related_applies
        else None,
        _press("u", "update failing snapshots", color=color) if has_snapshot_failure else None,
        _press("p", "filter by a filename regex pattern", color=color),
        _press("t", "filter by a test name regex pattern", color=color),
        _press("q", "quit watch mode", color=color),
        _press("c", "open coverage report", color=color),
        _press("Enter", "trigger a test run", color=color),
    ]
    return delimiter.join(message for message in messages if message) + "\n"


def show_toggle_usage_prompt(*, color: bool = False) -> str:
    """One-line hint shown instead of the full banner after the first run."""
    return (
        "\n"
        + style("Watch Usage: ", "bold", color=color)
        + style("Press ", "dim", color=color)
        + "w"
        + style(" to show more.", "dim", color=color)
    )


def pattern_mode_usage(entity_name: str, *, color: bool = False) -> str:
    """Instructions shown while a pattern prompt owns the keyboard."""
    return (
        style("Pattern Mode Usage", "bold", color=color)
        + "\n"
        + _press("Esc", "exit pattern mode", color=color)
        + "\n"
        + _press("Enter", f"filter by a {entity_name} regex pattern", color=color)
        + "\n\n"
    )
