from __future__ import annotations

__all__ = ["CancellationToken"]


class CancellationToken:
    """Advisory interrupt flag for one test run.

    The controller hands a fresh token to every run and keeps exactly one
    current. Interrupting a token only ever affects the run it was issued
    for; once replaced, flipping it again is harmless.
    """

    _run_id: int | None
    _interrupted: bool

    def __init__(self, run_id: int | None = None) -> None:
        self._run_id = run_id
        self._interrupted = False

    @property
    def run_id(self) -> int | None:
        """Run this token was issued for, or None for the idle token."""
        return self._run_id

    @property
    def interrupted(self) -> bool:
        return self._interrupted

    def interrupt(self) -> None:
        """Ask the run to stop. Runners poll ``interrupted`` between work units."""
        self._interrupted = True

    def __repr__(self) -> str:
        return f"CancellationToken(run_id={self._run_id!r}, interrupted={self._interrupted!r})"
