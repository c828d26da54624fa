from __future__ import annotations

from typing import TYPE_CHECKING, override

if TYPE_CHECKING:
    import pathlib


class VigilError(Exception):
    """Base exception for vigil errors."""

    def format_user_message(self) -> str:
        """Format a user-friendly error message."""
        return str(self)

    def get_suggestion(self) -> str | None:
        """Return actionable suggestion for resolving the error."""
        return None


class ConfigError(VigilError):
    """Base class for configuration errors."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when a config value fails validation."""

    @override
    def get_suggestion(self) -> str:
        return "Check vigil.yaml against the documented options"


class CoverageReportNotFoundError(VigilError):
    """Raised when no coverage report directory can be located."""

    _coverage_dir: pathlib.Path

    def __init__(self, coverage_dir: pathlib.Path, reason: str) -> None:
        self._coverage_dir = coverage_dir
        super().__init__(f"No coverage report found in {coverage_dir}: {reason}")

    @property
    def coverage_dir(self) -> pathlib.Path:
        return self._coverage_dir

    @override
    def get_suggestion(self) -> str:
        return "Run the suite with coverage collection enabled before opening the report"

    @override
    def __reduce__(self) -> tuple[type, tuple[pathlib.Path, str]]:
        prefix = f"No coverage report found in {self._coverage_dir}: "
        return (self.__class__, (self._coverage_dir, str(self).removeprefix(prefix)))


class TestCommandError(VigilError):
    """Raised when the configured test command cannot be started."""

    __test__ = False

    @override
    def get_suggestion(self) -> str:
        return "Set test_command in vigil.yaml or pass --command"


class AlreadyInitializedError(VigilError):
    """Raised when vigil.yaml already exists."""

    @override
    def get_suggestion(self) -> str:
        return "Use --force to overwrite it"
