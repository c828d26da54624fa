from __future__ import annotations

import dataclasses
import enum
from typing import TYPE_CHECKING, Literal, NamedTuple, Protocol, TypedDict

if TYPE_CHECKING:
    import pathlib
    from collections.abc import AsyncIterator, Callable, Sequence
    from typing import TextIO

    from vigil.config.models import GlobalConfig, RootConfig
    from vigil.context import Context
    from vigil.search import SearchSource
    from vigil.watch.cancellation import CancellationToken

__all__ = [
    "WatchMode",
    "UpdateSnapshot",
    "RunRequest",
    "ConfigOverrides",
    "ChangeType",
    "ChangeEvent",
    "IndexChange",
    "SnapshotSummary",
    "TestFileResult",
    "RunResults",
    "SearchSourceBinding",
    # Collaborator protocols
    "IndexSubscription",
    "CreateContext",
    "IsValidPath",
    "CreateSearchSource",
    "RunTests",
    "OpenFile",
]


class WatchMode(enum.StrEnum):
    """Which tests a rerun considers.

    WATCH runs tests matching the active filters, or tests related to changed
    files when no filter is set. WATCH_ALL runs everything.
    """

    WATCH = "watch"
    WATCH_ALL = "watch_all"


class UpdateSnapshot(enum.StrEnum):
    """Snapshot update policy for a single run."""

    NONE = "none"
    NEW = "new"
    ALL = "all"


@dataclasses.dataclass(frozen=True)
class RunRequest:
    """Filter and mode selection for the next run.

    Commands never mutate a request; each builds a fresh ``RunRequest`` holding
    the mode and both filters, and the controller swaps it in with a single
    assignment, so mode and filters always change together.
    """

    mode: WatchMode = WatchMode.WATCH
    test_path_pattern: str = ""
    test_name_pattern: str = ""

    @property
    def has_filters(self) -> bool:
        return bool(self.test_path_pattern or self.test_name_pattern)

    @property
    def only_changed(self) -> bool:
        """Explicit mode without filters runs only tests related to changes."""
        return self.mode == WatchMode.WATCH and not self.has_filters


class ConfigOverrides(TypedDict, total=False):
    """Per-run overrides merged on top of the session configuration."""

    update_snapshot: UpdateSnapshot


class ChangeType(enum.StrEnum):
    """Kind of file-system change reported by an index."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


class ChangeEvent(TypedDict):
    """A single changed file reported by an index."""

    type: ChangeType
    path: str


class IndexChange(NamedTuple):
    """Notification from a root's index: what changed and the new file set."""

    events: list[ChangeEvent]
    snapshot: frozenset[pathlib.Path]


class SnapshotSummary(TypedDict):
    """Aggregate snapshot state of a run."""

    failure: bool


class TestFileResult(TypedDict):
    """Outcome of one test file."""

    path: str
    passed: bool
    test_names: list[str]


class RunResults(TypedDict):
    """Aggregated results handed to the completion callback."""

    snapshot: SnapshotSummary
    test_results: list[TestFileResult]


class SearchSourceBinding(NamedTuple):
    """A root's context paired with the search source built from it."""

    context: Context
    search_source: SearchSource


# =============================================================================
# Collaborator protocols
# =============================================================================


class IndexSubscription(Protocol):
    """Per-root stream of index changes."""

    def __aiter__(self) -> AsyncIterator[IndexChange]: ...


class CreateContext(Protocol):
    def __call__(self, config: RootConfig, files: frozenset[pathlib.Path]) -> Context: ...


class IsValidPath(Protocol):
    def __call__(self, global_config: GlobalConfig, config: RootConfig, path: str) -> bool: ...


class CreateSearchSource(Protocol):
    def __call__(self, context: Context) -> SearchSource: ...


class RunTests(Protocol):
    """Executes one test run.

    Implementations must call ``on_complete`` with the aggregated results when
    the run finishes, poll ``token.interrupted`` between units of work, and
    may call ``on_repeat`` to ask for another run. Raising marks the run as
    failed.
    """

    async def __call__(
        self,
        config: GlobalConfig,
        contexts: Sequence[Context],
        request: RunRequest,
        output: TextIO,
        token: CancellationToken,
        on_repeat: Callable[[], None],
        on_complete: Callable[[RunResults], None],
    ) -> None: ...


class OpenFile(Protocol):
    def __call__(self, path: pathlib.Path) -> None: ...
