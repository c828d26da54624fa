"""File index for a watched root, kept current with watchfiles."""

from __future__ import annotations

import logging
import pathlib
from typing import TYPE_CHECKING

import watchfiles

from vigil import context as context_mod
from vigil.types import ChangeEvent, ChangeType, IndexChange

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Iterable

    import anyio

__all__ = ["FilesystemIndex"]

_logger = logging.getLogger(__name__)

_CHANGE_TYPES = {
    watchfiles.Change.added: ChangeType.ADDED,
    watchfiles.Change.modified: ChangeType.MODIFIED,
    watchfiles.Change.deleted: ChangeType.DELETED,
}


class FilesystemIndex:
    """Index subscription for one root.

    Iterating watches the root and yields an ``IndexChange`` for every batch
    of file changes, carrying the updated set of files under the root.
    """

    _root: pathlib.Path
    _debounce: int
    _files: set[pathlib.Path]
    _stop_event: anyio.Event | None

    def __init__(
        self,
        root: pathlib.Path,
        *,
        debounce: int = 300,
        initial: Iterable[pathlib.Path] | None = None,
        stop_event: anyio.Event | None = None,
    ) -> None:
        """Initialize the index.

        Args:
            root: Directory to watch.
            debounce: Debounce delay in milliseconds passed to watchfiles.
            initial: Starting file set. Scans root when omitted.
            stop_event: Ends iteration when set.
        """
        self._root = root
        self._debounce = debounce
        self._files = set(initial if initial is not None else context_mod.scan_files(root))
        self._stop_event = stop_event

    @property
    def root(self) -> pathlib.Path:
        return self._root

    @property
    def snapshot(self) -> frozenset[pathlib.Path]:
        return frozenset(self._files)

    def apply(self, changes: Iterable[tuple[watchfiles.Change, str]]) -> IndexChange | None:
        """Fold a batch of raw changes into the index.

        Returns None when nothing in the batch concerns a regular file.
        """
        events = list[ChangeEvent]()
        for change, raw_path in sorted(changes, key=lambda item: item[1]):
            path = pathlib.Path(raw_path)
            if change == watchfiles.Change.deleted:
                if path not in self._files:
                    continue
                self._files.discard(path)
            elif path.is_file():
                self._files.add(path)
            else:
                continue
            events.append(ChangeEvent(type=_CHANGE_TYPES[change], path=raw_path))

        if not events:
            return None
        return IndexChange(events=events, snapshot=self.snapshot)

    async def __aiter__(self) -> AsyncGenerator[IndexChange]:
        _logger.debug(f"Watching {self._root} (debounce={self._debounce}ms)")
        async for changes in watchfiles.awatch(
            self._root,
            debounce=self._debounce,
            stop_event=self._stop_event,
        ):
            change = self.apply(changes)
            if change is not None:
                yield change
