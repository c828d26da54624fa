"""Per-root change listener: index notifications in, context rebuilds out."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from vigil.config.models import GlobalConfig
    from vigil.context import Context
    from vigil.types import CreateContext, IndexChange, IndexSubscription, IsValidPath

__all__ = ["ChangeListener"]

_logger = logging.getLogger(__name__)


class ChangeListener:
    """Turns one root's index changes into a rebuilt Context.

    Events are filtered through the validity predicate first. A batch with no
    relevant event is dropped without touching the session; otherwise the
    root's Context is rebuilt from the new snapshot and handed to
    ``on_context_changed`` together with the root's index.
    """

    _index: int
    _global_config: GlobalConfig
    _is_valid_path: IsValidPath
    _create_context: CreateContext
    _get_context: Callable[[int], Context]
    _on_context_changed: Callable[[int, Context], None]

    def __init__(
        self,
        index: int,
        global_config: GlobalConfig,
        *,
        is_valid_path: IsValidPath,
        create_context: CreateContext,
        get_context: Callable[[int], Context],
        on_context_changed: Callable[[int, Context], None],
    ) -> None:
        self._index = index
        self._global_config = global_config
        self._is_valid_path = is_valid_path
        self._create_context = create_context
        self._get_context = get_context
        self._on_context_changed = on_context_changed

    @property
    def index(self) -> int:
        return self._index

    def handle(self, change: IndexChange) -> bool:
        """Apply one index notification. Returns True if the context was rebuilt."""
        root_config = self._get_context(self._index).config
        relevant = [
            event
            for event in change.events
            if self._is_valid_path(self._global_config, root_config, event["path"])
        ]
        if not relevant:
            _logger.debug(f"Root {self._index}: ignoring {len(change.events)} irrelevant change(s)")
            return False

        _logger.debug(f"Root {self._index}: {len(relevant)} relevant change(s)")
        context = self._create_context(root_config, change.snapshot)
        self._on_context_changed(self._index, context)
        return True

    async def run(self, subscription: IndexSubscription) -> None:
        """Consume the subscription until it ends or the task is cancelled."""
        async for change in subscription:
            self.handle(change)
        _logger.debug(f"Root {self._index}: index subscription ended")
