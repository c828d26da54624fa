from __future__ import annotations

from typing import TYPE_CHECKING

from vigil.console import Console
from vigil.watch.controller import WatchCollaborators, WatchController

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, Iterable, Sequence
    from typing import TextIO

    from vigil.config.models import GlobalConfig
    from vigil.context import Context
    from vigil.types import IndexSubscription, RunRequest

__all__ = ["WatchCollaborators", "WatchController", "watch"]


async def watch(
    config: GlobalConfig,
    contexts: Sequence[Context],
    request: RunRequest,
    output: TextIO,
    subscriptions: Iterable[IndexSubscription],
    keys: AsyncIterable[str] | None = None,
    *,
    collaborators: WatchCollaborators,
) -> int:
    """Serve an interactive watch session, returning its exit status."""
    controller = WatchController(config, contexts, request, Console(output), collaborators)
    return await controller.serve(subscriptions, keys)
