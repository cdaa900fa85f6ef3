"""
Single-Slot Save Scheduler

Mutations are synchronous; saves are not. Rather than spawning one
save task per mutation (and hoping they finish in order), every
mutation hands its snapshot to this scheduler:

- At most one save is in flight
- At most one snapshot waits behind it
- A newer snapshot replaces the waiting one before it starts

So a burst of ten mutations costs at most two writes, and the last
write always carries the latest state.
"""

import asyncio
from typing import Awaitable, Callable, Generic, Optional, TypeVar


T = TypeVar("T")


class SaveScheduler(Generic[T]):
    """Coalesces fire-and-forget saves into a single worker task."""

    def __init__(self, save: Callable[[T], Awaitable[object]]):
        """
        Args:
            save: Coroutine function writing one snapshot.
                  It must handle its own errors.
        """
        self._save = save
        self._pending: Optional[T] = None
        self._has_pending = False
        self._worker: Optional[asyncio.Task] = None

    @property
    def busy(self) -> bool:
        """True while a save is running or waiting."""
        return self._worker is not None and not self._worker.done()

    def schedule(self, snapshot: T) -> None:
        """
        Queue a snapshot for saving without waiting for it.

        Must be called from inside a running event loop.
        """
        self._pending = snapshot
        self._has_pending = True
        if not self.busy:
            self._worker = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        while self._has_pending:
            snapshot = self._pending
            self._pending = None
            self._has_pending = False
            await self._save(snapshot)

    async def flush(self) -> None:
        """Wait until every scheduled snapshot has been written."""
        while self.busy:
            await self._worker
