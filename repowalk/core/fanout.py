"""Concurrent fan-out across sibling entries.

Spawns one task per child, waits on a result queue sized to the number of
children and returns on the first error. A shared child context is
cancelled on return, so siblings still running stop at their next
checkpoint instead of recursing further.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Iterable, Optional, Set

from ..cancellation import WalkContext


logger = logging.getLogger(__name__)


class FanOut:
    """Structured join over sibling traversal tasks.

    By default the only throttle on outbound requests is the walker's rate
    limiter. ``max_in_flight`` additionally caps how many traversal calls may
    be inside their working section (fetch and file dispatch) at once. Calls
    release their slot before fanning out, so the cap cannot deadlock on
    tree depth.
    """

    def __init__(self, max_in_flight: Optional[int] = None):
        """Initialize fan-out controller.

        Args:
            max_in_flight: Maximum concurrently working traversal calls,
                None for no cap
        """
        if max_in_flight is not None and max_in_flight < 1:
            raise ValueError("max_in_flight must be at least 1")
        self.max_in_flight = max_in_flight
        self._slots: Optional[asyncio.Semaphore] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        """Number of spawned tasks that have not finished yet."""
        # Done callbacks run on a later loop iteration
        return sum(1 for task in self._tasks if not task.done())

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Hold one working slot for the duration of the block."""
        if self.max_in_flight is None:
            yield
            return

        if self._slots is None:
            self._slots = asyncio.Semaphore(self.max_in_flight)
        async with self._slots:
            yield

    async def run(
        self,
        ctx: WalkContext,
        items: Iterable[Any],
        worker: Callable[[WalkContext, Any], Awaitable[None]],
    ) -> None:
        """Run ``worker`` for every item concurrently.

        Args:
            ctx: Caller's context; children get a context derived from it
            items: One task is spawned per item
            worker: Coroutine function called as ``worker(ctx, item)``

        Raises:
            Exception: The first error reported by any worker
        """
        items = list(items)
        if not items:
            return

        shared = ctx.child()
        results: asyncio.Queue = asyncio.Queue(maxsize=len(items))

        async def report(item: Any) -> None:
            try:
                await worker(shared, item)
            except asyncio.CancelledError:
                results.put_nowait(None)
                raise
            except Exception as e:
                results.put_nowait(e)
            else:
                results.put_nowait(None)

        for item in items:
            task = asyncio.ensure_future(report(item))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        try:
            for _ in range(len(items)):
                error = await results.get()
                if error is not None:
                    logger.debug("Sibling failed, cancelling %d siblings", len(items))
                    raise error
        finally:
            shared.cancel()

    async def drain(self) -> None:
        """Wait for every spawned task, including ones left behind by an error."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
