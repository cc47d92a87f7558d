"""Cooperative cancellation for walks.

A :class:`WalkContext` is passed to every traversal call and to the file
callback. Cancelling a context cancels every context derived from it, never
its parent. Traversal checks the flag at well-defined points; nothing is
interrupted mid-request.
"""

import asyncio
import weakref
from typing import Optional


class WalkContext:
    """Cancellation signal threaded through a walk."""

    def __init__(self, parent: Optional["WalkContext"] = None):
        self._cancelled = False
        self._event: Optional[asyncio.Event] = None
        self._children: "weakref.WeakSet[WalkContext]" = weakref.WeakSet()
        self.parent = parent
        if parent is not None:
            parent._children.add(self)
            if parent.cancelled:
                self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Signal cancellation to this context and all derived contexts."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._event is not None:
            self._event.set()
        for child in list(self._children):
            child.cancel()

    def child(self) -> "WalkContext":
        """Derive a context that is cancelled along with this one."""
        return WalkContext(parent=self)

    async def wait(self) -> None:
        """Block until this context is cancelled."""
        if self._event is None:
            self._event = asyncio.Event()
            if self._cancelled:
                self._event.set()
        await self._event.wait()

    async def sleep(self, delay: float) -> bool:
        """Sleep for ``delay`` seconds, waking early on cancellation.

        Returns:
            True if the full delay elapsed, False if cancelled first
        """
        if self._cancelled:
            return False
        if delay <= 0:
            return True
        try:
            await asyncio.wait_for(self.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return True
        return False

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"WalkContext({state})"
