"""Fixed-cadence request throttle.

Every outbound fetch acquires one permit first. Permits fall on a fixed
tick grid (``1 / rate`` seconds apart). An idle limiter holds at most one
buffered permit, so after a pause the first caller goes straight through and
the next one waits for the following tick.
"""

import asyncio
import math
import time
from typing import Awaitable, Callable, Optional


class RateLimiter:
    """Issues permits at a uniform cadence.

    The limiter is shared by every task of a walk. Waiters are served in
    arrival order. ``acquire()`` never fails, it only delays.
    """

    def __init__(
        self,
        rate: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize limiter.

        Args:
            rate: Permits per second
            clock: Monotonic clock returning seconds
            sleep: Coroutine function used to wait for the next tick
        """
        if not math.isfinite(rate) or rate <= 0:
            raise ValueError("rate must be a finite positive number")
        self._rate = float(rate)
        self._interval = 1.0 / self._rate
        self._clock = clock
        self._sleep = sleep
        self._lock: Optional[asyncio.Lock] = None
        self._next_tick: Optional[float] = None
        self.permits_issued = 0

    @property
    def rate(self) -> float:
        return self._rate

    @property
    def interval(self) -> float:
        return self._interval

    async def acquire(self) -> None:
        """Wait until the next permit is available and take it."""
        if self._lock is None:
            self._lock = asyncio.Lock()

        async with self._lock:
            now = self._clock()

            if self._next_tick is None:
                # First permit is the buffered one
                self._next_tick = now + self._interval
            elif now < self._next_tick:
                await self._sleep(self._next_tick - now)
                self._next_tick += self._interval
            else:
                # Idle: take the buffered permit, realign to the grid
                missed = math.floor((now - self._next_tick) / self._interval) + 1
                self._next_tick += missed * self._interval

            self.permits_issued += 1

    def __repr__(self) -> str:
        return f"RateLimiter(rate={self._rate})"
