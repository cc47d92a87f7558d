"""
Rate-limit policies for repowalk.

When a content fetcher reports that the remote rate limit is exhausted,
the walker asks its policy how long to wait before fetching the same path
again. A policy that returns ``None`` makes the error fatal for the branch.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Optional

from .errors import RateLimitExceeded


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResetPolicy(ABC):
    """
    Base class for rate-limit policies.

    Subclasses decide whether a rate-limited fetch is retried and after
    which delay.
    """

    @abstractmethod
    def delay_for(self, error: RateLimitExceeded) -> Optional[float]:
        """
        Decide how to react to a rate-limit error.

        Args:
            error: The error raised by the content fetcher

        Returns:
            Seconds to wait before retrying the same path,
            or None to propagate the error.
        """
        pass


class FailFastPolicy(ResetPolicy):
    """
    Policy that never waits.

    This is the default behavior: a rate-limit error is fatal for the
    branch that hit it.
    """

    def delay_for(self, error: RateLimitExceeded) -> Optional[float]:
        return None


class WaitOnResetPolicy(ResetPolicy):
    """
    Policy that waits until the rate limit window resets.

    Retries are unbounded: the same path is fetched again after every
    reset until it succeeds or fails with a different error.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = _utcnow,
        min_delay: float = 0.0,
        margin: float = 0.0,
    ):
        """
        Initialize the policy.

        Args:
            clock: Returns the current time as an aware datetime
            min_delay: Lower bound on the delay, in seconds
            margin: Extra seconds added after the reset instant
        """
        self.clock = clock
        self.min_delay = min_delay
        self.margin = margin
        self.waits = 0

    def delay_for(self, error: RateLimitExceeded) -> Optional[float]:
        reset_at = error.reset_at
        if reset_at.tzinfo is None:
            reset_at = reset_at.replace(tzinfo=timezone.utc)

        delay = (reset_at - self.clock()).total_seconds() + self.margin
        delay = max(delay, self.min_delay, 0.0)

        self.waits += 1
        logger.debug("Rate limit resets at %s, waiting %.1fs", reset_at.isoformat(), delay)
        return delay


def policy_for(wait_on_reset: bool) -> ResetPolicy:
    """Return the policy matching the ``wait-on-reset`` option."""
    if wait_on_reset:
        return WaitOnResetPolicy()
    return FailFastPolicy()
