"""
Tests for rate-limit policies and reset-aware retries.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest

from repowalk import (
    FailFastPolicy,
    FetchError,
    RateLimiter,
    RateLimitExceeded,
    ResetPolicy,
    WaitOnResetPolicy,
    WalkContext,
    Walker,
)
from repowalk.error_policies import policy_for
from repowalk.testing import InMemoryContentFetcher, build_tree


SCENARIO = ["a.txt", "dir/b.txt", "dir/c.txt"]
NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_walker(fetcher, **kwargs) -> Walker:
    kwargs.setdefault("rate_limiter", RateLimiter(rate=1000))
    return Walker(fetcher, "owner", "repo", **kwargs)


class RecordingPolicy(ResetPolicy):
    """Always asks for the same delay and remembers each error."""

    def __init__(self, delay):
        self.delay = delay
        self.errors = []

    def delay_for(self, error):
        self.errors.append(error)
        return self.delay


class TestPolicies:
    """Test individual policy behaviors."""

    def test_fail_fast_never_waits(self):
        policy = FailFastPolicy()
        assert policy.delay_for(RateLimitExceeded(NOW)) is None

    def test_wait_until_reset(self):
        policy = WaitOnResetPolicy(clock=lambda: NOW)
        error = RateLimitExceeded(NOW + timedelta(seconds=30))

        assert policy.delay_for(error) == 30.0
        assert policy.waits == 1

    def test_reset_in_the_past(self):
        policy = WaitOnResetPolicy(clock=lambda: NOW)
        assert policy.delay_for(RateLimitExceeded(NOW - timedelta(seconds=5))) == 0.0

    def test_min_delay_and_margin(self):
        policy = WaitOnResetPolicy(clock=lambda: NOW, min_delay=2.0)
        assert policy.delay_for(RateLimitExceeded(NOW)) == 2.0

        policy = WaitOnResetPolicy(clock=lambda: NOW, margin=1.5)
        assert policy.delay_for(RateLimitExceeded(NOW + timedelta(seconds=10))) == 11.5

    def test_naive_reset_is_utc(self):
        policy = WaitOnResetPolicy(clock=lambda: NOW)
        naive = datetime(2024, 1, 1, 12, 1, 0)
        assert policy.delay_for(RateLimitExceeded(naive)) == 60.0

    def test_policy_for_option(self):
        assert isinstance(policy_for(True), WaitOnResetPolicy)
        assert isinstance(policy_for(False), FailFastPolicy)

    def test_error_message_includes_reset(self):
        error = RateLimitExceeded(NOW, status=403)
        assert "2024-01-01T12:00:00+00:00" in str(error)
        assert error.status == 403
        assert error.reset_at == NOW


class TestWaitOnReset:

    @pytest.mark.asyncio
    async def test_same_path_is_refetched(self):
        """Temporary rate limiting does not change the outcome."""
        fetcher = InMemoryContentFetcher(build_tree(SCENARIO), rate_limits={"dir/b.txt": 2})
        seen = []

        await make_walker(fetcher, wait_on_reset=True).walk_uri("", lambda ctx, n: seen.append(n.path))

        assert seen == SCENARIO
        assert fetcher.count("dir/b.txt") == 3
        assert fetcher.count("dir/c.txt") == 1

    @pytest.mark.asyncio
    async def test_root_rate_limited(self):
        fetcher = InMemoryContentFetcher(build_tree(SCENARIO), rate_limits={"": 1})
        seen = []

        await make_walker(fetcher, wait_on_reset=True).walk_uri("", lambda ctx, n: seen.append(n.path))

        assert seen == SCENARIO
        assert fetcher.fetches[:2] == ["", ""]

    @pytest.mark.asyncio
    async def test_concurrent_walk_waits_too(self):
        fetcher = InMemoryContentFetcher(build_tree(SCENARIO), rate_limits={"dir/c.txt": 1, "a.txt": 1})
        seen = []
        walker = make_walker(fetcher, wait_on_reset=True, concurrent=True)

        await walker.walk_uri("", lambda ctx, n: seen.append(n.path))

        assert sorted(seen) == SCENARIO

    @pytest.mark.asyncio
    async def test_sleeps_for_policy_delay(self):
        fetcher = InMemoryContentFetcher(build_tree(SCENARIO), rate_limits={"a.txt": 1})
        policy = RecordingPolicy(42.0)
        walker = make_walker(fetcher, reset_policy=policy)

        with patch.object(WalkContext, "sleep", new=AsyncMock(return_value=True)) as sleep:
            await walker.walk_uri("a.txt", lambda ctx, n: None)

        sleep.assert_awaited_once_with(42.0)
        assert len(policy.errors) == 1
        assert fetcher.count("a.txt") == 2

    @pytest.mark.asyncio
    async def test_each_retry_takes_a_permit(self):
        fetcher = InMemoryContentFetcher(build_tree(SCENARIO), rate_limits={"a.txt": 3})
        walker = make_walker(fetcher, wait_on_reset=True)

        await walker.walk_uri("a.txt", lambda ctx, n: None)

        assert walker.rate_limiter.permits_issued == 4

    @pytest.mark.asyncio
    async def test_cancel_during_reset_wait(self):
        fetcher = InMemoryContentFetcher(build_tree(SCENARIO), rate_limits={"": 1}, reset_after=60)
        walker = make_walker(fetcher, wait_on_reset=True)
        ctx = WalkContext()
        asyncio.get_running_loop().call_later(0.02, ctx.cancel)
        seen = []

        result = await asyncio.wait_for(
            walker.walk_uri("", lambda c, n: seen.append(n.path), ctx), timeout=5
        )

        assert result is None
        assert seen == []
        assert fetcher.fetches == [""]


class TestFailFast:

    @pytest.mark.asyncio
    async def test_rate_limit_is_fatal_without_wait(self):
        fetcher = InMemoryContentFetcher(build_tree(SCENARIO), rate_limits={"dir/b.txt": 1})

        with pytest.raises(FetchError) as exc_info:
            await make_walker(fetcher).walk_uri("", lambda ctx, n: None)

        assert exc_info.value.path == "dir/b.txt"
        assert isinstance(exc_info.value.__cause__, RateLimitExceeded)
        assert fetcher.count("dir/b.txt") == 1

    @pytest.mark.asyncio
    async def test_custom_policy_returning_none(self):
        fetcher = InMemoryContentFetcher(build_tree(SCENARIO), rate_limits={"a.txt": 1})
        policy = RecordingPolicy(None)

        with pytest.raises(FetchError):
            await make_walker(fetcher, wait_on_reset=True, reset_policy=policy).walk_uri(
                "a.txt", lambda ctx, n: None
            )

        assert len(policy.errors) == 1
