"""
Tests for the admission limiter (fixed-window counters).

Covers:
- Window boundary: limit admits, limit+1 rejects, window elapse re-admits
- Retry-after bounds
- Key isolation
- Sweeping expired windows
- Vote / comment admission wiring
"""

from __future__ import annotations

import asyncio
import threading

import pytest

from app.core.errors import RateLimited
from app.core.rate_limit import (
    FixedWindowRateLimiter,
    admit_comment,
    admit_vote,
    get_rate_limiter,
    run_sweeper,
)


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock) -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(clock=clock)


# ---------------------------------------------------------------------------
# Window boundary
# ---------------------------------------------------------------------------

class TestFixedWindow:
    def test_limit_then_reject(self, limiter):
        for i in range(5):
            result = limiter.try_consume("vote:a@example.com", limit=5, window_seconds=3600)
            assert result.allowed
            assert result.remaining == 4 - i

        rejected = limiter.try_consume("vote:a@example.com", limit=5, window_seconds=3600)
        assert not rejected.allowed
        assert rejected.remaining == 0
        assert 1 <= rejected.retry_after_seconds <= 3600

    def test_retry_after_counts_down(self, limiter, clock):
        for _ in range(5):
            limiter.try_consume("k", 5, 3600)
        clock.advance(1000)
        rejected = limiter.try_consume("k", 5, 3600)
        assert rejected.retry_after_seconds == 2600

    def test_window_elapse_readmits(self, limiter, clock):
        for _ in range(5):
            limiter.try_consume("k", 5, 3600)
        assert not limiter.try_consume("k", 5, 3600).allowed

        clock.advance(3601)
        result = limiter.try_consume("k", 5, 3600)
        assert result.allowed
        assert result.remaining == 4

    def test_still_rejected_exactly_at_reset(self, limiter, clock):
        for _ in range(2):
            limiter.try_consume("k", 2, 60)
        clock.advance(60)
        result = limiter.try_consume("k", 2, 60)
        assert not result.allowed
        assert result.retry_after_seconds == 1

    def test_rejections_do_not_extend_window(self, limiter, clock):
        limiter.try_consume("k", 1, 60)
        for _ in range(10):
            clock.advance(5)
            assert not limiter.try_consume("k", 1, 60).allowed
        clock.advance(11)
        assert limiter.try_consume("k", 1, 60).allowed

    def test_explicit_now_overrides_clock(self, limiter):
        limiter.try_consume("k", 1, 60, now=0.0)
        assert not limiter.try_consume("k", 1, 60, now=30.0).allowed
        assert limiter.try_consume("k", 1, 60, now=61.0).allowed

    def test_keys_are_isolated(self, limiter):
        limiter.try_consume("vote:a@example.com", 1, 60)
        assert not limiter.try_consume("vote:a@example.com", 1, 60).allowed
        assert limiter.try_consume("vote:b@example.com", 1, 60).allowed
        assert limiter.try_consume("comment:a@example.com", 1, 60).allowed

    @pytest.mark.parametrize(
        "key,limit,window",
        [("", 5, 60), ("k", 0, 60), ("k", 5, 0)],
    )
    def test_invalid_arguments(self, limiter, key, limit, window):
        with pytest.raises(ValueError):
            limiter.try_consume(key, limit, window)


class TestCheckAndConsume:
    def test_raises_rate_limited_with_retry_after(self, limiter):
        limiter.check_and_consume("k", 1, 3600)
        with pytest.raises(RateLimited) as exc_info:
            limiter.check_and_consume("k", 1, 3600)
        assert exc_info.value.retry_after == 3600
        assert exc_info.value.status_code == 429
        assert exc_info.value.to_dict()["retry_after"] == 3600

    def test_concurrent_callers_never_exceed_limit(self):
        limiter = FixedWindowRateLimiter()
        admitted = []
        lock = threading.Lock()

        def worker():
            for _ in range(50):
                if limiter.try_consume("shared", 100, 3600).allowed:
                    with lock:
                        admitted.append(1)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(admitted) == 100


# ---------------------------------------------------------------------------
# Sweeping
# ---------------------------------------------------------------------------

class TestSweep:
    def test_sweep_drops_only_expired(self, limiter, clock):
        limiter.try_consume("old", 5, 60)
        clock.advance(30)
        limiter.try_consume("new", 5, 60)
        clock.advance(31)

        assert limiter.sweep() == 1
        assert len(limiter) == 1

    def test_sweep_does_not_change_decisions(self, limiter, clock):
        limiter.try_consume("k", 1, 60)
        limiter.sweep()
        assert not limiter.try_consume("k", 1, 60).allowed

        clock.advance(61)
        limiter.sweep()
        assert limiter.try_consume("k", 1, 60).allowed

    async def test_background_sweeper_runs_until_cancelled(self, limiter, clock):
        limiter.try_consume("k", 1, 60)
        clock.advance(61)

        task = asyncio.create_task(run_sweeper(limiter, 0.01))
        for _ in range(100):
            if len(limiter) == 0:
                break
            await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert len(limiter) == 0


# ---------------------------------------------------------------------------
# Admission wiring
# ---------------------------------------------------------------------------

class TestAdmission:
    def test_vote_limit_is_ten_per_identity(self):
        limiter = get_rate_limiter()
        for _ in range(10):
            admit_vote(limiter, "voter@example.com")
        with pytest.raises(RateLimited):
            admit_vote(limiter, "voter@example.com")
        admit_vote(limiter, "someone-else@example.com")

    def test_comment_limit_is_five_per_email(self):
        limiter = get_rate_limiter()
        for _ in range(5):
            admit_comment(limiter, "c@example.com")
        with pytest.raises(RateLimited):
            admit_comment(limiter, "C@Example.com")

    def test_votes_and_comments_have_separate_budgets(self):
        limiter = get_rate_limiter()
        for _ in range(5):
            admit_comment(limiter, "x@example.com")
        admit_vote(limiter, "x@example.com")

    def test_limiter_is_process_wide(self):
        assert get_rate_limiter() is get_rate_limiter()
