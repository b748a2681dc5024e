"""
Admission limiter: in-memory fixed-window counters keyed by string.

Notes:
- Per-process only: running N workers multiplies the effective limit by N.
  This is abuse deterrence, not quota enforcement.
- Fixed window, not sliding: up to 2x ``limit`` calls can be admitted across
  a window boundary.
- Thread-safe: all reads and writes of the counter table go through one lock,
  so concurrent callers can race for the last slot but never corrupt state.
"""

from __future__ import annotations

import asyncio
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

import structlog

from app.core.config import get_settings
from app.core.errors import RateLimited

log = structlog.get_logger()


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of one ``try_consume`` call.

    ``retry_after_seconds`` is only set when the call was rejected.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after_seconds: Optional[int] = None


@dataclass
class _Window:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """Counter store: ``{key: (count, reset_at)}`` behind a lock, with an injectable clock."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: dict[str, _Window] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def try_consume(
        self,
        key: str,
        limit: int,
        window_seconds: int,
        now: Optional[float] = None,
    ) -> RateLimitResult:
        """Record one consumption for ``key`` unless its window is exhausted."""
        if not key:
            raise ValueError("key must be a non-empty string")
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        if now is None:
            now = self._clock()

        with self._lock:
            window = self._windows.get(key)
            if window is None or now > window.reset_at:
                window = _Window(count=1, reset_at=now + window_seconds)
                self._windows[key] = window
                return RateLimitResult(True, limit, limit - 1, window.reset_at)

            if window.count >= limit:
                retry_after = max(1, math.ceil(window.reset_at - now))
                return RateLimitResult(False, limit, 0, window.reset_at, retry_after)

            window.count += 1
            return RateLimitResult(True, limit, limit - window.count, window.reset_at)

    def check_and_consume(self, key: str, limit: int, window_seconds: int) -> None:
        """Like ``try_consume`` but raises ``RateLimited`` on rejection."""
        result = self.try_consume(key, limit, window_seconds)
        if not result.allowed:
            log.warning(
                "rate_limit.exceeded",
                action=key.split(":", 1)[0],
                limit=limit,
                window_s=window_seconds,
                retry_after_s=result.retry_after_seconds,
            )
            raise RateLimited(retry_after=result.retry_after_seconds or 1)

    def sweep(self, now: Optional[float] = None) -> int:
        """Drop entries whose window has already expired. Returns how many were removed.

        An expired entry would be reset by the next ``try_consume`` anyway, so
        removing it never changes an admission decision.
        """
        if now is None:
            now = self._clock()
        with self._lock:
            expired = [k for k, w in self._windows.items() if now > w.reset_at]
            for key in expired:
                del self._windows[key]
        return len(expired)


_limiter: FixedWindowRateLimiter | None = None


def get_rate_limiter() -> FixedWindowRateLimiter:
    """Process-wide limiter; FastAPI dependency."""
    global _limiter
    if _limiter is None:
        _limiter = FixedWindowRateLimiter()
    return _limiter


def admit_vote(limiter: FixedWindowRateLimiter, identity: str) -> None:
    settings = get_settings()
    limiter.check_and_consume(
        f"vote:{identity}", settings.vote_rate_limit, settings.rate_limit_window_seconds
    )


def admit_comment(limiter: FixedWindowRateLimiter, author_email: str) -> None:
    settings = get_settings()
    limiter.check_and_consume(
        f"comment:{author_email.lower()}",
        settings.comment_rate_limit,
        settings.rate_limit_window_seconds,
    )


# ---------------------------------------------------------------------------
# Background maintenance
# ---------------------------------------------------------------------------


async def run_sweeper(limiter: FixedWindowRateLimiter, interval_seconds: float) -> None:
    """Sweep expired windows forever; cancel the task to stop."""
    while True:
        await asyncio.sleep(interval_seconds)
        removed = limiter.sweep()
        if removed:
            log.debug("rate_limit.swept", removed=removed, remaining=len(limiter))


def start_sweeper(interval_seconds: Optional[float] = None) -> asyncio.Task:
    if interval_seconds is None:
        interval_seconds = get_settings().rate_limit_sweep_interval_seconds
    return asyncio.create_task(run_sweeper(get_rate_limiter(), interval_seconds))
