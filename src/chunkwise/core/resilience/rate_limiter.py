"""Sliding-window rate limiter.

Caps outbound summarization calls to a fixed number per rolling window
(one minute by default). Callers that find the window full wait in
arrival order: a newer caller never takes a slot ahead of an older one.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from typing import Optional

from chunkwise.core.observability import audit_log
from chunkwise.core.resilience.models import Clock, RateLimitStatus, SleepFunc

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """Grants at most ``max_requests_per_minute`` calls per sliding window.

    All state is mutated on the event loop thread; there is no await
    between the capacity check and recording a grant, so interleaved
    coroutines cannot both take the last slot.

    Example:
        >>> limiter = SlidingWindowRateLimiter(50)
        >>> await limiter.acquire()
    """

    def __init__(
        self,
        max_requests_per_minute: int,
        *,
        window_seconds: float = 60.0,
        poll_interval: float = 0.1,
        clock: Optional[Clock] = None,
        sleep_func: Optional[SleepFunc] = None,
    ) -> None:
        if max_requests_per_minute <= 0:
            raise ValueError("max_requests_per_minute must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests_per_minute
        self.window_seconds = window_seconds
        self.poll_interval = poll_interval
        self._clock = clock or time.monotonic
        self._sleep = sleep_func or asyncio.sleep
        self._timestamps: deque[float] = deque()
        self._waiters: deque[object] = deque()

    def _prune(self, now: float) -> None:
        while self._timestamps and now - self._timestamps[0] >= self.window_seconds:
            self._timestamps.popleft()

    def can_proceed(self) -> bool:
        """Whether the window has room for one more call right now."""
        self._prune(self._clock())
        return len(self._timestamps) < self.max_requests

    def _record(self) -> None:
        self._timestamps.append(self._clock())

    def try_acquire(self) -> bool:
        """Take a slot without waiting; fails while others are queued."""
        if not self._waiters and self.can_proceed():
            self._record()
            return True
        return False

    async def acquire(self) -> float:
        """Wait for a free slot, record the call and return seconds waited."""
        if self.try_acquire():
            return 0.0

        token = object()
        self._waiters.append(token)
        started = self._clock()
        audit_log(
            "rate_limit_wait",
            limit=self.max_requests,
            queue_position=len(self._waiters),
        )
        logger.debug(f"Rate limit reached ({self.max_requests}/window); waiting")
        try:
            while True:
                if self._waiters[0] is token and self.can_proceed():
                    self._record()
                    return self._clock() - started
                # Wake when the oldest call leaves the window if that comes before the next poll.
                delay = self.time_until_available()
                await self._sleep(min(self.poll_interval, delay) if delay > 0 else self.poll_interval)
        finally:
            # Also runs on cancellation so the queue never stalls behind a dead waiter.
            self._waiters.remove(token)

    def time_until_available(self) -> float:
        """Seconds until the oldest recorded call leaves the window (0 if free)."""
        now = self._clock()
        self._prune(now)
        if len(self._timestamps) < self.max_requests:
            return 0.0
        return max(0.0, self._timestamps[0] + self.window_seconds - now)

    def status(self) -> RateLimitStatus:
        now = self._clock()
        self._prune(now)
        used = len(self._timestamps)
        reset_in = self._timestamps[0] + self.window_seconds - now if self._timestamps else 0.0
        return RateLimitStatus(
            limit=self.max_requests,
            used=used,
            remaining=max(0, self.max_requests - used),
            waiting=len(self._waiters),
            reset_in=max(0.0, reset_in),
        )
