"""
Sliding-window rate limiter for the upstream press-release API.

Keeps outgoing requests, background revalidations included, under the
origin's request budget.
"""

import asyncio
import time
from collections import deque
from typing import Callable, Optional

import structlog

logger = structlog.get_logger(__name__)

# Extra sleep so a waiter wakes after the oldest call has left the window
WAKE_MARGIN_SECONDS = 0.05


class TokenBucketRateLimiter:
    """
    Allow at most ``max_calls`` upstream requests per ``period_seconds``.

    Call timestamps come from a monotonic clock and are kept in a deque;
    a slot frees up once the oldest call is ``period_seconds`` old.
    Waiters sleep outside the lock so other coroutines keep making
    progress.

    Example:
        >>> limiter = TokenBucketRateLimiter(max_calls=100, period_seconds=60)
        >>> await limiter.acquire()
        True
    """

    def __init__(
        self,
        max_calls: int = 100,
        period_seconds: int = 60,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.max_calls = max_calls
        self.period_seconds = period_seconds
        self.clock = clock or time.monotonic
        self.calls: deque[float] = deque()
        self.lock = asyncio.Lock()

        logger.info(
            "rate_limiter_initialized",
            max_calls=max_calls,
            period_seconds=period_seconds,
        )

    def _evict(self, now: float) -> None:
        while self.calls and now - self.calls[0] >= self.period_seconds:
            self.calls.popleft()

    async def acquire(self) -> bool:
        """
        Wait for a free slot in the window and take it.

        Returns:
            Always True, once the slot is granted
        """
        while True:
            async with self.lock:
                now = self.clock()
                self._evict(now)

                if len(self.calls) < self.max_calls:
                    self.calls.append(now)
                    used = len(self.calls)

                    if used > self.max_calls * 0.9:
                        logger.warning(
                            "rate_limit_approaching",
                            calls_made=used,
                            max_calls=self.max_calls,
                        )
                    return True

                if self.calls:
                    wait_seconds = self.calls[0] + self.period_seconds - now
                else:
                    wait_seconds = float(self.period_seconds)

                logger.warning(
                    "rate_limit_hit",
                    calls_made=len(self.calls),
                    max_calls=self.max_calls,
                    wait_seconds=round(wait_seconds, 2),
                )

            await asyncio.sleep(max(wait_seconds, 0) + WAKE_MARGIN_SECONDS)
