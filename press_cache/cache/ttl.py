"""Freshness policy for cached press releases.

This module classifies a cache entry as fresh, stale-but-usable or
expired from its age, the TTL and the stale-while-revalidate window,
and builds the matching Cache-Control header values.
"""

import time
from enum import Enum
from typing import Callable, Optional

import structlog

from press_cache.cache.entry import CacheEntry

logger = structlog.get_logger(__name__)


class Freshness(str, Enum):
    """Classification of a cache lookup."""

    FRESH = "fresh"
    STALE = "stale"
    EXPIRED = "expired"
    MISSING = "missing"

    @property
    def usable(self) -> bool:
        """True when the stored payload may be served."""
        return self in (Freshness.FRESH, Freshness.STALE)


class CacheTTL:
    """
    TTL and stale-while-revalidate window for the press-release cache.

    Values are in seconds. An entry of age ``a`` is:
    - fresh when a < ttl
    - stale when ttl <= a < ttl + swr_window
    - expired when a >= ttl + swr_window

    Attributes:
        ttl: Seconds an entry is served without revalidation
        swr_window: Extra seconds a stale entry is served while refreshing
        clock: Callable returning the current Unix time
    """

    DEFAULT_TTL = 60  # 1 minute
    DEFAULT_SWR_WINDOW = 30

    def __init__(
        self,
        ttl: int = DEFAULT_TTL,
        swr_window: int = DEFAULT_SWR_WINDOW,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        if swr_window < 0:
            raise ValueError(f"swr_window must not be negative, got {swr_window}")

        self.ttl = ttl
        self.swr_window = swr_window
        self.clock = clock or time.time

    @property
    def storage_ttl(self) -> int:
        """Passive expiry for backends that support it (TTL + SWR window)."""
        return self.ttl + self.swr_window

    def now(self) -> float:
        return self.clock()

    def classify(self, entry: Optional[CacheEntry]) -> Freshness:
        """
        Determine freshness of a cache entry at the current time.

        Args:
            entry: Entry returned by the cache, or None on a miss

        Returns:
            Freshness classification

        Example:
            >>> policy = CacheTTL(ttl=300, swr_window=30, clock=lambda: 1310.0)
            >>> policy.classify(CacheEntry(payload=[], stored_at=1000.0))
            <Freshness.STALE: 'stale'>
        """
        if entry is None:
            return Freshness.MISSING

        age = entry.age(self.now())

        # Negative age (writer clock ahead of ours) also counts as fresh
        if age < self.ttl:
            state = Freshness.FRESH
        elif age < self.ttl + self.swr_window:
            state = Freshness.STALE
        else:
            state = Freshness.EXPIRED

        logger.debug(
            "freshness_classified",
            age_seconds=round(age, 3),
            ttl=self.ttl,
            swr_window=self.swr_window,
            state=state.value,
        )

        return state

    def cache_control(self, state: Freshness) -> str:
        """Cache-Control header value for a response served in ``state``."""
        if state is Freshness.FRESH:
            return f"max-age={self.ttl}, stale-while-revalidate={self.swr_window}"
        return "no-cache"
