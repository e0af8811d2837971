"""Background revalidation of stale cache entries.

A stale hit is served immediately; the refresh runs as a detached
asyncio task on the same event loop. The triggering request never waits
for it and never sees its outcome: failures only reach the log.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional, Set

import structlog

from press_cache.cache.entry import CacheEntry
from press_cache.cache.manager import CacheManager
from press_cache.cache.ttl import CacheTTL

logger = structlog.get_logger(__name__)

FetchFunc = Callable[[], Awaitable[Any]]


class RevalidationScheduler:
    """
    Fire-and-forget refresh of cache entries.

    Each refresh runs the same fetch-and-store sequence as a cache miss.
    Strong references to in-flight tasks are held until they finish so
    the event loop cannot garbage-collect them mid-flight.

    Attributes:
        cache: Cache manager the fresh entry is written to
        policy: Freshness policy providing the clock and storage TTL
        coalesce: Reuse an in-flight refresh for the same key
    """

    def __init__(
        self,
        cache: CacheManager,
        policy: CacheTTL,
        coalesce: bool = False,
    ) -> None:
        self.cache = cache
        self.policy = policy
        self.coalesce = coalesce
        self._tasks: Set[asyncio.Task] = set()
        self._in_flight: Dict[str, asyncio.Task] = {}

    @property
    def pending(self) -> int:
        """Number of refreshes still running."""
        return len(self._tasks)

    def refresh(self, key: str, fetch_func: FetchFunc) -> Optional[asyncio.Task]:
        """
        Launch a background refresh of ``key``.

        Args:
            key: Cache key to refresh
            fetch_func: Zero-argument coroutine function returning the payload

        Returns:
            The refresh task, or None when no event loop is running

        Example:
            >>> scheduler.refresh("list:0:20", lambda: fetcher.fetch_page(0, 20))
        """
        if self.coalesce:
            existing = self._in_flight.get(key)
            if existing is not None and not existing.done():
                logger.debug("revalidation_coalesced", key=key)
                return existing

        try:
            task = asyncio.get_running_loop().create_task(self._revalidate(key, fetch_func))
        except RuntimeError:
            logger.error("revalidation_not_scheduled", key=key, reason="no_running_loop")
            return None

        self._tasks.add(task)
        self._in_flight[key] = task
        task.add_done_callback(lambda t: self._on_done(key, t))

        logger.info("revalidation_scheduled", key=key, pending=self.pending)
        return task

    async def _revalidate(self, key: str, fetch_func: FetchFunc) -> bool:
        payload = await fetch_func()
        entry = CacheEntry.create(payload, now=self.policy.now())
        stored = await self.cache.set(key, entry, self.policy.storage_ttl)

        logger.info("revalidation_completed", key=key, stored=stored)
        return stored

    def _on_done(self, key: str, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

        if task.cancelled():
            logger.info("revalidation_cancelled", key=key)
            return

        error = task.exception()
        if error is not None:
            logger.error(
                "revalidation_failed",
                key=key,
                error=str(error),
                error_type=type(error).__name__,
            )

    async def shutdown(self) -> None:
        """Cancel in-flight refreshes, e.g. on process shutdown."""
        tasks = list(self._tasks)
        if not tasks:
            return

        for task in tasks:
            task.cancel()

        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("revalidation_shutdown", cancelled=len(tasks))
