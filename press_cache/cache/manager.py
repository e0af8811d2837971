"""Cache manager with fail-open fallback between backends.

This module provides the CacheManager class which composes the durable
backend and the local backend into one fallback chain: every operation
probes the durable backend, runs there when it is reachable, and falls
back to the local backend otherwise.
"""

from typing import Any, Awaitable, Callable, List, Optional

import structlog

from press_cache.cache.backends import CacheBackend, LocalBackend
from press_cache.cache.entry import CacheEntry
from press_cache.cache.exceptions import CacheError

logger = structlog.get_logger(__name__)


class CacheManager:
    """
    Main cache operations manager with fail-open behavior.

    Reachability is probed before every operation and never remembered,
    so a Redis outage only downgrades the operations that hit it.
    get/set never raise.

    Attributes:
        durable: Primary backend (Redis), may be None
        local: Process-local fallback backend
    """

    def __init__(
        self,
        durable: Optional[CacheBackend] = None,
        local: Optional[LocalBackend] = None,
    ) -> None:
        self.durable = durable
        self.local = local if local is not None else LocalBackend()

    async def _durable_reachable(self) -> bool:
        if self.durable is None:
            return False

        try:
            return await self.durable.is_available()
        except Exception as e:
            logger.warning(
                "cache_probe_error",
                backend=self.durable.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    async def _run(
        self,
        operation: str,
        key: str,
        call: Callable[[CacheBackend], Awaitable[Any]],
    ) -> Any:
        """
        Run ``call`` on the durable backend, falling back to local.

        Raises:
            Exception: Only if the local backend itself fails
        """
        if await self._durable_reachable():
            try:
                return await call(self.durable)
            except Exception as e:
                logger.warning(
                    "cache_backend_degraded",
                    operation=operation,
                    key=key,
                    backend=self.durable.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
        else:
            logger.debug("cache_durable_unreachable", operation=operation, key=key)

        return await call(self.local)

    async def get(self, key: str) -> Optional[CacheEntry]:
        """
        Retrieve cached entry by key.

        Args:
            key: Cache key to retrieve

        Returns:
            Stored CacheEntry, or None if not found or every backend failed

        Example:
            >>> manager = CacheManager(RedisBackend(RedisCache()))
            >>> entry = await manager.get("list:0:20")
            >>> if entry:
            ...     print(entry.stored_at)
        """
        try:
            entry = await self._run("get", key, lambda backend: backend.get(key))
        except Exception as e:
            logger.error(
                "cache_get_error",
                key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
            # Fail open - cache miss
            return None

        if entry is None:
            logger.debug("cache_miss", key=key)
        else:
            logger.debug("cache_hit", key=key, stored_at=entry.stored_at)

        return entry

    async def set(self, key: str, entry: CacheEntry, ttl: int) -> bool:
        """
        Store entry in cache with a passive-expiry TTL.

        Successful durable writes are mirrored into the local backend so a
        later Redis outage does not lose recently seen data.

        Args:
            key: Cache key
            entry: Entry to store (payload must be JSON-serializable)
            ttl: Time to live in seconds for backends with passive expiry

        Returns:
            True if stored in some backend, False otherwise
        """
        stored_durably = False

        if await self._durable_reachable():
            try:
                await self.durable.set(key, entry, ttl)
                stored_durably = True
            except Exception as e:
                logger.warning(
                    "cache_backend_degraded",
                    operation="set",
                    key=key,
                    backend=self.durable.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )

        try:
            await self.local.set(key, entry, ttl)
        except Exception as e:
            logger.error(
                "cache_set_error",
                key=key,
                backend=self.local.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            # Fail silently (cache write failures shouldn't break requests)
            return stored_durably

        logger.debug("cache_set", key=key, ttl=ttl, durable=stored_durably)
        return True

    async def delete(self, key: str) -> bool:
        """
        Delete cached entry by key from both backends.

        Returns:
            True if any backend removed the key
        """
        deleted = False

        if await self._durable_reachable():
            try:
                deleted = await self.durable.delete(key)
            except Exception as e:
                logger.warning(
                    "cache_backend_degraded",
                    operation="delete",
                    key=key,
                    backend=self.durable.name,
                    error=str(e),
                )

        try:
            deleted = await self.local.delete(key) or deleted
        except Exception as e:
            logger.error("cache_delete_error", key=key, error=str(e))

        return deleted

    async def clear(self) -> List[str]:
        """
        Delete every key from both backends.

        Returns:
            Sorted list of the keys that were cleared

        Raises:
            CacheError: If the durable backend is reachable but fails
        """
        cleared = set()

        if await self._durable_reachable():
            try:
                for key in await self.durable.keys("*"):
                    await self.durable.delete(key)
                    cleared.add(key)
            except Exception as e:
                logger.error(
                    "cache_clear_error",
                    backend=self.durable.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise CacheError(
                    f"Failed to clear {self.durable.name} cache: {e}",
                    backend=self.durable.name,
                ) from e

        for key in await self.local.keys("*"):
            await self.local.delete(key)
            cleared.add(key)

        logger.info("cache_cleared", cleared_count=len(cleared))
        return sorted(cleared)
