"""Interchangeable cache backends.

Two implementations share the CacheBackend contract:

- RedisBackend: the durable, shared store. Every call may fail; failures
  are raised to the caller (the cache manager) which falls back.
- LocalBackend: a mapping held in process memory, used when Redis is
  unreachable and as a mirror of recent durable writes.
"""

import asyncio
import fnmatch
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import structlog

from press_cache.cache.connection import RedisCache
from press_cache.cache.entry import CacheEntry

logger = structlog.get_logger(__name__)


class CacheBackend(ABC):
    """Uniform get/set-with-expiry capability over a key-value store."""

    name: str = "backend"

    @abstractmethod
    async def is_available(self) -> bool:
        """Lightweight liveness check, run before every cache operation."""

    @abstractmethod
    async def get(self, key: str) -> Optional[CacheEntry]:
        """Return the entry stored under ``key``, or None."""

    @abstractmethod
    async def set(self, key: str, entry: CacheEntry, ttl: int) -> bool:
        """Store ``entry`` under ``key``; ``ttl`` is a passive-expiry hint."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete ``key``; returns whether something was removed."""

    @abstractmethod
    async def keys(self, pattern: str = "*") -> List[str]:
        """List stored keys matching a glob-style pattern."""


class RedisBackend(CacheBackend):
    """
    Durable backend on top of a RedisCache connection.

    Entries are stored as JSON envelopes with SETEX so Redis retires
    dead entries on its own schedule. Operations are bounded by
    ``operation_timeout`` and raise on failure.
    """

    name = "redis"

    def __init__(self, connection: RedisCache, operation_timeout: float = 2.0) -> None:
        self.connection = connection
        self.operation_timeout = operation_timeout

    @property
    def redis(self):
        client = self.connection.client
        if client is None:
            raise ConnectionError("Redis client not initialized")
        return client

    async def _bounded(self, awaitable):
        return await asyncio.wait_for(awaitable, self.operation_timeout)

    async def is_available(self) -> bool:
        return await self.connection.ping()

    async def get(self, key: str) -> Optional[CacheEntry]:
        value = await self._bounded(self.redis.get(key))
        if value is None:
            return None

        try:
            return CacheEntry.from_json(value)
        except (ValueError, TypeError) as e:
            logger.error("cache_get_corrupt_entry", key=key, error=str(e))
            await self._bounded(self.redis.delete(key))
            return None

    async def set(self, key: str, entry: CacheEntry, ttl: int) -> bool:
        await self._bounded(self.redis.setex(key, ttl, entry.to_json()))
        return True

    async def delete(self, key: str) -> bool:
        result = await self._bounded(self.redis.delete(key))
        return bool(result)

    async def keys(self, pattern: str = "*") -> List[str]:
        async def _scan() -> List[str]:
            return [key async for key in self.redis.scan_iter(match=pattern)]

        return await self._bounded(_scan())


class LocalBackend(CacheBackend):
    """
    Process-local backend.

    Entries are kept until process restart; freshness classification
    treats old entries as expired instead of deleting them. Like Redis,
    entries are held serialized, so every get hands out a fresh copy and
    callers cannot alter what is stored. No operation awaits, so each one
    is atomic on the event loop.
    """

    name = "local"

    def __init__(self) -> None:
        self._entries: Dict[str, str] = {}

    async def is_available(self) -> bool:
        return True

    async def get(self, key: str) -> Optional[CacheEntry]:
        raw = self._entries.get(key)
        if raw is None:
            return None
        return CacheEntry.from_json(raw)

    async def set(self, key: str, entry: CacheEntry, ttl: int) -> bool:
        # Raises TypeError for payloads Redis could not store either
        self._entries[key] = entry.to_json()
        return True

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def keys(self, pattern: str = "*") -> List[str]:
        return [key for key in self._entries if fnmatch.fnmatchcase(key, pattern)]
