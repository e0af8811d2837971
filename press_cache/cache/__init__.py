"""Caching layer for press-release responses.

This package provides:
- Connection pooling for the durable store (RedisCache)
- Interchangeable backends (RedisBackend, LocalBackend)
- Fail-open fallback between backends (CacheManager)
- Cache key generation (CacheKeyGenerator)
- Stale-while-revalidate freshness policy (CacheTTL, Freshness)
- Background refresh of stale entries (RevalidationScheduler)
"""

from press_cache.cache.backends import CacheBackend, LocalBackend, RedisBackend
from press_cache.cache.connection import RedisCache
from press_cache.cache.entry import CacheEntry
from press_cache.cache.exceptions import CacheError
from press_cache.cache.keys import CacheKeyGenerator, key_generator
from press_cache.cache.manager import CacheManager
from press_cache.cache.revalidation import RevalidationScheduler
from press_cache.cache.ttl import CacheTTL, Freshness

__all__ = [
    # Connection
    "RedisCache",
    # Backends
    "CacheBackend",
    "LocalBackend",
    "RedisBackend",
    # Entries
    "CacheEntry",
    "CacheError",
    # Key generation
    "CacheKeyGenerator",
    "key_generator",
    # Cache manager
    "CacheManager",
    # Freshness policy
    "CacheTTL",
    "Freshness",
    # Background refresh
    "RevalidationScheduler",
]
