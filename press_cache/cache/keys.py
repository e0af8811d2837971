"""Cache key generation for consistent, deterministic cache keys.

This module provides the CacheKeyGenerator class for building the two
key shapes the service stores: listing pages and single press releases.
"""

from typing import Union

import structlog

logger = structlog.get_logger(__name__)


class CacheKeyGenerator:
    """
    Generate cache keys for press-release lookups.

    Key shapes:
        list:{offset}:{limit}  - one page of the upstream listing
        item:{id}              - one press release

    The same shapes are used by the server cache and the client mirror
    cache so both sides agree on identity.
    """

    LIST_PREFIX = "list"
    ITEM_PREFIX = "item"

    @staticmethod
    def list_key(offset: int, limit: int) -> str:
        """
        Generate cache key for a listing page.

        Args:
            offset: Listing offset
            limit: Page size

        Returns:
            Cache key string in format: list:{offset}:{limit}

        Example:
            >>> CacheKeyGenerator.list_key(0, 20)
            'list:0:20'
        """
        cache_key = f"{CacheKeyGenerator.LIST_PREFIX}:{int(offset)}:{int(limit)}"
        logger.debug("cache_key_generated", kind="list", cache_key=cache_key)
        return cache_key

    @staticmethod
    def item_key(press_release_id: Union[str, int]) -> str:
        """
        Generate cache key for a single press release.

        Args:
            press_release_id: Upstream identifier (compared as a string)

        Returns:
            Cache key string in format: item:{id}

        Example:
            >>> CacheKeyGenerator.item_key(1234)
            'item:1234'
        """
        cache_key = f"{CacheKeyGenerator.ITEM_PREFIX}:{press_release_id}"
        logger.debug("cache_key_generated", kind="item", cache_key=cache_key)
        return cache_key


# Convenience singleton instance
key_generator = CacheKeyGenerator()
