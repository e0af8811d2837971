"""
Read-through handlers for press-release lookups.

Implements the stale-while-revalidate protocol shared by the list and
single-item endpoints:

    fresh    -> serve the cached payload (X-Cache: HIT)
    stale    -> serve the cached payload and refresh in the background
                (X-Cache: STALE)
    expired  -> fetch synchronously, store, serve (X-Cache: MISS)
    no_cache -> fetch synchronously, never touch the cache (X-Cache: MISS)
"""

import time
from typing import Any, Awaitable, Callable, Union

from press_cache.cache import (
    CacheEntry,
    CacheManager,
    CacheTTL,
    Freshness,
    RevalidationScheduler,
    key_generator,
)
from press_cache.models.responses import CachedResult, CacheStatus
from press_cache.upstream import ContentFetcher, NotFoundError
from press_cache.utils.logger import get_logger, log_request

logger = get_logger(__name__)

FetchFunc = Callable[[], Awaitable[Any]]


class PressReleaseService:
    """
    Compose cache, freshness policy, fetcher and scheduler into the
    read-through protocol.

    Attributes:
        cache: Fail-open cache manager
        fetcher: Upstream content fetcher
        scheduler: Background revalidation scheduler
        policy: Freshness policy (TTL, SWR window, clock)
    """

    def __init__(
        self,
        cache: CacheManager,
        fetcher: ContentFetcher,
        scheduler: RevalidationScheduler,
        policy: CacheTTL,
    ) -> None:
        self.cache = cache
        self.fetcher = fetcher
        self.scheduler = scheduler
        self.policy = policy

    async def get_press_releases(
        self,
        offset: int = 0,
        limit: int = 20,
        no_cache: bool = False,
    ) -> CachedResult:
        """
        Get one page of press releases.

        Args:
            offset: Listing offset
            limit: Page size
            no_cache: Bypass the cache entirely

        Returns:
            CachedResult with the listing payload

        Raises:
            UpstreamError: If a fetch is required and the origin fails
        """
        start_time = time.time()

        async def fetch_page() -> Any:
            return await self.fetcher.fetch_page(offset, limit)

        key = key_generator.list_key(offset, limit)

        try:
            result = await self._read_through(key, fetch_page, no_cache)
        except Exception as e:
            log_request(
                "get_press_releases",
                (time.time() - start_time) * 1000,
                None,
                error=str(e),
                offset=offset,
                limit=limit,
            )
            raise

        log_request(
            "get_press_releases",
            (time.time() - start_time) * 1000,
            result.cache_status.value,
            offset=offset,
            limit=limit,
            no_cache=no_cache,
        )
        return result

    async def get_press_release(
        self,
        press_release_id: Union[str, int],
        no_cache: bool = False,
    ) -> CachedResult:
        """
        Get a single press release.

        Args:
            press_release_id: Upstream identifier
            no_cache: Bypass the cache entirely

        Returns:
            CachedResult with the press release payload

        Raises:
            NotFoundError: If the origin has no such press release
            UpstreamError: If the origin fails on both lookup paths
        """
        start_time = time.time()
        press_release_id = str(press_release_id)
        listing_loader = self._listing_loader(no_cache)

        async def fetch_item() -> Any:
            return await self.fetcher.fetch_by_id(
                press_release_id,
                listing_loader=listing_loader,
            )

        key = key_generator.item_key(press_release_id)

        try:
            result = await self._read_through(key, fetch_item, no_cache)
        except Exception as e:
            log_request(
                "get_press_release",
                (time.time() - start_time) * 1000,
                None,
                error="not_found" if isinstance(e, NotFoundError) else str(e),
                press_release_id=press_release_id,
            )
            raise

        log_request(
            "get_press_release",
            (time.time() - start_time) * 1000,
            result.cache_status.value,
            press_release_id=press_release_id,
            no_cache=no_cache,
        )
        return result

    async def _read_through(
        self,
        key: str,
        fetch_func: FetchFunc,
        no_cache: bool,
    ) -> CachedResult:
        if no_cache:
            logger.debug("cache_bypassed", key=key)
            payload = await fetch_func()
            return CachedResult(payload=payload, cache_status=CacheStatus.MISS)

        entry = await self.cache.get(key)
        state = self.policy.classify(entry)

        if state is Freshness.FRESH:
            return CachedResult(
                payload=entry.payload,
                cache_status=CacheStatus.HIT,
                cache_control=self.policy.cache_control(state),
            )

        if state is Freshness.STALE:
            self.scheduler.refresh(key, fetch_func)
            return CachedResult(
                payload=entry.payload,
                cache_status=CacheStatus.STALE,
                cache_control=self.policy.cache_control(state),
            )

        logger.info("cache_miss_fetching", key=key, state=state.value)
        payload = await fetch_func()
        await self._store(key, payload)

        return CachedResult(
            payload=payload,
            cache_status=CacheStatus.MISS,
            cache_control=self.policy.cache_control(state),
        )

    async def _store(self, key: str, payload: Any) -> bool:
        # Best effort: the cache manager never raises
        entry = CacheEntry.create(payload, now=self.policy.now())
        return await self.cache.set(key, entry, self.policy.storage_ttl)

    def _listing_loader(self, no_cache: bool) -> FetchFunc:
        """
        Build the loader used by the item fallback scan.

        A usable cached copy of the bulk listing is reused instead of
        hitting the origin again; otherwise the listing is fetched and
        stored for the next lookup.
        """
        bulk_limit = self.fetcher.bulk_limit

        async def load_listing() -> Any:
            if no_cache:
                return await self.fetcher.fetch_page(0, bulk_limit)

            key = key_generator.list_key(0, bulk_limit)
            entry = await self.cache.get(key)
            if self.policy.classify(entry).usable:
                logger.debug("fallback_listing_from_cache", key=key)
                return entry.payload

            listing = await self.fetcher.fetch_page(0, bulk_limit)
            await self._store(key, listing)
            return listing

        return load_listing
