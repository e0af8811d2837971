"""
Tests for the read-through press-release handlers.

Tests cover:
- Fresh, stale, expired and missing entries
- The no_cache bypass
- Error propagation without cache writes
- Reuse of the cached bulk listing by item lookups
"""

import copy
from unittest.mock import AsyncMock, MagicMock

import pytest

from press_cache.cache import CacheEntry, CacheManager, CacheTTL, RevalidationScheduler
from press_cache.handlers.press_releases import PressReleaseService
from press_cache.models.responses import CacheStatus
from press_cache.upstream import ContentFetcher, NotFoundError, UpstreamUnavailableError

STORED_AT = 1_000_000.0
TTL = 300
SWR = 30

LISTING = {"items": [{"id": "1", "title": "Een"}, {"id": "2", "title": "Twee"}]}


class Clock:
    def __init__(self, now=STORED_AT):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def cache():
    return CacheManager()


@pytest.fixture
def fetcher():
    fetcher = MagicMock(spec=ContentFetcher)
    fetcher.bulk_limit = 100
    fetcher.fetch_page = AsyncMock(return_value=LISTING)
    fetcher.fetch_by_id = AsyncMock(return_value={"id": "1", "title": "Een"})
    return fetcher


@pytest.fixture
def scheduler():
    return MagicMock(spec=RevalidationScheduler)


@pytest.fixture
def service(cache, fetcher, scheduler, clock):
    policy = CacheTTL(ttl=TTL, swr_window=SWR, clock=clock)
    return PressReleaseService(cache, fetcher, scheduler, policy)


async def seed(cache, key, payload, stored_at=STORED_AT):
    await cache.set(key, CacheEntry(payload=payload, stored_at=stored_at), TTL + SWR)


class TestGetPressReleases:
    """Test suite for the list read-through."""

    @pytest.mark.asyncio
    async def test_miss_fetches_and_stores(self, service, cache, fetcher, clock):
        """Test a missing entry is fetched synchronously and cached."""
        result = await service.get_press_releases(offset=0, limit=20)

        assert result.cache_status is CacheStatus.MISS
        assert result.payload == LISTING
        assert result.cache_control == "no-cache"
        fetcher.fetch_page.assert_awaited_once_with(0, 20)

        entry = await cache.get("list:0:20")
        assert entry.payload == LISTING
        assert entry.stored_at == clock.now

    @pytest.mark.asyncio
    async def test_caller_mutation_does_not_reach_cache(self, service, fetcher):
        """Test changing a served payload leaves the cached copy intact."""
        fetcher.fetch_page.return_value = copy.deepcopy(LISTING)

        first = await service.get_press_releases(offset=0, limit=20)
        first.payload["items"].append({"id": "injected"})
        second = await service.get_press_releases(offset=0, limit=20)

        assert second.cache_status is CacheStatus.HIT
        assert second.payload == LISTING
        second.payload["items"].clear()

        third = await service.get_press_releases(offset=0, limit=20)
        assert third.payload == LISTING

    @pytest.mark.asyncio
    async def test_fresh_entry_is_hit(self, service, cache, fetcher, scheduler, clock):
        """Test an entry younger than the TTL is served without fetching."""
        await seed(cache, "list:0:20", {"items": ["cached"]})
        clock.now = STORED_AT + 250

        result = await service.get_press_releases(offset=0, limit=20)

        assert result.cache_status is CacheStatus.HIT
        assert result.payload == {"items": ["cached"]}
        assert result.cache_control == "max-age=300, stale-while-revalidate=30"
        fetcher.fetch_page.assert_not_awaited()
        scheduler.refresh.assert_not_called()

    @pytest.mark.asyncio
    async def test_stale_entry_served_and_refreshed(self, service, cache, fetcher, scheduler, clock):
        """Test a stale entry is served while exactly one refresh is scheduled."""
        await seed(cache, "list:0:20", {"items": ["cached"]})
        clock.now = STORED_AT + 310

        result = await service.get_press_releases(offset=0, limit=20)

        assert result.cache_status is CacheStatus.STALE
        assert result.payload == {"items": ["cached"]}
        assert result.cache_control == "no-cache"
        fetcher.fetch_page.assert_not_awaited()
        scheduler.refresh.assert_called_once()
        assert scheduler.refresh.call_args.args[0] == "list:0:20"

    @pytest.mark.asyncio
    async def test_scheduled_refresh_fetches_same_page(self, service, cache, fetcher, scheduler, clock):
        """Test the refresh callable fetches the page that went stale."""
        await seed(cache, "list:40:20", [])
        clock.now = STORED_AT + 310

        await service.get_press_releases(offset=40, limit=20)
        fetch_func = scheduler.refresh.call_args.args[1]
        await fetch_func()

        fetcher.fetch_page.assert_awaited_once_with(40, 20)

    @pytest.mark.asyncio
    async def test_expired_entry_fetched(self, service, cache, fetcher, scheduler, clock):
        """Test an entry beyond TTL + SWR window is refetched synchronously."""
        await seed(cache, "list:0:20", {"items": ["old"]})
        clock.now = STORED_AT + 400

        result = await service.get_press_releases(offset=0, limit=20)

        assert result.cache_status is CacheStatus.MISS
        assert result.payload == LISTING
        scheduler.refresh.assert_not_called()
        assert (await cache.get("list:0:20")).stored_at == STORED_AT + 400

    @pytest.mark.asyncio
    async def test_no_cache_bypasses_cache(self, fetcher, scheduler, clock):
        """Test no_cache neither reads nor writes the cache."""
        cache = MagicMock(spec=CacheManager)
        cache.get = AsyncMock()
        cache.set = AsyncMock()
        service = PressReleaseService(cache, fetcher, scheduler, CacheTTL(clock=clock))

        result = await service.get_press_releases(offset=0, limit=20, no_cache=True)

        assert result.cache_status is CacheStatus.MISS
        assert result.cache_control == "no-cache"
        cache.get.assert_not_awaited()
        cache.set.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_upstream_failure_propagates(self, service, cache, fetcher):
        """Test list failures surface and leave the cache untouched."""
        fetcher.fetch_page.side_effect = UpstreamUnavailableError("down", status_code=503)

        with pytest.raises(UpstreamUnavailableError):
            await service.get_press_releases(offset=0, limit=20)

        assert await cache.get("list:0:20") is None

    @pytest.mark.asyncio
    async def test_pages_cached_independently(self, service, fetcher):
        """Test different offset/limit pairs use different keys."""
        await service.get_press_releases(offset=0, limit=20)
        await service.get_press_releases(offset=20, limit=20)
        await service.get_press_releases(offset=0, limit=20)

        assert fetcher.fetch_page.await_count == 2


class TestGetPressRelease:
    """Test suite for the single-item read-through."""

    @pytest.mark.asyncio
    async def test_miss_fetches_and_stores(self, service, cache, fetcher):
        result = await service.get_press_release("1")

        assert result.cache_status is CacheStatus.MISS
        assert result.payload == {"id": "1", "title": "Een"}
        assert (await cache.get("item:1")).payload == {"id": "1", "title": "Een"}
        assert fetcher.fetch_by_id.await_args.args[0] == "1"

    @pytest.mark.asyncio
    async def test_fresh_entry_is_hit(self, service, cache, fetcher, clock):
        await seed(cache, "item:1", {"id": "1", "title": "cached"})
        clock.now = STORED_AT + 10

        result = await service.get_press_release(1)

        assert result.cache_status is CacheStatus.HIT
        assert result.payload == {"id": "1", "title": "cached"}
        fetcher.fetch_by_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stale_entry_served_and_refreshed(self, service, cache, scheduler, clock):
        await seed(cache, "item:1", {"id": "1", "title": "cached"})
        clock.now = STORED_AT + TTL

        result = await service.get_press_release("1")

        assert result.cache_status is CacheStatus.STALE
        scheduler.refresh.assert_called_once()
        assert scheduler.refresh.call_args.args[0] == "item:1"

    @pytest.mark.asyncio
    async def test_not_found_propagates(self, service, cache, fetcher):
        """Test NotFound is raised and nothing is cached."""
        fetcher.fetch_by_id.side_effect = NotFoundError("press_release", "999")

        with pytest.raises(NotFoundError):
            await service.get_press_release("999")

        assert await cache.get("item:999") is None

    @pytest.mark.asyncio
    async def test_no_cache_bypasses_cache(self, fetcher, scheduler, clock):
        cache = MagicMock(spec=CacheManager)
        cache.get = AsyncMock()
        cache.set = AsyncMock()
        service = PressReleaseService(cache, fetcher, scheduler, CacheTTL(clock=clock))

        result = await service.get_press_release("1", no_cache=True)

        assert result.cache_status is CacheStatus.MISS
        cache.get.assert_not_awaited()
        cache.set.assert_not_awaited()


class TestListingFallback:
    """Test suite for the listing loader handed to item lookups."""

    @pytest.mark.asyncio
    async def test_reuses_cached_bulk_listing(self, service, cache, fetcher, clock):
        """Test a usable cached bulk listing is scanned without refetching."""
        await seed(cache, "list:0:100", LISTING)
        clock.now = STORED_AT + 310

        await service.get_press_release("2")
        loader = fetcher.fetch_by_id.await_args.kwargs["listing_loader"]

        assert await loader() == LISTING
        fetcher.fetch_page.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fetches_and_stores_bulk_listing(self, service, cache, fetcher):
        """Test a missing bulk listing is fetched and cached for later lookups."""
        await service.get_press_release("2")
        loader = fetcher.fetch_by_id.await_args.kwargs["listing_loader"]

        assert await loader() == LISTING
        fetcher.fetch_page.assert_awaited_once_with(0, 100)
        assert (await cache.get("list:0:100")).payload == LISTING

    @pytest.mark.asyncio
    async def test_expired_bulk_listing_refetched(self, service, cache, fetcher, clock):
        await seed(cache, "list:0:100", {"items": []})
        clock.now = STORED_AT + 400

        await service.get_press_release("2")
        loader = fetcher.fetch_by_id.await_args.kwargs["listing_loader"]

        assert await loader() == LISTING
        fetcher.fetch_page.assert_awaited_once_with(0, 100)

    @pytest.mark.asyncio
    async def test_no_cache_loader_skips_cache(self, fetcher, scheduler, clock):
        """Test the loader of a no_cache lookup fetches directly."""
        cache = MagicMock(spec=CacheManager)
        cache.get = AsyncMock()
        cache.set = AsyncMock()
        service = PressReleaseService(cache, fetcher, scheduler, CacheTTL(clock=clock))

        await service.get_press_release("2", no_cache=True)
        loader = fetcher.fetch_by_id.await_args.kwargs["listing_loader"]

        assert await loader() == LISTING
        cache.get.assert_not_awaited()
        cache.set.assert_not_awaited()
