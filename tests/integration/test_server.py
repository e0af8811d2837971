"""
Integration tests for the HTTP surface.

Runs the FastAPI app in-process with a local-only cache, a mocked
upstream fetcher and a mocked revalidation scheduler.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from press_cache.cache import CacheError, CacheManager, CacheTTL, RevalidationScheduler
from press_cache.config import Settings
from press_cache.server import SERVER_VERSION, create_app
from press_cache.upstream import ContentFetcher, NotFoundError, UpstreamUnavailableError

ADMIN_TOKEN = "integration-admin-token"
STORED_AT = 1_000_000.0

LISTING = {"items": [{"id": "1", "title": "Een"}]}


class Clock:
    def __init__(self):
        self.now = STORED_AT

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def fetcher():
    fetcher = MagicMock(spec=ContentFetcher)
    fetcher.bulk_limit = 100
    fetcher.fetch_page = AsyncMock(return_value=LISTING)
    fetcher.fetch_by_id = AsyncMock(return_value={"id": "1", "title": "Een"})
    fetcher.close = AsyncMock()
    return fetcher


@pytest.fixture
def scheduler():
    scheduler = MagicMock(spec=RevalidationScheduler)
    scheduler.shutdown = AsyncMock()
    return scheduler


@pytest.fixture
def cache():
    return CacheManager()


@pytest.fixture
def client(cache, fetcher, scheduler, clock):
    app = create_app(
        Settings(admin_token=ADMIN_TOKEN),
        cache=cache,
        fetcher=fetcher,
        scheduler=scheduler,
        policy=CacheTTL(ttl=300, swr_window=30, clock=clock),
    )
    with TestClient(app) as test_client:
        yield test_client


class TestPressReleaseEndpoints:
    """Test suite for GET /press-releases and GET /press-releases/{id}."""

    def test_list_miss_then_hit(self, client, fetcher, clock):
        """Test the first request fetches and the second is served from cache."""
        first = client.get("/press-releases", params={"offset": 0, "limit": 20})
        clock.now += 10
        second = client.get("/press-releases", params={"offset": 0, "limit": 20})

        assert first.status_code == 200
        assert first.json() == LISTING
        assert first.headers["X-Cache"] == "MISS"
        assert first.headers["Cache-Control"] == "no-cache"

        assert second.status_code == 200
        assert second.headers["X-Cache"] == "HIT"
        assert second.headers["Cache-Control"] == "max-age=300, stale-while-revalidate=30"
        fetcher.fetch_page.assert_awaited_once_with(0, 20)

    def test_list_defaults(self, client, fetcher):
        client.get("/press-releases")

        fetcher.fetch_page.assert_awaited_once_with(0, 20)

    def test_list_stale_schedules_refresh(self, client, scheduler, clock):
        """Test a stale entry is served with X-Cache: STALE and one refresh."""
        client.get("/press-releases")
        clock.now += 310

        response = client.get("/press-releases")

        assert response.status_code == 200
        assert response.headers["X-Cache"] == "STALE"
        assert response.headers["Cache-Control"] == "no-cache"
        assert response.json() == LISTING
        scheduler.refresh.assert_called_once()

    def test_list_no_cache(self, client, fetcher):
        client.get("/press-releases")

        response = client.get("/press-releases", params={"no_cache": "true"})

        assert response.headers["X-Cache"] == "MISS"
        assert fetcher.fetch_page.await_count == 2

    def test_list_upstream_failure(self, client, fetcher):
        fetcher.fetch_page.side_effect = UpstreamUnavailableError("down", status_code=503)

        response = client.get("/press-releases")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch press releases"}

    @pytest.mark.parametrize("params", [{"offset": "abc"}, {"offset": -1}, {"limit": 0}])
    def test_list_invalid_params(self, client, params):
        response = client.get("/press-releases", params=params)

        assert response.status_code == 422

    def test_item_found(self, client, fetcher):
        response = client.get("/press-releases/1")

        assert response.status_code == 200
        assert response.json() == {"id": "1", "title": "Een"}
        assert response.headers["X-Cache"] == "MISS"
        assert fetcher.fetch_by_id.await_args.args[0] == "1"

    def test_item_not_found(self, client, fetcher):
        fetcher.fetch_by_id.side_effect = NotFoundError("press_release", "999")

        response = client.get("/press-releases/999")

        assert response.status_code == 404
        assert response.json() == {"error": "Press release not found"}

    def test_item_upstream_failure(self, client, fetcher):
        fetcher.fetch_by_id.side_effect = UpstreamUnavailableError("down")

        response = client.get("/press-releases/1")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch press release"}


class TestCacheClearEndpoint:
    """Test suite for POST /cache/clear."""

    def test_requires_token(self, client):
        response = client.post("/cache/clear")

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_wrong_token_keeps_entries(self, client, fetcher):
        client.get("/press-releases")

        response = client.post("/cache/clear", headers={"x-admin-token": "nope"})
        client.get("/press-releases")

        assert response.status_code == 401
        fetcher.fetch_page.assert_awaited_once()

    def test_clears_entries(self, client, fetcher):
        client.get("/press-releases")
        client.get("/press-releases/1")

        response = client.post("/cache/clear", headers={"x-admin-token": ADMIN_TOKEN})

        assert response.status_code == 200
        assert response.json() == {
            "message": "Successfully cleared 2 cache entries",
            "clearedKeys": ["item:1", "list:0:20"],
        }

        after = client.get("/press-releases")
        assert after.headers["X-Cache"] == "MISS"

    def test_nothing_to_clear(self, client):
        response = client.post("/cache/clear", headers={"x-admin-token": ADMIN_TOKEN})

        assert response.status_code == 200
        assert response.json()["message"] == "No cache entries to clear"

    def test_cache_failure(self, client, cache):
        cache.clear = AsyncMock(side_effect=CacheError("redis down", backend="redis"))

        response = client.post("/cache/clear", headers={"x-admin-token": ADMIN_TOKEN})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to clear cache"}


class TestHealthEndpoint:
    """Test suite for GET /health."""

    def test_local_only_is_degraded(self, client):
        """Test a service without Redis reports itself degraded."""
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "degraded"
        assert body["version"] == SERVER_VERSION
        assert body["components"]["redis"] == "unconfigured"
        assert body["components"]["local_cache"] == "healthy"

    @pytest.mark.parametrize("reachable,redis_status,overall", [
        (True, "healthy", "healthy"),
        (False, "unhealthy", "degraded"),
    ])
    def test_redis_status(self, fetcher, scheduler, reachable, redis_status, overall):
        durable = MagicMock()
        durable.name = "redis"
        durable.is_available = AsyncMock(return_value=reachable)
        app = create_app(
            Settings(),
            cache=CacheManager(durable=durable),
            fetcher=fetcher,
            scheduler=scheduler,
        )

        with TestClient(app) as test_client:
            body = test_client.get("/health").json()

        assert body["status"] == overall
        assert body["components"]["redis"] == redis_status
