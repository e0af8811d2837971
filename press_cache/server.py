"""
FastAPI application initialization and configuration.

Sets up the HTTP surface, wires the cache, fetcher and scheduler
together, and maps domain errors to JSON error responses.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Header, Query, Request
from fastapi.responses import JSONResponse

from press_cache.cache import (
    CacheError,
    CacheManager,
    CacheTTL,
    LocalBackend,
    RedisBackend,
    RedisCache,
    RevalidationScheduler,
)
from press_cache.config import Settings
from press_cache.handlers import PressReleaseService, UnauthorizedError, clear_cache
from press_cache.models.responses import CachedResult, ErrorResponse, HealthCheckResponse
from press_cache.upstream import (
    ContentFetcher,
    NotFoundError,
    TokenBucketRateLimiter,
    UpstreamError,
)
from press_cache.utils.logger import get_logger

logger = get_logger(__name__)

SERVER_NAME = "press-cache"
SERVER_VERSION = "1.0.0"
SERVER_DESCRIPTION = "Stale-while-revalidate cache in front of the press-release API"


def _cached_response(result: CachedResult) -> JSONResponse:
    return JSONResponse(content=result.payload, headers=result.headers)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


def create_app(
    settings: Optional[Settings] = None,
    *,
    cache: Optional[CacheManager] = None,
    fetcher: Optional[ContentFetcher] = None,
    scheduler: Optional[RevalidationScheduler] = None,
    policy: Optional[CacheTTL] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Components not passed in are built from ``settings``; tests inject
    their own instances for isolation.

    Returns:
        Configured FastAPI app

    Example:
        >>> app = create_app(Settings.from_env())
        >>> # uvicorn.run(app)
    """
    settings = settings or Settings.from_env()
    redis_cache: Optional[RedisCache] = None

    if cache is None:
        redis_cache = RedisCache.from_settings(settings)
        cache = CacheManager(
            durable=RedisBackend(redis_cache, settings.redis_operation_timeout),
            local=LocalBackend(),
        )

    if policy is None:
        policy = CacheTTL(ttl=settings.cache_ttl, swr_window=settings.cache_swr_window)

    if fetcher is None:
        fetcher = ContentFetcher(
            settings.upstream_origin,
            timeout=settings.upstream_timeout,
            bulk_limit=settings.upstream_bulk_limit,
            rate_limiter=TokenBucketRateLimiter(
                max_calls=settings.upstream_rate_limit_calls,
                period_seconds=settings.upstream_rate_limit_period,
            ),
        )

    if scheduler is None:
        scheduler = RevalidationScheduler(
            cache, policy, coalesce=settings.revalidation_coalesce
        )

    service = PressReleaseService(cache, fetcher, scheduler, policy)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "server_started",
            name=SERVER_NAME,
            version=SERVER_VERSION,
            upstream_origin=settings.upstream_origin,
            ttl=policy.ttl,
            swr_window=policy.swr_window,
        )
        yield
        await scheduler.shutdown()
        await fetcher.close()
        if redis_cache is not None:
            await redis_cache.close()
        logger.info("server_shutdown_complete")

    app = FastAPI(
        title=SERVER_NAME,
        version=SERVER_VERSION,
        description=SERVER_DESCRIPTION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.service = service
    app.state.cache = cache

    setup_error_handling(app)
    register_routes(app)
    register_health_check(app)

    return app


def setup_error_handling(app: FastAPI) -> None:
    """
    Configure error handlers for the application.

    Status mapping:
        404: NotFoundError (press release absent upstream)
        401: UnauthorizedError (admin token missing or wrong)
        500: UpstreamError (origin failed with no usable fallback)
        500: CacheError (admin clear failed)
    """

    async def handle_errors(request: Request, error: Exception) -> JSONResponse:
        if isinstance(error, NotFoundError):
            logger.info("not_found", path=request.url.path, message=str(error))
            return _error_response(404, "Press release not found")

        if isinstance(error, UpstreamError):
            logger.error(
                "upstream_error",
                path=request.url.path,
                error_type=type(error).__name__,
                message=str(error),
                status_code=error.status_code,
            )
            if "press_release_id" in request.path_params:
                return _error_response(500, "Failed to fetch press release")
            return _error_response(500, "Failed to fetch press releases")

        if isinstance(error, UnauthorizedError):
            return _error_response(401, "Unauthorized")

        logger.error("cache_error", path=request.url.path, message=str(error))
        return _error_response(500, "Failed to clear cache")

    for error_class in (UpstreamError, UnauthorizedError, CacheError):
        app.add_exception_handler(error_class, handle_errors)


def register_routes(app: FastAPI) -> None:
    """Register the press-release and admin endpoints."""

    @app.get("/press-releases")
    async def list_press_releases(
        request: Request,
        offset: int = Query(0, ge=0),
        limit: int = Query(20, ge=1),
        no_cache: bool = Query(False),
    ) -> JSONResponse:
        """Get a page of press releases with stale-while-revalidate caching."""
        service: PressReleaseService = request.app.state.service
        result = await service.get_press_releases(offset, limit, no_cache=no_cache)
        return _cached_response(result)

    @app.get("/press-releases/{press_release_id}")
    async def get_press_release(
        request: Request,
        press_release_id: str,
        no_cache: bool = Query(False),
    ) -> JSONResponse:
        """Get a single press release with stale-while-revalidate caching."""
        service: PressReleaseService = request.app.state.service
        result = await service.get_press_release(press_release_id, no_cache=no_cache)
        return _cached_response(result)

    @app.post("/cache/clear")
    async def clear_all_cache(
        request: Request,
        x_admin_token: Optional[str] = Header(None),
    ) -> JSONResponse:
        """Delete every cached entry. Requires the x-admin-token header."""
        response = await clear_cache(
            request.app.state.cache,
            request.app.state.settings.admin_token,
            x_admin_token,
        )
        return JSONResponse(content=response.model_dump())


def register_health_check(app: FastAPI) -> None:
    """Register the health check endpoint."""

    @app.get("/health")
    async def health_check(request: Request) -> dict:
        """
        Health check endpoint for monitoring.

        The service stays usable when Redis is down (local fallback), so
        an unreachable Redis reports "degraded", never "unhealthy".
        """
        cache: CacheManager = request.app.state.cache

        redis_status = "unconfigured"
        if cache.durable is not None:
            reachable = await cache.durable.is_available()
            redis_status = "healthy" if reachable else "unhealthy"

        components = {
            "server": "healthy",
            "redis": redis_status,
            "local_cache": "healthy",
        }

        if all(status == "healthy" for status in components.values()):
            overall_status = "healthy"
        else:
            overall_status = "degraded"

        response = HealthCheckResponse(
            status=overall_status,
            version=SERVER_VERSION,
            components=components,
        )

        logger.debug("health_check_performed", status=overall_status)

        return response.model_dump()
