"""Connection pool for the durable Redis cache backend.

Redis is optional at runtime: a bad URL or an unreachable server
degrades the service to its local backend instead of failing it, so
nothing in here raises to the caller.
"""

import asyncio
from typing import Optional

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

import structlog

from press_cache.config import DEFAULT_REDIS_URL, Settings

logger = structlog.get_logger(__name__)


def _redact(redis_url: str) -> str:
    """Drop the userinfo part of a Redis URL so passwords never reach logs."""
    return redis_url.split("@")[-1]


class RedisCache:
    """
    Owner of the Redis client and its connection pool.

    The pool dials lazily, so constructing this object never touches the
    network. ``client`` is None when the URL could not be parsed.

    Attributes:
        redis_url: Connection URL (credentials included, never logged)
        probe_timeout: Seconds a liveness probe may take
        pool: Connection pool, or None
        client: Client bound to the pool, or None
    """

    def __init__(
        self,
        redis_url: str = DEFAULT_REDIS_URL,
        probe_timeout: float = 1.0,
        socket_timeout: float = 2.0,
        max_connections: int = 20,
    ) -> None:
        self.redis_url = redis_url
        self.probe_timeout = probe_timeout
        self.pool: Optional[ConnectionPool] = None
        self.client: Optional[redis.Redis] = None

        try:
            self.pool = ConnectionPool.from_url(
                redis_url,
                max_connections=max_connections,
                decode_responses=True,
                socket_timeout=socket_timeout,
                socket_connect_timeout=socket_timeout,
            )
        except ValueError as e:
            logger.error(
                "redis_url_invalid",
                error=str(e),
                redis_url=_redact(redis_url),
            )
            return

        self.client = redis.Redis(connection_pool=self.pool)
        logger.info(
            "redis_pool_created",
            redis_url=_redact(redis_url),
            max_connections=max_connections,
            socket_timeout=socket_timeout,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisCache":
        """Build the connection from service settings."""
        return cls(
            settings.redis_url,
            probe_timeout=settings.redis_probe_timeout,
            socket_timeout=settings.redis_operation_timeout,
        )

    async def ping(self) -> bool:
        """
        Probe Redis, giving up after ``probe_timeout`` seconds.

        Returns:
            True if Redis answered PING in time
        """
        if self.client is None:
            return False

        try:
            return bool(await asyncio.wait_for(self.client.ping(), self.probe_timeout))
        except Exception as e:
            logger.warning(
                "redis_unreachable",
                error=str(e) or type(e).__name__,
                redis_url=_redact(self.redis_url),
            )
            return False

    async def close(self) -> None:
        """Release the client and every pooled connection."""
        if self.client is not None:
            try:
                await self.client.aclose()
                if self.pool is not None:
                    await self.pool.disconnect()
            except Exception as e:
                logger.error("redis_close_failed", error=str(e))
                return

        logger.info("redis_connection_closed")
