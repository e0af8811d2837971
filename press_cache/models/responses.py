"""
Pydantic response models for the HTTP surface.

Defines the cache status reported to callers, the result of a
read-through lookup, and the bodies of error, admin and health responses.
"""
from enum import Enum
from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field


class CacheStatus(str, Enum):
    """Value of the X-Cache response header."""

    HIT = "HIT"
    STALE = "STALE"
    MISS = "MISS"


class CachedResult(BaseModel):
    """
    Outcome of a read-through lookup.

    Example:
        >>> result = CachedResult(
        ...     payload={"id": "1234"},
        ...     cache_status=CacheStatus.HIT,
        ...     cache_control="max-age=60, stale-while-revalidate=30",
        ... )
    """

    payload: Any = Field(..., description="Opaque upstream payload")
    cache_status: CacheStatus = Field(..., description="Branch that produced the payload")
    cache_control: str = Field("no-cache", description="Cache-Control header value")

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "X-Cache": self.cache_status.value,
            "Cache-Control": self.cache_control,
        }


class ErrorResponse(BaseModel):
    """Error body returned with 4xx/5xx responses."""

    error: str = Field(..., description="Human-readable error message")


class ClearCacheResponse(BaseModel):
    """Body of a successful POST /cache/clear."""

    message: str
    clearedKeys: List[str] = Field(default_factory=list)


class HealthCheckResponse(BaseModel):
    """
    Health check response.

    Status is "healthy" when every component is healthy and "degraded"
    when the service runs on a fallback (e.g. Redis unreachable).
    """

    status: Literal["healthy", "degraded", "unhealthy"]
    version: str
    components: Dict[str, str] = Field(default_factory=dict)
