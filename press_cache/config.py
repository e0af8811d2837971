"""Service configuration loaded from environment variables."""

import os
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_UPSTREAM_ORIGIN = "https://www.rtl.nl/data"
DEFAULT_REDIS_URL = "redis://localhost:6379/0"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """
    Runtime settings for the press-release cache service.

    Every field maps to one environment variable (see ``from_env``).
    Values are validated on construction so a bad deployment fails at
    startup instead of on the first request.
    """

    upstream_origin: str = Field(DEFAULT_UPSTREAM_ORIGIN, min_length=1)
    upstream_timeout: float = Field(15.0, gt=0)
    upstream_bulk_limit: int = Field(100, ge=1)
    upstream_rate_limit_calls: int = Field(100, ge=1)
    upstream_rate_limit_period: int = Field(60, ge=1)

    redis_url: str = DEFAULT_REDIS_URL
    redis_probe_timeout: float = Field(1.0, gt=0)
    redis_operation_timeout: float = Field(2.0, gt=0)

    cache_ttl: int = Field(60, ge=1, description="Seconds an entry stays fresh")
    cache_swr_window: int = Field(
        30, ge=0, description="Seconds a stale entry is still served"
    )
    revalidation_coalesce: bool = False

    admin_token: Optional[str] = None

    log_level: str = "INFO"
    environment: str = "production"
    host: str = "0.0.0.0"
    port: int = Field(8000, ge=1, le=65535)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from the process environment.

        Returns:
            Validated Settings instance

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value
        """
        return cls(
            upstream_origin=os.getenv("UPSTREAM_ORIGIN", DEFAULT_UPSTREAM_ORIGIN),
            upstream_timeout=os.getenv("UPSTREAM_TIMEOUT", "15.0"),
            upstream_bulk_limit=os.getenv("UPSTREAM_BULK_LIMIT", "100"),
            upstream_rate_limit_calls=os.getenv("UPSTREAM_RATE_LIMIT_CALLS", "100"),
            upstream_rate_limit_period=os.getenv("UPSTREAM_RATE_LIMIT_PERIOD", "60"),
            redis_url=os.getenv("REDIS_URL", DEFAULT_REDIS_URL),
            redis_probe_timeout=os.getenv("REDIS_PROBE_TIMEOUT", "1.0"),
            redis_operation_timeout=os.getenv("REDIS_OPERATION_TIMEOUT", "2.0"),
            cache_ttl=os.getenv("CACHE_TTL", "60"),
            cache_swr_window=os.getenv("CACHE_SWR_WINDOW", "30"),
            revalidation_coalesce=_env_bool("REVALIDATION_COALESCE"),
            admin_token=os.getenv("ADMIN_TOKEN") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            environment=os.getenv("ENVIRONMENT", "production"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=os.getenv("PORT", "8000"),
        )
