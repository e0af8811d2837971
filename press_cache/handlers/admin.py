"""Administrative cache operations."""

import hmac
from typing import Optional

from press_cache.cache import CacheManager
from press_cache.models.responses import ClearCacheResponse
from press_cache.utils.logger import get_logger

logger = get_logger(__name__)


class UnauthorizedError(Exception):
    """Raised when the admin token is missing or does not match."""

    def __init__(self, message: str = "Unauthorized") -> None:
        self.message = message
        super().__init__(message)


def verify_admin_token(expected: Optional[str], provided: Optional[str]) -> None:
    """
    Check the caller's admin token.

    A service without a configured token rejects every caller.

    Raises:
        UnauthorizedError: If the token is missing or mismatched
    """
    if not expected or not provided:
        raise UnauthorizedError()

    if not hmac.compare_digest(expected.encode(), provided.encode()):
        raise UnauthorizedError()


async def clear_cache(
    cache: CacheManager,
    expected_token: Optional[str],
    provided_token: Optional[str],
) -> ClearCacheResponse:
    """
    Delete every cached entry after verifying the admin token.

    Raises:
        UnauthorizedError: If the token check fails (nothing is deleted)
        CacheError: If the durable backend fails while clearing
    """
    try:
        verify_admin_token(expected_token, provided_token)
    except UnauthorizedError:
        logger.warning("cache_clear_unauthorized", token_provided=provided_token is not None)
        raise

    cleared_keys = await cache.clear()

    if cleared_keys:
        message = f"Successfully cleared {len(cleared_keys)} cache entries"
    else:
        message = "No cache entries to clear"

    return ClearCacheResponse(message=message, clearedKeys=cleared_keys)
