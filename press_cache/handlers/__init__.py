"""Endpoint handlers composing the cache, fetcher and scheduler."""

from press_cache.handlers.admin import UnauthorizedError, clear_cache, verify_admin_token
from press_cache.handlers.press_releases import PressReleaseService

__all__ = [
    "PressReleaseService",
    "UnauthorizedError",
    "clear_cache",
    "verify_admin_token",
]
