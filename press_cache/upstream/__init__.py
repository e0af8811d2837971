"""
Upstream press-release API integration.

This package provides:
- ContentFetcher: httpx client with timeout and listing fallback
- Custom exception hierarchy for error handling
- Rate limiting (TokenBucketRateLimiter)

Example:
    >>> from press_cache.upstream import ContentFetcher
    >>> fetcher = ContentFetcher("https://www.rtl.nl/data")
    >>> release = await fetcher.fetch_by_id("1234")
"""

from press_cache.upstream.client import ContentFetcher, extract_items, find_item
from press_cache.upstream.exceptions import (
    NotFoundError,
    UpstreamError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from press_cache.upstream.rate_limiter import TokenBucketRateLimiter

__all__ = [
    # Client
    "ContentFetcher",
    "extract_items",
    "find_item",
    # Exceptions
    "UpstreamError",
    "UpstreamUnavailableError",
    "UpstreamTimeoutError",
    "NotFoundError",
    # Rate limiting
    "TokenBucketRateLimiter",
]
