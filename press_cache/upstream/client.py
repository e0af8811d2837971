"""
Upstream press-release API client using httpx.

This module provides the ContentFetcher, which calls the origin with a
bounded timeout and recovers single-item lookups through a scan of the
bulk listing when the direct endpoint misbehaves.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Union
from urllib.parse import quote

import httpx

from press_cache.config import DEFAULT_UPSTREAM_ORIGIN
from press_cache.upstream.exceptions import (
    NotFoundError,
    UpstreamError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from press_cache.upstream.rate_limiter import TokenBucketRateLimiter


logger = logging.getLogger(__name__)

ListingLoader = Callable[[], Awaitable[Any]]


def extract_items(listing: Any) -> List[Any]:
    """
    Return the items of a listing payload.

    The origin answers either with a bare array or with ``{"items": [...]}``;
    anything else is treated as an empty listing.
    """
    if isinstance(listing, list):
        return listing
    if isinstance(listing, dict) and isinstance(listing.get("items"), list):
        return listing["items"]
    return []


def find_item(listing: Any, press_release_id: str) -> Optional[Any]:
    """Linear scan of a listing for the item whose id matches as a string."""
    for item in extract_items(listing):
        if isinstance(item, dict) and item.get("id") is not None:
            if str(item["id"]) == press_release_id:
                return item
    return None


class ContentFetcher:
    """
    Client for the upstream press-release origin.

    Attributes:
        origin: Base URL of the origin, e.g. https://www.rtl.nl/data
        timeout: Hard bound in seconds for each upstream request
        bulk_limit: Page size used for the listing fallback scan
        rate_limiter: Optional limiter acquired before every request

    Example:
        >>> fetcher = ContentFetcher("https://www.rtl.nl/data")
        >>> page = await fetcher.fetch_page(0, 20)
        >>> item = await fetcher.fetch_by_id("1234")
    """

    def __init__(
        self,
        origin: str = DEFAULT_UPSTREAM_ORIGIN,
        timeout: float = 15.0,
        bulk_limit: int = 100,
        rate_limiter: Optional[TokenBucketRateLimiter] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.origin = origin.rstrip("/")
        self.timeout = timeout
        self.bulk_limit = bulk_limit
        self.rate_limiter = rate_limiter
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    async def _get_json(self, path: str, params: Optional[dict] = None) -> Any:
        """
        GET a JSON document from the origin.

        The ``timeout`` bound covers the wait for a rate-limiter slot as
        well as the request itself.

        Raises:
            UpstreamTimeoutError: If the request exceeds ``timeout``
            UpstreamUnavailableError: On network errors, non-2xx or invalid JSON
        """
        url = f"{self.origin}{path}"

        async def send() -> httpx.Response:
            if self.rate_limiter is not None:
                await self.rate_limiter.acquire()
            return await self._client.get(url, params=params)

        try:
            response = await asyncio.wait_for(send(), self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning(f"Upstream request timed out: {url}")
            raise UpstreamTimeoutError(timeout_seconds=self.timeout) from e
        except httpx.HTTPError as e:
            logger.warning(f"Upstream request failed: {url}: {e}")
            raise UpstreamUnavailableError(f"Upstream request failed: {e}") from e

        if not response.is_success:
            logger.warning(
                "Upstream returned error status",
                extra={"url": url, "status_code": response.status_code},
            )
            raise UpstreamUnavailableError(
                f"Upstream returned status: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamUnavailableError(
                "Upstream returned invalid JSON",
                status_code=response.status_code,
            ) from e

    async def fetch_page(self, offset: int = 0, limit: int = 20) -> Any:
        """
        Fetch one page of the upstream listing.

        There is no fallback: a failure here is surfaced to the caller.

        Raises:
            UpstreamUnavailableError: If the origin cannot serve the page
        """
        logger.debug(f"Fetching press releases offset={offset} limit={limit}")
        return await self._get_json(
            "/press-releases",
            params={"offset": offset, "limit": limit},
        )

    async def fetch_by_id(
        self,
        press_release_id: Union[str, int],
        listing_loader: Optional[ListingLoader] = None,
    ) -> Any:
        """
        Fetch a single press release, falling back to a listing scan.

        The origin has a history of transient errors on direct item
        lookups while the bulk listing stays reliable, so any failure of
        the direct call (404 included) triggers a scan of the listing.

        Args:
            press_release_id: Identifier, compared as a string
            listing_loader: Optional coroutine function returning the
                listing to scan; defaults to fetching offset 0 with
                ``bulk_limit`` items

        Returns:
            The press release payload

        Raises:
            NotFoundError: If neither the direct lookup nor the scan finds it
            UpstreamUnavailableError: If the listing cannot be loaded either
        """
        press_release_id = str(press_release_id)

        try:
            return await self._get_json(f"/press-releases/{quote(press_release_id, safe='')}")
        except UpstreamError as e:
            logger.warning(
                f"Direct lookup failed for press release {press_release_id}, "
                f"scanning listing: {e}"
            )

        if listing_loader is None:
            listing = await self.fetch_page(0, self.bulk_limit)
        else:
            listing = await listing_loader()

        item = find_item(listing, press_release_id)
        if item is None:
            logger.info(f"Press release {press_release_id} not found in listing")
            raise NotFoundError("press_release", press_release_id)

        return item

    async def close(self) -> None:
        """Close the underlying HTTP client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()
