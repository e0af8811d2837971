"""
Caller-side mirror cache for the press-release API.

Deduplicates bursts of identical requests (repeated renders during
scroll-triggered pagination) before they reach the network. It has no
revalidation of its own: entries simply age out after ``ttl`` seconds,
and a forced refresh bypasses the mirror and overwrites its entry.
"""

import time
from typing import Any, Callable, Dict, Optional, Tuple, Union
from urllib.parse import quote

import httpx
import structlog

from press_cache.cache.keys import key_generator
from press_cache.upstream.exceptions import UpstreamTimeoutError, UpstreamUnavailableError

logger = structlog.get_logger(__name__)


class PressReleaseClient:
    """
    HTTP client for the press-cache service with an in-process mirror.

    Attributes:
        base_url: Base URL of the press-cache service
        ttl: Seconds a mirrored response is reused
        timeout: Hard bound in seconds for each request

    Example:
        >>> client = PressReleaseClient("http://localhost:8000")
        >>> page = await client.get_press_releases(0, 20)
        >>> page = await client.get_press_releases(0, 20)  # served from the mirror
    """

    def __init__(
        self,
        base_url: str,
        ttl: float = 60.0,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.ttl = ttl
        self.timeout = timeout
        self.clock = clock or time.time
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def _lookup(self, key: str) -> Optional[Any]:
        cached = self._entries.get(key)
        if cached is None:
            return None

        data, stored_at = cached
        if self.clock() - stored_at < self.ttl:
            logger.debug("mirror_hit", key=key)
            return data
        return None

    def _remember(self, key: str, data: Any) -> None:
        self._entries[key] = (data, self.clock())

    async def _get(self, path: str, params: Dict[str, Any]) -> httpx.Response:
        try:
            return await self._client.get(
                f"{self.base_url}{path}", params=params, timeout=self.timeout
            )
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(timeout_seconds=self.timeout) from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailableError(f"Request failed: {e}") from e

    async def get_press_releases(
        self,
        offset: int = 0,
        limit: int = 20,
        force_refresh: bool = False,
    ) -> Any:
        """
        Get a page of press releases.

        Args:
            offset: Listing offset
            limit: Page size
            force_refresh: Skip the mirror and the server cache

        Raises:
            UpstreamUnavailableError: If the service answers with an error
        """
        key = key_generator.list_key(offset, limit)

        if not force_refresh:
            cached = self._lookup(key)
            if cached is not None:
                return cached

        params: Dict[str, Any] = {"offset": offset, "limit": limit}
        if force_refresh:
            params["no_cache"] = "true"

        response = await self._get("/press-releases", params)
        if not response.is_success:
            raise UpstreamUnavailableError(
                f"API returned error status: {response.status_code}",
                status_code=response.status_code,
            )

        data = response.json()
        self._remember(key, data)
        return data

    async def get_press_release(
        self,
        press_release_id: Union[str, int],
        force_refresh: bool = False,
    ) -> Optional[Any]:
        """
        Get a single press release.

        Returns:
            The press release, or None if the service answers 404

        Raises:
            UpstreamUnavailableError: If the service answers with another error
        """
        key = key_generator.item_key(press_release_id)

        if not force_refresh:
            cached = self._lookup(key)
            if cached is not None:
                return cached

        params: Dict[str, Any] = {}
        if force_refresh:
            params["no_cache"] = "true"

        path = f"/press-releases/{quote(str(press_release_id), safe='')}"
        response = await self._get(path, params)
        if response.status_code == 404:
            return None
        if not response.is_success:
            raise UpstreamUnavailableError(
                f"API returned error status: {response.status_code}",
                status_code=response.status_code,
            )

        data = response.json()
        self._remember(key, data)
        return data

    async def refresh_press_releases(self, offset: int = 0, limit: int = 20) -> Any:
        """Force a fresh page, bypassing every cache."""
        return await self.get_press_releases(offset, limit, force_refresh=True)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
