"""
Custom exceptions for the upstream press-release API.

Errors raised while talking to the origin. The handlers map NotFoundError
to HTTP 404 and every other UpstreamError to HTTP 500.
"""

from typing import Optional


class UpstreamError(Exception):
    """
    Base exception for all upstream API related errors.

    Use this for catching any error raised by the content fetcher.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        """
        Initialize UpstreamError.

        Args:
            message: Error description
            status_code: Optional HTTP status code returned by the origin
        """
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class UpstreamUnavailableError(UpstreamError):
    """
    Raised when the origin cannot serve a request.

    This occurs when:
    - The origin answers with a non-2xx status
    - The connection fails
    - The response body is not JSON

    Item lookups recover from it through the listing fallback; list
    lookups surface it as HTTP 500.

    Example:
        >>> raise UpstreamUnavailableError("Upstream returned 503", status_code=503)
    """


class UpstreamTimeoutError(UpstreamUnavailableError):
    """
    Raised when an upstream request exceeds its timeout.

    Treated exactly like any other unavailability.

    Example:
        >>> raise UpstreamTimeoutError(timeout_seconds=15.0)
    """

    def __init__(
        self,
        message: str = "Upstream request timed out",
        timeout_seconds: float = 15.0,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(f"{message} ({timeout_seconds}s)", status_code=408)


class NotFoundError(UpstreamError):
    """
    Raised when the origin confirms a resource does not exist.

    For press releases this means both the direct lookup and the listing
    scan came back without a match. Never retried.

    Example:
        >>> raise NotFoundError("press_release", "1234")
    """

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        message: Optional[str] = None,
    ) -> None:
        """
        Initialize NotFoundError.

        Args:
            resource_type: Type of resource (e.g. "press_release")
            resource_id: Identifier of the resource
            message: Optional custom error message
        """
        self.resource_type = resource_type
        self.resource_id = resource_id

        if message is None:
            label = resource_type.replace("_", " ").capitalize()
            message = f"{label} '{resource_id}' not found"

        super().__init__(message, status_code=404)
