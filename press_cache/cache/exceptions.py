"""Errors raised by the cache layer.

Regular get/set operations never raise; they fall back to the local
backend. Only administrative operations surface failures.
"""

from typing import Optional


class CacheError(Exception):
    """Raised when an administrative cache operation cannot complete."""

    def __init__(self, message: str, backend: Optional[str] = None) -> None:
        self.message = message
        self.backend = backend
        super().__init__(message)
