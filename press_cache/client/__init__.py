"""Caller-side client with a short-lived mirror cache."""

from press_cache.client.mirror import PressReleaseClient

__all__ = ["PressReleaseClient"]
