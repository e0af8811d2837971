"""Stale-while-revalidate cache in front of the press-release API."""

__version__ = "1.0.0"
