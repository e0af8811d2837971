"""Pydantic models for HTTP responses."""
