"""Cache entry envelope stored under every cache key."""

import json
import time
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class CacheEntry(BaseModel):
    """
    Upstream payload plus the moment it was stored.

    Entries are frozen: a refresh writes a new entry under the same key
    rather than mutating the existing one.

    Attributes:
        payload: Opaque JSON-serializable upstream data
        stored_at: Unix timestamp (seconds) of the write
    """

    model_config = ConfigDict(frozen=True)

    payload: Any
    stored_at: float = Field(..., description="Unix timestamp of the write")

    @classmethod
    def create(cls, payload: Any, now: Optional[float] = None) -> "CacheEntry":
        """Wrap a payload stamped with the current time."""
        return cls(payload=payload, stored_at=time.time() if now is None else now)

    def age(self, now: float) -> float:
        return now - self.stored_at

    def to_json(self) -> str:
        """
        Serialize for storage in either backend.

        Raises:
            TypeError: If the payload is not JSON-serializable
        """
        return json.dumps({"payload": self.payload, "stored_at": self.stored_at})

    @classmethod
    def from_json(cls, raw: str) -> "CacheEntry":
        """
        Parse an entry written by ``to_json``.

        Raises:
            ValueError: If the value is not valid JSON, lacks the envelope
                or carries a stored_at that is not a number
        """
        data = json.loads(raw)
        if not isinstance(data, dict) or "payload" not in data or "stored_at" not in data:
            raise ValueError("Cached value is not a cache entry envelope")
        return cls.model_validate({"payload": data["payload"], "stored_at": data["stored_at"]})
