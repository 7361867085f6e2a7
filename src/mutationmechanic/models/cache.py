"""Cache entry model shared by both cache tiers."""

from typing import Any

from pydantic import BaseModel, Field


class CacheEntry(BaseModel):
    """A timestamped payload.

    Entries are never mutated in place; a write always produces a new entry.
    """

    key: str
    data: Any = None
    timestamp: int = Field(..., description="Creation/refresh time in epoch ms")

    def is_fresh(self, now: int, ttl_ms: int) -> bool:
        """Valid while strictly younger than the tier's TTL."""
        return now - self.timestamp < ttl_ms
