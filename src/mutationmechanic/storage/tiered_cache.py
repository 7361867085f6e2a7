"""Two-tier key/value cache.

ARCHITECTURE:
    get(key) → fast tier (7 days) → durable tier (30 days, promotes on hit) → MISSING
    set(key) → fast tier + durable tier, independently

Key Design:
- Fast tier: synchronous string store (KeyValueStore), read first
- Durable tier: SQLAlchemy store with indices, also the handle for history queries
- Storage failures are logged and behave like a miss or a skipped write
- A durable hit refreshes the fast tier with a new timestamp
- Retention sweep of history older than one year runs once when the cache opens
- MISSING marks "no value" so a cached None is still a hit
- Per-key durable reads and writes run in a worker thread via asyncio.to_thread;
  opening (schema migration, retention sweep) runs inline once
"""

import asyncio
import json
import logging
from typing import Any

from mutationmechanic.config import Settings
from mutationmechanic.constants import (
    ARCHIVE_THRESHOLD_MS,
    DURABLE_TIER_TTL_MS,
    FAST_TIER_FILENAME,
    FAST_TIER_TTL_MS,
)
from mutationmechanic.models.cache import CacheEntry
from mutationmechanic.storage.durable import DurableStore
from mutationmechanic.storage.kv import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore
from mutationmechanic.utils.timeutils import Clock, now_ms

logger = logging.getLogger(__name__)


class _Missing:
    """Sentinel type for a cache miss."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class TieredCache:
    """Fast short-lived tier in front of a durable indexed tier.

    Both tiers key on the same string. Callers namespace their keys with a
    prefix (e.g., ``alphagenome_cache_``); nothing enforces it.
    """

    def __init__(
        self,
        fast: KeyValueStore | None = None,
        durable_url: str | None = None,
        clock: Clock | None = None,
        fast_ttl_ms: int = FAST_TIER_TTL_MS,
        durable_ttl_ms: int = DURABLE_TIER_TTL_MS,
        archive_threshold_ms: int = ARCHIVE_THRESHOLD_MS,
    ) -> None:
        """Initialize the cache. Storage is opened lazily or via ``async with``.

        Args:
            fast: Fast-tier backend. Defaults to an in-memory store
            durable_url: SQLAlchemy URL for the durable tier. None runs fast-tier only
            clock: Epoch-millisecond clock
            fast_ttl_ms: Fast-tier entry lifetime
            durable_ttl_ms: Durable-tier entry lifetime
            archive_threshold_ms: Age past which history records are swept
        """
        self.fast = fast if fast is not None else MemoryKeyValueStore()
        self.durable_url = durable_url
        self.fast_ttl_ms = fast_ttl_ms
        self.durable_ttl_ms = durable_ttl_ms
        self.archive_threshold_ms = archive_threshold_ms
        self._clock = clock or now_ms
        self._durable: DurableStore | None = None
        self._opened = False
        self._maintenance_done = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "TieredCache":
        fast = FileKeyValueStore(
            settings.cache_dir / FAST_TIER_FILENAME,
            quota_bytes=settings.fast_tier_quota_bytes,
        )
        return cls(fast=fast, durable_url=settings.database_url)

    async def __aenter__(self) -> "TieredCache":
        await self.open()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def now(self) -> int:
        return self._clock()

    async def open(self) -> None:
        """Open the durable tier and run the retention sweep."""
        if self._opened:
            return
        self._opened = True

        if self.durable_url:
            try:
                self._durable = DurableStore(self.durable_url)
            except Exception as e:
                logger.warning("Durable cache tier unavailable (%s): %s", self.durable_url, e)
                self._durable = None

        await self._perform_maintenance()

    async def close(self) -> None:
        if self._durable:
            self._durable.dispose()
            self._durable = None
        self._opened = False

    async def get_db(self) -> DurableStore | None:
        """Durable-tier handle for indexed queries, or None when unavailable."""
        await self.open()
        return self._durable

    async def _perform_maintenance(self) -> None:
        # Once per instance; failures are logged and not retried
        if self._maintenance_done or self._durable is None:
            return
        self._maintenance_done = True

        cutoff = self.now() - self.archive_threshold_ms
        try:
            deleted = self._durable.delete_history_before(cutoff)
        except Exception as e:
            logger.warning("History retention sweep failed: %s", e)
            return
        if deleted:
            logger.info("Retention sweep removed %d history records older than %d", deleted, cutoff)

    async def set(self, key: str, data: Any) -> None:
        """Write ``data`` to both tiers. Never raises for storage failures."""
        entry = CacheEntry(key=key, data=data, timestamp=self.now())
        self._write_fast(entry)

        durable = await self.get_db()
        if durable is None:
            return
        try:
            await asyncio.to_thread(durable.put_entry, entry)
        except Exception as e:
            logger.warning("Durable tier write failed for %s: %s", key, e)

    async def get(self, key: str) -> Any:
        """Read through both tiers.

        Returns:
            The cached data, or MISSING when neither tier holds a fresh entry
        """
        now = self.now()

        value = self._read_fast(key, now)
        if value is not MISSING:
            return value

        durable = await self.get_db()
        if durable is None:
            return MISSING

        try:
            entry = await asyncio.to_thread(durable.get_entry, key)
        except Exception as e:
            logger.warning("Durable tier read failed for %s: %s", key, e)
            return MISSING

        if entry is None:
            return MISSING

        if entry.is_fresh(now, self.durable_ttl_ms):
            self._write_fast(CacheEntry(key=key, data=entry.data, timestamp=now))
            return entry.data

        try:
            await asyncio.to_thread(durable.delete_entry, key)
        except Exception as e:
            logger.warning("Durable tier delete failed for %s: %s", key, e)
        return MISSING

    def _read_fast(self, key: str, now: int) -> Any:
        try:
            raw = self.fast.get_item(key)
            if raw is None:
                return MISSING
            entry = CacheEntry.model_validate_json(raw)
        except Exception as e:
            logger.warning("Discarding unreadable fast tier entry %s: %s", key, e)
            self._remove_fast(key)
            return MISSING

        if entry.is_fresh(now, self.fast_ttl_ms):
            return entry.data

        self._remove_fast(key)
        return MISSING

    def _write_fast(self, entry: CacheEntry) -> None:
        try:
            self.fast.set_item(entry.key, json.dumps(entry.model_dump()))
        except Exception as e:
            logger.warning("Fast tier write failed for %s: %s", entry.key, e)

    def _remove_fast(self, key: str) -> None:
        try:
            self.fast.remove_item(key)
        except Exception as e:
            logger.warning("Fast tier delete failed for %s: %s", key, e)


# Process-wide instance
_default_cache: TieredCache | None = None


def get_default_cache(settings: Settings | None = None) -> TieredCache:
    """Get or create the process-wide cache."""
    global _default_cache

    if _default_cache is None:
        _default_cache = TieredCache.from_settings(settings or Settings.from_env())

    return _default_cache


def reset_default_cache() -> None:
    """Reset the process-wide cache (mainly for testing)."""
    global _default_cache
    _default_cache = None
