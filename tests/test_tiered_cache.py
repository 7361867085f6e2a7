"""Tests for the fast-tier stores and the two-tier cache."""

import json
import threading
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine, inspect

from conftest import FakeClock
from mutationmechanic.constants import FAST_TIER_TTL_MS
from mutationmechanic.models.cache import CacheEntry
from mutationmechanic.storage.kv import FileKeyValueStore, MemoryKeyValueStore, QuotaExceededError
from mutationmechanic.storage.schema import SCHEMA_VERSION, apply_migrations, get_schema_version
from mutationmechanic.storage.tiered_cache import MISSING, TieredCache, get_default_cache, reset_default_cache


class TestKeyValueStore:
    """Tests for the fast-tier key/value backends."""

    def test_set_get_remove(self):
        store = MemoryKeyValueStore()
        store.set_item("a", "1")
        assert store.get_item("a") == "1"
        store.remove_item("a")
        assert store.get_item("a") is None

    def test_quota_rejects_write(self):
        store = MemoryKeyValueStore(quota_bytes=10)
        store.set_item("k", "12345")

        with pytest.raises(QuotaExceededError):
            store.set_item("other", "1234567890")

        # The earlier value survives a rejected write
        assert store.get_item("k") == "12345"

    def test_overwrite_counts_replaced_value(self):
        store = MemoryKeyValueStore(quota_bytes=10)
        store.set_item("k", "123456789")
        store.set_item("k", "987654321")
        assert store.get_item("k") == "987654321"

    def test_non_string_value_rejected(self):
        store = MemoryKeyValueStore()
        with pytest.raises(TypeError):
            store.set_item("k", 1)

    def test_file_store_persists(self, tmp_path):
        path = tmp_path / "fast.json"
        store = FileKeyValueStore(path)
        store.set_item("k", "v")

        reopened = FileKeyValueStore(path)
        assert reopened.get_item("k") == "v"

    def test_file_store_corrupt_file_starts_empty(self, tmp_path):
        path = tmp_path / "fast.json"
        path.write_text("{not json")
        store = FileKeyValueStore(path)
        assert store.keys() == []


class TestSchema:
    """Tests for durable tier migrations."""

    def test_fresh_database_migrates_to_current(self, db_url):
        engine = create_engine(db_url)
        assert apply_migrations(engine) == SCHEMA_VERSION

        with engine.connect() as conn:
            assert get_schema_version(conn) == SCHEMA_VERSION
            inspector = inspect(conn)
            assert inspector.has_table("genomic_annotations")
            assert inspector.has_table("history")
            index_names = {ix["name"] for ix in inspector.get_indexes("history")}

        assert {
            "ix_history_gene",
            "ix_history_timestamp",
            "ix_history_risk_level",
            "ix_history_pathogenicity_label",
        } <= index_names
        engine.dispose()

    def test_migrations_are_idempotent(self, db_url):
        engine = create_engine(db_url)
        apply_migrations(engine)
        assert apply_migrations(engine) == SCHEMA_VERSION
        engine.dispose()


class TestTieredCache:
    """Tests for TieredCache."""

    @pytest.mark.asyncio
    async def test_missing_key(self, cache):
        assert await cache.get("alphagenome_cache_nothing") is MISSING

    @pytest.mark.asyncio
    async def test_set_then_get(self, cache):
        await cache.set("alphagenome_cache_X", {"a": 1})
        assert await cache.get("alphagenome_cache_X") == {"a": 1}

    @pytest.mark.asyncio
    async def test_falsy_values_are_hits(self, cache):
        await cache.set("k", None)
        await cache.set("zero", 0)
        assert await cache.get("k") is None
        assert await cache.get("zero") == 0

    @pytest.mark.asyncio
    async def test_last_write_wins(self, cache):
        await cache.set("k", "first")
        await cache.set("k", "second")
        assert await cache.get("k") == "second"

    @pytest.mark.asyncio
    async def test_fast_tier_expires(self, memory_store):
        clock = FakeClock(step=0)
        cache = TieredCache(fast=memory_store, durable_url=None, clock=clock)
        await cache.set("k", {"a": 1})

        clock.advance(FAST_TIER_TTL_MS - 1)
        assert await cache.get("k") == {"a": 1}

        clock.advance(1)
        assert await cache.get("k") is MISSING
        # Expired entries are removed from the fast tier
        assert memory_store.get_item("k") is None

    @pytest.mark.asyncio
    async def test_promotes_from_durable_tier(self, cache, clock, memory_store):
        await cache.set("k", {"a": 1})
        clock.advance_days(8)

        assert await cache.get("k") == {"a": 1}

        # Promotion rewrites the fast tier with a refreshed timestamp
        entry = CacheEntry.model_validate_json(memory_store.get_item("k"))
        assert entry.timestamp >= clock.current - 10

    @pytest.mark.asyncio
    async def test_durable_tier_expires(self, cache, clock):
        await cache.set("k", {"a": 1})
        clock.advance_days(31)

        assert await cache.get("k") is MISSING

        db = await cache.get_db()
        assert db.get_entry("k") is None

    @pytest.mark.asyncio
    async def test_quota_exceeded_still_reaches_durable_tier(self, db_url, clock):
        tiny = MemoryKeyValueStore(quota_bytes=16)
        cache = TieredCache(fast=tiny, durable_url=db_url, clock=clock)

        await cache.set("k", {"payload": "x" * 100})

        assert tiny.get_item("k") is None
        assert await cache.get("k") == {"payload": "x" * 100}

    @pytest.mark.asyncio
    async def test_unreadable_fast_entry_discarded(self, fast_only_cache, memory_store):
        memory_store.set_item("k", "garbage")
        assert await fast_only_cache.get("k") is MISSING
        assert memory_store.get_item("k") is None

    @pytest.mark.asyncio
    async def test_durable_tier_unavailable(self, memory_store, clock, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        # Parent "directory" is a file, so the database cannot be created
        cache = TieredCache(fast=memory_store, durable_url=f"sqlite:///{blocker}/x/cache.db", clock=clock)

        await cache.set("k", 1)
        assert await cache.get_db() is None
        assert await cache.get("k") == 1

    @pytest.mark.asyncio
    async def test_context_manager(self, cache):
        async with cache as opened:
            assert await opened.get_db() is not None
        assert cache._durable is None

    @pytest.mark.asyncio
    async def test_fast_tier_value_is_json(self, cache, memory_store):
        await cache.set("k", {"a": [1, 2]})
        stored = json.loads(memory_store.get_item("k"))
        assert stored["key"] == "k"
        assert stored["data"] == {"a": [1, 2]}

    @pytest.mark.asyncio
    async def test_durable_reads_run_in_worker_thread(self, cache, memory_store):
        await cache.set("k", {"a": 1})
        memory_store.remove_item("k")
        db = await cache.get_db()
        threads = []
        read_entry = db.get_entry

        def tracking_get(key):
            threads.append(threading.get_ident())
            return read_entry(key)

        with patch.object(db, "get_entry", side_effect=tracking_get):
            assert await cache.get("k") == {"a": 1}

        assert threads
        assert threading.get_ident() not in threads

    @pytest.mark.asyncio
    async def test_reopens_after_close(self, cache):
        await cache.set("k", 1)
        await cache.close()

        assert await cache.get_db() is not None
        assert (await cache.get_db()).get_entry("k").data == 1


class TestDefaultCache:
    """Tests for the process-wide cache accessor."""

    def test_singleton(self, tmp_path):
        from mutationmechanic.config import Settings

        reset_default_cache()
        try:
            settings = Settings(cache_dir=tmp_path)
            first = get_default_cache(settings)
            assert get_default_cache() is first
            assert first.durable_url == f"sqlite:///{tmp_path / 'mutationmechanic.db'}"
        finally:
            reset_default_cache()

    def test_missing_is_falsy(self):
        assert not MISSING
        assert repr(MISSING) == "MISSING"
