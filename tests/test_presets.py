"""Tests for the benchmark preset store."""

import json

import pytest

from mutationmechanic.models.preset import BenchmarkPreset, PresetType
from mutationmechanic.storage.kv import MemoryKeyValueStore
from mutationmechanic.storage.presets import PresetImportError, PresetStore


@pytest.fixture
def presets(memory_store, clock):
    return PresetStore(memory_store, clock=clock)


def _preset(n: int, **overrides) -> BenchmarkPreset:
    fields = {
        "id": f"preset-{n}",
        "title": f"Preset {n}",
        "hgvs": f"BRCA2 c.{5000 + n}delT",
        "type": PresetType.FRAMESHIFT,
    }
    fields.update(overrides)
    return BenchmarkPreset(**fields)


class TestPresetStore:
    """Tests for PresetStore."""

    @pytest.mark.asyncio
    async def test_empty(self, presets):
        assert await presets.get_presets() == []

    @pytest.mark.asyncio
    async def test_save_new_preset(self, presets):
        stored = await presets.save_preset(_preset(1, description="frameshift demo"))

        assert len(stored) == 1
        assert stored[0].id == "preset-1"
        assert stored[0].created_at == stored[0].modified_at
        assert (await presets.get_presets())[0].description == "frameshift demo"

    @pytest.mark.asyncio
    async def test_save_accepts_camel_case_dict(self, presets):
        stored = await presets.save_preset({
            "id": "p", "title": "Splice", "hgvs": "CFTR c.3718-2477C>T", "type": "splice",
            "expectedImpact": "Cryptic exon inclusion",
        })
        assert stored[0].expected_impact == "Cryptic exon inclusion"
        assert stored[0].type == PresetType.SPLICE

    @pytest.mark.asyncio
    async def test_most_recent_first(self, presets):
        for n in range(3):
            await presets.save_preset(_preset(n))
        assert [p.id for p in await presets.get_presets()] == ["preset-2", "preset-1", "preset-0"]

    @pytest.mark.asyncio
    async def test_update_by_id(self, presets):
        await presets.save_preset(_preset(1))
        await presets.save_preset(_preset(2))
        original = next(p for p in await presets.get_presets() if p.id == "preset-1")

        stored = await presets.save_preset(_preset(1, description="updated"))

        assert len(stored) == 2
        assert stored[0].id == "preset-1"
        assert stored[0].description == "updated"
        assert stored[0].created_at == original.created_at
        assert stored[0].modified_at > original.modified_at

    @pytest.mark.asyncio
    async def test_merge_on_matching_hgvs_and_title(self, presets):
        await presets.save_preset(_preset(1, description="old"))

        stored = await presets.save_preset(_preset(1, id="brand-new-id", description="new"))

        assert len(stored) == 1
        assert stored[0].id == "preset-1"
        assert stored[0].description == "new"

    @pytest.mark.asyncio
    async def test_eviction_at_cap(self, presets):
        for n in range(200):
            await presets.save_preset(_preset(n))
        assert len(await presets.get_presets()) == 200

        stored = await presets.save_preset(_preset(200))

        assert len(stored) == 200
        ids = {p.id for p in stored}
        assert "preset-0" not in ids
        assert "preset-200" in ids

    @pytest.mark.asyncio
    async def test_delete(self, presets):
        await presets.save_preset(_preset(1))
        await presets.save_preset(_preset(2))

        remaining = await presets.delete_preset("preset-1")

        assert [p.id for p in remaining] == ["preset-2"]
        assert [p.id for p in await presets.get_presets()] == ["preset-2"]

    @pytest.mark.asyncio
    async def test_corrupt_storage_reads_empty(self, memory_store, clock):
        memory_store.set_item("mutationMechanic_presets_v1", "{broken")
        assert await PresetStore(memory_store, clock=clock).get_presets() == []

    @pytest.mark.asyncio
    async def test_quota_failure_is_not_raised(self, clock):
        store = PresetStore(MemoryKeyValueStore(quota_bytes=10), clock=clock)
        stored = await store.save_preset(_preset(1))
        assert len(stored) == 1
        assert await store.get_presets() == []


class TestPresetImportExport:
    """Tests for preset import and export."""

    @pytest.mark.asyncio
    async def test_import_invalid_json_raises(self, presets):
        with pytest.raises(PresetImportError, match="Failed to import presets"):
            await presets.import_presets("not json")

    @pytest.mark.asyncio
    async def test_import_non_array_raises(self, presets):
        with pytest.raises(PresetImportError):
            await presets.import_presets('{"id": "x"}')

    @pytest.mark.asyncio
    async def test_import_invalid_entry_raises(self, presets):
        with pytest.raises(PresetImportError):
            await presets.import_presets('[{"id": "x"}]')

    @pytest.mark.asyncio
    async def test_import_empty_array_keeps_collection(self, presets):
        await presets.save_preset(_preset(1))
        before = await presets.get_presets()

        after = await presets.import_presets("[]")

        assert after == before

    @pytest.mark.asyncio
    async def test_import_fills_timestamps_and_wins_by_id(self, presets, clock):
        await presets.save_preset(_preset(1, description="local"))
        payload = json.dumps([
            {"id": "preset-1", "title": "Preset 1", "hgvs": "BRCA2 c.5001delT", "description": "imported"},
            {"id": "preset-9", "title": "Preset 9", "hgvs": "TP53 R248Q", "type": "control"},
        ])

        merged = await presets.import_presets(payload)

        assert [p.id for p in merged] == ["preset-1", "preset-9"]
        assert merged[0].description == "imported"
        assert merged[1].created_at > 0
        assert merged[1].created_at == merged[1].modified_at

    @pytest.mark.asyncio
    async def test_save_after_import_merges_into_most_recent_match(self, presets):
        await presets.save_preset({"id": "c", "title": "T", "hgvs": "X"})
        await presets.import_presets(json.dumps([{"id": "a", "title": "T", "hgvs": "X", "modifiedAt": 1}]))

        await presets.save_preset({"id": "z", "title": "T", "hgvs": "X", "description": "new"})

        by_id = {p.id: p for p in await presets.get_presets()}
        assert set(by_id) == {"a", "c"}
        assert by_id["c"].description == "new"
        assert by_id["a"].description is None
        assert by_id["a"].modified_at == 1

    @pytest.mark.asyncio
    async def test_export_is_camel_case(self, presets):
        await presets.save_preset(_preset(1, expected_impact="Truncation"))

        exported = json.loads(await presets.export_presets())

        assert exported[0]["expectedImpact"] == "Truncation"
        assert "createdAt" in exported[0]
        assert "modifiedAt" in exported[0]

    @pytest.mark.asyncio
    async def test_export_then_import_into_empty_store(self, presets, clock):
        for n in range(3):
            await presets.save_preset(_preset(n))
        exported = await presets.export_presets()

        fresh = PresetStore(MemoryKeyValueStore(), clock=clock)
        imported = await fresh.import_presets(exported)

        assert [p.id for p in imported] == [p.id for p in await presets.get_presets()]
