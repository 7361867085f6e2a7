"""Benchmark preset store.

Presets are kept as one camelCase JSON array under a single fast-tier key,
most recently modified first, capped at MAX_PRESETS.
"""

import json
import logging
from typing import Any

from pydantic import TypeAdapter, ValidationError

from mutationmechanic.constants import MAX_PRESETS, PRESET_STORAGE_KEY
from mutationmechanic.models.preset import BenchmarkPreset, PresetSchema
from mutationmechanic.storage.kv import KeyValueStore
from mutationmechanic.utils.timeutils import Clock, now_ms

logger = logging.getLogger(__name__)

_preset_list = TypeAdapter(list[PresetSchema])


class PresetImportError(ValueError):
    """Raised when an import payload cannot be read."""

    pass


def _by_recency(presets: list[PresetSchema]) -> list[PresetSchema]:
    return sorted(presets, key=lambda p: p.modified_at, reverse=True)


class PresetStore:
    """Bounded, most-recently-modified-first collection of presets."""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Clock | None = None,
        max_presets: int = MAX_PRESETS,
        key: str = PRESET_STORAGE_KEY,
    ) -> None:
        self.store = store
        self.max_presets = max_presets
        self.key = key
        self._clock = clock or now_ms

    def _load(self) -> list[PresetSchema]:
        try:
            raw = self.store.get_item(self.key)
            if not raw:
                return []
            return _preset_list.validate_json(raw)
        except Exception as e:
            logger.warning("Stored presets unreadable, treating as empty: %s", e)
            return []

    def _persist(self, presets: list[PresetSchema]) -> None:
        payload = json.dumps([p.to_json_dict() for p in presets])
        try:
            self.store.set_item(self.key, payload)
        except Exception as e:
            logger.warning("Failed to persist presets: %s", e)

    async def get_presets(self) -> list[PresetSchema]:
        """All presets, most recently modified first."""
        return _by_recency(self._load())

    async def save_preset(self, preset: BenchmarkPreset | dict[str, Any]) -> list[PresetSchema]:
        """Insert or update a preset.

        An existing preset with the same id, or the same hgvs and title,
        absorbs the given fields and keeps its id and created_at. Otherwise
        the preset is added. Entries past the cap are dropped, oldest
        modification first.

        Returns:
            The stored collection
        """
        if isinstance(preset, dict):
            preset = BenchmarkPreset.model_validate(preset)

        now = self._clock()
        presets = _by_recency(self._load())
        fields = preset.model_dump(exclude_unset=True)

        for index, existing in enumerate(presets):
            if existing.matches(preset):
                fields.pop("id", None)
                merged = existing.model_dump()
                merged.update(fields)
                merged["modified_at"] = now
                presets[index] = PresetSchema.model_validate(merged)
                break
        else:
            presets.insert(
                0, PresetSchema.model_validate({**preset.model_dump(), "created_at": now, "modified_at": now})
            )

        presets = _by_recency(presets)[: self.max_presets]
        self._persist(presets)
        return presets

    async def delete_preset(self, preset_id: str) -> list[PresetSchema]:
        presets = [p for p in await self.get_presets() if p.id != preset_id]
        self._persist(presets)
        return presets

    async def import_presets(self, json_string: str) -> list[PresetSchema]:
        """Merge an exported preset array into the collection.

        Imported entries come first and win over existing entries with the
        same id. Entries without timestamps are stamped with the current time.

        Raises:
            PresetImportError: If the payload is not a JSON array of presets
        """
        try:
            items = json.loads(json_string)
            if not isinstance(items, list):
                raise ValueError("Invalid format: expected a JSON array")

            now = self._clock()
            imported = []
            for item in items:
                if not isinstance(item, dict):
                    raise ValueError("Invalid format: expected preset objects")
                item = dict(item)
                if "createdAt" not in item and "created_at" not in item:
                    item["createdAt"] = now
                if "modifiedAt" not in item and "modified_at" not in item:
                    item["modifiedAt"] = now
                imported.append(PresetSchema.model_validate(item))
        except (ValueError, ValidationError) as e:
            raise PresetImportError(f"Failed to import presets: {e}") from e

        merged: list[PresetSchema] = []
        seen: set[str] = set()
        for preset in imported + await self.get_presets():
            if preset.id not in seen:
                seen.add(preset.id)
                merged.append(preset)

        merged = merged[: self.max_presets]
        self._persist(merged)
        logger.info("Imported %d presets (%d total)", len(imported), len(merged))
        return merged

    async def export_presets(self) -> str:
        """Pretty-printed camelCase JSON array of the collection."""
        return json.dumps([p.to_json_dict() for p in await self.get_presets()], indent=2)
