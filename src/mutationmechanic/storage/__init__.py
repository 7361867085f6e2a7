"""Cache, history and preset storage."""

from mutationmechanic.storage.durable import DurableStore
from mutationmechanic.storage.history import HistoryStore
from mutationmechanic.storage.kv import (
    FileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
    QuotaExceededError,
)
from mutationmechanic.storage.presets import PresetImportError, PresetStore
from mutationmechanic.storage.tiered_cache import (
    MISSING,
    TieredCache,
    get_default_cache,
    reset_default_cache,
)

__all__ = [
    "MISSING",
    "TieredCache",
    "get_default_cache",
    "reset_default_cache",
    "DurableStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "FileKeyValueStore",
    "QuotaExceededError",
    "HistoryStore",
    "PresetStore",
    "PresetImportError",
]
