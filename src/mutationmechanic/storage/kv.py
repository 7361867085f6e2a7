"""Fast-tier key/value backends.

A small synchronous string store with a byte quota, in the manner of a
browser's local storage: every value is a string, writes that would exceed
the quota are rejected with QuotaExceededError, and nothing is evicted
automatically.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from mutationmechanic.constants import DEFAULT_FAST_TIER_QUOTA_BYTES

logger = logging.getLogger(__name__)


class QuotaExceededError(Exception):
    """Raised when a write would push the store past its byte quota."""

    pass


class KeyValueStore(ABC):
    """String key/value store with a byte quota."""

    def __init__(self, quota_bytes: int = DEFAULT_FAST_TIER_QUOTA_BYTES) -> None:
        self.quota_bytes = quota_bytes
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"Values must be strings, got {type(value).__name__}")

        projected = self.used_bytes() - self._entry_size(key, self._items.get(key)) + self._entry_size(key, value)
        if projected > self.quota_bytes:
            raise QuotaExceededError(
                f"Writing '{key}' needs {projected} bytes, quota is {self.quota_bytes}"
            )

        self._items[key] = value
        self._persist()

    def remove_item(self, key: str) -> None:
        if self._items.pop(key, None) is not None:
            self._persist()

    def clear(self) -> None:
        self._items.clear()
        self._persist()

    def keys(self) -> list[str]:
        return list(self._items)

    def used_bytes(self) -> int:
        return sum(self._entry_size(k, v) for k, v in self._items.items())

    @staticmethod
    def _entry_size(key: str, value: str | None) -> int:
        if value is None:
            return 0
        return len(key.encode("utf-8")) + len(value.encode("utf-8"))

    @abstractmethod
    def _persist(self) -> None:
        """Flush the current contents to the backing medium."""


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store. Contents are lost when the process exits."""

    def _persist(self) -> None:
        pass


class FileKeyValueStore(KeyValueStore):
    """Store backed by a single JSON document, written through on every change."""

    def __init__(self, path: Path, quota_bytes: int = DEFAULT_FAST_TIER_QUOTA_BYTES) -> None:
        super().__init__(quota_bytes=quota_bytes)
        self.path = Path(path)
        self._items = self._load()

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Fast tier file %s unreadable, starting empty: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Fast tier file %s has unexpected shape, starting empty", self.path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _persist(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(self._items), encoding="utf-8")
        tmp_path.replace(self.path)
