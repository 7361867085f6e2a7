"""Benchmark preset models."""

from enum import Enum
from typing import Any

from pydantic import Field

from mutationmechanic.models.base import CamelModel


class PresetType(str, Enum):
    FRAMESHIFT = "frameshift"
    SPLICE = "splice"
    CONTROL = "control"
    FOLDING = "folding"
    CUSTOM = "custom"


class BenchmarkPreset(CamelModel):
    """A named variant configuration used by the design/benchmark workflow."""

    id: str
    title: str
    hgvs: str = Field(..., description="Variant notation (e.g., BRCA2 c.5946delT)")
    type: PresetType = PresetType.CUSTOM
    description: str | None = None
    expected_impact: str | None = None


class PresetSchema(BenchmarkPreset):
    """A stored preset with bookkeeping timestamps (epoch ms)."""

    transcript_id: str | None = None
    example_inputs: Any = None
    created_at: int
    modified_at: int

    def matches(self, other: BenchmarkPreset) -> bool:
        """Same id, or same notation and title."""
        return self.id == other.id or (self.hgvs == other.hgvs and self.title == other.title)
