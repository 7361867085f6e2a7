"""Data models for MutationMechanic."""

from mutationmechanic.models.cache import CacheEntry
from mutationmechanic.models.explanation import MechanismExplanation, VariantExplanation
from mutationmechanic.models.genomics import (
    ClinVarEntry,
    ConservationScores,
    DataSourceMetadata,
    FrequencyData,
    GenomicContext,
    OrthologInfo,
    ProteinImpact,
)
from mutationmechanic.models.history import (
    AnalysisType,
    HistoryRecord,
    HistoryRecordCreate,
    HistoryStatistics,
    PathogenicityLabel,
    RiskLevel,
    VariantType,
)
from mutationmechanic.models.preset import BenchmarkPreset, PresetSchema, PresetType
from mutationmechanic.models.variant import VariantInput

__all__ = [
    "CacheEntry",
    "VariantInput",
    "GenomicContext",
    "FrequencyData",
    "ConservationScores",
    "ProteinImpact",
    "OrthologInfo",
    "ClinVarEntry",
    "DataSourceMetadata",
    "HistoryRecord",
    "HistoryRecordCreate",
    "HistoryStatistics",
    "RiskLevel",
    "PathogenicityLabel",
    "AnalysisType",
    "VariantType",
    "BenchmarkPreset",
    "PresetSchema",
    "PresetType",
    "MechanismExplanation",
    "VariantExplanation",
]
