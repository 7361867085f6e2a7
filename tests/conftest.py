"""Pytest configuration and fixtures."""

import pytest

from mutationmechanic.constants import DAY_MS

# 2024-03-01T00:00:00Z (a Friday)
BASE_TIME = 1709251200000


class FakeClock:
    """Controllable epoch-ms clock. Each read advances by ``step``."""

    def __init__(self, start: int = BASE_TIME, step: int = 1):
        self.current = start
        self.step = step

    def __call__(self) -> int:
        value = self.current
        self.current += self.step
        return value

    def advance(self, ms: int) -> None:
        self.current += ms

    def advance_days(self, days: float) -> None:
        self.current += int(days * DAY_MS)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store():
    from mutationmechanic.storage.kv import MemoryKeyValueStore

    return MemoryKeyValueStore()


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'mutationmechanic.db'}"


@pytest.fixture
def cache(memory_store, db_url, clock):
    """Two-tier cache over an in-memory fast tier and a temporary SQLite file."""
    from mutationmechanic.storage.tiered_cache import TieredCache

    return TieredCache(fast=memory_store, durable_url=db_url, clock=clock)


@pytest.fixture
def fast_only_cache(memory_store, clock):
    from mutationmechanic.storage.tiered_cache import TieredCache

    return TieredCache(fast=memory_store, durable_url=None, clock=clock)


@pytest.fixture
def history(cache, clock):
    from mutationmechanic.storage.history import HistoryStore

    return HistoryStore(cache, clock=clock)


@pytest.fixture
def sample_variant_input():
    """Sample variant input for testing."""
    from mutationmechanic.models.variant import VariantInput

    return VariantInput(gene="SOD1", variant="L144F")


@pytest.fixture
def make_record():
    """Factory for history record inputs with sensible defaults."""
    from mutationmechanic.models.history import AnalysisType, HistoryRecordCreate, RiskLevel

    def _make(**overrides):
        fields = {
            "gene": "SOD1",
            "variant": "L144F",
            "risk_level": RiskLevel.HIGH,
            "pathogenicity_score": 25.0,
            "confidence": 95.0,
            "type": AnalysisType.EXPLAINER,
        }
        fields.update(overrides)
        return HistoryRecordCreate(**fields)

    return _make


@pytest.fixture
def myvariant_hit():
    """A MyVariant.info hit carrying every section the client extracts."""
    return {
        "_id": "chr21:g.33039648C>T",
        "chrom": "21",
        "hg38": {"start": 33039648, "end": 33039648},
        "gnomad_genome": {
            "af": {"af": 0.000004, "af_afr": 0.0, "af_nfe": 0.000008},
        },
        "dbnsfp": {
            "sift": {"score": 0.01, "pred": "D"},
            "polyphen2": {"hdiv": {"score": 0.99, "pred": "D"}},
            "phylop": {"100way_vertebrate": {"score": 4.5}},
            "phastcons": {"100way_vertebrate": {"score": 0.98}},
            "gerp++": {"rs": 5.2},
            "mutationtaster": {"pred": "D"},
        },
        "cadd": {"phred": 26.4},
        "clinvar": {
            "variant_id": 10672,
            "rcv": [
                {
                    "accession": "RCV000019763",
                    "clinical_significance": "Pathogenic",
                    "review_status": "criteria provided, multiple submitters, no conflicts",
                    "last_evaluated": "2023-05-12",
                    "conditions": {"name": "Amyotrophic lateral sclerosis type 1"},
                }
            ],
        },
    }


@pytest.fixture
def mock_llm_response():
    """Mock LLM response for testing."""
    return """{
        "summary": "L144F destabilizes the SOD1 dimer interface.",
        "mechanism": "Misfolding and aggregation of the mutant enzyme.",
        "disease_associations": ["Amyotrophic lateral sclerosis type 1"],
        "therapies": ["Tofersen"]
    }"""
