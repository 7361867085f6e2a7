"""Analysis history models."""

from enum import Enum

from pydantic import Field

from mutationmechanic.constants import BENIGN_SCORE_THRESHOLD, VUS_SCORE_THRESHOLD
from mutationmechanic.models.base import CamelModel


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class PathogenicityLabel(str, Enum):
    """Coarse classification derived from the pathogenicity score.

    BENIGN: score below 10
    VUS: score below 20 (variant of uncertain significance)
    PATHOGENIC: everything else
    """

    BENIGN = "BENIGN"
    VUS = "VUS"
    PATHOGENIC = "PATHOGENIC"

    @classmethod
    def from_score(cls, score: float) -> "PathogenicityLabel":
        if score < BENIGN_SCORE_THRESHOLD:
            return cls.BENIGN
        if score < VUS_SCORE_THRESHOLD:
            return cls.VUS
        return cls.PATHOGENIC


class AnalysisType(str, Enum):
    """Workflow that produced a history record."""

    EXPLAINER = "EXPLAINER"
    DECODER = "DECODER"


class VariantType(str, Enum):
    MISSENSE = "MISSENSE"
    FRAMESHIFT = "FRAMESHIFT"
    NONSENSE = "NONSENSE"
    SPLICE_SITE = "SPLICE_SITE"
    INDEL = "INDEL"
    UNKNOWN = "UNKNOWN"


class HistoryRecordCreate(CamelModel):
    """Fields supplied by a workflow when it records a finished analysis."""

    gene: str
    variant: str
    timestamp: int | None = Field(None, description="Epoch ms; defaults to creation time")
    risk_level: RiskLevel
    pathogenicity_score: float
    confidence: float = Field(..., description="Confidence percentage")
    disease_associations: list[str] = Field(default_factory=list)
    therapies: list[str] = Field(default_factory=list)
    notes: str | None = None
    type: AnalysisType
    variant_type: VariantType = VariantType.UNKNOWN
    position: int | None = None


class HistoryRecord(HistoryRecordCreate):
    """A persisted analysis record.

    ``pathogenicity_label`` is computed once when the record is added and is
    not recomputed if ``pathogenicity_score`` is later updated.
    """

    id: str
    timestamp: int
    pathogenicity_label: PathogenicityLabel
    archived: bool = False


class Trend(str, Enum):
    """Direction of a metric over the last 7 days vs the 7 days before."""

    UP = "up"
    STABLE = "stable"
    DOWN = "down"


class GeneCount(CamelModel):
    gene: str
    count: int


class HistoryStatistics(CamelModel):
    """Aggregate statistics over the analysis history."""

    total: int = 0
    archived: int = 0
    avg_per_day: float = 0.0
    std_dev_daily: float = 0.0

    score_mean: float = 0.0
    score_median: float = 0.0
    score_mode: float = 0.0
    score_std_dev: float = 0.0

    confidence_mean: float = 0.0
    confidence_median: float = 0.0
    confidence_min: float = 0.0
    confidence_max: float = 0.0
    confidence_std_dev: float = 0.0

    unique_genes: int = 0
    most_analyzed: GeneCount | None = None
    least_analyzed: GeneCount | None = None

    risk_counts: dict[RiskLevel, int] = Field(default_factory=dict)
    label_counts: dict[PathogenicityLabel, int] = Field(default_factory=dict)
    type_counts: dict[AnalysisType, int] = Field(default_factory=dict)

    confidence_score_correlation: float = Field(
        0.0, description="Pearson correlation of confidence vs pathogenicity score"
    )
    trends: dict[str, Trend] = Field(
        default_factory=dict, description="confidence, frequency and risk trend directions"
    )
