"""Aggregate statistics over analysis history records.

Records are loaded into a pandas DataFrame once; every figure on
HistoryStatistics is then a column reduction. Standard deviations are
population (ddof=0) deviations.
"""

import math

import pandas as pd

from mutationmechanic.constants import DAY_MS
from mutationmechanic.models.history import (
    AnalysisType,
    GeneCount,
    HistoryRecord,
    HistoryStatistics,
    PathogenicityLabel,
    RiskLevel,
    Trend,
)

WEEK_MS = 7 * DAY_MS

RECORD_COLUMNS = [
    "id",
    "gene",
    "variant",
    "timestamp",
    "risk_level",
    "pathogenicity_score",
    "pathogenicity_label",
    "confidence",
    "type",
    "variant_type",
    "archived",
]


def records_to_frame(records: list[HistoryRecord]) -> pd.DataFrame:
    """Flatten records into a DataFrame with one row per record.

    Enum columns hold their string values.
    """
    rows = [record.model_dump(mode="json", include=set(RECORD_COLUMNS)) for record in records]
    return pd.DataFrame(rows, columns=RECORD_COLUMNS)


def _safe(value: float) -> float:
    return 0.0 if value is None or math.isnan(value) else float(value)


def _trend(current: float, previous: float) -> Trend:
    if previous == 0:
        return Trend.UP if current > 0 else Trend.STABLE
    diff = (current - previous) / previous
    if abs(diff) < 0.05:
        return Trend.STABLE
    return Trend.UP if diff > 0 else Trend.DOWN


def _mean(series: pd.Series) -> float:
    return _safe(series.mean()) if len(series) else 0.0


def compute_statistics(records: list[HistoryRecord], now: int) -> HistoryStatistics:
    """Compute a statistics snapshot.

    Args:
        records: Records to summarize (archived ones included)
        now: Reference time in epoch ms for per-day averages and trends

    Returns:
        HistoryStatistics; all zeros for an empty history
    """
    if not records:
        return HistoryStatistics()

    df = records_to_frame(records)
    scores = df["pathogenicity_score"].astype(float)
    confidence = df["confidence"].astype(float)

    first_timestamp = int(df["timestamp"].min())
    total_days = max(1, math.ceil((now - first_timestamp) / DAY_MS))

    # Day of week with Sunday = 0
    weekdays = (pd.to_datetime(df["timestamp"], unit="ms", utc=True).dt.dayofweek + 1) % 7

    gene_counts = df["gene"].value_counts(sort=False).sort_values(ascending=False, kind="stable")

    age = now - df["timestamp"]
    last_week = df[age <= WEEK_MS]
    prev_week = df[(age > WEEK_MS) & (age <= 2 * WEEK_MS)]

    return HistoryStatistics(
        total=len(df),
        archived=int(df["archived"].sum()),
        avg_per_day=len(df) / total_days,
        std_dev_daily=_safe(weekdays.std(ddof=0)) if len(df) > 1 else 0.0,
        score_mean=_safe(scores.mean()),
        score_median=_safe(scores.median()),
        score_mode=_safe(scores.mode().iloc[0]),
        score_std_dev=_safe(scores.std(ddof=0)) if len(df) > 1 else 0.0,
        confidence_mean=_safe(confidence.mean()),
        confidence_median=_safe(confidence.median()),
        confidence_min=_safe(confidence.min()),
        confidence_max=_safe(confidence.max()),
        confidence_std_dev=_safe(confidence.std(ddof=0)) if len(df) > 1 else 0.0,
        unique_genes=len(gene_counts),
        most_analyzed=GeneCount(gene=gene_counts.index[0], count=int(gene_counts.iloc[0])),
        least_analyzed=GeneCount(gene=gene_counts.index[-1], count=int(gene_counts.iloc[-1])),
        risk_counts={RiskLevel(k): int(v) for k, v in df["risk_level"].value_counts().items()},
        label_counts={PathogenicityLabel(k): int(v) for k, v in df["pathogenicity_label"].value_counts().items()},
        type_counts={AnalysisType(k): int(v) for k, v in df["type"].value_counts().items()},
        confidence_score_correlation=_safe(confidence.corr(scores)) if len(df) > 1 else 0.0,
        trends={
            "confidence": _trend(_mean(last_week["confidence"]), _mean(prev_week["confidence"])),
            "frequency": _trend(len(last_week), len(prev_week)),
            "risk": _trend(_mean(last_week["pathogenicity_score"]), _mean(prev_week["pathogenicity_score"])),
        },
    )
