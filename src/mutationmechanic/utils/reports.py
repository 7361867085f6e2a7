"""History export.

Renders history records as JSON, CSV (also used for the Excel option) or a
plain-text "PDF" report. Writing the file is left to the caller.
"""

import json
from enum import Enum

import pandas as pd
from pydantic import BaseModel

from mutationmechanic import __version__
from mutationmechanic.models.history import HistoryRecord, HistoryStatistics
from mutationmechanic.utils.timeutils import ms_to_iso, now_ms


class ExportFormat(str, Enum):
    JSON = "JSON"
    CSV = "CSV"
    EXCEL = "Excel"
    PDF = "PDF"


MIME_TYPES: dict[ExportFormat, str] = {
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv",
    ExportFormat.EXCEL: "text/csv",
    ExportFormat.PDF: "application/pdf",
}

CSV_HEADERS = ["ID", "Gene", "Variant", "Date", "Risk", "Score", "Confidence", "Type", "Archived"]


class ExportConfig(BaseModel):
    """What to export and how."""

    format: ExportFormat = ExportFormat.JSON
    filename: str = "mutation_mechanic_report"
    include_records: bool = True
    include_stats: bool = False
    include_metadata: bool = False


def export_filename(config: ExportConfig) -> str:
    return f"{config.filename}.{config.format.value.lower()}"


def _render_json(
    records: list[HistoryRecord],
    config: ExportConfig,
    statistics: HistoryStatistics | None,
    generated_at: int,
) -> str:
    rows = [r.to_json_dict() for r in records] if config.include_records else []
    if not (config.include_stats or config.include_metadata):
        return json.dumps(rows, indent=2)

    payload: dict = {"records": rows}
    if config.include_stats and statistics is not None:
        payload["statistics"] = statistics.to_json_dict()
    if config.include_metadata:
        payload["metadata"] = {
            "generated": ms_to_iso(generated_at),
            "recordCount": len(records),
            "version": __version__,
        }
    return json.dumps(payload, indent=2)


def _render_csv(records: list[HistoryRecord]) -> str:
    df = pd.DataFrame(
        [
            [
                r.id,
                r.gene,
                r.variant,
                ms_to_iso(r.timestamp),
                r.risk_level.value,
                r.pathogenicity_score,
                r.confidence,
                r.type.value,
                "YES" if r.archived else "NO",
            ]
            for r in records
        ],
        columns=CSV_HEADERS,
    )
    return df.to_csv(index=False, lineterminator="\n").rstrip("\n")


def _render_text(records: list[HistoryRecord], config: ExportConfig, generated_at: int) -> str:
    lines = [
        f"PROTEIN ENGINEERING REPORT: {config.filename}",
        f"Generated: {ms_to_iso(generated_at)}",
        "",
        "Summary:",
        f"Total Analyzed: {len(records)}",
        "",
    ]
    lines.extend(
        f"[{r.gene}] {r.variant} - Risk: {r.risk_level.value} ({r.confidence:g}% Confidence)"
        for r in records
    )
    return "\n".join(lines)


def render_report(
    records: list[HistoryRecord],
    config: ExportConfig,
    statistics: HistoryStatistics | None = None,
    generated_at: int | None = None,
) -> str:
    """Render records in the configured format.

    Args:
        records: Records to export, in the order they should appear
        config: Export options
        statistics: Snapshot embedded in JSON exports when include_stats is set
        generated_at: Report time in epoch ms; defaults to now

    Returns:
        The report text
    """
    generated_at = generated_at if generated_at is not None else now_ms()

    if config.format == ExportFormat.JSON:
        return _render_json(records, config, statistics, generated_at)
    if config.format in (ExportFormat.CSV, ExportFormat.EXCEL):
        return _render_csv(records)
    return _render_text(records, config, generated_at)
