"""Command-line interface for MutationMechanic.

ARCHITECTURE:
    CLI Commands → MutationMechanicEngine / HistoryStore / PresetStore → stdout or file

Workflows: annotate (bundle only), explain (single, recorded), compare (batch),
plus ``history`` and ``presets`` management groups.

Key Design:
- Typer framework for auto-help and type validation
- asyncio.run() bridges sync CLI → async stores and engine
- Settings come from the environment / .env
"""

import asyncio
import json
import logging
import warnings
from pathlib import Path
from typing import List, Optional

import typer

from mutationmechanic.config import Settings
from mutationmechanic.engine import MutationMechanicEngine
from mutationmechanic.models.history import PathogenicityLabel, RiskLevel
from mutationmechanic.models.variant import VariantInput
from mutationmechanic.storage.history import HistoryStore
from mutationmechanic.storage.presets import PresetImportError, PresetStore
from mutationmechanic.storage.tiered_cache import get_default_cache
from mutationmechanic.utils.reports import MIME_TYPES, ExportConfig, ExportFormat, export_filename, render_report

# Suppress litellm's async cleanup warnings (harmless internal warnings)
warnings.filterwarnings("ignore", message=".*async_success_handler.*")
warnings.filterwarnings("ignore", message=".*coroutine.*was never awaited.*")

app = typer.Typer(
    name="mutationmechanic",
    help="Protein variant annotation, explanation and analysis history",
    add_completion=False,
)
history_app = typer.Typer(help="Inspect and manage the analysis history")
presets_app = typer.Typer(help="Manage benchmark presets")
app.add_typer(history_app, name="history")
app.add_typer(presets_app, name="presets")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _load_variants(input_file: Path) -> list[VariantInput]:
    if not input_file.exists():
        print(f"Error: Input file not found: {input_file}")
        raise typer.Exit(1)
    with open(input_file, "r") as f:
        data = json.load(f)
    return [VariantInput(**item) for item in data]


def _write_json(output: Path, data) -> None:
    with open(output, "w") as f:
        json.dump(data, f, indent=2)
    print(f"Saved to {output}")


@app.command()
def annotate(
    gene: str = typer.Argument(..., help="Gene symbol (e.g., SOD1)"),
    variant: str = typer.Argument(..., help="Variant notation (e.g., L144F)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output JSON file"),
) -> None:
    """Fetch the annotation bundle for a variant without recording it."""

    async def run_annotate() -> None:
        variant_input = VariantInput(gene=gene, variant=variant)
        engine = MutationMechanicEngine.from_settings(Settings.from_env(), enable_logging=False)
        async with engine:
            context = await engine.aggregator.fetch_annotations(
                variant_input.gene, variant_input.variant, variant_input.identifier
            )
        data = context.to_json_dict()
        if output:
            _write_json(output, data)
        else:
            print(json.dumps(data, indent=2))

    asyncio.run(run_annotate())


@app.command()
def explain(
    gene: str = typer.Argument(..., help="Gene symbol (e.g., SOD1)"),
    variant: str = typer.Argument(..., help="Variant notation (e.g., L144F)"),
    llm: bool = typer.Option(False, "--llm/--no-llm", help="Ask the LLM for a mechanism narrative"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output JSON file"),
    log: bool = typer.Option(True, "--log/--no-log", help="Enable analysis event logging"),
) -> None:
    """Explain a single variant and add it to the history."""

    async def run_explain() -> None:
        variant_input = VariantInput(gene=gene, variant=variant)
        print(f"\nExplaining {variant_input.gene} {variant_input.variant}...")

        engine = MutationMechanicEngine.from_settings(Settings.from_env(), enable_llm=llm, enable_logging=log)
        async with engine:
            explanation = await engine.explain_variant(variant_input)

        print(explanation.to_report())
        if explanation.record_id:
            print(f"Recorded as {explanation.record_id}")
        if output:
            _write_json(output, explanation.model_dump(mode="json"))

    asyncio.run(run_explain())


@app.command()
def compare(
    input_file: Path = typer.Argument(..., help="Input JSON file with variants"),
    output: Path = typer.Option("comparison.json", "--output", "-o", help="Output file"),
) -> None:
    """Annotate several variants side by side."""

    variants = _load_variants(input_file)

    async def run_compare() -> None:
        print(f"\nLoaded {len(variants)} variants from {input_file}")
        engine = MutationMechanicEngine.from_settings(Settings.from_env(), enable_logging=False)
        async with engine:
            contexts = await engine.compare_variants(variants)

        output_data = [c.to_json_dict() if c else None for c in contexts]
        _write_json(output, output_data)

        annotated = sum(1 for c in contexts if c and c.has_data())
        print(f"\nAnnotated {annotated}/{len(variants)} variants")
        for v, c in zip(variants, contexts):
            status = c.source if c else "failed"
            print(f"  {v.identifier}: {status}")

    asyncio.run(run_compare())


@app.command()
def version() -> None:
    """Show version information."""
    from mutationmechanic import __version__
    print(f"MutationMechanic version {__version__}")


# =============================================================================
# HISTORY
# =============================================================================


def _history_store() -> HistoryStore:
    return HistoryStore(get_default_cache(Settings.from_env()))


@history_app.command("list")
def history_list(
    gene: Optional[str] = typer.Option(None, "--gene", "-g", help="Only this gene"),
    risk: Optional[RiskLevel] = typer.Option(None, "--risk", help="Only this risk level"),
    label: Optional[PathogenicityLabel] = typer.Option(None, "--label", help="Only this label"),
) -> None:
    """List recorded analyses, newest first."""

    async def run_list() -> None:
        store = _history_store()
        if gene:
            records = await store.get_records_by_gene(gene.upper())
        elif risk:
            records = await store.get_records_by_risk(risk)
        elif label:
            records = await store.get_records_by_label(label)
        else:
            records = await store.get_all_records()

        if not records:
            print("No records.")
            return
        for r in sorted(records, key=lambda r: r.timestamp, reverse=True):
            flag = " [archived]" if r.archived else ""
            print(
                f"{r.id}  {r.gene} {r.variant}  {r.risk_level.value}  "
                f"score={r.pathogenicity_score:g} ({r.pathogenicity_label.value}){flag}"
            )

    asyncio.run(run_list())


@history_app.command("stats")
def history_stats() -> None:
    """Show aggregate statistics."""

    async def run_stats() -> None:
        stats = await _history_store().get_statistics()
        print(json.dumps(stats.to_json_dict(), indent=2))

    asyncio.run(run_stats())


@history_app.command("export")
def history_export(
    fmt: ExportFormat = typer.Option(ExportFormat.JSON, "--format", "-f", help="Export format"),
    filename: str = typer.Option("mutation_mechanic_report", "--filename", help="Base file name"),
    include_stats: bool = typer.Option(False, "--stats/--no-stats", help="Embed statistics (JSON only)"),
    include_metadata: bool = typer.Option(False, "--metadata/--no-metadata", help="Embed metadata (JSON only)"),
    output_dir: Path = typer.Option(Path("."), "--output-dir", "-d", help="Directory for the report"),
) -> None:
    """Export the history to a report file."""

    async def run_export() -> None:
        store = _history_store()
        config = ExportConfig(
            format=fmt,
            filename=filename,
            include_stats=include_stats,
            include_metadata=include_metadata,
        )
        records = await store.get_all_records()
        statistics = await store.get_statistics() if include_stats else None
        content = render_report(records, config, statistics=statistics)

        output_dir.mkdir(parents=True, exist_ok=True)
        path = output_dir / export_filename(config)
        path.write_text(content, encoding="utf-8")
        print(f"Exported {len(records)} records to {path} ({MIME_TYPES[fmt]})")

    asyncio.run(run_export())


@history_app.command("delete")
def history_delete(record_ids: List[str] = typer.Argument(..., help="Record ids")) -> None:
    """Delete records."""
    asyncio.run(_history_store().bulk_delete(record_ids))
    print(f"Deleted {len(record_ids)} record(s)")


@history_app.command("archive")
def history_archive(
    record_ids: List[str] = typer.Argument(..., help="Record ids"),
    unarchive: bool = typer.Option(False, "--unarchive", help="Clear the archived flag instead"),
) -> None:
    """Archive (or unarchive) records."""
    asyncio.run(_history_store().bulk_archive(record_ids, archived=not unarchive))
    print(f"{'Unarchived' if unarchive else 'Archived'} {len(record_ids)} record(s)")


@history_app.command("clear")
def history_clear(yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation")) -> None:
    """Delete every record."""
    if not yes and not typer.confirm("Delete the entire analysis history?"):
        raise typer.Exit(1)
    asyncio.run(_history_store().clear_history())
    print("History cleared")


# =============================================================================
# PRESETS
# =============================================================================


def _preset_store() -> PresetStore:
    return PresetStore(get_default_cache(Settings.from_env()).fast)


@presets_app.command("list")
def presets_list() -> None:
    """List presets, most recently modified first."""
    presets = asyncio.run(_preset_store().get_presets())
    if not presets:
        print("No presets.")
        return
    for p in presets:
        print(f"{p.id}  [{p.type.value}] {p.title}: {p.hgvs}")


@presets_app.command("import")
def presets_import(input_file: Path = typer.Argument(..., help="JSON file with a preset array")) -> None:
    """Import presets from a JSON file."""
    if not input_file.exists():
        print(f"Error: Input file not found: {input_file}")
        raise typer.Exit(1)
    try:
        presets = asyncio.run(_preset_store().import_presets(input_file.read_text(encoding="utf-8")))
    except PresetImportError as e:
        print(f"Error: {e}")
        raise typer.Exit(1)
    print(f"{len(presets)} presets stored")


@presets_app.command("export")
def presets_export(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output JSON file"),
) -> None:
    """Export presets as JSON."""
    content = asyncio.run(_preset_store().export_presets())
    if output:
        output.write_text(content, encoding="utf-8")
        print(f"Saved to {output}")
    else:
        print(content)


@presets_app.command("delete")
def presets_delete(preset_id: str = typer.Argument(..., help="Preset id")) -> None:
    """Delete a preset."""
    remaining = asyncio.run(_preset_store().delete_preset(preset_id))
    print(f"{len(remaining)} presets remaining")


if __name__ == "__main__":
    app()
