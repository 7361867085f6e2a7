"""Explainer workflow result models."""

from pydantic import BaseModel, Field

from mutationmechanic.models.genomics import GenomicContext
from mutationmechanic.models.history import RiskLevel, VariantType


class MechanismExplanation(BaseModel):
    """Narrative produced by the language model for one variant."""

    summary: str
    mechanism: str | None = None
    disease_associations: list[str] = Field(default_factory=list)
    therapies: list[str] = Field(default_factory=list)


class VariantExplanation(BaseModel):
    """Outcome of explaining one variant."""

    gene: str
    variant: str
    variant_type: VariantType
    position: int | None = None
    context: GenomicContext
    risk_level: RiskLevel | None = None
    pathogenicity_score: float | None = None
    confidence: float | None = None
    mechanism: MechanismExplanation | None = None
    record_id: str | None = Field(None, description="History record id; None when nothing was recorded")

    def to_report(self) -> str:
        """Simple report output."""
        report = f"\nVariant: {self.gene} {self.variant} ({self.variant_type.value})\n"
        if not self.context.has_data():
            report += "No annotation data available. Retry later.\n"
            return report

        report += f"Source: {self.context.source}\n"
        if self.risk_level:
            report += (
                f"Risk: {self.risk_level.value} | Score: {self.pathogenicity_score:.1f} "
                f"| Confidence: {self.confidence:.0f}%\n"
            )

        ctx = self.context
        if ctx.position:
            report += f"Position: {ctx.position}\n"
        if ctx.frequency and ctx.frequency.gnomad_global is not None:
            label = f" ({ctx.frequency.rarity_label})" if ctx.frequency.rarity_label else ""
            report += f"gnomAD AF: {ctx.frequency.gnomad_global:.6f}{label}\n"
        if ctx.conservation and ctx.conservation.phylo_p is not None:
            report += f"PhyloP: {ctx.conservation.phylo_p:.2f}\n"
        if ctx.clinvar and ctx.clinvar.significance:
            report += f"ClinVar: {ctx.clinvar.significance}\n"
        if ctx.unavailable_sources:
            report += f"Unavailable: {', '.join(ctx.unavailable_sources)}\n"

        if self.mechanism:
            report += f"\n{self.mechanism.summary}\n"
            if self.mechanism.therapies:
                report += f"\nTherapies: {', '.join(self.mechanism.therapies)}\n"

        return report
