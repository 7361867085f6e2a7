"""Genomic annotation bundle models.

The bundle is assembled by the annotation aggregator from several providers.
Every section is optional because any single provider may be unavailable.
"""

from pydantic import Field

from mutationmechanic.models.base import CamelModel


class PopulationFrequencies(CamelModel):
    """gnomAD allele frequency per ancestry group."""

    afr: float | None = Field(None, description="African/African American")
    amr: float | None = Field(None, description="Admixed American")
    eas: float | None = Field(None, description="East Asian")
    nfe: float | None = Field(None, description="Non-Finnish European")
    sas: float | None = Field(None, description="South Asian")


class FrequencyData(CamelModel):
    """Population frequency of the variant."""

    gnomad_global: float | None = None
    populations: PopulationFrequencies = Field(default_factory=PopulationFrequencies)
    rarity_label: str | None = None


class ConservationScores(CamelModel):
    """Cross-species conservation at the variant site."""

    phylo_p: float | None = Field(None, description="PhyloP (-14 to +6)")
    phast_cons: float | None = Field(None, description="PhastCons (0 to 1)")
    gerp: float | None = Field(None, description="GERP++ RS (-12 to +6)")


class PredictionScore(CamelModel):
    """A single in-silico predictor result."""

    score: float | None = None
    prediction: str | None = None


class ProteinImpact(CamelModel):
    """In-silico protein impact predictions."""

    sift: PredictionScore | None = None
    polyphen: PredictionScore | None = None
    cadd: float | None = Field(None, description="CADD phred (>20 is top 1%)")
    mutation_taster: str | None = None
    verdict: str | None = None


class SequenceDifference(CamelModel):
    """Residue difference between an ortholog snippet and the human reference."""

    pos: int
    ref: str
    alt: str


class OrthologInfo(CamelModel):
    """Residue at the variant position in another species."""

    species: str
    common_name: str | None = None
    position: int | None = None
    aa: str | None = None
    conserved: bool = False
    sequence_snippet: str | None = None
    conservation_scores: list[float] | None = None
    phylogenetic_distance: float | None = None
    start: int | None = None
    end: int | None = None
    differences: list[SequenceDifference] = Field(default_factory=list)
    source: str | None = None


class RegulatoryElement(CamelModel):
    type: str
    name: str
    impact_score: float
    description: str


class RnaContext(CamelModel):
    stability_change: float
    structure_disrupted: bool
    mirna: str | None = Field(None, alias="miRNA")
    motif: str | None = None


class ClinVarEntry(CamelModel):
    """ClinVar aggregate record for the variant."""

    id: str | None = None
    significance: str | None = None
    review_status: str | None = None
    stars: int | None = Field(None, ge=0, le=4)
    last_evaluated: str | None = None
    phenotypes: list[str] = Field(default_factory=list)


class OmimEntry(CamelModel):
    id: str
    title: str
    inheritance: list[str] = Field(default_factory=list)
    phenotypes: list[str] = Field(default_factory=list)
    url: str | None = None


class ProteinDomain(CamelModel):
    name: str
    start: int
    end: int
    type: str


class PTM(CamelModel):
    """Post-translational modification site."""

    id: str | None = None
    type: str
    position: int
    residue: str
    source: str | None = None
    evidence: str | None = None
    confidence: float | None = None
    notes: str | None = None
    url: str | None = None


class DataSourceMetadata(CamelModel):
    """Provenance of one contributing dataset."""

    name: str
    version: str
    url: str


class GenomicContext(CamelModel):
    """Normalized annotation bundle for one variant."""

    variant_id: str
    gene: str
    position: str | None = Field(None, description="Genomic coordinates (chr:pos)")
    protein_length: int | None = None
    domains: list[ProteinDomain] = Field(default_factory=list)
    ptms: list[PTM] = Field(default_factory=list)
    frequency: FrequencyData | None = None
    conservation: ConservationScores | None = None
    impact: ProteinImpact | None = None
    orthologs: list[OrthologInfo] = Field(default_factory=list)
    regulatory: list[RegulatoryElement] = Field(default_factory=list)
    rna: RnaContext | None = None
    clinvar: ClinVarEntry | None = None
    omim: OmimEntry | None = None
    source: str
    timestamp: int
    metadata: list[DataSourceMetadata] = Field(default_factory=list)
    unavailable_sources: list[str] = Field(default_factory=list)

    def has_data(self) -> bool:
        """Check if any provider contributed annotation content."""
        return any([
            self.frequency,
            self.conservation,
            self.impact,
            self.orthologs,
            self.clinvar,
            self.omim,
            self.domains,
            self.regulatory,
        ])
