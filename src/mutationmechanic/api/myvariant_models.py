"""Pydantic models for MyVariant.info API responses.

dbNSFP fields come back either as scalars or as per-transcript lists; the
``first`` helper collapses both to one value.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def first(value: Any) -> Any:
    """First element of a list, or the value itself."""
    if isinstance(value, list):
        return value[0] if value else None
    return value


class ClinVarCondition(BaseModel):
    name: str | None = None


class ClinVarRCV(BaseModel):
    """ClinVar RCV record."""

    accession: str | None = None
    clinical_significance: str | None = None
    review_status: str | None = None
    last_evaluated: str | None = None
    conditions: ClinVarCondition | list[ClinVarCondition] | None = None


class ClinVarData(BaseModel):
    """ClinVar data structure."""

    variant_id: int | str | None = None
    rcv: ClinVarRCV | list[ClinVarRCV] | None = None


class GnomadAF(BaseModel):
    """gnomAD allele frequencies, global and per ancestry group."""

    af: float | None = None
    af_afr: float | None = None
    af_amr: float | None = None
    af_eas: float | None = None
    af_nfe: float | None = None
    af_sas: float | None = None


class GnomadData(BaseModel):
    af: GnomadAF | None = None


class ScoredPrediction(BaseModel):
    """dbNSFP predictor with score and single-letter prediction."""

    score: float | list[float | None] | None = None
    pred: str | list[str | None] | None = None


class PolyPhen2Data(BaseModel):
    hdiv: ScoredPrediction | None = None


class ConservationTrack(BaseModel):
    score: float | list[float | None] | None = None


class ConservationData(BaseModel):
    """PhyloP / phastCons tracks keyed by alignment."""

    model_config = ConfigDict(populate_by_name=True)

    vertebrate_100way: ConservationTrack | None = Field(None, alias="100way_vertebrate")


class GerpData(BaseModel):
    rs: float | list[float | None] | None = None


class MutationTasterData(BaseModel):
    pred: str | list[str | None] | None = None


class CaddData(BaseModel):
    """CADD data structure."""

    phred: float | str | None = None


class DbNSFPData(BaseModel):
    """dbNSFP data structure."""

    model_config = ConfigDict(populate_by_name=True)

    sift: ScoredPrediction | None = None
    polyphen2: PolyPhen2Data | None = None
    phylop: ConservationData | None = None
    phastcons: ConservationData | None = None
    gerp: GerpData | None = Field(None, alias="gerp++")
    mutationtaster: MutationTasterData | None = None
    cadd: CaddData | None = None


class Hg38Coordinates(BaseModel):
    start: int | None = None


class VcfData(BaseModel):
    position: int | str | None = None
    ref: str | None = None
    alt: str | None = None


class MyVariantHit(BaseModel):
    """Single hit from MyVariant API response."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    chrom: str | None = None
    hg38: Hg38Coordinates | None = None
    vcf: VcfData | None = None

    clinvar: ClinVarData | list[ClinVarData] | None = None
    dbnsfp: DbNSFPData | None = None
    gnomad_genome: GnomadData | None = None
    gnomad_exome: GnomadData | None = None
    cadd: CaddData | None = None


class MyVariantResponse(BaseModel):
    """MyVariant API response structure."""

    took: int | None = None
    total: int = 0
    max_score: float | None = None
    hits: list[MyVariantHit] = Field(default_factory=list)
