"""MyVariant.info API client for population, conservation and impact data.

ARCHITECTURE:
    Gene + Variant → MyVariant.info API → frequency / conservation / impact / ClinVar sections

Key Design:
- Async HTTP with connection pooling (httpx.AsyncClient)
- Retry with exponential backoff (tenacity)
- Structured parsing via pydantic response models
- Context manager for session cleanup
- Each section is None when the hit carries nothing for it
"""

from typing import Any

import httpx
from pydantic import BaseModel
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from mutationmechanic.api.myvariant_models import (
    ClinVarData,
    MyVariantHit,
    MyVariantResponse,
    first,
)
from mutationmechanic.constants import (
    COMMON_RARITY_LABEL,
    HIGH_RISK_CADD,
    MEDIUM_RISK_CADD,
    RARITY_BANDS,
    REQUEST_TIMEOUT_SECONDS,
)
from mutationmechanic.models.genomics import (
    ClinVarEntry,
    ConservationScores,
    FrequencyData,
    PopulationFrequencies,
    PredictionScore,
    ProteinImpact,
)


class MyVariantAPIError(Exception):
    """Exception raised for MyVariant API errors."""

    pass


SIFT_PREDICTIONS = {"D": "Deleterious", "T": "Tolerated"}
POLYPHEN_PREDICTIONS = {"D": "Probably Damaging", "P": "Possibly Damaging", "B": "Benign"}
MUTATION_TASTER_PREDICTIONS = {
    "A": "Disease-causing (automatic)",
    "D": "Disease-causing",
    "N": "Polymorphism",
    "P": "Polymorphism (automatic)",
}

# ClinVar review status → gold stars
REVIEW_STATUS_STARS = {
    "practice guideline": 4,
    "reviewed by expert panel": 3,
    "criteria provided, multiple submitters, no conflicts": 2,
    "criteria provided, conflicting interpretations": 1,
    "criteria provided, conflicting classifications": 1,
    "criteria provided, single submitter": 1,
}


def rarity_label(af: float | None) -> str | None:
    """Bucket a global allele frequency (e.g., 0.00002 → 'Very Rare')."""
    if af is None:
        return None
    for upper, label in RARITY_BANDS:
        if af < upper:
            return label
    return COMMON_RARITY_LABEL


def impact_verdict(cadd: float | None) -> str | None:
    if cadd is None:
        return None
    if cadd > HIGH_RISK_CADD:
        return "HIGH IMPACT"
    if cadd > MEDIUM_RISK_CADD:
        return "MODERATE IMPACT"
    return "LOW IMPACT"


def review_stars(review_status: str | None) -> int:
    if not review_status:
        return 0
    return REVIEW_STATUS_STARS.get(review_status.lower().strip(), 0)


def _float(value: Any) -> float | None:
    value = first(value)
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class MyVariantAnnotation(BaseModel):
    """Sections of the annotation bundle that MyVariant.info can fill."""

    position: str | None = None
    frequency: FrequencyData | None = None
    conservation: ConservationScores | None = None
    impact: ProteinImpact | None = None
    clinvar: ClinVarEntry | None = None

    def has_data(self) -> bool:
        return any([self.frequency, self.conservation, self.impact, self.clinvar])


class MyVariantClient:
    """Client for MyVariant.info API.

    MyVariant.info aggregates gnomAD, dbNSFP, CADD and ClinVar annotations
    behind a single query endpoint.
    """

    BASE_URL = "https://myvariant.info/v1"
    DEFAULT_TIMEOUT = REQUEST_TIMEOUT_SECONDS

    FIELDS = [
        "chrom",
        "hg38.start",
        "vcf.position",
        "gnomad_genome.af",
        "gnomad_exome.af",
        "dbnsfp.sift.score",
        "dbnsfp.sift.pred",
        "dbnsfp.polyphen2.hdiv.score",
        "dbnsfp.polyphen2.hdiv.pred",
        "dbnsfp.phylop.100way_vertebrate.score",
        "dbnsfp.phastcons.100way_vertebrate.score",
        "dbnsfp.gerp++.rs",
        "dbnsfp.mutationtaster.pred",
        "cadd.phred",
        "clinvar.variant_id",
        "clinvar.rcv",
    ]

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        """Initialize the MyVariant client.

        Args:
            timeout: Request timeout in seconds
        """
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "MyVariantClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    @retry(
        retry=retry_if_exception_type((httpx.HTTPError, httpx.TimeoutException)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
    )
    async def _query(self, query: str, fields: list[str] | None = None) -> dict[str, Any]:
        """Execute a query against MyVariant API.

        Args:
            query: Query string (e.g., "SOD1:L144F" or "chr21:33039648")
            fields: Specific fields to retrieve

        Returns:
            API response as dictionary

        Raises:
            MyVariantAPIError: If the API reports an error
        """
        client = self._get_client()
        params: dict[str, str] = {"q": query}

        if fields:
            params["fields"] = ",".join(fields)

        response = await client.get(f"{self.BASE_URL}/query", params=params)
        response.raise_for_status()
        data = response.json()

        if "error" in data:
            raise MyVariantAPIError(f"API error: {data['error']}")

        return data

    def _extract_frequency(self, hit: MyVariantHit) -> FrequencyData | None:
        gnomad = hit.gnomad_genome or hit.gnomad_exome
        if not gnomad or not gnomad.af or gnomad.af.af is None:
            return None
        af = gnomad.af
        return FrequencyData(
            gnomad_global=af.af,
            populations=PopulationFrequencies(
                afr=af.af_afr, amr=af.af_amr, eas=af.af_eas, nfe=af.af_nfe, sas=af.af_sas
            ),
            rarity_label=rarity_label(af.af),
        )

    def _extract_conservation(self, hit: MyVariantHit) -> ConservationScores | None:
        dbnsfp = hit.dbnsfp
        if not dbnsfp:
            return None
        phylop = dbnsfp.phylop.vertebrate_100way if dbnsfp.phylop else None
        phastcons = dbnsfp.phastcons.vertebrate_100way if dbnsfp.phastcons else None
        scores = ConservationScores(
            phylo_p=_float(phylop.score) if phylop else None,
            phast_cons=_float(phastcons.score) if phastcons else None,
            gerp=_float(dbnsfp.gerp.rs) if dbnsfp.gerp else None,
        )
        if scores.phylo_p is None and scores.phast_cons is None and scores.gerp is None:
            return None
        return scores

    def _extract_impact(self, hit: MyVariantHit) -> ProteinImpact | None:
        dbnsfp = hit.dbnsfp
        cadd_data = hit.cadd or (dbnsfp.cadd if dbnsfp else None)
        cadd = _float(cadd_data.phred) if cadd_data else None

        sift = polyphen = None
        mutation_taster = None
        if dbnsfp:
            if dbnsfp.sift:
                pred = first(dbnsfp.sift.pred)
                sift = PredictionScore(
                    score=_float(dbnsfp.sift.score),
                    prediction=SIFT_PREDICTIONS.get(pred, pred),
                )
            if dbnsfp.polyphen2 and dbnsfp.polyphen2.hdiv:
                pred = first(dbnsfp.polyphen2.hdiv.pred)
                polyphen = PredictionScore(
                    score=_float(dbnsfp.polyphen2.hdiv.score),
                    prediction=POLYPHEN_PREDICTIONS.get(pred, pred),
                )
            if dbnsfp.mutationtaster:
                pred = first(dbnsfp.mutationtaster.pred)
                mutation_taster = MUTATION_TASTER_PREDICTIONS.get(pred, pred)

        if cadd is None and sift is None and polyphen is None and mutation_taster is None:
            return None

        return ProteinImpact(
            sift=sift,
            polyphen=polyphen,
            cadd=cadd,
            mutation_taster=mutation_taster,
            verdict=impact_verdict(cadd),
        )

    def _extract_clinvar(self, hit: MyVariantHit) -> ClinVarEntry | None:
        if not hit.clinvar:
            return None
        clinvar: ClinVarData = first(hit.clinvar)
        rcvs = clinvar.rcv if isinstance(clinvar.rcv, list) else [clinvar.rcv] if clinvar.rcv else []
        if not rcvs:
            return None

        lead = rcvs[0]
        phenotypes: list[str] = []
        for rcv in rcvs:
            conditions = rcv.conditions if isinstance(rcv.conditions, list) else [rcv.conditions]
            for condition in conditions:
                if condition and condition.name and condition.name not in phenotypes:
                    phenotypes.append(condition.name)

        return ClinVarEntry(
            id=str(clinvar.variant_id) if clinvar.variant_id is not None else lead.accession,
            significance=lead.clinical_significance,
            review_status=lead.review_status,
            stars=review_stars(lead.review_status),
            last_evaluated=lead.last_evaluated,
            phenotypes=phenotypes,
        )

    def _extract_position(self, hit: MyVariantHit) -> str | None:
        if not hit.chrom:
            return None
        start = hit.hg38.start if hit.hg38 else None
        if start is None and hit.vcf:
            start = hit.vcf.position
        return f"chr{hit.chrom}:{start}" if start is not None else None

    def _extract_from_hit(self, hit: MyVariantHit) -> MyVariantAnnotation:
        """Split a parsed hit into annotation bundle sections."""
        return MyVariantAnnotation(
            position=self._extract_position(hit),
            frequency=self._extract_frequency(hit),
            conservation=self._extract_conservation(hit),
            impact=self._extract_impact(hit),
            clinvar=self._extract_clinvar(hit),
        )

    async def fetch_annotation(self, gene: str, variant: str) -> MyVariantAnnotation | None:
        """Fetch annotation sections for a variant.

        Args:
            gene: Gene symbol (e.g., "SOD1")
            variant: Variant notation (e.g., "L144F")

        Returns:
            Annotation sections, or None when MyVariant has no hit

        Raises:
            MyVariantAPIError: If the API request fails
        """
        try:
            # Gene with protein notation first, then gene:variant, then plain text
            protein_notation = f"p.{variant}" if not variant.startswith("p.") else variant
            result: dict[str, Any] = {}
            for query in (f"{gene} {protein_notation}", f"{gene}:{variant}", f"{gene} {variant}"):
                result = await self._query(query, fields=self.FIELDS)
                if result.get("total", 0) > 0:
                    break

            parsed_response = MyVariantResponse(**result)
            if not parsed_response.hits:
                return None

            return self._extract_from_hit(parsed_response.hits[0])

        except MyVariantAPIError:
            raise
        except Exception as e:
            raise MyVariantAPIError(f"Failed to fetch annotation: {str(e)}")

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
