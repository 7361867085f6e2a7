"""NCBI ClinVar client (E-utilities).

Searches ClinVar for ``{gene}[gene] AND {variant}`` and summarizes the top
hit into a ClinVarEntry.
"""

from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from mutationmechanic.api.myvariant import review_stars
from mutationmechanic.constants import REQUEST_TIMEOUT_SECONDS
from mutationmechanic.models.genomics import ClinVarEntry


class ClinVarAPIError(Exception):
    """Exception raised for NCBI E-utilities errors."""

    pass


class ClinVarClient:
    """Client for ClinVar through NCBI E-utilities."""

    BASE_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"
    DEFAULT_TIMEOUT = REQUEST_TIMEOUT_SECONDS

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, api_key: str | None = None) -> None:
        self.timeout = timeout
        self.api_key = api_key
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "ClinVarClient":
        self._client = httpx.AsyncClient(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    @retry(
        retry=retry_if_exception_type((httpx.HTTPError, httpx.TimeoutException)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
    )
    async def _query(self, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
        """GET an E-utilities endpoint (esearch / esummary) as JSON."""
        client = self._get_client()
        params = {"db": "clinvar", "retmode": "json", **params}
        if self.api_key:
            params["api_key"] = self.api_key

        response = await client.get(f"{self.BASE_URL}/{endpoint}.fcgi", params=params)
        response.raise_for_status()
        return response.json()

    @staticmethod
    def _parse_summary(variation_id: str, result: dict[str, Any]) -> ClinVarEntry | None:
        # Newer summaries nest the classification under germline_classification
        classification = result.get("germline_classification") or result.get("clinical_significance") or {}
        significance = classification.get("description")
        accession = result.get("accession")
        if not significance and not accession:
            return None

        trait_set = classification.get("trait_set") or result.get("trait_set") or []
        phenotypes = []
        for trait in trait_set:
            name = trait.get("trait_name") if isinstance(trait, dict) else None
            if name and name not in phenotypes:
                phenotypes.append(name)

        review_status = classification.get("review_status")
        last_evaluated = classification.get("last_evaluated") or classification.get("last_evaluation")

        return ClinVarEntry(
            id=accession or variation_id,
            significance=significance,
            review_status=review_status,
            stars=review_stars(review_status),
            last_evaluated=last_evaluated or None,
            phenotypes=phenotypes,
        )

    async def fetch_clinvar(self, gene: str, variant: str) -> ClinVarEntry | None:
        """Look up clinical significance for a variant.

        Args:
            gene: Gene symbol (e.g., "TP53")
            variant: Variant notation (e.g., "R248Q")

        Returns:
            ClinVarEntry for the top hit, or None if ClinVar has nothing

        Raises:
            ClinVarAPIError: If a request fails
        """
        try:
            search_data = await self._query(
                "esearch", {"term": f"{gene}[gene] AND {variant}", "retmax": 1}
            )
            id_list = search_data.get("esearchresult", {}).get("idlist", [])
            if not id_list:
                return None

            variation_id = id_list[0]
            summary_data = await self._query("esummary", {"id": variation_id})
            result = summary_data.get("result", {}).get(variation_id, {})
            return self._parse_summary(variation_id, result)

        except Exception as e:
            raise ClinVarAPIError(f"ClinVar lookup failed for {gene} {variant}: {str(e)}")

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
