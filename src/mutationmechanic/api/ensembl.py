"""Ensembl Compara REST client for cross-species orthologs.

ARCHITECTURE:
    Gene + residue → Ensembl homology endpoint (aligned protein sequences)
        → residue at the equivalent position in each ortholog

Key Design:
- Async HTTP (httpx.AsyncClient) with tenacity retries
- Orthologs are read off the pairwise alignment Ensembl returns, so the
  position in each species follows insertions and deletions
- Species without a mappable residue are skipped
"""

import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from mutationmechanic.constants import (
    ORTHOLOG_SNIPPET_FLANK,
    ORTHOLOG_TARGET_SPECIES,
    REQUEST_TIMEOUT_SECONDS,
    SPECIES_COMMON_NAMES,
)
from mutationmechanic.models.genomics import OrthologInfo, SequenceDifference

logger = logging.getLogger(__name__)

GAP = "-"


class EnsemblAPIError(Exception):
    """Exception raised for Ensembl REST API errors."""

    pass


def _scientific_name(species: str) -> str:
    """homo_sapiens → Homo sapiens"""
    return species.replace("_", " ").capitalize()


def _alignment_column(aligned: str, position: int) -> int | None:
    """Column holding the ``position``-th (1-based) residue of an aligned sequence."""
    seen = 0
    for column, residue in enumerate(aligned):
        if residue != GAP:
            seen += 1
            if seen == position:
                return column
    return None


def _residue_number(aligned: str, column: int) -> int:
    """1-based residue number of the residue at ``column``."""
    return sum(1 for residue in aligned[: column + 1] if residue != GAP)


def map_ortholog(
    source_align: str,
    target_align: str,
    position: int,
    flank: int = ORTHOLOG_SNIPPET_FLANK,
) -> dict[str, Any] | None:
    """Map a human residue onto an ortholog through their alignment.

    Args:
        source_align: Aligned human protein sequence
        target_align: Aligned ortholog protein sequence (same length)
        position: 1-based human residue number
        flank: Residues shown either side of the mapped position

    Returns:
        Dictionary with position, aa, conserved, sequence_snippet, start, end
        and differences, or None when the ortholog has a gap at the position
    """
    column = _alignment_column(source_align, position)
    if column is None or column >= len(target_align) or target_align[column] == GAP:
        return None

    target_position = _residue_number(target_align, column)
    target_residues = target_align.replace(GAP, "")
    start = max(1, target_position - flank)
    end = min(len(target_residues), target_position + flank)

    differences = []
    for human_position in range(max(1, position - flank), position + flank + 1):
        human_column = _alignment_column(source_align, human_position)
        if human_column is None or human_column >= len(target_align):
            continue
        ref, alt = source_align[human_column], target_align[human_column]
        if alt != GAP and alt != ref:
            differences.append(
                SequenceDifference(pos=_residue_number(target_align, human_column), ref=ref, alt=alt)
            )

    return {
        "position": target_position,
        "aa": target_align[column],
        "conserved": target_align[column] == source_align[column],
        "sequence_snippet": target_residues[start - 1:end],
        "start": start,
        "end": end,
        "differences": differences,
    }


class EnsemblClient:
    """Client for Ensembl REST homology lookups."""

    BASE_URL = "https://rest.ensembl.org"
    DEFAULT_TIMEOUT = REQUEST_TIMEOUT_SECONDS

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        target_species: list[str] | None = None,
    ) -> None:
        self.timeout = timeout
        self.target_species = target_species or list(ORTHOLOG_TARGET_SPECIES)
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "EnsemblClient":
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
    async def _query(self, gene: str) -> dict[str, Any]:
        """Fetch aligned ortholog sequences for a human gene symbol."""
        client = self._get_client()
        params: list[tuple[str, str]] = [
            ("type", "orthologues"),
            ("sequence", "protein"),
            ("aligned", "1"),
            ("content-type", "application/json"),
        ]
        params.extend(("target_species", species) for species in self.target_species)

        response = await client.get(f"{self.BASE_URL}/homology/symbol/human/{gene}", params=params)
        response.raise_for_status()
        return response.json()

    async def fetch_orthologs(self, gene: str, position: int) -> list[OrthologInfo]:
        """Residue at ``position`` of the human protein in each target species.

        Args:
            gene: Human gene symbol (e.g., "SOD1")
            position: 1-based residue number in the human protein

        Returns:
            Human reference row followed by one row per mappable ortholog

        Raises:
            EnsemblAPIError: If the API request fails
        """
        try:
            data = await self._query(gene)
        except Exception as e:
            raise EnsemblAPIError(f"Failed to fetch orthologs for {gene}: {str(e)}")

        orthologs: list[OrthologInfo] = []
        for entry in data.get("data", []):
            for homology in entry.get("homologies", []):
                source = homology.get("source", {})
                target = homology.get("target", {})
                source_align = source.get("align_seq")
                target_align = target.get("align_seq")
                if not source_align or not target_align:
                    continue

                if not orthologs:
                    human = map_ortholog(source_align, source_align, position)
                    if human is None:
                        logger.warning("Residue %d not in %s protein sequence", position, gene)
                        return []
                    orthologs.append(OrthologInfo(
                        species=_scientific_name("homo_sapiens"),
                        common_name=SPECIES_COMMON_NAMES["homo_sapiens"],
                        phylogenetic_distance=0,
                        source="Ensembl Compara",
                        **human,
                    ))

                mapped = map_ortholog(source_align, target_align, position)
                if mapped is None:
                    continue

                species = target.get("species", "")
                perc_id = target.get("perc_id")
                orthologs.append(OrthologInfo(
                    species=_scientific_name(species),
                    common_name=SPECIES_COMMON_NAMES.get(species),
                    phylogenetic_distance=round(1 - perc_id / 100, 2) if perc_id is not None else None,
                    source="Ensembl Compara",
                    **mapped,
                ))

        return orthologs

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
