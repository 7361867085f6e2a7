"""Annotation aggregator.

ARCHITECTURE:
    (gene, variant, id) → TieredCache hit? → curated record? → AlphaGenome?
        → MyVariant + Ensembl + ClinVar (concurrent, one deadline) → GenomicContext → cache

Key Design:
- Cache key is ``alphagenome_cache_{variant_id}``; a hit never touches a provider
- One deadline covers the whole aggregation; providers still running when it
  passes are cancelled and reported in ``unavailable_sources``
- Provider failures drop that provider's sections, not the bundle
- A bundle with no provider data is returned but not cached, so a retry can
  still succeed
- Batch lookups run per variant concurrently; a failed variant yields None
"""

import asyncio
import logging
from typing import Any

from pydantic import ValidationError

from mutationmechanic.api.alphagenome import AlphaGenomeClient
from mutationmechanic.api.clinvar import ClinVarClient
from mutationmechanic.api.ensembl import EnsemblClient
from mutationmechanic.api.myvariant import MyVariantAnnotation, MyVariantClient
from mutationmechanic.config import Settings
from mutationmechanic.constants import (
    ANNOTATION_CACHE_PREFIX,
    CURATED_ANNOTATIONS,
    DEFAULT_METADATA,
    REQUEST_TIMEOUT_SECONDS,
)
from mutationmechanic.models.genomics import GenomicContext
from mutationmechanic.models.variant import VariantInput
from mutationmechanic.storage.tiered_cache import MISSING, TieredCache
from mutationmechanic.utils import get_protein_position, normalize_variant
from mutationmechanic.utils.timeutils import Clock

logger = logging.getLogger(__name__)

CURATED_SOURCE = "Internal Database"
ALPHAGENOME_SOURCE = "AlphaGenome"
MYVARIANT_SOURCE = "MyVariant"
ENSEMBL_SOURCE = "Ensembl"
CLINVAR_SOURCE = "ClinVar"


class AnnotationAggregator:
    """Builds one normalized annotation bundle per variant."""

    def __init__(
        self,
        cache: TieredCache,
        myvariant: MyVariantClient | None = None,
        ensembl: EnsemblClient | None = None,
        clinvar: ClinVarClient | None = None,
        alphagenome: AlphaGenomeClient | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the aggregator.

        Args:
            cache: Shared tiered cache
            myvariant: Frequency / conservation / impact provider
            ensembl: Ortholog provider
            clinvar: Clinical significance provider
            alphagenome: Primary full-bundle provider; skipped when unconfigured
            timeout: Deadline in seconds for one uncached aggregation
            clock: Epoch-millisecond clock for bundle timestamps
        """
        self.cache = cache
        self.myvariant = myvariant or MyVariantClient(timeout=timeout)
        self.ensembl = ensembl or EnsemblClient(timeout=timeout)
        self.clinvar = clinvar or ClinVarClient(timeout=timeout)
        self.alphagenome = alphagenome or AlphaGenomeClient(None, None, timeout=timeout)
        self.timeout = timeout
        self._clock = clock or cache.now

    @classmethod
    def from_settings(cls, settings: Settings, cache: TieredCache) -> "AnnotationAggregator":
        return cls(
            cache=cache,
            alphagenome=AlphaGenomeClient(
                settings.alphagenome_api_url,
                settings.alphagenome_api_key,
                timeout=settings.request_timeout,
            ),
            timeout=settings.request_timeout,
        )

    async def __aenter__(self) -> "AnnotationAggregator":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        for client in (self.myvariant, self.ensembl, self.clinvar, self.alphagenome):
            await client.close()

    @staticmethod
    def cache_key(variant_id: str) -> str:
        return f"{ANNOTATION_CACHE_PREFIX}{variant_id}"

    def _bundle(self, data: dict[str, Any], variant_id: str, gene: str, source: str) -> GenomicContext:
        return GenomicContext.model_validate({
            **data,
            "variantId": variant_id,
            "gene": gene,
            "source": data.get("source") or source,
            "timestamp": self._clock(),
            "metadata": DEFAULT_METADATA,
        })

    async def _read_cache(self, key: str) -> GenomicContext | None:
        cached = await self.cache.get(key)
        if cached is MISSING:
            return None
        try:
            return GenomicContext.model_validate(cached)
        except ValidationError as e:
            logger.warning("Ignoring malformed cached annotation %s: %s", key, e)
            return None

    async def fetch_annotations(self, gene: str, variant: str, variant_id: str | None = None) -> GenomicContext:
        """Annotation bundle for one variant.

        Args:
            gene: Gene symbol (e.g., "SOD1")
            variant: Variant notation (e.g., "L144F")
            variant_id: Stable identifier; defaults to ``{gene}-{variant}``

        Returns:
            The bundle. ``has_data()`` is False when every provider failed.
        """
        variant_id = variant_id or f"{gene}-{variant}"
        key = self.cache_key(variant_id)

        cached = await self._read_cache(key)
        if cached is not None:
            logger.debug("Annotation cache hit for %s", variant_id)
            return cached

        curated = CURATED_ANNOTATIONS.get(variant_id)
        if curated is not None:
            context = self._bundle(curated, variant_id, gene, CURATED_SOURCE)
            await self.cache.set(key, context.to_json_dict())
            return context

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout
        unavailable: list[str] = []

        if self.alphagenome.configured:
            try:
                primary = await asyncio.wait_for(self.alphagenome.lookup(gene, variant), timeout=self.timeout)
            except Exception as e:
                logger.warning("AlphaGenome lookup failed for %s: %s", variant_id, str(e) or type(e).__name__)
                unavailable.append(ALPHAGENOME_SOURCE)
                primary = None
            if primary:
                context = self._bundle(primary, variant_id, gene, ALPHAGENOME_SOURCE)
                await self.cache.set(key, context.to_json_dict())
                return context

        context = await self._aggregate(gene, variant, variant_id, deadline - loop.time(), unavailable)
        if context.has_data():
            await self.cache.set(key, context.to_json_dict())
        else:
            logger.warning("No annotation data for %s (unavailable: %s)", variant_id, ", ".join(unavailable) or "none")
        return context

    async def _aggregate(
        self,
        gene: str,
        variant: str,
        variant_id: str,
        remaining: float,
        unavailable: list[str],
    ) -> GenomicContext:
        """Query the fallback providers concurrently and merge their sections."""
        normalized = normalize_variant(gene, variant)["variant_normalized"]
        position = get_protein_position(variant)

        tasks: dict[str, asyncio.Task] = {
            MYVARIANT_SOURCE: asyncio.create_task(self.myvariant.fetch_annotation(gene, normalized)),
            CLINVAR_SOURCE: asyncio.create_task(self.clinvar.fetch_clinvar(gene, variant)),
        }
        if position is not None:
            tasks[ENSEMBL_SOURCE] = asyncio.create_task(self.ensembl.fetch_orthologs(gene, position))

        done, pending = await asyncio.wait(list(tasks.values()), timeout=max(remaining, 0))
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        results: dict[str, Any] = {}
        for name, task in tasks.items():
            if task not in done:
                logger.warning("%s timed out for %s", name, variant_id)
                unavailable.append(name)
            elif task.exception() is not None:
                logger.warning("%s failed for %s: %s", name, variant_id, task.exception())
                unavailable.append(name)
            else:
                results[name] = task.result()

        myvariant: MyVariantAnnotation = results.get(MYVARIANT_SOURCE) or MyVariantAnnotation()
        orthologs = results.get(ENSEMBL_SOURCE) or []
        clinvar = results.get(CLINVAR_SOURCE) or myvariant.clinvar

        contributors = [
            name
            for name, contributed in (
                (MYVARIANT_SOURCE, myvariant.has_data()),
                (ENSEMBL_SOURCE, bool(orthologs)),
                (CLINVAR_SOURCE, results.get(CLINVAR_SOURCE) is not None),
            )
            if contributed
        ]
        source = f"Aggregated ({'/'.join(contributors)})" if contributors else "Unavailable"

        return GenomicContext(
            variant_id=variant_id,
            gene=gene,
            position=myvariant.position,
            frequency=myvariant.frequency,
            conservation=myvariant.conservation,
            impact=myvariant.impact,
            orthologs=orthologs,
            clinvar=clinvar,
            source=source,
            timestamp=self._clock(),
            metadata=DEFAULT_METADATA,
            unavailable_sources=unavailable,
        )

    async def fetch_batch_annotations(self, requests: list[VariantInput]) -> list[GenomicContext | None]:
        """Annotate several variants concurrently.

        Results line up with ``requests``; a variant whose lookup raised is None.
        """
        results = await asyncio.gather(
            *[self.fetch_annotations(r.gene, r.variant, r.identifier) for r in requests],
            return_exceptions=True,
        )

        contexts: list[GenomicContext | None] = []
        for request, result in zip(requests, results):
            if isinstance(result, Exception):
                logger.warning("Annotation failed for %s: %s", request.identifier, result)
                contexts.append(None)
            else:
                contexts.append(result)
        return contexts
