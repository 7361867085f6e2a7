"""Tests for the annotation aggregator."""

import asyncio

import pytest
from unittest.mock import AsyncMock, patch

from mutationmechanic.aggregator import AnnotationAggregator
from mutationmechanic.api.alphagenome import AlphaGenomeAPIError, AlphaGenomeClient
from mutationmechanic.api.clinvar import ClinVarAPIError
from mutationmechanic.api.ensembl import EnsemblAPIError
from mutationmechanic.api.myvariant import MyVariantAnnotation, MyVariantAPIError
from mutationmechanic.models.genomics import (
    ClinVarEntry,
    ConservationScores,
    OrthologInfo,
    ProteinImpact,
)
from mutationmechanic.models.variant import VariantInput
from mutationmechanic.storage.tiered_cache import MISSING


@pytest.fixture
def aggregator(fast_only_cache, clock):
    return AnnotationAggregator(fast_only_cache, timeout=2.0, clock=clock)


def _myvariant_annotation() -> MyVariantAnnotation:
    return MyVariantAnnotation(
        position="chr1:12345",
        conservation=ConservationScores(phylo_p=4.1),
        impact=ProteinImpact(cadd=23.0, verdict="HIGH IMPACT"),
        clinvar=ClinVarEntry(id="10", significance="Likely pathogenic"),
    )


def _orthologs() -> list[OrthologInfo]:
    return [
        OrthologInfo(species="Homo sapiens", common_name="Human", position=100, aa="R", conserved=True),
        OrthologInfo(species="Mus musculus", common_name="Mouse", position=98, aa="R", conserved=True),
    ]


class TestAnnotationAggregator:
    """Tests for AnnotationAggregator."""

    @pytest.mark.asyncio
    async def test_curated_variant_skips_providers(self, aggregator, fast_only_cache):
        with patch.object(aggregator.myvariant, "fetch_annotation", new_callable=AsyncMock) as mv:
            context = await aggregator.fetch_annotations("SOD1", "L144F")

            mv.assert_not_called()

        assert context.source == "Internal Database"
        assert context.variant_id == "SOD1-L144F"
        assert context.impact.cadd == 26.4
        assert context.conservation.phylo_p == 4.5
        assert context.metadata
        assert await fast_only_cache.get("alphagenome_cache_SOD1-L144F") is not MISSING

    @pytest.mark.asyncio
    async def test_cache_hit_skips_providers(self, aggregator):
        with patch.object(aggregator.myvariant, "fetch_annotation", new_callable=AsyncMock) as mv, \
                patch.object(aggregator.clinvar, "fetch_clinvar", new_callable=AsyncMock) as cv, \
                patch.object(aggregator.ensembl, "fetch_orthologs", new_callable=AsyncMock) as ens:
            mv.return_value = _myvariant_annotation()
            cv.return_value = None
            ens.return_value = _orthologs()

            first = await aggregator.fetch_annotations("GENE1", "R100W")
            second = await aggregator.fetch_annotations("GENE1", "R100W")

            assert mv.call_count == 1
            assert cv.call_count == 1
            assert ens.call_count == 1

        assert first == second

    @pytest.mark.asyncio
    async def test_merges_provider_sections(self, aggregator):
        clinvar = ClinVarEntry(id="VCV1", significance="Pathogenic", stars=2, phenotypes=["Disease X"])
        with patch.object(aggregator.myvariant, "fetch_annotation", new_callable=AsyncMock) as mv, \
                patch.object(aggregator.clinvar, "fetch_clinvar", new_callable=AsyncMock) as cv, \
                patch.object(aggregator.ensembl, "fetch_orthologs", new_callable=AsyncMock) as ens:
            mv.return_value = _myvariant_annotation()
            cv.return_value = clinvar
            ens.return_value = _orthologs()

            context = await aggregator.fetch_annotations("GENE1", "Arg100Trp")

            mv.assert_called_once_with("GENE1", "R100W")
            ens.assert_called_once_with("GENE1", 100)

        assert context.source == "Aggregated (MyVariant/Ensembl/ClinVar)"
        assert context.position == "chr1:12345"
        assert context.impact.cadd == 23.0
        assert len(context.orthologs) == 2
        # The dedicated ClinVar lookup wins over MyVariant's copy
        assert context.clinvar.significance == "Pathogenic"
        assert context.unavailable_sources == []

    @pytest.mark.asyncio
    async def test_partial_failure_degrades(self, aggregator):
        with patch.object(aggregator.myvariant, "fetch_annotation", new_callable=AsyncMock) as mv, \
                patch.object(aggregator.clinvar, "fetch_clinvar", new_callable=AsyncMock) as cv, \
                patch.object(aggregator.ensembl, "fetch_orthologs", new_callable=AsyncMock) as ens:
            mv.return_value = _myvariant_annotation()
            cv.side_effect = ClinVarAPIError("down")
            ens.side_effect = EnsemblAPIError("down")

            context = await aggregator.fetch_annotations("GENE1", "R100W")

        assert context.has_data()
        assert context.orthologs == []
        assert context.clinvar.significance == "Likely pathogenic"
        assert sorted(context.unavailable_sources) == ["ClinVar", "Ensembl"]

    @pytest.mark.asyncio
    async def test_all_providers_fail_not_cached(self, aggregator, fast_only_cache):
        with patch.object(aggregator.myvariant, "fetch_annotation", new_callable=AsyncMock) as mv, \
                patch.object(aggregator.clinvar, "fetch_clinvar", new_callable=AsyncMock) as cv, \
                patch.object(aggregator.ensembl, "fetch_orthologs", new_callable=AsyncMock) as ens:
            mv.side_effect = MyVariantAPIError("down")
            cv.side_effect = ClinVarAPIError("down")
            ens.side_effect = EnsemblAPIError("down")

            context = await aggregator.fetch_annotations("GENE1", "R100W")

        assert not context.has_data()
        assert context.source == "Unavailable"
        assert await fast_only_cache.get("alphagenome_cache_GENE1-R100W") is MISSING

    @pytest.mark.asyncio
    async def test_timeout_cancels_slow_providers(self, fast_only_cache, clock):
        aggregator = AnnotationAggregator(fast_only_cache, timeout=0.05, clock=clock)

        async def slow(*args, **kwargs):
            await asyncio.sleep(5)

        with patch.object(aggregator.myvariant, "fetch_annotation", new_callable=AsyncMock) as mv, \
                patch.object(aggregator.clinvar, "fetch_clinvar", side_effect=slow), \
                patch.object(aggregator.ensembl, "fetch_orthologs", side_effect=slow):
            mv.return_value = _myvariant_annotation()

            context = await asyncio.wait_for(aggregator.fetch_annotations("GENE1", "R100W"), timeout=2)

        assert context.impact.cadd == 23.0
        assert sorted(context.unavailable_sources) == ["ClinVar", "Ensembl"]

    @pytest.mark.asyncio
    async def test_no_position_skips_ensembl(self, aggregator):
        with patch.object(aggregator.myvariant, "fetch_annotation", new_callable=AsyncMock) as mv, \
                patch.object(aggregator.clinvar, "fetch_clinvar", new_callable=AsyncMock) as cv, \
                patch.object(aggregator.ensembl, "fetch_orthologs", new_callable=AsyncMock) as ens:
            mv.return_value = _myvariant_annotation()
            cv.return_value = None

            await aggregator.fetch_annotations("CFTR", "c.3718-2477C>T")

            ens.assert_not_called()

    @pytest.mark.asyncio
    async def test_alphagenome_primary(self, fast_only_cache, clock):
        alphagenome = AlphaGenomeClient("https://alphagenome.example", "key")
        aggregator = AnnotationAggregator(fast_only_cache, alphagenome=alphagenome, clock=clock)

        with patch.object(alphagenome, "lookup", new_callable=AsyncMock) as lookup, \
                patch.object(aggregator.myvariant, "fetch_annotation", new_callable=AsyncMock) as mv:
            lookup.return_value = {"conservation": {"phyloP": 2.0}, "source": "AlphaGenome v2"}

            context = await aggregator.fetch_annotations("GENE1", "R100W")

            mv.assert_not_called()

        assert context.source == "AlphaGenome v2"
        assert context.conservation.phylo_p == 2.0

    @pytest.mark.asyncio
    async def test_alphagenome_failure_falls_back(self, fast_only_cache, clock):
        alphagenome = AlphaGenomeClient("https://alphagenome.example", "key")
        aggregator = AnnotationAggregator(fast_only_cache, alphagenome=alphagenome, clock=clock)

        with patch.object(alphagenome, "lookup", new_callable=AsyncMock) as lookup, \
                patch.object(aggregator.myvariant, "fetch_annotation", new_callable=AsyncMock) as mv, \
                patch.object(aggregator.clinvar, "fetch_clinvar", new_callable=AsyncMock) as cv, \
                patch.object(aggregator.ensembl, "fetch_orthologs", new_callable=AsyncMock) as ens:
            lookup.side_effect = AlphaGenomeAPIError("HTTP 500")
            mv.return_value = _myvariant_annotation()
            cv.return_value = None
            ens.return_value = []

            context = await aggregator.fetch_annotations("GENE1", "R100W")

        assert context.source == "Aggregated (MyVariant)"
        assert "AlphaGenome" in context.unavailable_sources

    @pytest.mark.asyncio
    async def test_batch_isolates_failures(self, aggregator):
        requests = [
            VariantInput(gene="SOD1", variant="L144F"),
            VariantInput(gene="GENE1", variant="R100W"),
        ]

        original = aggregator.fetch_annotations

        async def flaky(gene, variant, variant_id=None):
            if gene == "GENE1":
                raise RuntimeError("boom")
            return await original(gene, variant, variant_id)

        with patch.object(aggregator, "fetch_annotations", side_effect=flaky):
            results = await aggregator.fetch_batch_annotations(requests)

        assert results[0].source == "Internal Database"
        assert results[1] is None

    @pytest.mark.asyncio
    async def test_context_manager_closes_clients(self, aggregator):
        async with aggregator:
            aggregator.myvariant._get_client()
        assert aggregator.myvariant._client is None
