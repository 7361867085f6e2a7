"""Explainer workflow combining annotation, narrative and history.

ARCHITECTURE:
    VariantInput → Normalize → AnnotationAggregator → derive risk/score/confidence
        → (optional) LLMService narrative → HistoryStore.add_record → VariantExplanation

Key Design:
- Async context manager closes provider HTTP sessions
- Derived fields follow fixed rules: CADD > 20 HIGH, > 10 MEDIUM, else LOW;
  score = CADD; confidence 95 when phyloP > 3, else 75
- A bundle without data is reported but never recorded
- Narrative failures are logged and do not fail the analysis
- Batch comparison reuses the aggregator's per-variant cache
"""

import logging
from pathlib import Path

from mutationmechanic.aggregator import AnnotationAggregator
from mutationmechanic.config import Settings
from mutationmechanic.constants import (
    CONSERVED_CONFIDENCE,
    CONSERVED_PHYLOP,
    DEFAULT_CONFIDENCE,
    HIGH_RISK_CADD,
    MEDIUM_RISK_CADD,
)
from mutationmechanic.llm.service import LLMService
from mutationmechanic.models.explanation import MechanismExplanation, VariantExplanation
from mutationmechanic.models.genomics import GenomicContext
from mutationmechanic.models.history import AnalysisType, HistoryRecordCreate, RiskLevel
from mutationmechanic.models.variant import VariantInput
from mutationmechanic.storage.history import HistoryStore
from mutationmechanic.storage.tiered_cache import TieredCache, get_default_cache
from mutationmechanic.utils import normalize_variant
from mutationmechanic.utils.logging_config import AnalysisLogger, get_logger

logger = logging.getLogger(__name__)


def risk_from_cadd(cadd: float) -> RiskLevel:
    if cadd > HIGH_RISK_CADD:
        return RiskLevel.HIGH
    if cadd > MEDIUM_RISK_CADD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def confidence_from_conservation(context: GenomicContext) -> float:
    phylo_p = context.conservation.phylo_p if context.conservation else None
    if phylo_p is not None and phylo_p > CONSERVED_PHYLOP:
        return CONSERVED_CONFIDENCE
    return DEFAULT_CONFIDENCE


class MutationMechanicEngine:
    """Engine for variant explanation and comparison."""

    def __init__(
        self,
        cache: TieredCache,
        aggregator: AnnotationAggregator | None = None,
        history: HistoryStore | None = None,
        llm_service: LLMService | None = None,
        analysis_logger: AnalysisLogger | None = None,
    ):
        self.cache = cache
        self.aggregator = aggregator or AnnotationAggregator(cache)
        self.history = history or HistoryStore(cache)
        self.llm_service = llm_service
        self.analysis_logger = analysis_logger

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        enable_llm: bool = False,
        enable_logging: bool = True,
        log_dir: Path | None = None,
    ) -> "MutationMechanicEngine":
        cache = get_default_cache(settings)
        return cls(
            cache=cache,
            aggregator=AnnotationAggregator.from_settings(settings, cache),
            history=HistoryStore(cache),
            llm_service=LLMService(model=settings.llm_model) if enable_llm else None,
            analysis_logger=get_logger(log_dir or settings.log_dir) if enable_logging else None,
        )

    async def __aenter__(self):
        await self.cache.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aggregator.close()
        await self.cache.close()

    async def _explain_mechanism(self, gene: str, variant: str, context: GenomicContext) -> MechanismExplanation | None:
        if self.llm_service is None:
            return None
        try:
            return await self.llm_service.explain_mechanism(gene, variant, context)
        except Exception as e:
            logger.warning("Mechanism narrative failed for %s %s: %s", gene, variant, e)
            return None

    async def explain_variant(self, variant_input: VariantInput) -> VariantExplanation:
        """Explain a single variant and record the analysis.

        1. Normalize notation and classify the variant type
        2. Fetch the annotation bundle (cache first)
        3. Derive risk level, pathogenicity score and confidence
        4. Optionally ask the LLM for a mechanism narrative
        5. Append an EXPLAINER record to the history
        """
        normalized = normalize_variant(variant_input.gene, variant_input.variant)
        variant_type = normalized['variant_type']
        position = normalized['position']

        request_id = None
        if self.analysis_logger:
            request_id = self.analysis_logger.log_analysis_request(
                variant_input.gene, variant_input.variant, variant_type.value
            )

        try:
            context = await self.aggregator.fetch_annotations(
                variant_input.gene, variant_input.variant, variant_input.identifier
            )
            explanation = VariantExplanation(
                gene=variant_input.gene,
                variant=variant_input.variant,
                variant_type=variant_type,
                position=position,
                context=context,
            )

            if context.has_data():
                await self._score_and_record(explanation)

        except Exception as e:
            if self.analysis_logger:
                self.analysis_logger.log_analysis_error(
                    request_id or "unknown", variant_input.gene, variant_input.variant, e
                )
            raise

        if self.analysis_logger:
            self.analysis_logger.log_analysis_result(
                request_id=request_id or "unknown",
                gene=explanation.gene,
                variant=explanation.variant,
                source=context.source,
                risk_level=explanation.risk_level.value if explanation.risk_level else None,
                pathogenicity_score=explanation.pathogenicity_score,
                confidence=explanation.confidence,
                unavailable_sources=context.unavailable_sources,
                record_id=explanation.record_id,
            )

        return explanation

    async def _score_and_record(self, explanation: VariantExplanation) -> None:
        context = explanation.context
        # Missing CADD scores as 0 so the record still lands in history
        cadd = context.impact.cadd if context.impact and context.impact.cadd is not None else 0.0

        explanation.risk_level = risk_from_cadd(cadd)
        explanation.pathogenicity_score = cadd
        explanation.confidence = confidence_from_conservation(context)
        explanation.mechanism = await self._explain_mechanism(explanation.gene, explanation.variant, context)

        diseases = [context.clinvar.phenotypes[0]] if context.clinvar and context.clinvar.phenotypes else []
        therapies = explanation.mechanism.therapies if explanation.mechanism else []

        explanation.record_id = await self.history.add_record(HistoryRecordCreate(
            gene=explanation.gene,
            variant=explanation.variant,
            risk_level=explanation.risk_level,
            pathogenicity_score=explanation.pathogenicity_score,
            confidence=explanation.confidence,
            disease_associations=diseases,
            therapies=therapies,
            type=AnalysisType.EXPLAINER,
            variant_type=explanation.variant_type,
            position=explanation.position,
        ))

    async def compare_variants(self, variants: list[VariantInput]) -> list[GenomicContext | None]:
        """Annotate several variants concurrently for side-by-side comparison."""
        return await self.aggregator.fetch_batch_annotations(variants)
