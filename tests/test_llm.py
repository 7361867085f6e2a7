"""Tests for LLM service."""

import json

import pytest
from unittest.mock import AsyncMock, patch

from mutationmechanic.llm.prompts import create_mechanism_prompt, summarize_context
from mutationmechanic.llm.service import LLMService
from mutationmechanic.models.genomics import ClinVarEntry, ConservationScores, GenomicContext


@pytest.fixture
def sample_context():
    return GenomicContext(
        variant_id="SOD1-L144F",
        gene="SOD1",
        position="chr21:33039648",
        conservation=ConservationScores(phylo_p=4.5, phast_cons=0.98, gerp=5.2),
        clinvar=ClinVarEntry(significance="Pathogenic", stars=2, phenotypes=["ALS1"]),
        source="Internal Database",
        timestamp=0,
    )


def _mock_completion(content: str) -> AsyncMock:
    response = AsyncMock()
    response.choices = [AsyncMock()]
    response.choices[0].message.content = content
    return response


class TestLLMService:
    """Tests for LLMService."""

    @pytest.mark.asyncio
    async def test_explain_mechanism(self, sample_context, mock_llm_response):
        service = LLMService()

        with patch("mutationmechanic.llm.service.acompletion", new_callable=AsyncMock) as mock_call:
            mock_call.return_value = _mock_completion(mock_llm_response)

            explanation = await service.explain_mechanism("SOD1", "L144F", sample_context)

            kwargs = mock_call.call_args.kwargs
            assert kwargs["response_format"] == {"type": "json_object"}
            assert kwargs["model"] == "gpt-4o-mini"

        assert explanation.summary.startswith("L144F destabilizes")
        assert explanation.therapies == ["Tofersen"]
        assert explanation.disease_associations == ["Amyotrophic lateral sclerosis type 1"]

    @pytest.mark.asyncio
    async def test_explain_mechanism_with_markdown(self, sample_context):
        """Test explanation with markdown-wrapped JSON."""
        service = LLMService(model="claude-3-haiku-20240307")
        wrapped = "```json\n" + json.dumps({"summary": "Short summary"}) + "\n```"

        with patch("mutationmechanic.llm.service.acompletion", new_callable=AsyncMock) as mock_call:
            mock_call.return_value = _mock_completion(wrapped)

            explanation = await service.explain_mechanism("SOD1", "L144F", sample_context)

            assert "response_format" not in mock_call.call_args.kwargs

        assert explanation.summary == "Short summary"
        assert explanation.therapies == []

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self, sample_context):
        service = LLMService()

        with patch("mutationmechanic.llm.service.acompletion", new_callable=AsyncMock) as mock_call:
            mock_call.return_value = _mock_completion("I cannot answer that.")

            with pytest.raises(json.JSONDecodeError):
                await service.explain_mechanism("SOD1", "L144F", sample_context)


class TestPrompts:
    def test_summary_includes_available_sections(self, sample_context):
        summary = summarize_context(sample_context)
        assert "Position: chr21:33039648" in summary
        assert "phyloP=4.5" in summary
        assert "ClinVar: Pathogenic (2 stars); phenotypes: ALS1" in summary
        assert "Impact" not in summary

    def test_prompt_roles(self, sample_context):
        messages = create_mechanism_prompt("SOD1", "L144F", sample_context)
        assert [m["role"] for m in messages] == ["system", "user"]
        assert "Gene: SOD1" in messages[1]["content"]
        assert "Variant: L144F" in messages[1]["content"]
