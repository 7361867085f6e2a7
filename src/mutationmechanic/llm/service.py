"""LLM service for variant mechanism narratives."""

import json

from litellm import acompletion

from mutationmechanic.llm.prompts import create_mechanism_prompt
from mutationmechanic.models.explanation import MechanismExplanation
from mutationmechanic.models.genomics import GenomicContext


def _strip_code_fence(content: str) -> str:
    if content.startswith("```"):
        parts = content.split("```")
        content = parts[1] if len(parts) > 1 else parts[0]
        if content.lower().startswith("json"):
            content = content[4:].lstrip()
    return content


class LLMService:
    """Explains variant mechanisms from annotation bundles."""

    # Models that accept response_format={"type": "json_object"}
    JSON_MODE_MODELS = ["gpt-4o-mini", "gpt-4o", "gpt-4-turbo", "gpt-3.5-turbo"]

    def __init__(self, model: str = "gpt-4o-mini", temperature: float = 0.0):
        self.model = model
        self.temperature = temperature

    async def explain_mechanism(self, gene: str, variant: str, context: GenomicContext) -> MechanismExplanation:
        """Ask the model for a mechanism explanation.

        Raises:
            json.JSONDecodeError: If the model does not return JSON
            Exception: Any litellm error is propagated
        """
        completion_kwargs = {
            "model": self.model,
            "messages": create_mechanism_prompt(gene, variant, context),
            "temperature": self.temperature,
            "max_tokens": 1000,
        }
        if any(prefix in self.model.lower() for prefix in self.JSON_MODE_MODELS):
            completion_kwargs["response_format"] = {"type": "json_object"}

        response = await acompletion(**completion_kwargs)
        content = _strip_code_fence(response.choices[0].message.content.strip())
        data = json.loads(content)

        return MechanismExplanation(
            summary=data.get("summary", "No summary provided."),
            mechanism=data.get("mechanism"),
            disease_associations=data.get("disease_associations", []),
            therapies=data.get("therapies", []),
        )
