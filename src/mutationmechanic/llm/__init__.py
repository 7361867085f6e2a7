"""Language model integration."""

from mutationmechanic.llm.service import LLMService

__all__ = ["LLMService"]
