"""LLM provider implementations."""

from total_recall.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider"]
