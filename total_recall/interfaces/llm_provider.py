"""Abstract base class for chat-completion service providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator


# Concrete implementations: OpenAILLMProvider (OpenAI or Azure OpenAI)
# Located in: total_recall/providers/llm/
class ILLMProvider(ABC):
    """Contract for the language model that writes the final answer.

    Providers expose both a one-shot :meth:`complete` and an incremental
    :meth:`stream`; the HTTP endpoint uses the latter.
    """

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> str:
        """Generate a complete text response.

        Parameters
        ----------
        system_prompt:
            The system/instruction message that sets the model's behaviour.
        user_prompt:
            The user message containing the question.
        temperature:
            Sampling temperature (0.0 = deterministic, 1.0 = creative).
        max_tokens:
            Upper bound on the number of tokens in the response.

        Returns
        -------
        str
            The model's text response.

        Raises
        ------
        total_recall.utils.errors.LLMError
            If the API call fails or returns an empty response.
        """

    @abstractmethod
    def stream(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> AsyncIterator[str]:
        """Yield the response incrementally, in arrival order.

        Implementations are async generators.  Empty deltas are skipped.
        The iterator simply ends when the provider signals end-of-stream;
        a failure part-way through raises ``LLMError`` from the iterator.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"azure-openai"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider has the credentials it needs."""
