"""Abstract base class for text-embedding service providers.

Defines the contract for turning text into fixed-length embedding vectors.
The shipped implementation wraps OpenAI / Azure OpenAI
``text-embedding-3-*`` models; tests substitute in-memory fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   OpenAIEmbeddingProvider -- OpenAI or Azure OpenAI embeddings
# Located in: total_recall/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by ingestion and retrieval.

    Every vector returned must have length :meth:`get_dimension`, which in
    turn must equal the dimension the vector index was created with.
    """

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.  Implementations handle
            batching internally if the API has a per-call limit.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*.

        Raises
        ------
        total_recall.utils.errors.RAGError
            If the embedding API call fails (quota, auth, malformed input).
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string.

        Convenience wrapper around :meth:`embed` for whole files and
        search queries.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai-text-embedding-3-large"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider has the credentials it needs."""
