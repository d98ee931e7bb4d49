"""Embedding provider implementations.

    OpenAIEmbeddingProvider -- OpenAI, OpenAI-compatible or Azure OpenAI
    ``text-embedding-3-*`` deployments.
"""

from total_recall.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider"]
