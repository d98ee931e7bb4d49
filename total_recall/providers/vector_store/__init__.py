"""Vector store provider implementations."""

from total_recall.providers.vector_store.chromadb_provider import ChromaDBProvider

__all__ = ["ChromaDBProvider"]
