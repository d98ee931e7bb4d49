"""Similarity retrieval of previously indexed source files.

Embeds a question with the same provider used at ingestion time and asks
the vector store for the nearest documents.  The store's ranking is
returned as-is: no local re-ranking or de-duplication.
"""

from __future__ import annotations

import structlog

from total_recall.interfaces.embedding_provider import IEmbeddingProvider
from total_recall.interfaces.vector_store_provider import IVectorStoreProvider
from total_recall.models.rag import RetrievedContext
from total_recall.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)


class RetrievalService:
    """Finds the indexed files most similar to a query."""

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        default_top_k: int = 3,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._default_top_k = default_top_k

    async def retrieve_context(self, query: str, top_k: int | None = None) -> list[RetrievedContext]:
        """Return up to *top_k* ``(path, content)`` contexts, nearest first.

        Raises
        ------
        total_recall.utils.errors.RAGError
            If embedding the query or querying the store fails.
        """
        k = top_k if top_k is not None else self._default_top_k
        vector = await self._embedding_provider.embed_single(query)
        records = await self._vector_store.query(vector, top_k=k, fields=("path", "content"))
        contexts = [
            RetrievedContext(path=record.get("path", ""), content=record.get("content", ""))
            for record in records
        ]
        logger.info(
            "context_retrieved",
            query_length=len(query),
            top_k=k,
            results_count=len(contexts),
        )
        return contexts
