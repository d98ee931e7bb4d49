"""Abstract base class for vector-store service providers.

Defines the contract for creating the code index, uploading documents and
running nearest-neighbour queries.  The shipped backend is ChromaDB; the
interface keeps the ingestion and retrieval services independent of it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from total_recall.models.rag import Document, IndexInfo, IndexResult

# Fields a query may project.  ``content_vector`` is never returned.
QUERYABLE_FIELDS = ("id", "path", "content")


# Concrete implementation: ChromaDBProvider (total_recall/providers/vector_store/)
class IVectorStoreProvider(ABC):
    """Contract for vector-store services used by the RAG pipeline.

    All methods are async so network-backed stores do not block the event
    loop.
    """

    @abstractmethod
    async def ensure_index(self, name: str, dimension: int) -> IndexResult:
        """Create the index if needed.

        Idempotent: an index that already exists with the same dimension
        reports ``ALREADY_EXISTS``, which callers treat as success.  Any
        condition that leaves the index missing or unusable (including a
        dimension conflict) reports ``FAILED`` with a reason.  This method
        does not raise for those conditions.
        """

    @abstractmethod
    async def upload(self, documents: Sequence[Document]) -> int:
        """Persist *documents* in one call, replacing any with the same id.

        Returns
        -------
        int
            Number of documents written.

        Raises
        ------
        total_recall.utils.errors.RAGError
            If the write fails or a vector has the wrong dimension.
        """

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        top_k: int = 3,
        fields: Sequence[str] = ("path", "content"),
    ) -> list[dict[str, str]]:
        """Return the *top_k* nearest documents, nearest first.

        Parameters
        ----------
        vector:
            The query embedding.
        top_k:
            Maximum number of results.
        fields:
            Which of :data:`QUERYABLE_FIELDS` to include in each record.

        Returns
        -------
        list[dict[str, str]]
            One dict per match holding only the projected fields.

        Raises
        ------
        total_recall.utils.errors.RAGError
            If the query fails.
        """

    @abstractmethod
    async def get_index_info(self) -> IndexInfo:
        """Return name, dimension and document count of the configured index."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"chromadb"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the backing store can be reached."""
