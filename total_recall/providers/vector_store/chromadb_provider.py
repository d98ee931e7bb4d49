"""ChromaDB vector store provider adapter.

Wraps ``chromadb.PersistentClient`` to implement :class:`IVectorStoreProvider`.
Each index is a ChromaDB collection using cosine distance; the vector
dimension it was created with is recorded in the collection metadata so
later runs can detect a mismatched ``VECTOR_SIZE``.
"""

from __future__ import annotations

import os
from typing import Any, Sequence

# Telemetry must be off before chromadb is imported.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import chromadb
import structlog

from total_recall.interfaces.vector_store_provider import QUERYABLE_FIELDS, IVectorStoreProvider
from total_recall.models.rag import Document, IndexInfo, IndexResult, IndexStatus
from total_recall.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)

_DIMENSION_KEY = "dimension"


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Embedding function that refuses to run.

    Every vector is computed by our own embedding provider, so ChromaDB's
    default ONNX model must never be downloaded or loaded.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "Total Recall uses pre-computed embeddings; "
            "ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        """Return function name (required by ChromaDB's EmbeddingFunction protocol)."""
        return "noop_precomputed"


class ChromaDBProvider(IVectorStoreProvider):
    """Vector store provider backed by ChromaDB with local persistence.

    ``index_name`` is the collection used by :meth:`upload`, :meth:`query`
    and :meth:`get_index_info`.  It must have been created through
    :meth:`ensure_index` first.
    """

    def __init__(
        self,
        persist_directory: str = "./data/chromadb",
        index_name: str = "my-code",
        client: Any | None = None,
    ) -> None:
        self._persist_directory = persist_directory
        self._index_name = index_name
        self._client = client or chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        self._collections: dict[str, Any] = {}

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def ensure_index(self, name: str, dimension: int) -> IndexResult:
        """Create collection *name* with cosine distance, or confirm it exists."""
        try:
            if name in self._collection_names():
                return self._confirm_existing(name, dimension)
            try:
                collection = self._client.create_collection(
                    name=name,
                    metadata={"hnsw:space": "cosine", _DIMENSION_KEY: dimension},
                    embedding_function=_NoopEmbeddingFunction(),
                )
            except Exception:
                # Another process may have created it since we looked.
                if name in self._collection_names():
                    return self._confirm_existing(name, dimension)
                raise
        except Exception as exc:
            logger.error("index_create_failed", index=name, error=str(exc))
            return IndexResult(status=IndexStatus.FAILED, name=name, reason=str(exc))

        self._collections[name] = collection
        logger.info("index_created", index=name, dimension=dimension)
        return IndexResult(status=IndexStatus.CREATED, name=name)

    async def upload(self, documents: Sequence[Document]) -> int:
        """Upsert *documents* into the configured collection in one call."""
        if not documents:
            return 0

        collection = self._get_collection()
        expected = _stored_dimension(collection)
        for doc in documents:
            if expected is not None and len(doc.content_vector) != expected:
                raise RAGError(
                    message=(
                        f"Document '{doc.path}' has a {len(doc.content_vector)}-dim vector "
                        f"but index '{self._index_name}' expects {expected}"
                    ),
                    provider_name=self.get_provider_name(),
                )

        try:
            collection.upsert(
                ids=[doc.id for doc in documents],
                embeddings=[doc.content_vector for doc in documents],
                documents=[doc.content for doc in documents],
                metadatas=[{"path": doc.path} for doc in documents],
            )
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB upload of {len(documents)} documents failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("chromadb_upload", index=self._index_name, documents=len(documents))
        return len(documents)

    async def query(
        self,
        vector: list[float],
        top_k: int = 3,
        fields: Sequence[str] = ("path", "content"),
    ) -> list[dict[str, str]]:
        """Return the nearest documents by cosine distance, nearest first."""
        unknown = [f for f in fields if f not in QUERYABLE_FIELDS]
        if unknown:
            raise RAGError(
                message=f"Cannot project unknown fields: {', '.join(unknown)}",
                provider_name=self.get_provider_name(),
            )

        collection = self._get_collection()
        try:
            count = collection.count()
            if count == 0 or top_k <= 0:
                return []
            results = collection.query(
                query_embeddings=[vector],
                n_results=min(top_k, count),
                include=["documents", "metadatas", "distances"],
            )
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        ids = results["ids"][0] if results.get("ids") else []
        documents = results["documents"][0] if results.get("documents") else [""] * len(ids)
        metadatas = results["metadatas"][0] if results.get("metadatas") else [{}] * len(ids)

        records: list[dict[str, str]] = []
        for doc_id, text, meta in zip(ids, documents, metadatas, strict=True):
            full = {"id": doc_id, "path": (meta or {}).get("path", ""), "content": text or ""}
            records.append({field: full[field] for field in fields})

        logger.debug("chromadb_query", index=self._index_name, results_count=len(records))
        return records

    async def get_index_info(self) -> IndexInfo:
        if self._index_name not in self._collection_names():
            return IndexInfo(
                name=self._index_name,
                exists=False,
                provider=self.get_provider_name(),
                location=self._persist_directory,
            )
        collection = self._get_collection()
        return IndexInfo(
            name=self._index_name,
            exists=True,
            dimension=_stored_dimension(collection),
            document_count=collection.count(),
            provider=self.get_provider_name(),
            location=self._persist_directory,
        )

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        try:
            self._client.heartbeat()
        except Exception as exc:
            logger.warning("chromadb_unavailable", error=str(exc))
            return False
        return True

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _collection_names(self) -> set[str]:
        # chromadb >= 0.6 returns names, older releases return Collection objects.
        return {getattr(c, "name", c) for c in self._client.list_collections()}

    def _open(self, name: str) -> Any:
        try:
            return self._client.get_collection(
                name=name, embedding_function=_NoopEmbeddingFunction()
            )
        except ValueError:
            # Collection was persisted with a different embedding function.
            return self._client.get_collection(name=name)

    def _confirm_existing(self, name: str, dimension: int) -> IndexResult:
        collection = self._open(name)
        stored = _stored_dimension(collection)
        if stored is not None and stored != dimension:
            reason = f"Index '{name}' exists with dimension {stored}, expected {dimension}"
            logger.error("index_dimension_conflict", index=name, stored=stored, expected=dimension)
            return IndexResult(status=IndexStatus.FAILED, name=name, reason=reason)
        self._collections[name] = collection
        logger.info("index_already_exists", index=name)
        return IndexResult(status=IndexStatus.ALREADY_EXISTS, name=name)

    def _get_collection(self) -> Any:
        name = self._index_name
        if name not in self._collections:
            if name not in self._collection_names():
                raise RAGError(
                    message=f"Index '{name}' does not exist; run create-index first",
                    provider_name=self.get_provider_name(),
                )
            self._collections[name] = self._open(name)
        return self._collections[name]


def _stored_dimension(collection: Any) -> int | None:
    value = (collection.metadata or {}).get(_DIMENSION_KEY)
    return int(value) if value is not None else None
