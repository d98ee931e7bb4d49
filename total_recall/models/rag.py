"""RAG data models for the Total Recall code index.

Pydantic v2 models for the documents written to the vector store, the
contexts read back out of it, and the reports produced by ingestion and
index management.  All models are frozen: once the pipeline hands a
:class:`Document` to the vector store it keeps no mutable handle to it.

Flow for newcomers:

    1. INGESTION: each source file becomes exactly one ``Document``.  Files
       too long for the embedding model are chunked, each chunk embedded,
       and the chunk vectors averaged into one ``content_vector``.
    2. STORAGE: documents are uploaded to the vector store in batches.
    3. RETRIEVAL: a question is embedded and the nearest documents come
       back as ``RetrievedContext`` (path + content) for the prompt.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Document -- the unit stored in and retrieved from the vector store.
# ---------------------------------------------------------------------------
class Document(BaseModel):
    """One indexed source file.

    ``content`` is always the file's full text, even when the vector was
    merged from several chunk embeddings; chunk boundaries are not stored.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Store key derived from the sanitized source path.")
    path: str = Field(description="Original file location, shown to users as the citation.")
    content: str = Field(description="Full text of the source file.")
    content_vector: list[float] = Field(
        min_length=1,
        description="Embedding of the whole file; length equals VECTOR_SIZE.",
    )


# ---------------------------------------------------------------------------
# RetrievedContext -- a (path, content) pair returned for a query.
# ---------------------------------------------------------------------------
class RetrievedContext(BaseModel):
    """A stored document returned by a similarity query, in ranked order."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="Source path of the matching document.")
    content: str = Field(description="Stored content of the matching document.")


# ---------------------------------------------------------------------------
# IngestionReport -- outcome of one ingest() call.
# ---------------------------------------------------------------------------
class IngestionReport(BaseModel):
    """Documents produced and errors recorded during one ingestion run.

    A document stays in ``indexed_documents`` even if its batch upload
    later failed; that failure is reported as a separate ``batch N: ...``
    entry in ``errors``.
    """

    model_config = ConfigDict(frozen=True)

    indexed_documents: list[Document] = Field(default_factory=list)
    errors: list[str] = Field(
        default_factory=list,
        description='Labelled failures, e.g. "src/app.ts: could not read file".',
    )
    batches: int = Field(default=0, ge=0, description="Number of batches processed.")
    ingestion_time: float = Field(
        default=0.0, ge=0.0, description="Wall-clock time in seconds for the run."
    )

    @property
    def succeeded(self) -> int:
        return len(self.indexed_documents)


# ---------------------------------------------------------------------------
# Index management
# ---------------------------------------------------------------------------
class IndexStatus(str, Enum):
    """Outcome of ensuring the vector index exists."""

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    FAILED = "failed"


class IndexResult(BaseModel):
    """Tri-state result of ``ensure_index``; ``reason`` is set only on failure."""

    model_config = ConfigDict(frozen=True)

    status: IndexStatus
    name: str
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status is not IndexStatus.FAILED


class IndexInfo(BaseModel):
    """Metadata about the configured vector index."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Index (collection) name.")
    exists: bool = Field(default=False)
    dimension: int | None = Field(default=None, description="Vector dimension of the index.")
    document_count: int = Field(default=0, ge=0)
    provider: str = Field(default="", description="Vector store backend name.")
    location: str = Field(default="", description="Endpoint or persist directory.")
