"""Pydantic data models for Total Recall."""

from total_recall.models.rag import (
    Document,
    IndexInfo,
    IndexResult,
    IndexStatus,
    IngestionReport,
    RetrievedContext,
)

__all__ = [
    "Document",
    "IndexInfo",
    "IndexResult",
    "IndexStatus",
    "IngestionReport",
    "RetrievedContext",
]
