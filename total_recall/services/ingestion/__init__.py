"""Ingestion pipeline: token counting, chunking, merging and batch indexing."""

from total_recall.services.ingestion.chunker import TextChunker
from total_recall.services.ingestion.embedding_merger import EmbeddingMerger
from total_recall.services.ingestion.ingestion_service import IngestionService, document_id_for_path
from total_recall.services.ingestion.token_counter import TokenCounter, encoding_name_for

__all__ = [
    "EmbeddingMerger",
    "IngestionService",
    "TextChunker",
    "TokenCounter",
    "document_id_for_path",
    "encoding_name_for",
]
