"""Pydantic request/response schemas for the HTTP API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SearchRequest(BaseModel):
    """Question to answer from the indexed code."""

    query: str = Field(..., min_length=1, max_length=4000)


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, str]


class IndexInfoResponse(BaseModel):
    """Metadata about the configured vector index."""

    index_name: str
    exists: bool
    vector_size: int
    dimension: int | None = None
    document_count: int = 0
    embedding_model: str
    completion_model: str
    vector_store: str
    location: str


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
