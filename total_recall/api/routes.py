"""FastAPI routes for the Total Recall query API.

Service dependencies are resolved from ``app.state`` via ``Depends`` using
the ``Annotated`` pattern, so tests can mount the router on a bare app and
set mocks on its state.
"""

from __future__ import annotations

from typing import Annotated, AsyncIterator

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from total_recall import __version__
from total_recall.api.schemas import (
    ErrorResponse,
    HealthResponse,
    IndexInfoResponse,
    SearchRequest,
)
from total_recall.config.settings import Settings
from total_recall.interfaces.vector_store_provider import IVectorStoreProvider
from total_recall.services.completion_service import CompletionAssembler
from total_recall.services.retrieval_service import RetrievalService
from total_recall.utils.errors import TotalRecallError
from total_recall.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api")


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _get_retrieval_service(request: Request) -> RetrievalService:
    return request.app.state.retrieval_service


def _get_completion_assembler(request: Request) -> CompletionAssembler:
    return request.app.state.completion_assembler


def _get_vector_store(request: Request) -> IVectorStoreProvider:
    return request.app.state.vector_store


SettingsDep = Annotated[Settings, Depends(_get_settings)]
RetrievalDep = Annotated[RetrievalService, Depends(_get_retrieval_service)]
AssemblerDep = Annotated[CompletionAssembler, Depends(_get_completion_assembler)]
VectorStoreDep = Annotated[IVectorStoreProvider, Depends(_get_vector_store)]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/search",
    response_class=StreamingResponse,
    responses={500: {"model": ErrorResponse}},
)
async def search(
    body: SearchRequest,
    settings: SettingsDep,
    retrieval: RetrievalDep,
    assembler: AssemblerDep,
) -> StreamingResponse:
    """Answer *query* from the indexed code, streamed as plain text.

    Failures before the first chunk become a JSON 500.  After that the
    status line is already sent, so a provider failure just ends the body.
    """
    contexts = await retrieval.retrieve_context(body.query, settings.retrieval_top_k)
    chunks = assembler.answer_stream(contexts, body.query)

    try:
        first = await anext(chunks)
    except StopAsyncIteration:
        first = ""

    return StreamingResponse(
        _forward(first, chunks),
        media_type="text/plain; charset=utf-8",
    )


async def _forward(first: str, chunks: AsyncIterator[str]) -> AsyncIterator[str]:
    if first:
        yield first
    try:
        async for chunk in chunks:
            yield chunk
    except TotalRecallError as exc:
        logger.error("completion_stream_failed", error=str(exc))


@router.get("/health", response_model=HealthResponse)
async def health(settings: SettingsDep) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        providers=settings.get_available_providers(),
    )


@router.get("/index", response_model=IndexInfoResponse)
async def index_info(settings: SettingsDep, vector_store: VectorStoreDep) -> IndexInfoResponse:
    info = await vector_store.get_index_info()
    return IndexInfoResponse(
        index_name=info.name,
        exists=info.exists,
        vector_size=settings.vector_size,
        dimension=info.dimension,
        document_count=info.document_count,
        embedding_model=settings.embedding_deployment,
        completion_model=settings.completion_deployment,
        vector_store=info.provider,
        location=info.location,
    )
