"""FastAPI application entry point for the Total Recall query API.

Composition root: every provider and service is built once at startup
from validated :class:`Settings` and stored on ``app.state``; route
handlers receive them through ``Depends``.

Run with ``total-recall-api`` or ``python -m total_recall.main``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from total_recall import __version__
from total_recall.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from total_recall.api.routes import router as api_router
from total_recall.config.loader import load_settings
from total_recall.config.settings import Settings
from total_recall.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from total_recall.providers.llm.openai_provider import OpenAILLMProvider
from total_recall.providers.vector_store.chromadb_provider import ChromaDBProvider
from total_recall.services.completion_service import CompletionAssembler
from total_recall.services.retrieval_service import RetrievalService
from total_recall.utils.logging import configure_logging, get_logger

settings = load_settings(validate=False)
configure_logging(settings.log_level)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Component construction
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Build every provider and service the routes depend on.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    embedding_provider = OpenAIEmbeddingProvider(settings=app_settings)
    llm_provider = OpenAILLMProvider(settings=app_settings)
    vector_store = ChromaDBProvider(
        persist_directory=app_settings.chromadb_persist_dir,
        index_name=app_settings.search_index_name,
    )
    return {
        "settings": app_settings,
        "embedding_provider": embedding_provider,
        "llm_provider": llm_provider,
        "vector_store": vector_store,
        "retrieval_service": RetrievalService(
            embedding_provider=embedding_provider,
            vector_store=vector_store,
            default_top_k=app_settings.retrieval_top_k,
        ),
        "completion_assembler": CompletionAssembler(
            llm_provider=llm_provider,
            char_limit=app_settings.context_char_limit,
        ),
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Validate configuration and build components; abort startup if invalid."""
    settings.validate_required()
    components = _build_all(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    index = await components["vector_store"].ensure_index(
        settings.search_index_name, settings.vector_size
    )
    if not index.ok:
        _logger.warning("index_unavailable", index=index.name, reason=index.reason)

    _logger.info(
        "app_startup",
        version=__version__,
        environment=settings.app_env,
        index=settings.search_index_name,
        index_status=index.status.value,
        providers=settings.get_available_providers(),
    )

    yield

    _logger.info("app_shutdown")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="Total Recall API",
        version=__version__,
        description=(
            "Ask questions about your own code. Answers are generated from the "
            "most similar previously indexed source files and streamed as text."
        ),
        lifespan=_lifespan,
    )

    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    application.include_router(api_router)
    return application


app = create_app()


def run() -> None:
    """Console-script entry point."""
    uvicorn.run(
        "total_recall.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )


if __name__ == "__main__":
    run()
