"""OpenAI / Azure OpenAI embedding provider adapter.

Wraps the ``openai`` async client to implement :class:`IEmbeddingProvider`.
Works against OpenAI, OpenAI-compatible endpoints (``OPENAI_BASE_URL``) and
Azure OpenAI deployments.
"""

from __future__ import annotations

import openai
import structlog

from total_recall.config.settings import Settings
from total_recall.interfaces.embedding_provider import IEmbeddingProvider
from total_recall.providers.openai_client import (
    build_async_client,
    has_credentials,
    provider_label,
)
from total_recall.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)

_OPENAI_BATCH_LIMIT = 2048

# Native output dimensions of known embedding models.
_MODEL_DIMENSIONS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

# Models that accept the ``dimensions`` request parameter.
_SHORTENABLE_PREFIX = "text-embedding-3"


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible embeddings API.

    The vector length is the configured ``VECTOR_SIZE``.  For
    ``text-embedding-3-*`` models whose native size differs, the request
    asks the API to shorten the output so it matches the index.
    """

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self._settings = settings
        self._client = client or build_async_client(settings, "embedding")
        self._model = settings.embedding_deployment
        self._dimension = settings.vector_size
        self._provider_label = provider_label(settings)

        native = _MODEL_DIMENSIONS.get(self._model)
        self._request_dimensions: int | None = None
        if (
            native is not None
            and native != self._dimension
            and self._model.startswith(_SHORTENABLE_PREFIX)
        ):
            self._request_dimensions = self._dimension

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors, splitting into API-sized batches."""
        if not texts:
            return []

        extra: dict = {}
        if self._request_dimensions is not None:
            extra["dimensions"] = self._request_dimensions

        try:
            all_embeddings: list[list[float]] = []
            for start in range(0, len(texts), _OPENAI_BATCH_LIMIT):
                batch = texts[start : start + _OPENAI_BATCH_LIMIT]
                response = await self._client.embeddings.create(
                    input=batch,
                    model=self._model,
                    **extra,
                )
                all_embeddings.extend(item.embedding for item in response.data)
                logger.debug(
                    "openai_embedding_batch",
                    model=self._model,
                    provider=self._provider_label,
                    batch_size=len(batch),
                    tokens=response.usage.total_tokens if response.usage else None,
                )
            return all_embeddings
        except openai.APIError as exc:
            raise RAGError(
                message=f"{self._provider_label} embedding API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string."""
        result = await self.embed([text])
        return result[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return f"{self._provider_label}-{self._model}"

    def is_available(self) -> bool:
        return has_credentials(self._settings, "embedding")
