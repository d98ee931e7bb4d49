"""Custom exception hierarchy for Total Recall.

All application exceptions inherit from :class:`TotalRecallError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "azure-openai", "chromadb") caused the
failure.

    TotalRecallError  (base -- catch-all for any Total Recall error)
    +-- ConfigurationError       (startup / missing config)
    +-- IngestionError           (one file could not be read or processed)
    +-- DimensionMismatchError   (vectors of unequal length)
    +-- RAGError                 (embedding or vector-store failure)
    +-- LLMError                 (any completion API call failure)

Per-file and per-batch failures are caught by the ingestion pipeline and
turned into error entries; only configuration errors are expected to
reach the process boundary.
"""


class TotalRecallError(Exception):
    """Base exception for all Total Recall errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  ``__str__`` prefixes the provider name in brackets,
    e.g. ``[openai] Embedding request failed``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Startup / configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(TotalRecallError):
    """Raised when configuration is invalid or missing at startup.

    ``missing`` lists every required environment variable that was empty,
    so the operator can fix them all in one pass.
    """

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
        missing: list[str] | None = None,
    ) -> None:
        self._missing = list(missing or [])
        super().__init__(message=message, provider_name=provider_name)

    @property
    def missing(self) -> list[str]:
        return list(self._missing)


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class IngestionError(TotalRecallError):
    """Raised when a single source file cannot be read or turned into a document."""

    def __init__(
        self,
        message: str = "File ingestion failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DimensionMismatchError(TotalRecallError):
    """Raised when vectors that must share a dimension do not."""

    def __init__(
        self,
        expected: int,
        actual: int,
        message: str | None = None,
        provider_name: str | None = None,
    ) -> None:
        self._expected = expected
        self._actual = actual
        super().__init__(
            message=message or f"Vector dimension mismatch: expected {expected}, got {actual}",
            provider_name=provider_name,
        )

    @property
    def expected(self) -> int:
        return self._expected

    @property
    def actual(self) -> int:
        return self._actual


# ---------------------------------------------------------------------------
# External service / provider errors
# ---------------------------------------------------------------------------

class LLMError(TotalRecallError):
    """Raised when a completion API call fails or its stream breaks."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RAGError(TotalRecallError):
    """Raised when a RAG operation fails (embedding or vector store)."""

    def __init__(
        self,
        message: str = "RAG pipeline operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
