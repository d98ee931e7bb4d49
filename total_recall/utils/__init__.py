"""Utility modules for Total Recall.

- **errors** -- Exception hierarchy rooted at TotalRecallError.
- **concurrency** -- Semaphore-throttled ``asyncio.gather``.
- **logging** -- structlog setup with console output in development and
  JSON in production.
"""

from total_recall.utils.concurrency import throttled_gather
from total_recall.utils.errors import (
    ConfigurationError,
    DimensionMismatchError,
    IngestionError,
    LLMError,
    RAGError,
    TotalRecallError,
)
from total_recall.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "DimensionMismatchError",
    "IngestionError",
    "LLMError",
    "RAGError",
    "TotalRecallError",
    "configure_logging",
    "get_logger",
    "throttled_gather",
]
