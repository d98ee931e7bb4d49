"""Orchestrator for indexing a set of source files.

Pipeline per file: **read -> (chunk -> embed each -> merge) | embed -> Document**.
The chunks of one file are sent in as few embedding requests as possible,
each carrying at most ``request_token_limit`` tokens in total.
Documents are uploaded to the vector store once per batch.

Concurrency model:

* Paths are split into batches of ``batch_size`` (default 500).
* Inside a batch at most ``max_concurrent_tasks`` files are in flight,
  gated by an ``asyncio.Semaphore``.  A slot is released whether the file
  succeeded or failed.
* Batches run strictly one after another, so at most one batch of file
  contents and vectors is held in memory.

Failures are contained at the smallest scope.  A file that cannot be read,
embedded or merged becomes one ``"<path>: <reason>"`` entry in the report's
errors; a failed upload becomes one ``"batch <n>: <reason>"`` entry.
Neither stops the run.  Results are gathered by the orchestrating coroutine
only, so the report lists are never written concurrently.
"""

from __future__ import annotations

import asyncio
import hashlib
import re
import time
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

import structlog

from total_recall.models.rag import Document, IndexResult, IngestionReport
from total_recall.services.ingestion.chunker import TextChunker
from total_recall.services.ingestion.embedding_merger import EmbeddingMerger
from total_recall.utils.concurrency import throttled_gather
from total_recall.utils.errors import DimensionMismatchError, IngestionError

if TYPE_CHECKING:
    from total_recall.interfaces.embedding_provider import IEmbeddingProvider
    from total_recall.interfaces.vector_store_provider import IVectorStoreProvider

logger = structlog.get_logger(logger_name=__name__)

_UNSAFE_ID_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def document_id_for_path(path: str) -> str:
    """Derive a store-safe document id from *path*.

    Every character outside ``[A-Za-z0-9_-]`` becomes ``_`` and leading
    underscores are dropped; ``"file"`` is used if nothing remains.  The
    first 8 hex digits of the path's SHA-1 are appended, so paths that
    sanitize alike (``"a/b.js"`` and ``"a_b.js"``) never share an id and a
    path maps to the same id in every run.
    """
    sanitized = _UNSAFE_ID_CHARS.sub("_", path).lstrip("_") or "file"
    digest = hashlib.sha1(path.encode("utf-8")).hexdigest()[:8]
    return f"{sanitized}-{digest}"


class IngestionService:
    """Turns source files into embedded :class:`Document` objects and stores them.

    All collaborators are injected so tests can substitute fakes.

    Parameters
    ----------
    chunker:
        Splits files larger than the embedding input budget.
    embedding_provider:
        Produces one vector per text.
    vector_store:
        Receives one upload per batch.
    index_name:
        Name passed to :meth:`IVectorStoreProvider.ensure_index`.
    vector_size:
        Required length of every document vector.
    merger:
        Combines chunk vectors; defaults to :class:`EmbeddingMerger`.
    batch_size:
        Files per batch / per upload call.
    max_concurrent_tasks:
        Files processed at once inside a batch.
    file_timeout:
        Seconds allowed for one file's read + embed; ``None`` or ``0``
        disables the limit.
    request_token_limit:
        Upper bound on the summed tokens of one embedding request.  OpenAI
        rejects requests above 300k tokens across all inputs.
    """

    def __init__(
        self,
        chunker: TextChunker,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        index_name: str,
        vector_size: int,
        merger: EmbeddingMerger | None = None,
        batch_size: int = 500,
        max_concurrent_tasks: int = 8,
        file_timeout: float | None = None,
        request_token_limit: int = 250_000,
    ) -> None:
        self._chunker = chunker
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._index_name = index_name
        self._vector_size = vector_size
        self._merger = merger or EmbeddingMerger()
        # max(1, ...) guards against a semaphore that never admits anyone.
        self._batch_size = max(1, batch_size)
        self._max_concurrent_tasks = max(1, max_concurrent_tasks)
        self._file_timeout = file_timeout or None
        self._request_token_limit = max(1, request_token_limit)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ensure_index(self) -> IndexResult:
        """Create the vector index if missing; ``ALREADY_EXISTS`` counts as success."""
        result = await self._vector_store.ensure_index(self._index_name, self._vector_size)
        logger.info(
            "ensure_index",
            index=self._index_name,
            status=result.status.value,
            reason=result.reason or None,
        )
        return result

    async def ingest(self, file_paths: Sequence[str]) -> IngestionReport:
        """Index *file_paths* and report what was produced and what failed.

        Returns
        -------
        IngestionReport
            Every document that was assembled (even if its batch upload
            later failed) plus one error string per failed file or batch.
        """
        start = time.monotonic()
        paths = list(file_paths)
        documents: list[Document] = []
        errors: list[str] = []

        batches = [
            paths[i : i + self._batch_size] for i in range(0, len(paths), self._batch_size)
        ]
        for number, batch in enumerate(batches, start=1):
            batch_documents = await self._process_batch(batch, errors)
            documents.extend(batch_documents)
            await self._upload_batch(number, batch_documents, errors)

        elapsed = round(time.monotonic() - start, 2)
        logger.info(
            "ingestion_complete",
            files=len(paths),
            documents=len(documents),
            errors=len(errors),
            batches=len(batches),
            ingestion_time=elapsed,
        )
        return IngestionReport(
            indexed_documents=documents,
            errors=errors,
            batches=len(batches),
            ingestion_time=elapsed,
        )

    # ------------------------------------------------------------------
    # Batch processing
    # ------------------------------------------------------------------

    async def _process_batch(
        self,
        batch: list[str],
        errors: list[str],
    ) -> list[Document]:
        semaphore = asyncio.Semaphore(self._max_concurrent_tasks)
        results = await throttled_gather(
            [self._process_file(path) for path in batch],
            semaphore=semaphore,
            return_exceptions=True,
        )

        documents: list[Document] = []
        for path, result in zip(batch, results, strict=True):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                errors.append(f"{path}: {_describe(result, self._file_timeout)}")
                logger.warning("file_failed", path=path, error=str(result))
                continue

            content, vector = result
            documents.append(
                Document(
                    id=document_id_for_path(path),
                    path=path,
                    content=content,
                    content_vector=vector,
                )
            )
        return documents

    async def _upload_batch(self, number: int, documents: list[Document], errors: list[str]) -> None:
        if not documents:
            return
        try:
            uploaded = await self._vector_store.upload(documents)
        except Exception as exc:
            errors.append(f"batch {number}: upload of {len(documents)} documents failed: {exc}")
            logger.error("batch_upload_failed", batch=number, documents=len(documents), error=str(exc))
            return
        logger.info("batch_uploaded", batch=number, documents=uploaded)

    # ------------------------------------------------------------------
    # Per-file work
    # ------------------------------------------------------------------

    async def _process_file(self, path: str) -> tuple[str, list[float]]:
        if self._file_timeout is None:
            return await self._read_and_embed(path)
        return await asyncio.wait_for(self._read_and_embed(path), timeout=self._file_timeout)

    async def _read_and_embed(self, path: str) -> tuple[str, list[float]]:
        content = await self._read_file(path)
        if not content.strip():
            raise IngestionError(message="file is empty")

        if self._chunker.needs_chunking(content):
            chunks = self._chunker.chunk(content)
            vectors: list[list[float]] = []
            groups = self._request_groups(chunks)
            for group in groups:
                vectors.extend(await self._embedding_provider.embed(group))
            vector = self._merger.merge(vectors)
            logger.debug(
                "file_embedded", path=path, chunks=len(chunks), requests=len(groups)
            )
        else:
            vector = await self._embedding_provider.embed_single(content)
            logger.debug("file_embedded", path=path, chunks=1)

        if len(vector) != self._vector_size:
            raise DimensionMismatchError(expected=self._vector_size, actual=len(vector))
        return content, vector

    def _request_groups(self, chunks: list[str]) -> list[list[str]]:
        """Pack consecutive chunks into requests under the token limit."""
        groups: list[list[str]] = []
        current: list[str] = []
        current_tokens = 0
        for chunk in chunks:
            tokens = self._chunker.count_tokens(chunk)
            if current and current_tokens + tokens > self._request_token_limit:
                groups.append(current)
                current, current_tokens = [], 0
            current.append(chunk)
            current_tokens += tokens
        if current:
            groups.append(current)
        return groups

    @staticmethod
    async def _read_file(path: str) -> str:
        try:
            return await asyncio.to_thread(
                Path(path).read_text, encoding="utf-8", errors="replace"
            )
        except OSError as exc:
            raise IngestionError(message=f"could not read file ({exc})") from exc


def _describe(exc: Exception, timeout: float | None) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return f"timed out after {timeout:g}s"
    return str(exc) or type(exc).__name__
