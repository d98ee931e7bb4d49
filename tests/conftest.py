"""Shared pytest fixtures for the Total Recall test suite."""

from __future__ import annotations

from pathlib import Path
from typing import AsyncIterator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from total_recall.interfaces.embedding_provider import IEmbeddingProvider
from total_recall.interfaces.llm_provider import ILLMProvider
from total_recall.interfaces.vector_store_provider import IVectorStoreProvider
from total_recall.models.rag import IndexInfo, IndexResult, IndexStatus
from total_recall.services.ingestion.token_counter import TokenCounter

DIM = 8


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class ByteEncoding:
    """tiktoken stand-in that yields one token per UTF-8 byte."""

    def __init__(self, name: str = "cl100k_base") -> None:
        self.name = name

    def encode(self, text: str, disallowed_special=()) -> list[int]:  # noqa: ANN001
        return list(text.encode("utf-8"))

    def decode(self, tokens: list[int]) -> str:
        return bytes(tokens).decode("utf-8", errors="replace")


async def stream_of(*chunks: str) -> AsyncIterator[str]:
    for chunk in chunks:
        yield chunk


# ---------------------------------------------------------------------------
# Token counters
# ---------------------------------------------------------------------------


@pytest.fixture
def heuristic_counter() -> TokenCounter:
    """TokenCounter with no encodings available: ceil(len / 4)."""
    with patch(
        "total_recall.services.ingestion.token_counter.tiktoken.get_encoding",
        side_effect=ValueError("offline"),
    ):
        return TokenCounter()


@pytest.fixture
def byte_counter() -> TokenCounter:
    """TokenCounter whose encodings count one token per UTF-8 byte."""
    with patch(
        "total_recall.services.ingestion.token_counter.tiktoken.get_encoding",
        side_effect=lambda name: ByteEncoding(name),
    ):
        return TokenCounter()


# ---------------------------------------------------------------------------
# Provider mocks
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_embedding_provider() -> MagicMock:
    mock = MagicMock(spec=IEmbeddingProvider)
    mock.embed = AsyncMock(side_effect=lambda texts: [[0.1] * DIM for _ in texts])
    mock.embed_single = AsyncMock(return_value=[0.1] * DIM)
    mock.get_dimension.return_value = DIM
    mock.get_provider_name.return_value = "mock-embedding"
    mock.is_available.return_value = True
    return mock


@pytest.fixture
def mock_llm_provider() -> MagicMock:
    mock = MagicMock(spec=ILLMProvider)
    mock.complete = AsyncMock(return_value="Use your debounce from utils/debounce.ts.")
    mock.stream = MagicMock(side_effect=lambda *args, **kwargs: stream_of("Hello", " world"))
    mock.get_provider_name.return_value = "mock-llm"
    mock.is_available.return_value = True
    return mock


@pytest.fixture
def mock_vector_store() -> MagicMock:
    mock = MagicMock(spec=IVectorStoreProvider)
    mock.ensure_index = AsyncMock(
        return_value=IndexResult(status=IndexStatus.CREATED, name="my-code")
    )
    mock.upload = AsyncMock(side_effect=lambda documents: len(documents))
    mock.query = AsyncMock(return_value=[])
    mock.get_index_info = AsyncMock(
        return_value=IndexInfo(
            name="my-code",
            exists=True,
            dimension=DIM,
            document_count=0,
            provider="mock",
            location="memory",
        )
    )
    mock.get_provider_name.return_value = "mock-store"
    mock.is_available.return_value = True
    return mock


# ---------------------------------------------------------------------------
# Sample source tree
# ---------------------------------------------------------------------------


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    """A small project with indexable files and files that must be skipped."""
    root = tmp_path / "project"
    files = {
        "src/app.ts": "export const app = () => 'hello';\n",
        "src/utils/debounce.js": "export function debounce(fn, ms) { return fn; }\n",
        "src/Server.PY": "def serve():\n    return 42\n",
        "README.md": "# not source\n",
        "node_modules/lib/index.js": "module.exports = {};\n",
        "dist/bundle.js": "var a=1;\n",
        "Assets/logo.ts": "export const logo = '';\n",
    }
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root
