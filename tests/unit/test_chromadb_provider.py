"""Unit tests for the ChromaDB vector store provider.

Each test gets a fresh persistent store under ``tmp_path``; all vectors
are supplied by the test, so ChromaDB's own embedding model never runs.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from total_recall.models.rag import Document, IndexStatus
from total_recall.providers.vector_store.chromadb_provider import ChromaDBProvider
from total_recall.utils.errors import RAGError

DIM = 4


def _doc(doc_id: str, vector: list[float], path: str | None = None) -> Document:
    path = path or f"src/{doc_id}.ts"
    return Document(id=doc_id, path=path, content=f"content of {path}", content_vector=vector)


@pytest.fixture()
def provider(tmp_path) -> ChromaDBProvider:
    return ChromaDBProvider(persist_directory=str(tmp_path / "chroma"), index_name="my-code")


class TestEnsureIndex:
    @pytest.mark.asyncio
    async def test_created_then_already_exists(self, provider: ChromaDBProvider) -> None:
        first = await provider.ensure_index("my-code", DIM)
        second = await provider.ensure_index("my-code", DIM)

        assert first.status is IndexStatus.CREATED
        assert second.status is IndexStatus.ALREADY_EXISTS
        assert first.ok and second.ok

    @pytest.mark.asyncio
    async def test_dimension_conflict_fails(self, provider: ChromaDBProvider) -> None:
        await provider.ensure_index("my-code", DIM)

        result = await provider.ensure_index("my-code", DIM * 2)

        assert result.status is IndexStatus.FAILED
        assert "dimension 4" in result.reason

    @pytest.mark.asyncio
    async def test_backend_error_is_reported_not_raised(self) -> None:
        client = MagicMock()
        client.list_collections.side_effect = ConnectionError("disk gone")
        provider = ChromaDBProvider(client=client)

        result = await provider.ensure_index("my-code", DIM)

        assert result.status is IndexStatus.FAILED
        assert "disk gone" in result.reason

    @pytest.mark.asyncio
    async def test_index_survives_reopen(self, tmp_path) -> None:
        path = str(tmp_path / "chroma")
        await ChromaDBProvider(persist_directory=path).ensure_index("my-code", DIM)

        reopened = ChromaDBProvider(persist_directory=path)
        result = await reopened.ensure_index("my-code", DIM)

        assert result.status is IndexStatus.ALREADY_EXISTS


class TestUploadAndQuery:
    @pytest.mark.asyncio
    async def test_nearest_document_comes_first(self, provider: ChromaDBProvider) -> None:
        await provider.ensure_index("my-code", DIM)
        await provider.upload(
            [
                _doc("debounce", [1.0, 0.0, 0.0, 0.0]),
                _doc("throttle", [0.0, 1.0, 0.0, 0.0]),
                _doc("retry", [0.0, 0.0, 1.0, 0.0]),
            ]
        )

        results = await provider.query([0.9, 0.1, 0.0, 0.0], top_k=1)

        assert results == [{"path": "src/debounce.ts", "content": "content of src/debounce.ts"}]

    @pytest.mark.asyncio
    async def test_results_are_ranked_and_limited(self, provider: ChromaDBProvider) -> None:
        await provider.ensure_index("my-code", DIM)
        await provider.upload(
            [
                _doc("a", [1.0, 0.0, 0.0, 0.0]),
                _doc("b", [0.7, 0.7, 0.0, 0.0]),
                _doc("c", [0.0, 0.0, 0.0, 1.0]),
            ]
        )

        results = await provider.query([1.0, 0.0, 0.0, 0.0], top_k=2, fields=("id",))

        assert results == [{"id": "a"}, {"id": "b"}]

    @pytest.mark.asyncio
    async def test_top_k_larger_than_index(self, provider: ChromaDBProvider) -> None:
        await provider.ensure_index("my-code", DIM)
        await provider.upload([_doc("only", [1.0, 1.0, 0.0, 0.0])])

        results = await provider.query([1.0, 0.0, 0.0, 0.0], top_k=10)

        assert len(results) == 1

    @pytest.mark.asyncio
    async def test_empty_index_returns_nothing(self, provider: ChromaDBProvider) -> None:
        await provider.ensure_index("my-code", DIM)
        assert await provider.query([1.0, 0.0, 0.0, 0.0]) == []

    @pytest.mark.asyncio
    async def test_upload_is_an_upsert(self, provider: ChromaDBProvider) -> None:
        await provider.ensure_index("my-code", DIM)
        await provider.upload([_doc("same", [1.0, 0.0, 0.0, 0.0])])
        await provider.upload([_doc("same", [1.0, 0.0, 0.0, 0.0])])

        info = await provider.get_index_info()

        assert info.document_count == 1

    @pytest.mark.asyncio
    async def test_upload_empty_list(self, provider: ChromaDBProvider) -> None:
        assert await provider.upload([]) == 0

    @pytest.mark.asyncio
    async def test_upload_rejects_wrong_dimension(self, provider: ChromaDBProvider) -> None:
        await provider.ensure_index("my-code", DIM)

        with pytest.raises(RAGError, match="expects 4"):
            await provider.upload([_doc("short", [1.0, 0.0])])

    @pytest.mark.asyncio
    async def test_unknown_field_is_rejected(self, provider: ChromaDBProvider) -> None:
        await provider.ensure_index("my-code", DIM)

        with pytest.raises(RAGError, match="unknown fields: score"):
            await provider.query([1.0, 0.0, 0.0, 0.0], fields=("path", "score"))

    @pytest.mark.asyncio
    async def test_missing_index_raises(self, provider: ChromaDBProvider) -> None:
        with pytest.raises(RAGError, match="run create-index first"):
            await provider.upload([_doc("x", [1.0, 0.0, 0.0, 0.0])])

        with pytest.raises(RAGError, match="does not exist"):
            await provider.query([1.0, 0.0, 0.0, 0.0])


class TestIndexInfo:
    @pytest.mark.asyncio
    async def test_info_before_creation(self, provider: ChromaDBProvider, tmp_path) -> None:
        info = await provider.get_index_info()

        assert info.exists is False
        assert info.document_count == 0
        assert info.location == str(tmp_path / "chroma")

    @pytest.mark.asyncio
    async def test_info_after_upload(self, provider: ChromaDBProvider) -> None:
        await provider.ensure_index("my-code", DIM)
        await provider.upload([_doc("a", [1.0, 0.0, 0.0, 0.0]), _doc("b", [0.0, 1.0, 0.0, 0.0])])

        info = await provider.get_index_info()

        assert info.exists is True
        assert info.dimension == DIM
        assert info.document_count == 2
        assert info.provider == "chromadb"

    def test_provider_name_and_availability(self, provider: ChromaDBProvider) -> None:
        assert provider.get_provider_name() == "chromadb"
        assert provider.is_available() is True

    def test_unavailable_when_heartbeat_fails(self) -> None:
        client = MagicMock()
        client.heartbeat.side_effect = RuntimeError("down")
        assert ChromaDBProvider(client=client).is_available() is False
