"""Unit tests for RAG models and the error hierarchy."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from total_recall.models.rag import (
    Document,
    IndexResult,
    IndexStatus,
    IngestionReport,
    RetrievedContext,
)
from total_recall.utils.errors import (
    ConfigurationError,
    DimensionMismatchError,
    IngestionError,
    LLMError,
    RAGError,
    TotalRecallError,
)


class TestModels:
    def test_document_is_frozen(self) -> None:
        doc = Document(id="src_a_ts", path="src/a.ts", content="x", content_vector=[0.1, 0.2])
        with pytest.raises(ValidationError):
            doc.path = "other.ts"

    def test_document_requires_a_vector(self) -> None:
        with pytest.raises(ValidationError):
            Document(id="a", path="a.ts", content="x", content_vector=[])

    def test_report_counts_successes(self) -> None:
        doc = Document(id="a", path="a.ts", content="x", content_vector=[1.0])
        report = IngestionReport(indexed_documents=[doc], errors=["b.ts: file is empty"], batches=1)
        assert report.succeeded == 1

    def test_report_rejects_negative_time(self) -> None:
        with pytest.raises(ValidationError):
            IngestionReport(ingestion_time=-1.0)

    @pytest.mark.parametrize(
        ("status", "ok"),
        [
            (IndexStatus.CREATED, True),
            (IndexStatus.ALREADY_EXISTS, True),
            (IndexStatus.FAILED, False),
        ],
    )
    def test_index_result_ok(self, status: IndexStatus, ok: bool) -> None:
        assert IndexResult(status=status, name="my-code").ok is ok

    def test_retrieved_context_equality(self) -> None:
        assert RetrievedContext(path="a", content="b") == RetrievedContext(path="a", content="b")


class TestErrors:
    def test_provider_prefix(self) -> None:
        assert str(RAGError(message="quota", provider_name="openai")) == "[openai] quota"
        assert str(LLMError(message="down")) == "down"

    def test_all_errors_share_a_base(self) -> None:
        for exc in (
            ConfigurationError(),
            RAGError(),
            LLMError(),
            DimensionMismatchError(expected=3, actual=2),
        ):
            assert isinstance(exc, TotalRecallError)

    def test_hierarchy_is_exactly_the_raised_errors(self) -> None:
        assert set(TotalRecallError.__subclasses__()) == {
            ConfigurationError,
            IngestionError,
            DimensionMismatchError,
            RAGError,
            LLMError,
        }

    def test_configuration_error_copies_missing(self) -> None:
        missing = ["AZURE_OPENAI_KEY"]
        exc = ConfigurationError(missing=missing)
        missing.append("OTHER")
        assert exc.missing == ["AZURE_OPENAI_KEY"]

    def test_dimension_mismatch_message(self) -> None:
        exc = DimensionMismatchError(expected=3072, actual=1536)
        assert exc.expected == 3072
        assert exc.actual == 1536
        assert "expected 3072, got 1536" in str(exc)
