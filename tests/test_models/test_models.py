"""Tests for data models: construction and derived fields."""

from grounded_rag.exceptions import ConfigurationError, EmbeddingError, MalformedDocumentError
from grounded_rag.models.document import Chunk, ChunkMetadata, IndexedRecord, Match
from grounded_rag.models.query import IntentClassification, QueryIntent
from grounded_rag.models.result import DocumentReport, IngestionReport, RetrievalResult


class TestDocumentModels:

    def test_index_metadata_drops_missing_url(self):
        metadata = ChunkMetadata(source="a.md", text="hello", chunk_index=0, total_chunks=1)
        assert metadata.to_index_metadata() == {
            "source": "a.md",
            "text": "hello",
            "chunk_index": 0,
            "total_chunks": 1,
        }

    def test_to_upsert(self):
        record = IndexedRecord(
            id="abc",
            vector=[0.1, 0.2],
            metadata=ChunkMetadata(source="a.md", url="https://x", text="t"),
        )
        payload = record.to_upsert()
        assert payload["id"] == "abc"
        assert payload["values"] == [0.1, 0.2]
        assert payload["metadata"]["url"] == "https://x"

    def test_match_source_prefers_url(self):
        assert Match(id="a", metadata=ChunkMetadata(source="a.md", url="https://x")).source == "https://x"
        assert Match(id="a", metadata=ChunkMetadata(source="a.md")).source == "a.md"

    def test_metadata_keeps_unknown_fields(self):
        metadata = ChunkMetadata(source="a.md", page=3)
        assert metadata.to_index_metadata()["page"] == 3

    def test_chunk_defaults(self):
        chunk = Chunk(chunk_id="x", text="t")
        assert chunk.metadata.chunk_index == 0


class TestResultModels:

    def test_retrieval_result_defaults_to_below_threshold(self):
        result = RetrievalResult()
        assert result.below_threshold
        assert result.matches == []

    def test_context_texts(self):
        result = RetrievalResult(matches=[Match(id="a", metadata=ChunkMetadata(text="one"))])
        assert result.context_texts == ["one"]

    def test_ingestion_report_totals(self):
        report = IngestionReport(documents=[
            DocumentReport(source="a", chunk_count=3, upserted=3),
            DocumentReport(source="b", status="failed", chunk_count=2, upserted=1),
            DocumentReport(source="c", status="skipped"),
        ])
        assert [d.source for d in report.ingested] == ["a"]
        assert [d.source for d in report.failed] == ["b"]
        assert report.total_chunks == 5
        assert report.total_upserted == 4


def test_intent_classification():
    assert IntentClassification(intent=QueryIntent.AGGREGATION).is_aggregation
    assert not IntentClassification(intent=QueryIntent.SINGLE_FACT).is_aggregation


class TestExceptions:

    def test_details_are_rendered(self):
        error = EmbeddingError("failed", details={"expected": 3})
        assert error.details == {"expected": 3, "service": "embedding"}
        assert "expected" in str(error)

    def test_configuration_error_missing(self):
        error = ConfigurationError("missing", missing=["OPENAI_API_KEY"])
        assert error.missing == ["OPENAI_API_KEY"]
        assert error.details["missing"] == ["OPENAI_API_KEY"]

    def test_malformed_document_source(self):
        error = MalformedDocumentError("bad", source="a.pdf")
        assert error.source == "a.pdf"
        assert str(error) == "bad | Details: {'source': 'a.pdf'}"
