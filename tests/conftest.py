"""
Shared test fixtures for the grounded-rag test suite.

Provides reusable fixtures: configs, sample documents, a deterministic
fake embedding model and an in-memory vector index. Nothing here needs
network access or API keys.
"""

import hashlib
import re

import pytest
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from tenacity import wait_none

from grounded_rag.config import (
    ChunkingConfig,
    EmbeddingConfig,
    IngestionConfig,
    RetrieverConfig,
    RoutingConfig,
    VectorStoreConfig,
    VectorStoreType,
)
from grounded_rag.indexing.embeddings import Embedder
from grounded_rag.indexing.vectorstore import InMemoryVectorIndex
from grounded_rag.models.document import ChunkMetadata, IndexedRecord, Match

DIMENSION = 16


class FakeEmbeddings(Embeddings):
    """
    Deterministic bag-of-words embeddings.

    Each lowercase word is hashed into one of `dimension` buckets, so texts
    sharing vocabulary get similar vectors.
    """

    def __init__(self, dimension: int = DIMENSION):
        self.dimension = dimension
        self.document_calls: list[list[str]] = []

    def _embed(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        for word in re.findall(r"[a-z]+", text.lower()):
            bucket = int(hashlib.sha256(word.encode()).hexdigest()[:8], 16) % self.dimension
            vector[bucket] += 1.0
        if not any(vector):
            vector[0] = 1.0
        return vector

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.document_calls.append(list(texts))
        return [self._embed(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        return self._embed(text)


def make_paragraphs(count: int, sentences_per_paragraph: int = 4) -> str:
    """Readable filler text with real paragraph and sentence boundaries."""
    paragraphs = []
    for p in range(count):
        sentences = [
            f"Paragraph {p} sentence {s} describes the hospitality program requirements in detail."
            for s in range(sentences_per_paragraph)
        ]
        paragraphs.append(" ".join(sentences))
    return "\n\n".join(paragraphs)


def make_record(record_id: str, vector: list[float], text: str = "", url: str = None) -> IndexedRecord:
    return IndexedRecord(
        id=record_id,
        vector=vector,
        metadata=ChunkMetadata(source=f"{record_id}.md", url=url, text=text or f"text of {record_id}"),
    )


def make_match(record_id: str, score: float, url: str = None, text: str = "") -> Match:
    return Match(
        id=record_id,
        score=score,
        metadata=ChunkMetadata(source=f"{record_id}.md", url=url, text=text or f"text of {record_id}"),
    )


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def chunking_config():
    return ChunkingConfig(chunk_size=1200, chunk_overlap=200)


@pytest.fixture
def embedding_config():
    return EmbeddingConfig(dimension=DIMENSION, batch_size=10, timeout=5.0, max_retries=2)


@pytest.fixture
def vector_store_config():
    return VectorStoreConfig(
        store_type=VectorStoreType.MEMORY,
        index_name="test-index",
        namespace="test",
        dimension=DIMENSION,
        timeout=5.0,
        max_retries=2,
        poll_interval=0,
        ready_timeout=1.0,
    )


@pytest.fixture
def ingestion_config():
    return IngestionConfig(batch_size=10)


@pytest.fixture
def retriever_config():
    return RetrieverConfig(top_k=3, similarity_threshold=0.75)


@pytest.fixture
def routing_config():
    return RoutingConfig()


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_embeddings():
    return FakeEmbeddings()


@pytest.fixture
def embedder(fake_embeddings, embedding_config):
    return Embedder(fake_embeddings, embedding_config, retry_wait=wait_none())


@pytest.fixture
def memory_index(vector_store_config):
    return InMemoryVectorIndex(vector_store_config)


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def long_text():
    """About 3000 characters of prose with paragraph breaks."""
    return make_paragraphs(9)


@pytest.fixture
def web_page_text():
    """A scraped page: title, Source line, then several paragraphs."""
    return "# Visit Us\n\nSource: https://example.edu/visit\n\n" + make_paragraphs(8)


@pytest.fixture
def sample_document(long_text):
    return Document(page_content=long_text, metadata={"source": "handbook.md"})


@pytest.fixture
def web_document(web_page_text):
    return Document(
        page_content=web_page_text,
        metadata={"source": "web/visit.md", "url": "https://example.edu/visit"},
    )


@pytest.fixture
def docs_dir(tmp_path, long_text, web_page_text):
    """A small docs directory with a text file, a scraped page and noise."""
    (tmp_path / "web").mkdir()
    (tmp_path / "handbook.txt").write_text(long_text, encoding="utf-8")
    (tmp_path / "web" / "visit.md").write_text(web_page_text, encoding="utf-8")
    (tmp_path / "notes.docx").write_text("unsupported", encoding="utf-8")
    (tmp_path / "tiny.md").write_text("Short text.", encoding="utf-8")
    return tmp_path
