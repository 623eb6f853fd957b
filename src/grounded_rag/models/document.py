"""
Document models for the pipeline.

These represent data at each stage:
  Raw document (loaded) → Chunk (split) → IndexedRecord (embedded + stored)
  → Match (retrieved + scored)

Raw documents are LangChain Documents (page_content + metadata with
"source" and optional "url"); everything after chunking is typed here.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ChunkMetadata(BaseModel):
    """
    Metadata attached to every chunk and stored next to its vector.

    This is exactly what the vector index keeps per record, so the same
    model is used when matches come back from a query.
    """

    model_config = ConfigDict(extra="allow")

    source: str = Field(default="", description="Source identifier (relative file path or URL)")
    url: Optional[str] = Field(default=None, description="Originating page URL, if known")
    text: str = Field(default="", description="The chunk text itself")
    chunk_index: int = Field(default=0, ge=0, description="0-based position among the document's chunks")
    total_chunks: int = Field(default=1, ge=0, description="Number of chunks the document produced")

    def to_index_metadata(self) -> dict:
        """Flatten for the vector index, dropping empty optional fields."""
        return self.model_dump(exclude_none=True)


class Chunk(BaseModel):
    """
    A bounded segment of one document.

    chunk_id is derived from (source, chunk_index) only, so re-ingesting an
    unchanged document yields the same ids and upserts overwrite instead
    of duplicating.
    """

    chunk_id: str = Field(description="Deterministic identifier, stable across re-ingestion")
    text: str = Field(description="The chunk text")
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)


class IndexedRecord(BaseModel):
    """One row of the vector index: id + vector + metadata."""

    id: str
    vector: list[float]
    metadata: ChunkMetadata

    def to_upsert(self) -> dict:
        """Shape expected by the similarity-search service's upsert call."""
        return {
            "id": self.id,
            "values": self.vector,
            "metadata": self.metadata.to_index_metadata(),
        }


class Match(BaseModel):
    """A scored record returned by a similarity query. Never persisted."""

    id: str
    score: float = Field(default=0.0, description="Similarity score (higher = more similar)")
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)

    @property
    def text(self) -> str:
        return self.metadata.text

    @property
    def source(self) -> str:
        return self.metadata.url or self.metadata.source
