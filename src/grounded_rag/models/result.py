"""
Result models for ingestion, retrieval and generation.

These are the outputs callers get back: what a run ingested, what a
question retrieved, and the answer built from it.
"""

from typing import Optional

from pydantic import BaseModel, Field

from .document import Match


# ---------------------------------------------------------------------------
# Retrieval results
# ---------------------------------------------------------------------------

class RetrievalResult(BaseModel):
    """
    Output of the retrieval stage.

    below_threshold is a first-class outcome, not an error: it means no
    retrieved content was relevant enough to answer from, and the caller
    must respond with an honest "couldn't find that" instead of generating.
    """

    matches: list[Match] = Field(default_factory=list, description="Matches, descending by score")
    top_score: float = Field(default=0.0, description="Score of the best match, 0 when there are none")
    below_threshold: bool = Field(default=True, description="True when nothing is relevant enough")
    is_aggregation: bool = Field(default=False, description="True for list-style questions")
    threshold: float = Field(default=0.0, description="Threshold the top score was compared against")
    queries_used: list[str] = Field(default_factory=list, description="Every query sent to the index")

    @property
    def context_texts(self) -> list[str]:
        return [m.metadata.text for m in self.matches]


# ---------------------------------------------------------------------------
# Generation results
# ---------------------------------------------------------------------------

class SourceRef(BaseModel):
    """A deduplicated source shown next to an answer."""

    url: str
    score: float = 0.0
    source: str = ""


class GenerationResult(BaseModel):
    """The answer plus the sources it was grounded in."""

    answer: str = Field(description="The generated (or fallback) answer")
    sources: list[SourceRef] = Field(default_factory=list)
    model: str = Field(default="", description="Model that produced this answer, empty for the fallback")
    grounded: bool = Field(default=True, description="False when the fallback answer was returned")


# ---------------------------------------------------------------------------
# Ingestion results
# ---------------------------------------------------------------------------

class DocumentReport(BaseModel):
    """What happened to one document during ingestion."""

    source: str
    status: str = Field(default="ingested", description="ingested | empty | skipped | failed")
    chunk_count: int = 0
    upserted: int = 0
    batches: int = 0
    chunk_ids: list[str] = Field(default_factory=list)
    error: Optional[str] = None


class IngestionReport(BaseModel):
    """Summary of an ingestion run."""

    documents: list[DocumentReport] = Field(default_factory=list)
    dry_run: bool = False

    @property
    def ingested(self) -> list[DocumentReport]:
        return [d for d in self.documents if d.status == "ingested"]

    @property
    def skipped(self) -> list[DocumentReport]:
        return [d for d in self.documents if d.status == "skipped"]

    @property
    def failed(self) -> list[DocumentReport]:
        return [d for d in self.documents if d.status == "failed"]

    @property
    def total_chunks(self) -> int:
        return sum(d.chunk_count for d in self.documents)

    @property
    def total_upserted(self) -> int:
        return sum(d.upserted for d in self.documents)
