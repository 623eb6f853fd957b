"""
Pydantic models shared across the pipeline.

Import from here rather than reaching into submodules:
    from grounded_rag.models import Chunk, Match, RetrievalResult
"""

from .document import Chunk, ChunkMetadata, IndexedRecord, Match
from .entity import EntityCandidate
from .query import IntentClassification, QueryIntent
from .result import (
    DocumentReport,
    GenerationResult,
    IngestionReport,
    RetrievalResult,
    SourceRef,
)

__all__ = [
    # Document
    "Chunk",
    "ChunkMetadata",
    "IndexedRecord",
    "Match",
    # Entity
    "EntityCandidate",
    # Query
    "IntentClassification",
    "QueryIntent",
    # Result
    "DocumentReport",
    "GenerationResult",
    "IngestionReport",
    "RetrievalResult",
    "SourceRef",
]
