"""
Indexing pipeline: load → chunk → embed → store.

Usage:
    from grounded_rag.indexing import (
        FileLoader, SlidingWindowChunker, Embedder, create_vector_index, IngestionPipeline,
    )
"""

from .chunking import SlidingWindowChunker, chunk_text, derive_chunk_id, normalize_text
from .embeddings import Embedder, get_embedding_model
from .loaders import FileLoader, extract_source_url, iter_document_paths
from .pipeline import IngestionPipeline
from .vectorstore import (
    InMemoryVectorIndex,
    PineconeVectorIndex,
    VectorIndex,
    create_vector_index,
)

__all__ = [
    # Chunking
    "SlidingWindowChunker",
    "chunk_text",
    "derive_chunk_id",
    "normalize_text",
    # Embeddings
    "Embedder",
    "get_embedding_model",
    # Loading
    "FileLoader",
    "extract_source_url",
    "iter_document_paths",
    # Vector index
    "InMemoryVectorIndex",
    "PineconeVectorIndex",
    "VectorIndex",
    "create_vector_index",
    # Pipeline
    "IngestionPipeline",
]
