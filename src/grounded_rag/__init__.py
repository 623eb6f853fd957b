"""
Grounded RAG: document ingestion and threshold-gated retrieval.

Quick start:
    from grounded_rag import (
        PipelineConfig, SlidingWindowChunker, Embedder, get_embedding_model,
        create_vector_index, IngestionPipeline, Retriever, GroundedGenerator,
    )

    config = PipelineConfig()
    embedder = Embedder(get_embedding_model(config.embedding), config.embedding)
    index = create_vector_index(config.vector_store, api_key="...")

    pipeline = IngestionPipeline(SlidingWindowChunker(config.chunking), embedder, index)
    await pipeline.ingest_directory("docs")

    retriever = Retriever(embedder, index, config.retriever)
    result = await retriever.retrieve("how do I schedule a visit?")
    answer = await GroundedGenerator(config.llm).generate("how do I schedule a visit?", result)

Two retrieval paths:
    - Single-fact:  one query, accepted at similarity_threshold
    - Aggregation:  list-style questions fan out over broadened queries,
                    accepted at a relaxed threshold
"""

from .config import (
    ChunkingConfig,
    EmbeddingConfig,
    GenerationConfig,
    IngestionConfig,
    LLMConfig,
    PipelineConfig,
    RetrieverConfig,
    RoutingConfig,
    Settings,
    VectorStoreConfig,
)
from .exceptions import (
    ConfigurationError,
    EmbeddingError,
    MalformedDocumentError,
    RAGPipelineError,
    UpstreamServiceError,
    VectorIndexError,
)
from .generation import GroundedGenerator
from .indexing import (
    Embedder,
    FileLoader,
    IngestionPipeline,
    InMemoryVectorIndex,
    PineconeVectorIndex,
    SlidingWindowChunker,
    chunk_text,
    create_vector_index,
    get_embedding_model,
)
from .query import AggregationRouter
from .retrieval import Retriever

__version__ = "0.1.0"

__all__ = [
    # Pipeline components
    "AggregationRouter",
    "Embedder",
    "FileLoader",
    "GroundedGenerator",
    "IngestionPipeline",
    "InMemoryVectorIndex",
    "PineconeVectorIndex",
    "Retriever",
    "SlidingWindowChunker",
    "chunk_text",
    "create_vector_index",
    "get_embedding_model",
    # Config
    "ChunkingConfig",
    "EmbeddingConfig",
    "GenerationConfig",
    "IngestionConfig",
    "LLMConfig",
    "PipelineConfig",
    "RetrieverConfig",
    "RoutingConfig",
    "Settings",
    "VectorStoreConfig",
    # Errors
    "ConfigurationError",
    "EmbeddingError",
    "MalformedDocumentError",
    "RAGPipelineError",
    "UpstreamServiceError",
    "VectorIndexError",
]
