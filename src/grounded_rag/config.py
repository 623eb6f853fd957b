"""
Configuration for the ingestion and retrieval pipeline.

Split into one config per concern so each stage only receives what it
needs. PipelineConfig bundles them all for convenience.

Credentials and deployment identifiers live in the environment (or a
.env file) and are read by Settings, which folds them into a
PipelineConfig:

    settings = Settings()
    settings.require("openai_api_key", "pinecone_api_key", "pinecone_index_name")
    config = settings.to_pipeline_config()

Everything else has sensible defaults, so PipelineConfig() with no
arguments is a working setup for tests and local runs.
"""

from enum import Enum
from typing import Any, Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from grounded_rag.exceptions import ConfigurationError

# Load .env once at import time, searching upward from the working directory.
load_dotenv(find_dotenv(usecwd=True))


# ---------------------------------------------------------------------------
# Base for every stage config
# ---------------------------------------------------------------------------

class _StageConfig(BaseModel):
    """Stage configs re-validate on every field assignment."""

    model_config = ConfigDict(validate_assignment=True)


# ---------------------------------------------------------------------------
# Enums: for things with a genuinely fixed set of choices
# ---------------------------------------------------------------------------

class LLMProvider(str, Enum):
    """Supported LLM providers for answer generation."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class VectorStoreType(str, Enum):
    """
    Supported vector index backends.

    PINECONE is the production similarity-search service. MEMORY keeps
    records in a dict and is used for tests, dry runs and small corpora.
    """

    PINECONE = "pinecone"
    MEMORY = "memory"


# ---------------------------------------------------------------------------
# Per-concern configs
# ---------------------------------------------------------------------------

class ChunkingConfig(_StageConfig):
    """
    Document chunking configuration.

    Used by: indexing/chunking.py

    chunk_size is a hard ceiling on the window; chunk boundaries snap back
    to paragraph, sentence, line or word breaks inside the window.
    Chunks shorter than min_chunk_size are never emitted (unless the whole
    document fits in one window), and documents shorter than
    min_document_length after cleanup produce no chunks at all.
    """

    chunk_size: int = Field(
        default=1200,
        gt=0,
        description="Maximum chunk size in characters (window size)",
    )
    chunk_overlap: int = Field(
        default=200,
        ge=0,
        description="Overlap between consecutive chunks",
    )
    min_chunk_size: int = Field(
        default=400,
        gt=0,
        description="Smallest chunk that is worth embedding; also the minimum window advance",
    )
    min_document_length: int = Field(
        default=100,
        ge=0,
        description="Documents shorter than this after cleanup are ignored",
    )

    @model_validator(mode="after")
    def validate_sizes(self) -> "ChunkingConfig":
        """Overlap and minimum size must both fit inside the window."""
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be less than "
                f"chunk_size ({self.chunk_size})"
            )
        if self.min_chunk_size >= self.chunk_size:
            raise ValueError(
                f"min_chunk_size ({self.min_chunk_size}) must be less than "
                f"chunk_size ({self.chunk_size})"
            )
        return self


class EmbeddingConfig(_StageConfig):
    """
    Embedding model configuration.

    Used by: indexing/embeddings.py

    Provider is an open string; the factory in indexing/embeddings.py maps
    known providers to LangChain classes. dimension must match the vector
    index dimension; every returned vector is checked against it.
    """

    provider: str = Field(
        default="openai",
        description="Embedding provider: 'openai', 'huggingface', 'cohere'",
    )
    model_name: str = Field(
        default="text-embedding-3-large",
        description="Embedding model identifier",
    )
    dimension: Optional[int] = Field(
        default=3072,
        gt=0,
        description="Expected vector length; None disables the check",
    )
    batch_size: int = Field(
        default=10,
        gt=0,
        description="Texts per embedding request",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds before a single embedding request is abandoned",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        description="Attempts per embedding request (1 = no retry)",
    )
    model_kwargs: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra kwargs passed to the embedding model constructor",
    )


class VectorStoreConfig(_StageConfig):
    """
    Vector index configuration.

    Used by: indexing/vectorstore.py

    dimension/metric/cloud/region are only used when the index has to be
    created. poll_interval and ready_timeout bound the wait for a freshly
    created index to report ready.
    """

    store_type: VectorStoreType = Field(
        default=VectorStoreType.PINECONE,
        description="Vector index backend",
    )
    index_name: str = Field(
        default="grounded-rag",
        description="Name of the backing index",
    )
    namespace: str = Field(
        default="__default__",
        description="Logical partition holding one corpus",
    )
    dimension: int = Field(default=3072, gt=0, description="Vector dimension for index creation")
    metric: str = Field(default="cosine", description="Similarity metric for index creation")
    cloud: str = Field(default="aws", description="Serverless cloud for index creation")
    region: str = Field(default="us-east-1", description="Serverless region for index creation")
    timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds before a single index call is abandoned",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        description="Attempts per index call (1 = no retry)",
    )
    poll_interval: float = Field(
        default=4.0,
        ge=0,
        description="Seconds between readiness checks after index creation",
    )
    ready_timeout: float = Field(
        default=300.0,
        gt=0,
        description="Give up waiting for a new index after this many seconds",
    )


class RoutingConfig(_StageConfig):
    """
    Keyword tables for query intent classification.

    Used by: query/routing.py

    A question is an aggregation (list-style) question when it contains at
    least one breadth keyword AND at least one domain keyword. These are
    data, not code. Override them per deployment corpus.
    """

    breadth_keywords: list[str] = Field(
        default_factory=lambda: [
            "top",
            "list",
            "all",
            "every",
            "examples of",
            "types of",
            "kinds of",
            "where have students",
            "where do students",
            "placement",
            "companies",
            "organizations",
            "employers",
        ],
        description="Phrases signalling the user wants a collection of facts",
    )
    domain_keywords: list[str] = Field(
        default_factory=lambda: ["internship", "placement"],
        description="Phrases marking the topic the fan-out queries are written for",
    )


class RetrieverConfig(_StageConfig):
    """
    Retrieval configuration.

    Used by: retrieval/search.py

    Single-fact questions are answered from the top_k nearest chunks and
    accepted when the best score reaches similarity_threshold.
    Aggregation questions fan out over aggregation_queries, keep up to
    aggregation_multiplier * top_k merged matches, and are accepted at the
    relaxed threshold similarity_threshold * aggregation_threshold_factor.
    """

    top_k: int = Field(default=8, gt=0, description="Matches per index query")
    similarity_threshold: float = Field(
        default=0.75,
        ge=-1.0,
        le=1.0,
        description="Minimum top score to treat retrieved content as relevant",
    )
    aggregation_threshold_factor: float = Field(
        default=0.7,
        gt=0.0,
        le=1.0,
        description="Multiplier applied to the threshold for aggregation questions",
    )
    aggregation_multiplier: int = Field(
        default=3,
        gt=0,
        description="Aggregation results are truncated to this many times top_k",
    )
    aggregation_queries: list[str] = Field(
        default_factory=lambda: [
            "student internship placements and host organizations",
            "companies and organizations where students completed internships",
            "internship experience reports from students",
            "hotels restaurants and event companies hiring interns",
            "internship requirements and approved internship sites",
        ],
        description="Broadened queries issued alongside the question to widen recall",
    )

    @property
    def aggregation_threshold(self) -> float:
        return self.similarity_threshold * self.aggregation_threshold_factor


class LLMConfig(_StageConfig):
    """
    LLM configuration.

    Used by: generation/generate.py
    """

    provider: LLMProvider = Field(
        default=LLMProvider.OPENAI,
        description="Which LLM provider to use",
    )
    model_name: str = Field(
        default="gpt-4o-mini",
        description="Model identifier",
    )
    temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="Sampling temperature. 0 = deterministic",
    )
    max_tokens: int = Field(
        default=1000,
        gt=0,
        description="Maximum tokens in the LLM response",
    )
    timeout: float = Field(
        default=60.0,
        gt=0,
        description="Seconds to wait for one completion request",
    )


class GenerationConfig(_StageConfig):
    """Answer generation behaviour around retrieval misses."""

    fallback_answer: str = Field(
        default=(
            "I'm here to answer questions about the program, but I couldn't find "
            "that info in my sources. Could you clarify or ask something else?"
        ),
        description="Fixed answer returned when retrieval is below threshold",
    )
    max_sources: int = Field(
        default=3,
        gt=0,
        description="Maximum number of deduplicated source URLs returned",
    )


class IngestionConfig(_StageConfig):
    """
    Ingestion run options.

    Used by: indexing/pipeline.py and the `ingest` CLI command.
    """

    batch_size: int = Field(default=10, gt=0, description="Chunks embedded and upserted per batch")
    dry_run: bool = Field(default=False, description="Chunk and embed, but only log the upserts")
    skip_pdf: bool = Field(default=False, description="Ignore .pdf files")
    purge: bool = Field(default=False, description="Delete every record in the namespace first")
    recreate_index: bool = Field(default=False, description="Delete and recreate the index first")


# ---------------------------------------------------------------------------
# Top-level config: bundles everything
# ---------------------------------------------------------------------------

class PipelineConfig(_StageConfig):
    """
    Complete pipeline configuration.

    All sub-configs have defaults, so PipelineConfig() with no arguments
    is valid.
    """

    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    vector_store: VectorStoreConfig = Field(default_factory=VectorStoreConfig)
    routing: RoutingConfig = Field(default_factory=RoutingConfig)
    retriever: RetrieverConfig = Field(default_factory=RetrieverConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)

    @model_validator(mode="after")
    def validate_dimensions(self) -> "PipelineConfig":
        """The embedding model and the index must agree on vector length."""
        if self.embedding.dimension is not None and self.embedding.dimension != self.vector_store.dimension:
            raise ValueError(
                f"embedding.dimension ({self.embedding.dimension}) must equal "
                f"vector_store.dimension ({self.vector_store.dimension})"
            )
        return self


# ---------------------------------------------------------------------------
# Environment settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """
    Credentials and deployment identifiers read from the environment.

    Variable names match the deployment's .env file (OPENAI_API_KEY,
    PINECONE_INDEX_NAME, ...). Nothing here is required at construction
    time; each entry point calls require() for what it needs so a missing
    key fails fast with a ConfigurationError naming every gap.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    openai_api_key: Optional[str] = Field(default=None, validation_alias="OPENAI_API_KEY")
    pinecone_api_key: Optional[str] = Field(default=None, validation_alias="PINECONE_API_KEY")
    pinecone_index_name: Optional[str] = Field(default=None, validation_alias="PINECONE_INDEX_NAME")
    pinecone_namespace: str = Field(default="__default__", validation_alias="PINECONE_NAMESPACE")
    embed_model: str = Field(default="text-embedding-3-large", validation_alias="EMBED_MODEL")
    gen_model: str = Field(default="gpt-4o-mini", validation_alias="GEN_MODEL")
    min_similarity: float = Field(default=0.75, validation_alias="MIN_SIMILARITY")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    def require(self, *names: str) -> None:
        """
        Ensure the named settings are present.

        Raises:
            ConfigurationError: listing every missing environment variable.
        """
        missing = []
        for name in names:
            if not getattr(self, name, None):
                field = type(self).model_fields[name]
                missing.append(str(field.validation_alias or name).upper())
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}",
                missing=missing,
            )

    def to_pipeline_config(self, **overrides: Any) -> PipelineConfig:
        """
        Build a PipelineConfig with environment values folded in.

        Raises:
            ConfigurationError: If an environment value or override fails validation.
        """
        try:
            config = PipelineConfig(**overrides)
            config.embedding.model_name = self.embed_model
            config.llm.model_name = self.gen_model
            config.retriever.similarity_threshold = self.min_similarity
            config.vector_store.namespace = self.pinecone_namespace
            if self.pinecone_index_name:
                config.vector_store.index_name = self.pinecone_index_name
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration: {e}",
                details={"fields": [".".join(map(str, err["loc"])) for err in e.errors()]},
            ) from e
        return config

