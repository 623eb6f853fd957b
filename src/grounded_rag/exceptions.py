"""
Exception hierarchy for the ingestion and retrieval pipeline.

Every error carries a human-readable message plus a details dict, so a
log line or CLI message can show what failed and where:

    RAGPipelineError
    ├── ConfigurationError        missing credentials / invalid settings (fatal)
    ├── UpstreamServiceError      an external call failed or timed out
    │   ├── EmbeddingError
    │   └── VectorIndexError
    └── MalformedDocumentError    one document could not be read (skipped)

"No relevant content" is NOT an error. It is reported through
RetrievalResult.below_threshold.
"""

from typing import Any, Optional


class RAGPipelineError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(RAGPipelineError):
    """Raised when required credentials or identifiers are missing at startup."""

    def __init__(
        self,
        message: str,
        missing: Optional[list[str]] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        details = details or {}
        if missing:
            details["missing"] = missing
        self.missing = missing or []
        super().__init__(message, details)


class UpstreamServiceError(RAGPipelineError):
    """Raised when the embedding service or the vector index fails."""

    service = "upstream"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        details = details or {}
        details.setdefault("service", self.service)
        super().__init__(message, details)


class EmbeddingError(UpstreamServiceError):
    """Raised when embedding generation fails, times out or returns bad vectors."""

    service = "embedding"


class VectorIndexError(UpstreamServiceError):
    """Raised when an index provisioning, upsert, query or purge call fails."""

    service = "vector_index"


class MalformedDocumentError(RAGPipelineError):
    """Raised when a document cannot be turned into text."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        details = details or {}
        if source:
            details["source"] = source
        self.source = source
        super().__init__(message, details)
