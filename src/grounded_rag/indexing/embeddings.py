"""
Embedding model factory and batched embedder.

get_embedding_model() maps provider strings to LangChain embedding
classes. Embedder wraps the resulting model with what ingestion and
retrieval need from a remote embedding service: batching, per-request
timeouts, bounded retries, and a check that every vector has the
expected dimension.

Supported providers:
    "openai"      → OpenAIEmbeddings (API-based, default)
    "huggingface" → HuggingFaceEmbeddings (local sentence-transformers)
    "cohere"      → CohereEmbeddings (API-based)

Usage:
    from grounded_rag.indexing.embeddings import Embedder, get_embedding_model
    from grounded_rag.config import EmbeddingConfig

    config = EmbeddingConfig()
    embedder = Embedder(get_embedding_model(config), config)

    vectors = await embedder.embed(["first chunk", "second chunk"])
    query_vector = await embedder.embed_query("how do I schedule a visit?")
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from langchain_core.embeddings import Embeddings
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)
from tenacity.wait import wait_base

from grounded_rag.config import EmbeddingConfig
from grounded_rag.exceptions import EmbeddingError

logger = logging.getLogger(__name__)

# Programming errors are not worth retrying
_NON_RETRYABLE = (ValueError, TypeError)


def get_embedding_model(config: EmbeddingConfig) -> Embeddings:
    """
    Factory that returns a LangChain embedding model based on config.

    Each provider has its own LangChain integration package. We import
    them lazily (inside the if-branch) so you only need the package
    for the provider you actually use.

    For OpenAI's text-embedding-3 family the configured dimension is
    requested explicitly, so a shortened vector size can be used without
    changing the model.

    Args:
        config: EmbeddingConfig with provider, model_name, and optional model_kwargs.

    Returns:
        A LangChain Embeddings instance ready to call embed_query()/embed_documents().

    Raises:
        ValueError: If the provider is not recognized.
        ImportError: If the required package for the provider is not installed.
    """
    provider = config.provider.lower()

    if provider == "openai":
        from langchain_openai import OpenAIEmbeddings

        kwargs = dict(config.model_kwargs)
        if config.dimension and config.model_name.startswith("text-embedding-3"):
            kwargs.setdefault("dimensions", config.dimension)

        return OpenAIEmbeddings(
            model=config.model_name,
            timeout=config.timeout,
            **kwargs,
        )

    elif provider == "huggingface":
        try:
            from langchain_huggingface import HuggingFaceEmbeddings
        except ImportError:
            raise ImportError(
                "HuggingFace embeddings require langchain-huggingface. "
                "Install with: pip install grounded-rag[huggingface]"
            )

        return HuggingFaceEmbeddings(
            model_name=config.model_name,
            model_kwargs=config.model_kwargs,
        )

    elif provider == "cohere":
        try:
            from langchain_cohere import CohereEmbeddings
        except ImportError:
            raise ImportError(
                "Cohere embeddings require langchain-cohere. "
                "Install with: pip install grounded-rag[cohere]"
            )

        return CohereEmbeddings(
            model=config.model_name,
            **config.model_kwargs,
        )

    else:
        raise ValueError(
            f"Unknown embedding provider: '{config.provider}'. "
            f"Supported: 'openai', 'huggingface', 'cohere'. "
            f"For other providers, pass a LangChain Embeddings instance to Embedder directly."
        )


class Embedder:
    """
    Turns texts into fixed-length vectors through a LangChain Embeddings model.

    Guarantees for embed():
        - one vector per input text, in input order
        - every vector has config.dimension components (when set)
        - texts are sent in sequential batches of config.batch_size
        - each request is bounded by config.timeout and retried up to
          config.max_retries attempts with jittered exponential backoff

    Any failure surfaces as EmbeddingError; a partial result is never
    returned.
    """

    def __init__(
        self,
        embeddings: Embeddings,
        config: Optional[EmbeddingConfig] = None,
        retry_wait: Optional[wait_base] = None,
    ):
        self._embeddings = embeddings
        self._config = config or EmbeddingConfig()
        self._retry_wait = retry_wait or wait_exponential_jitter(initial=1, max=10)

    @property
    def dimension(self) -> Optional[int]:
        return self._config.dimension

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """
        Embed a list of texts.

        Args:
            texts: Texts to embed. May be empty.

        Returns:
            Vectors in the same order as texts.

        Raises:
            EmbeddingError: On service failure, timeout, count mismatch or
                dimension mismatch.
        """
        if not texts:
            return []

        batch_size = self._config.batch_size
        vectors: list[list[float]] = []

        for start in range(0, len(texts), batch_size):
            batch = texts[start:start + batch_size]
            batch_vectors = await self._call(
                lambda batch=batch: self._embeddings.aembed_documents(batch),
                description=f"batch of {len(batch)} texts",
            )
            if len(batch_vectors) != len(batch):
                raise EmbeddingError(
                    "Embedding service returned the wrong number of vectors",
                    details={"expected": len(batch), "received": len(batch_vectors)},
                )
            for vector in batch_vectors:
                self._check_dimension(vector)
            vectors.extend(batch_vectors)

        logger.debug("Embedded %d texts in %d batches", len(texts), -(-len(texts) // batch_size))
        return vectors

    async def embed_query(self, text: str) -> list[float]:
        """Embed a single search query."""
        vector = await self._call(
            lambda: self._embeddings.aembed_query(text),
            description="query",
        )
        self._check_dimension(vector)
        return vector

    async def _call(self, make_request: Callable[[], Awaitable], description: str):
        """Run one embedding request with timeout and retries."""
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_not_exception_type(_NON_RETRYABLE),
                stop=stop_after_attempt(self._config.max_retries),
                wait=self._retry_wait,
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    return await asyncio.wait_for(make_request(), timeout=self._config.timeout)
        except asyncio.TimeoutError as e:
            raise EmbeddingError(
                f"Embedding request timed out after {self._config.timeout}s",
                details={"request": description},
            ) from e
        except Exception as e:
            raise EmbeddingError(
                f"Embedding request failed: {e}",
                details={"request": description, "error_type": type(e).__name__},
            ) from e

    def _check_dimension(self, vector: list[float]) -> None:
        expected = self._config.dimension
        if expected is not None and len(vector) != expected:
            raise EmbeddingError(
                "Embedding dimension mismatch",
                details={"expected": expected, "received": len(vector)},
            )
