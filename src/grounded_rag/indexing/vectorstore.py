"""
Vector index adapters.

A vector index stores (id, vector, metadata) records inside a namespace
and answers nearest-neighbour queries. This is the final step of
ingestion and the first step of retrieval:

    Loader → Chunker → Embedder → VectorIndex (this file) → Retriever

Two backends share one async interface:
    PineconeVectorIndex  The production similarity-search service. The
                         SDK is synchronous, so every call runs in a
                         worker thread under a timeout with bounded
                         retries. Any failure becomes VectorIndexError.
    InMemoryVectorIndex  Dict-backed cosine search. Same semantics
                         (upsert overwrites by id, queries are sorted by
                         descending score), no network. Used by tests and
                         local dry runs.

Usage:
    from grounded_rag.indexing.vectorstore import create_vector_index
    from grounded_rag.config import VectorStoreConfig

    index = create_vector_index(VectorStoreConfig(), api_key=settings.pinecone_api_key)
    await index.ensure_index()
    await index.upsert(records, namespace="__default__")
    matches = await index.query(vector, top_k=8, namespace="__default__")
"""

import asyncio
import logging
import math
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)
from tenacity.wait import wait_base

from grounded_rag.config import VectorStoreConfig, VectorStoreType
from grounded_rag.exceptions import ConfigurationError, VectorIndexError
from grounded_rag.models.document import ChunkMetadata, IndexedRecord, Match

logger = logging.getLogger(__name__)


class VectorIndex(ABC):
    """
    Contract for vector index backends.

    Invariants:
        - upsert is idempotent per id: writing the same id twice leaves
          one record holding the latest vector and metadata
        - query returns at most top_k matches, sorted by descending score
        - queries never see records from another namespace
    """

    def __init__(self, config: Optional[VectorStoreConfig] = None):
        self.config = config or VectorStoreConfig()

    @abstractmethod
    async def ensure_index(self, recreate: bool = False) -> None:
        """Make sure the backing index exists and is ready, optionally rebuilding it."""
        ...

    @abstractmethod
    async def upsert(self, records: list[IndexedRecord], namespace: Optional[str] = None) -> int:
        """Insert or overwrite records. Returns the number of records written."""
        ...

    @abstractmethod
    async def query(self, vector: list[float], top_k: int, namespace: Optional[str] = None) -> list[Match]:
        """Return the top_k nearest records, most similar first."""
        ...

    @abstractmethod
    async def delete_all(self, namespace: Optional[str] = None) -> None:
        """Delete every record in a namespace."""
        ...


# ---------------------------------------------------------------------------
# Pinecone
# ---------------------------------------------------------------------------

def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read a field from an SDK response object or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


class PineconeVectorIndex(VectorIndex):
    """
    Vector index backed by a Pinecone serverless index.

    Args:
        client: A pinecone.Pinecone client.
        config: Index name, creation parameters, timeouts and retries.
        retry_wait: Override the backoff between attempts (tests pass
            tenacity.wait_none()).
    """

    def __init__(
        self,
        client: Any,
        config: Optional[VectorStoreConfig] = None,
        retry_wait: Optional[wait_base] = None,
    ):
        super().__init__(config)
        self._client = client
        self._index = None
        self._retry_wait = retry_wait or wait_exponential_jitter(initial=1, max=10)

    @property
    def index(self) -> Any:
        if self._index is None:
            self._index = self._client.Index(self.config.index_name)
        return self._index

    async def ensure_index(self, recreate: bool = False) -> None:
        name = self.config.index_name
        names = await self._run(lambda: list(self._client.list_indexes().names()), "list_indexes")
        exists = name in names

        if exists and recreate:
            logger.info("Deleting index '%s' for recreation", name)
            await self._run(lambda: self._client.delete_index(name), "delete_index")
            exists = False

        if exists:
            logger.info("Using existing index '%s'", name)
            return

        from pinecone import ServerlessSpec

        logger.info(
            "Creating index '%s' (dimension=%d, metric=%s, %s/%s)",
            name, self.config.dimension, self.config.metric, self.config.cloud, self.config.region,
        )
        await self._run(
            lambda: self._client.create_index(
                name=name,
                dimension=self.config.dimension,
                metric=self.config.metric,
                spec=ServerlessSpec(cloud=self.config.cloud, region=self.config.region),
            ),
            "create_index",
        )
        self._index = None
        await self._wait_until_ready()

    async def _wait_until_ready(self) -> None:
        name = self.config.index_name
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.config.ready_timeout

        while True:
            description = await self._run(lambda: self._client.describe_index(name), "describe_index")
            if _field(_field(description, "status", {}), "ready", False):
                logger.info("Index '%s' is ready", name)
                return
            if loop.time() >= deadline:
                raise VectorIndexError(
                    f"Index '{name}' was not ready after {self.config.ready_timeout}s",
                    details={"operation": "create_index"},
                )
            logger.info("Waiting for index '%s' to become ready...", name)
            await asyncio.sleep(self.config.poll_interval)

    async def upsert(self, records: list[IndexedRecord], namespace: Optional[str] = None) -> int:
        namespace = namespace or self.config.namespace
        if not records:
            return 0
        vectors = [record.to_upsert() for record in records]
        response = await self._run(
            lambda: self.index.upsert(vectors=vectors, namespace=namespace),
            "upsert",
        )
        upserted = _field(response, "upserted_count", None)
        return int(upserted) if upserted is not None else len(records)

    async def query(self, vector: list[float], top_k: int, namespace: Optional[str] = None) -> list[Match]:
        namespace = namespace or self.config.namespace
        response = await self._run(
            lambda: self.index.query(
                vector=vector,
                top_k=top_k,
                namespace=namespace,
                include_metadata=True,
            ),
            "query",
        )
        matches = [
            Match(
                id=_field(m, "id"),
                score=_field(m, "score", 0.0) or 0.0,
                metadata=ChunkMetadata(**(_field(m, "metadata") or {})),
            )
            for m in (_field(response, "matches") or [])
        ]
        matches.sort(key=lambda m: m.score, reverse=True)
        return matches[:top_k]

    async def delete_all(self, namespace: Optional[str] = None) -> None:
        namespace = namespace or self.config.namespace
        from pinecone.exceptions import NotFoundException

        try:
            await self._run(
                lambda: self.index.delete(delete_all=True, namespace=namespace),
                "delete_all",
                no_retry=(NotFoundException,),
            )
        except VectorIndexError as e:
            # Purging a namespace that was never written is a no-op
            if isinstance(e.__cause__, NotFoundException):
                logger.info("Namespace '%s' is already empty", namespace)
                return
            raise

    async def _run(
        self,
        call: Callable[[], Any],
        operation: str,
        no_retry: tuple[type[BaseException], ...] = (),
    ) -> Any:
        """Run a blocking SDK call in a thread with timeout and retries."""
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_not_exception_type((ValueError, TypeError, *no_retry)),
                stop=stop_after_attempt(self.config.max_retries),
                wait=self._retry_wait,
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    return await asyncio.wait_for(
                        asyncio.to_thread(call),
                        timeout=self.config.timeout,
                    )
        except asyncio.TimeoutError as e:
            raise VectorIndexError(
                f"Vector index {operation} timed out after {self.config.timeout}s",
                details={"operation": operation, "index": self.config.index_name},
            ) from e
        except Exception as e:
            raise VectorIndexError(
                f"Vector index {operation} failed: {e}",
                details={
                    "operation": operation,
                    "index": self.config.index_name,
                    "error_type": type(e).__name__,
                },
            ) from e


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------

def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine similarity in [-1, 1]; 0 when either vector has zero length."""
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class InMemoryVectorIndex(VectorIndex):
    """Dict-backed vector index with exact cosine search."""

    def __init__(self, config: Optional[VectorStoreConfig] = None):
        super().__init__(config)
        self._namespaces: dict[str, dict[str, IndexedRecord]] = {}

    async def ensure_index(self, recreate: bool = False) -> None:
        if recreate:
            self._namespaces.clear()

    async def upsert(self, records: list[IndexedRecord], namespace: Optional[str] = None) -> int:
        namespace = namespace or self.config.namespace
        for record in records:
            if len(record.vector) != self.config.dimension:
                raise VectorIndexError(
                    "Vector dimension does not match the index",
                    details={
                        "operation": "upsert",
                        "expected": self.config.dimension,
                        "received": len(record.vector),
                    },
                )
        store = self._namespaces.setdefault(namespace, {})
        for record in records:
            store[record.id] = record
        return len(records)

    async def query(self, vector: list[float], top_k: int, namespace: Optional[str] = None) -> list[Match]:
        namespace = namespace or self.config.namespace
        if len(vector) != self.config.dimension:
            raise VectorIndexError(
                "Query vector dimension does not match the index",
                details={
                    "operation": "query",
                    "expected": self.config.dimension,
                    "received": len(vector),
                },
            )
        store = self._namespaces.get(namespace, {})

        scored = [
            Match(
                id=record.id,
                score=cosine_similarity(vector, record.vector),
                metadata=record.metadata,
            )
            for record in store.values()
        ]
        scored.sort(key=lambda m: m.score, reverse=True)
        return scored[:top_k]

    async def delete_all(self, namespace: Optional[str] = None) -> None:
        namespace = namespace or self.config.namespace
        self._namespaces.pop(namespace, None)

    def count(self, namespace: str) -> int:
        return len(self._namespaces.get(namespace, {}))


def create_vector_index(config: VectorStoreConfig, api_key: Optional[str] = None) -> VectorIndex:
    """
    Factory that returns a vector index backend based on config.

    Raises:
        ConfigurationError: If Pinecone is selected without an API key.
        ValueError: If the store type is not recognized.
    """
    if config.store_type == VectorStoreType.PINECONE:
        if not api_key:
            raise ConfigurationError(
                "Pinecone vector index requires an API key",
                missing=["PINECONE_API_KEY"],
            )
        from pinecone import Pinecone

        return PineconeVectorIndex(Pinecone(api_key=api_key), config)

    elif config.store_type == VectorStoreType.MEMORY:
        return InMemoryVectorIndex(config)

    else:
        raise ValueError(
            f"Unknown vector store type: '{config.store_type}'. "
            f"Supported: 'pinecone', 'memory'."
        )
