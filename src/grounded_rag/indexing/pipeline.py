"""
Ingestion pipeline: load → chunk → embed → upsert.

Each document is chunked, then its chunks go through the embedder and
into the vector index one batch at a time. Batch i+1 is not embedded
until batch i has been written, so only one batch of vectors is held in
memory at once.

Record ids come from (source, chunk_index), so running ingestion again
over an unchanged corpus overwrites the same records instead of adding
duplicates, and retrying a failed document is always safe.

Failure handling during a run:
    MalformedDocumentError  the document is skipped, the run continues
    EmbeddingError          the document is reported as failed (earlier
                            batches stay written), the run continues
    VectorIndexError        the run aborts; the index is shared, and
                            carrying on would leave it silently incomplete

Usage:
    pipeline = IngestionPipeline(chunker, embedder, index, IngestionConfig())
    report = await pipeline.ingest_directory("docs")
    print(f"{len(report.ingested)} documents, {report.total_upserted} vectors")
"""

import logging
import math
from pathlib import Path
from typing import Optional, Union

from langchain_core.documents import Document

from grounded_rag.base.indexer import BaseChunker, BaseLoader
from grounded_rag.config import IngestionConfig
from grounded_rag.exceptions import EmbeddingError, MalformedDocumentError
from grounded_rag.indexing.embeddings import Embedder
from grounded_rag.indexing.loaders import FileLoader, iter_document_paths
from grounded_rag.indexing.vectorstore import VectorIndex
from grounded_rag.models.document import IndexedRecord
from grounded_rag.models.result import DocumentReport, IngestionReport

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """
    Orchestrates ingestion of documents into a vector index namespace.

    Args:
        chunker: Splits a Document into Chunks with ids and metadata.
        embedder: Produces one vector per chunk text.
        index: Destination vector index.
        config: Batch size and run flags (dry_run, skip_pdf, purge).
        namespace: Target namespace; defaults to the index's configured one.
    """

    def __init__(
        self,
        chunker: BaseChunker,
        embedder: Embedder,
        index: VectorIndex,
        config: Optional[IngestionConfig] = None,
        namespace: Optional[str] = None,
    ):
        self._chunker = chunker
        self._embedder = embedder
        self._index = index
        self._config = config or IngestionConfig()
        self._namespace = namespace or index.config.namespace

    @property
    def namespace(self) -> str:
        return self._namespace

    async def purge(self) -> None:
        """Delete every record in the target namespace."""
        if self._config.dry_run:
            logger.info("[DRY RUN] Would purge namespace '%s'", self._namespace)
            return
        logger.info("Purging namespace '%s'", self._namespace)
        await self._index.delete_all(self._namespace)

    async def ingest_document(self, document: Document) -> DocumentReport:
        """
        Chunk, embed and upsert one document.

        Raises:
            EmbeddingError: If a batch cannot be embedded. Batches already
                upserted stay in the index.
            VectorIndexError: If an upsert fails.
        """
        source = document.metadata.get("source", "")
        chunks = self._chunker.chunk(document)

        if not chunks:
            logger.info("No chunks produced for %s", source)
            return DocumentReport(source=source, status="empty")

        report = DocumentReport(
            source=source,
            chunk_count=len(chunks),
            chunk_ids=[c.chunk_id for c in chunks],
        )
        batch_size = self._config.batch_size
        total_batches = math.ceil(len(chunks) / batch_size)

        for start in range(0, len(chunks), batch_size):
            batch = chunks[start:start + batch_size]
            vectors = await self._embedder.embed([c.text for c in batch])

            records = [
                IndexedRecord(id=chunk.chunk_id, vector=vector, metadata=chunk.metadata)
                for chunk, vector in zip(batch, vectors)
            ]

            if self._config.dry_run:
                logger.info(
                    "[DRY RUN] Would upsert %d vectors for %s (chunks %d-%d)",
                    len(records), source, start, start + len(records) - 1,
                )
            else:
                report.upserted += await self._index.upsert(records, self._namespace)
                logger.debug(
                    "Upserted batch %d/%d for %s", report.batches + 1, total_batches, source,
                )

            report.batches += 1

        logger.info(
            "Ingested %s: %d chunks in %d batches",
            source, report.chunk_count, report.batches,
        )
        return report

    async def ingest_documents(self, documents: list[Document]) -> IngestionReport:
        """Ingest already-loaded documents, one at a time."""
        report = IngestionReport(dry_run=self._config.dry_run)
        for document in documents:
            report.documents.append(await self._ingest_one(document))
        return report

    async def ingest_directory(
        self,
        docs_dir: Union[str, Path],
        loader: Optional[BaseLoader] = None,
    ) -> IngestionReport:
        """
        Load and ingest every supported file under docs_dir.

        Files are processed sequentially in sorted path order. Unreadable
        files are skipped; see the module docstring for how other failures
        are handled.
        """
        loader = loader or FileLoader(root=docs_dir)
        paths = iter_document_paths(docs_dir, skip_pdf=self._config.skip_pdf)
        report = IngestionReport(dry_run=self._config.dry_run)

        if not paths:
            logger.warning("No documents found in %s", docs_dir)
            return report

        logger.info("Found %d documents in %s", len(paths), docs_dir)

        for path in paths:
            try:
                document = loader.load(path)
            except MalformedDocumentError as e:
                logger.warning("Skipping unreadable document %s: %s", path, e)
                report.documents.append(
                    DocumentReport(source=e.source or str(path), status="skipped", error=e.message)
                )
                continue

            if document is None:
                report.documents.append(DocumentReport(source=str(path), status="skipped"))
                continue

            report.documents.append(await self._ingest_one(document))

        logger.info(
            "Ingestion finished: %d ingested, %d skipped, %d failed, %d chunks",
            len(report.ingested), len(report.skipped), len(report.failed), report.total_chunks,
        )
        return report

    async def _ingest_one(self, document: Document) -> DocumentReport:
        source = document.metadata.get("source", "")
        try:
            return await self.ingest_document(document)
        except EmbeddingError as e:
            logger.error("Failed to embed %s: %s", source, e)
            return DocumentReport(source=source, status="failed", error=str(e))
