"""
Command-line entry point.

Usage:
    grounded-rag ingest [DOCS_DIR] [--dry] [--recreate-index] [--skip-pdf] [--purge]
    grounded-rag query "how do I schedule a visit?" [--top-k 8] [--answer]
    grounded-rag extract [DOCS_DIR] [--patterns FILE]

Credentials and index identifiers come from the environment or a .env
file (OPENAI_API_KEY, PINECONE_API_KEY, PINECONE_INDEX_NAME, ...).

Exit codes: 0 on normal completion, 1 on missing configuration or an
unrecoverable setup error.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from grounded_rag.config import PipelineConfig, Settings, VectorStoreType
from grounded_rag.exceptions import (
    ConfigurationError,
    RAGPipelineError,
    UpstreamServiceError,
    VectorIndexError,
)
from grounded_rag.extraction.entities import RegexEntityExtractor, load_entity_patterns
from grounded_rag.generation.generate import GroundedGenerator
from grounded_rag.indexing.chunking import SlidingWindowChunker
from grounded_rag.indexing.embeddings import Embedder, get_embedding_model
from grounded_rag.indexing.loaders import FileLoader, iter_document_paths
from grounded_rag.indexing.pipeline import IngestionPipeline
from grounded_rag.indexing.vectorstore import create_vector_index
from grounded_rag.query.routing import AggregationRouter
from grounded_rag.retrieval.search import Retriever
from grounded_rag.utils.logger import configure_logging

logger = logging.getLogger(__name__)

DEFAULT_DOCS_DIR = "docs"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grounded-rag",
        description="Ingest documents into a vector index and query them",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Chunk, embed and upsert a docs directory")
    ingest.add_argument("docs_dir", nargs="?", default=DEFAULT_DOCS_DIR, help="Directory of .md/.txt/.pdf files")
    ingest.add_argument("--dry", action="store_true", help="Chunk and embed, but only log the upserts")
    ingest.add_argument("--recreate-index", action="store_true", help="Delete and recreate the index first")
    ingest.add_argument("--skip-pdf", action="store_true", help="Ignore .pdf files")
    ingest.add_argument("--purge", action="store_true", help="Delete every record in the namespace first")
    ingest.add_argument("--batch-size", type=int, default=10, help="Chunks per embedding/upsert batch")
    ingest.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    query = subparsers.add_parser("query", help="Show what retrieval returns for a question")
    query.add_argument("question", help="The question to retrieve for")
    query.add_argument("--top-k", type=int, default=None, help="Matches per index query")
    query.add_argument("--answer", action="store_true", help="Also generate an answer")
    query.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    extract = subparsers.add_parser("extract", help="List organizations mentioned in a docs directory")
    extract.add_argument("docs_dir", nargs="?", default=DEFAULT_DOCS_DIR, help="Directory of .md/.txt/.pdf files")
    extract.add_argument("--patterns", default=None, help="JSON file of extraction patterns")
    extract.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    return parser


async def run_ingest(args: argparse.Namespace, settings: Settings) -> int:
    docs_dir = Path(args.docs_dir)
    if not docs_dir.is_dir():
        logger.error("Docs directory not found: %s", docs_dir)
        return 1

    config = settings.to_pipeline_config()
    try:
        config.embedding.batch_size = args.batch_size
        config.ingestion.batch_size = args.batch_size
        config.ingestion.dry_run = args.dry
        config.ingestion.skip_pdf = args.skip_pdf
        config.ingestion.purge = args.purge
        config.ingestion.recreate_index = args.recreate_index
    except ValidationError as e:
        raise ConfigurationError(f"Invalid ingest option: {e}") from e

    if args.dry:
        # Nothing is written, so no index credentials are needed.
        settings.require("openai_api_key")
        config.vector_store.store_type = VectorStoreType.MEMORY
        logger.info("[DRY RUN] No records will be written")
    else:
        settings.require("openai_api_key", "pinecone_api_key", "pinecone_index_name")

    index = create_vector_index(config.vector_store, api_key=settings.pinecone_api_key)
    pipeline = IngestionPipeline(
        chunker=SlidingWindowChunker(config.chunking),
        embedder=Embedder(get_embedding_model(config.embedding), config.embedding),
        index=index,
        config=config.ingestion,
    )

    try:
        await index.ensure_index(recreate=config.ingestion.recreate_index)
        if config.ingestion.purge:
            await pipeline.purge()
    except VectorIndexError as e:
        logger.error("Vector index setup failed: %s", e)
        return 1

    try:
        report = await pipeline.ingest_directory(docs_dir)
    except VectorIndexError as e:
        logger.error("Ingestion aborted: %s", e)
        return 1

    print(f"Documents ingested: {len(report.ingested)}")
    print(f"Documents skipped:  {len(report.skipped)}")
    print(f"Documents failed:   {len(report.failed)}")
    print(f"Chunks:             {report.total_chunks}")
    print(f"Vectors upserted:   {report.total_upserted}{' (dry run)' if report.dry_run else ''}")
    for failed in report.failed:
        print(f"  - {failed.source}: {failed.error}")
    return 0


async def run_query(args: argparse.Namespace, settings: Settings) -> int:
    settings.require("openai_api_key", "pinecone_api_key", "pinecone_index_name")
    config: PipelineConfig = settings.to_pipeline_config()
    if args.top_k is not None:
        try:
            config.retriever.top_k = args.top_k
        except ValidationError as e:
            raise ConfigurationError(f"Invalid query option: {e}") from e

    retriever = Retriever(
        embedder=Embedder(get_embedding_model(config.embedding), config.embedding),
        index=create_vector_index(config.vector_store, api_key=settings.pinecone_api_key),
        config=config.retriever,
        router=AggregationRouter(config.routing),
    )
    result = await retriever.retrieve(args.question)

    print(f"Question:        {args.question}")
    print(f"Aggregation:     {result.is_aggregation}")
    print(f"Top score:       {result.top_score:.4f} (threshold {result.threshold:.4f})")
    print(f"Below threshold: {result.below_threshold}")
    print(f"Matches:         {len(result.matches)}")
    for match in result.matches:
        preview = match.text[:80].replace("\n", " ")
        print(f"  {match.score:.4f}  {match.source or 'unknown'}  {preview}")

    if args.answer:
        generator = GroundedGenerator(config.llm, config.generation)
        generation = await generator.generate(args.question, result)
        print()
        print(generation.answer)
        for source in generation.sources:
            print(f"  [{source.score:.2f}] {source.url}")
    return 0


def run_extract(args: argparse.Namespace) -> int:
    docs_dir = Path(args.docs_dir)
    if not docs_dir.is_dir():
        logger.error("Docs directory not found: %s", docs_dir)
        return 1

    extractor = RegexEntityExtractor(load_entity_patterns(args.patterns))
    loader = FileLoader(root=docs_dir)
    found: dict[str, str] = {}

    for path in iter_document_paths(docs_dir):
        try:
            document = loader.load(path)
        except RAGPipelineError as e:
            logger.warning("Skipping %s: %s", path, e)
            continue
        if document is None:
            continue
        for candidate in extractor.extract(document.page_content, source=document.metadata["source"]):
            key = candidate.organization.lower()
            if key in found:
                continue
            department = f" ({candidate.department})" if candidate.department else ""
            found[key] = f"{candidate.organization}{department}  [{candidate.source}]"

    print(f"Found {len(found)} organizations")
    for line in sorted(found.values(), key=str.lower):
        print(f"  {line}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = Settings()
    except ValidationError as e:
        configure_logging("DEBUG" if args.verbose else "INFO")
        logger.error("Invalid environment settings: %s", e)
        return 1
    configure_logging("DEBUG" if args.verbose else settings.log_level)

    try:
        if args.command == "ingest":
            return asyncio.run(run_ingest(args, settings))
        if args.command == "query":
            return asyncio.run(run_query(args, settings))
        return run_extract(args)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 1
    except UpstreamServiceError as e:
        logger.error("Upstream service failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
