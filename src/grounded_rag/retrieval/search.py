"""
Vector retrieval with an aggregation fan-out.

The retriever asks the router what kind of question it has, then takes
one of two paths:

    Single-fact path
        embed the question → query top_k → compare the best score
        with similarity_threshold

    Aggregation path ("list all internship placements")
        embed the question AND each broadened aggregation query → query
        top_k for each → merge, dedupe by id (first occurrence wins),
        sort by score → keep aggregation_multiplier * top_k → compare
        with the relaxed threshold

A single nearest-neighbour query is tuned for "does the top match answer
this question". A list question has no single best chunk; the facts are
spread over many documents, so recall is widened on purpose and the
acceptance threshold is loosened to match.

Falling below the threshold is reported through
RetrievalResult.below_threshold. Upstream failures are never turned into
an empty result; they propagate as EmbeddingError / VectorIndexError.

Usage:
    from grounded_rag.retrieval.search import Retriever

    retriever = Retriever(embedder, index, RetrieverConfig(), AggregationRouter())
    result = await retriever.retrieve("how do I schedule a visit?")
    if result.below_threshold:
        ...
"""

import asyncio
import logging
from typing import Optional

from grounded_rag.base.retriever import BaseRetriever
from grounded_rag.base.router import BaseRouter
from grounded_rag.config import RetrieverConfig
from grounded_rag.indexing.embeddings import Embedder
from grounded_rag.indexing.vectorstore import VectorIndex
from grounded_rag.models.document import Match
from grounded_rag.models.result import RetrievalResult
from grounded_rag.query.routing import AggregationRouter

logger = logging.getLogger(__name__)


class Retriever(BaseRetriever):
    """
    Routes a question to the single-fact or aggregation retrieval path.

    Args:
        embedder: Embeds the question and the broadened queries.
        index: Vector index to search.
        config: top_k, thresholds and the aggregation query list.
        router: Intent classifier; defaults to AggregationRouter().
        namespace: Namespace to search; defaults to the index's configured one.
    """

    def __init__(
        self,
        embedder: Embedder,
        index: VectorIndex,
        config: Optional[RetrieverConfig] = None,
        router: Optional[BaseRouter] = None,
        namespace: Optional[str] = None,
    ):
        self._embedder = embedder
        self._index = index
        self._config = config or RetrieverConfig()
        self._router = router or AggregationRouter()
        self._namespace = namespace or index.config.namespace

    async def retrieve(self, question: str, top_k: Optional[int] = None) -> RetrievalResult:
        top_k = top_k or self._config.top_k
        classification = self._router.classify(question)

        if classification.is_aggregation:
            logger.debug(
                "Aggregation question (breadth=%s, domain=%s)",
                classification.matched_breadth, classification.matched_domain,
            )
            return await self._retrieve_aggregation(question, top_k)

        return await self._retrieve_single(question, top_k)

    async def _retrieve_single(self, question: str, top_k: int) -> RetrievalResult:
        vector = await self._embedder.embed_query(question)
        matches = await self._index.query(vector, top_k, self._namespace)

        return self._decide(
            matches,
            threshold=self._config.similarity_threshold,
            is_aggregation=False,
            queries=[question],
        )

    async def _retrieve_aggregation(self, question: str, top_k: int) -> RetrievalResult:
        queries = [question] + [q for q in self._config.aggregation_queries if q != question]

        tasks = [asyncio.create_task(self._search(query, top_k)) for query in queries]
        try:
            # gather keeps results in query order
            per_query = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        merged = merge_matches(per_query)
        limit = self._config.aggregation_multiplier * top_k

        return self._decide(
            merged[:limit],
            threshold=self._config.aggregation_threshold,
            is_aggregation=True,
            queries=queries,
        )

    async def _search(self, query: str, top_k: int) -> list[Match]:
        vector = await self._embedder.embed_query(query)
        return await self._index.query(vector, top_k, self._namespace)

    def _decide(
        self,
        matches: list[Match],
        threshold: float,
        is_aggregation: bool,
        queries: list[str],
    ) -> RetrievalResult:
        top_score = matches[0].score if matches else 0.0
        below = not matches or top_score < threshold

        logger.debug(
            "Retrieved %d matches, top_score=%.4f, threshold=%.4f, below_threshold=%s",
            len(matches), top_score, threshold, below,
        )
        for match in matches:
            logger.debug(
                "  %.4f %s %s (%d chars)",
                match.score, match.id, match.source or "unknown", len(match.text),
            )

        return RetrievalResult(
            matches=matches,
            top_score=top_score,
            below_threshold=below,
            is_aggregation=is_aggregation,
            threshold=threshold,
            queries_used=queries,
        )


def merge_matches(results: list[list[Match]]) -> list[Match]:
    """
    Merge several ranked match lists into one.

    Deduplicates by record id, keeping the first occurrence in the order
    the lists are given, then sorts by descending score. The sort is
    stable, so ties keep their merge order.
    """
    seen: set[str] = set()
    merged: list[Match] = []

    for matches in results:
        for match in matches:
            if match.id in seen:
                continue
            seen.add(match.id)
            merged.append(match)

    merged.sort(key=lambda m: m.score, reverse=True)
    return merged
