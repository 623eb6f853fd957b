"""
Query routing: decide which retrieval path handles a question.

Most questions have one answer sitting in one chunk ("how do I schedule
a visit"), and a plain nearest-neighbour query finds it. List-style
questions ("list all internship placements") need facts scattered over
many chunks, and a single query vector only reaches a few of them. The
router spots the second kind so the retriever can fan out.

Usage:
    from grounded_rag.query.routing import AggregationRouter
    from grounded_rag.config import RoutingConfig

    router = AggregationRouter(RoutingConfig())
    router.classify("list all internship placements").is_aggregation   # True
    router.classify("how do I schedule a visit").is_aggregation        # False
"""

import re
from typing import Optional

from grounded_rag.base.router import BaseRouter
from grounded_rag.config import RoutingConfig
from grounded_rag.models.query import IntentClassification, QueryIntent


def _compile(keywords: list[str]) -> list[tuple[str, re.Pattern]]:
    """Whole-word, case-insensitive patterns that also accept a plural suffix."""
    return [
        (keyword, re.compile(rf"\b{re.escape(keyword)}(?:s|es)?\b", re.IGNORECASE))
        for keyword in keywords
    ]


class AggregationRouter(BaseRouter):
    """
    Keyword router for aggregation questions.

    No LLM call: two keyword tables from RoutingConfig. A question is an
    AGGREGATION question only when it contains a breadth keyword ("list",
    "all", "examples of", ...) AND a domain keyword ("internship", ...).
    Either alone is not enough: "list the office hours" has breadth but
    no domain the fan-out queries are written for.

    Limitations:
        - Surface keywords only; paraphrases without them are missed
        - The domain table has to match the corpus the fan-out queries target
    """

    def __init__(self, config: Optional[RoutingConfig] = None):
        self._config = config or RoutingConfig()
        self._breadth = _compile(self._config.breadth_keywords)
        self._domain = _compile(self._config.domain_keywords)

    def classify(self, question: str) -> IntentClassification:
        breadth = [kw for kw, pattern in self._breadth if pattern.search(question)]
        domain = [kw for kw, pattern in self._domain if pattern.search(question)]

        intent = QueryIntent.AGGREGATION if breadth and domain else QueryIntent.SINGLE_FACT

        return IntentClassification(
            intent=intent,
            matched_breadth=breadth,
            matched_domain=domain,
        )
