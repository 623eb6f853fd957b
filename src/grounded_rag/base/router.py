"""
Abstract base class for query routers.

The router looks at a question and decides which retrieval path should
handle it: a single nearest-neighbour query, or a fan-out of several
queries for list-style questions. Keeping it separate lets a
model-based classifier replace the keyword heuristic without touching
the retriever.
"""

from abc import ABC, abstractmethod

from grounded_rag.models.query import IntentClassification


class BaseRouter(ABC):
    """Contract for query routers."""

    @abstractmethod
    def classify(self, question: str) -> IntentClassification:
        """
        Classify a question's intent.

        Must be deterministic: the same question always gets the same intent.
        """
        ...
