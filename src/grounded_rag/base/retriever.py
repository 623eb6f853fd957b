"""
Abstract base class for retrievers.

A retriever takes a question and returns a RetrievalResult: ranked
matches plus the threshold decision. Retrievers are stateless per call.
"""

from abc import ABC, abstractmethod
from typing import Optional

from grounded_rag.models.result import RetrievalResult


class BaseRetriever(ABC):
    """Contract for retrievers."""

    @abstractmethod
    async def retrieve(self, question: str, top_k: Optional[int] = None) -> RetrievalResult:
        """
        Retrieve matches for a natural language question.

        Args:
            question: The user's question.
            top_k: Matches per index query; defaults to the configured value.

        Returns:
            RetrievalResult with matches (descending score), top_score,
            below_threshold and is_aggregation.

        Raises:
            UpstreamServiceError: If embedding or index calls fail. Errors
                are never turned into an empty result.
        """
        ...
