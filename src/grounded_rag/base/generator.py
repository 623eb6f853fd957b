"""
Abstract base class for answer generators.

The generator is the final stage. It takes a RetrievalResult and
produces an answer. It is also where a retrieval miss turns into the
fixed "couldn't find that" answer, so an ungrounded generation can
never slip through.
"""

from abc import ABC, abstractmethod

from grounded_rag.models.result import GenerationResult, RetrievalResult


class BaseGenerator(ABC):
    """Contract for answer generators."""

    @abstractmethod
    async def generate(self, question: str, retrieval: RetrievalResult) -> GenerationResult:
        """
        Generate an answer from retrieved matches.

        Args:
            question: The original user question.
            retrieval: Output of a retriever.

        Returns:
            GenerationResult with the answer and deduplicated sources.
        """
        ...
