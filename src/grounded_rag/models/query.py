"""
Query classification models.

The router classifies each question before retrieval so the retriever
knows whether to look for one best chunk or widen recall for a list.
"""

from enum import Enum

from pydantic import BaseModel, Field


class QueryIntent(str, Enum):
    """
    What kind of answer the question is after.

    SINGLE_FACT: one specific answer ("how do I schedule a visit")
    AGGREGATION: a collection of facts spread across many chunks
                 ("list all internship placements")
    """

    SINGLE_FACT = "single_fact"
    AGGREGATION = "aggregation"


class IntentClassification(BaseModel):
    """Result of classifying a question."""

    intent: QueryIntent
    matched_breadth: list[str] = Field(
        default_factory=list,
        description="Breadth keywords found in the question",
    )
    matched_domain: list[str] = Field(
        default_factory=list,
        description="Domain keywords found in the question",
    )

    @property
    def is_aggregation(self) -> bool:
        return self.intent == QueryIntent.AGGREGATION
