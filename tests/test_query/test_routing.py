"""Tests for query routing: keyword rules, no API calls."""

import pytest

from grounded_rag.config import RoutingConfig
from grounded_rag.models.query import QueryIntent
from grounded_rag.query.routing import AggregationRouter


@pytest.fixture
def router(routing_config):
    return AggregationRouter(routing_config)


class TestAggregationRouter:

    @pytest.mark.parametrize("question", [
        "list all internship placements",
        "What are the top internship sites?",
        "Where have students done internships?",
        "Give me examples of internship companies",
        "Which organizations offer INTERNSHIPS?",
    ])
    def test_aggregation_questions(self, router, question):
        result = router.classify(question)
        assert result.intent == QueryIntent.AGGREGATION
        assert result.is_aggregation

    @pytest.mark.parametrize("question", [
        "how do I schedule a visit",
        "What is the application deadline?",
        "list the office hours",
        "Do I need an internship to graduate?",
    ])
    def test_single_fact_questions(self, router, question):
        assert router.classify(question).intent == QueryIntent.SINGLE_FACT

    def test_reports_matched_keywords(self, router):
        result = router.classify("list all internship placements")
        assert "list" in result.matched_breadth
        assert "all" in result.matched_breadth
        assert "internship" in result.matched_domain

    def test_whole_words_only(self, router):
        # "stop" contains "top", "ball" contains "all"
        result = router.classify("stop the ball internship")
        assert result.matched_breadth == []
        assert not result.is_aggregation

    def test_is_deterministic(self, router):
        question = "list all internship placements"
        assert router.classify(question) == router.classify(question)

    def test_custom_keywords(self):
        router = AggregationRouter(RoutingConfig(breadth_keywords=["which"], domain_keywords=["scholarship"]))
        assert router.classify("Which scholarships can I apply for?").is_aggregation
        assert not router.classify("list all internship placements").is_aggregation
