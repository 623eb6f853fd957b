"""Tests for generation: uses a stub LLM to avoid API calls."""

from unittest.mock import MagicMock, patch

import pytest
from langchain_core.messages import AIMessage
from langchain_core.runnables import RunnableLambda

from grounded_rag.config import GenerationConfig, LLMConfig
from grounded_rag.generation.generate import GroundedGenerator, collect_sources, format_context
from grounded_rag.models.result import GenerationResult, RetrievalResult
from conftest import make_match


def _stub_llm(answer: str = "Schedule a visit online."):
    """A runnable chat model stand-in that records the prompts it receives."""
    prompts = []

    def respond(prompt):
        prompts.append(prompt.to_string())
        return AIMessage(content=answer)

    return RunnableLambda(respond), prompts


@pytest.fixture
def retrieval():
    return RetrievalResult(
        matches=[
            make_match("a", 0.91, url="https://example.edu/visit", text="Book a tour on the visit page."),
            make_match("b", 0.88, url="https://example.edu/visit", text="Tours run on weekdays."),
            make_match("c", 0.80, text="Parking is free for visitors."),
        ],
        top_score=0.91,
        below_threshold=False,
        threshold=0.75,
    )


class TestGroundedGenerator:

    async def test_generates_from_context(self, retrieval):
        llm, prompts = _stub_llm()
        generator = GroundedGenerator(LLMConfig(model_name="gpt-4o-mini"), llm=llm)

        result = await generator.generate("how do I schedule a visit", retrieval)

        assert isinstance(result, GenerationResult)
        assert result.answer == "Schedule a visit online."
        assert result.grounded
        assert result.model == "openai/gpt-4o-mini"
        assert "Source: https://example.edu/visit\nBook a tour on the visit page." in prompts[0]
        assert "Source: c.md\nParking is free for visitors." in prompts[0]
        assert "Question: how do I schedule a visit" in prompts[0]

    async def test_sources_are_deduplicated(self, retrieval):
        llm, _ = _stub_llm()
        result = await GroundedGenerator(llm=llm).generate("q", retrieval)

        assert [s.url for s in result.sources] == ["https://example.edu/visit"]
        assert result.sources[0].score == 0.91

    async def test_below_threshold_returns_fallback_without_llm(self):
        llm = MagicMock()
        generator = GroundedGenerator(config=GenerationConfig(fallback_answer="Not found."), llm=llm)
        retrieval = RetrievalResult(matches=[make_match("a", 0.3)], top_score=0.3, below_threshold=True)

        result = await generator.generate("what's for lunch", retrieval)

        assert result.answer == "Not found."
        assert result.sources == []
        assert not result.grounded
        llm.assert_not_called()

    async def test_aggregation_asks_for_a_list(self, retrieval):
        llm, prompts = _stub_llm("- Hotel Indigo")
        retrieval.is_aggregation = True

        await GroundedGenerator(llm=llm).generate("list all internship placements", retrieval)

        assert "bulleted list" in prompts[0]

    @patch("grounded_rag.generation.generate.get_llm")
    def test_builds_llm_from_config(self, mock_get_llm):
        config = LLMConfig(model_name="gpt-4o")
        GroundedGenerator(config)
        mock_get_llm.assert_called_once_with(config)


def test_format_context():
    context = format_context([make_match("a", 0.9, url="https://x", text="one"), make_match("b", 0.8, text="two")])
    assert context == "Source: https://x\none\n\n---\n\nSource: b.md\ntwo"


def test_collect_sources_limit():
    matches = [make_match(str(i), 1 - i / 10, url=f"https://example.edu/{i}") for i in range(5)]
    assert [s.url for s in collect_sources(matches, 3)] == [
        "https://example.edu/0",
        "https://example.edu/1",
        "https://example.edu/2",
    ]
