"""
Answer generation from retrieved context.

This is the final stage: take the question + retrieved matches and
produce an answer grounded in them.

The generator also owns the "I don't know" boundary. When retrieval
reports below_threshold, the fixed fallback answer is returned and the
LLM is never called, so an answer can only be produced from content the
retriever judged relevant.

Context format (one block per match, most relevant first):

    Source: https://example.edu/visit
    <chunk text>

    ---

    Source: handbook.pdf
    <chunk text>

Usage:
    from grounded_rag.generation.generate import GroundedGenerator

    generator = GroundedGenerator(llm_config=LLMConfig())
    result = await generator.generate("how do I schedule a visit?", retrieval)
    print(result.answer, [s.url for s in result.sources])
"""

import logging
from typing import Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.prompts import PromptTemplate

from grounded_rag.base.generator import BaseGenerator
from grounded_rag.config import GenerationConfig, LLMConfig
from grounded_rag.models.document import Match
from grounded_rag.models.result import GenerationResult, RetrievalResult, SourceRef
from grounded_rag.utils.helpers import get_llm

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n\n---\n\n"

_LIST_INSTRUCTION = (
    "- The question asks for several items. Answer with a bulleted list of "
    "every distinct item found in the context, and do not stop at the first few.\n"
)
_SINGLE_INSTRUCTION = "- Answer concisely in a few sentences.\n"


def format_context(matches: list[Match]) -> str:
    """Render matches as "Source: ...\\n<text>" blocks separated by ---."""
    return CONTEXT_SEPARATOR.join(
        f"Source: {m.source or 'unknown'}\n{m.text}" for m in matches
    )


def collect_sources(matches: list[Match], limit: int) -> list[SourceRef]:
    """Unique page URLs in match order, at most limit of them."""
    sources: list[SourceRef] = []
    seen: set[str] = set()
    for match in matches:
        url = match.metadata.url
        if not url or url in seen:
            continue
        seen.add(url)
        sources.append(SourceRef(url=url, score=match.score, source=match.metadata.source))
    return sources[:limit]


class GroundedGenerator(BaseGenerator):
    """
    RAG generator that answers only from retrieved context.

    How it works:
        1. below_threshold → fixed fallback answer, no LLM call
        2. Otherwise format matches as Source-tagged context blocks
        3. Prompt the LLM to answer from that context only (as a list for
           aggregation questions)
        4. Return the answer with deduplicated source URLs

    Args:
        llm_config: Which chat model to use.
        config: Fallback answer text and source limit.
        llm: A ready chat model; skips get_llm() (used by tests).
    """

    def __init__(
        self,
        llm_config: Optional[LLMConfig] = None,
        config: Optional[GenerationConfig] = None,
        llm: Optional[BaseChatModel] = None,
    ):
        llm_config = llm_config or LLMConfig()
        self._config = config or GenerationConfig()
        self._llm = llm if llm is not None else get_llm(llm_config)
        self._model_name = f"{llm_config.provider.value}/{llm_config.model_name}"

        self._prompt = PromptTemplate(
            input_variables=["context", "question", "format_instruction"],
            template=(
                "You are a helpful assistant for a university academic program. "
                "Answer the question using only the context below.\n\n"
                "Context:\n{context}\n\n"
                "Question: {question}\n\n"
                "Instructions:\n"
                "- Use only facts stated in the context.\n"
                "- If the context does not contain the answer, say you couldn't find it.\n"
                "{format_instruction}"
                "- Mention the source page when it helps the reader.\n\n"
                "Answer:"
            ),
        )

    def fallback(self) -> GenerationResult:
        return GenerationResult(
            answer=self._config.fallback_answer,
            sources=[],
            model="",
            grounded=False,
        )

    async def generate(self, question: str, retrieval: RetrievalResult) -> GenerationResult:
        if retrieval.below_threshold or not retrieval.matches:
            logger.info(
                "Retrieval below threshold (top_score=%.4f < %.4f), returning fallback answer",
                retrieval.top_score, retrieval.threshold,
            )
            return self.fallback()

        chain = self._prompt | self._llm
        response = await chain.ainvoke({
            "context": format_context(retrieval.matches),
            "question": question,
            "format_instruction": (
                _LIST_INSTRUCTION if retrieval.is_aggregation else _SINGLE_INSTRUCTION
            ),
        })

        # LangChain chat models return AIMessage objects; extract the text
        answer = response.content if hasattr(response, "content") else str(response)

        return GenerationResult(
            answer=answer,
            sources=collect_sources(retrieval.matches, self._config.max_sources),
            model=self._model_name,
            grounded=True,
        )
