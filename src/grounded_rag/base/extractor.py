"""
Abstract base class for entity extractors.

Extraction is best-effort pattern matching over noisy text. The
interface lets a regex strategy be swapped for a model-based one.
"""

from abc import ABC, abstractmethod

from grounded_rag.models.entity import EntityCandidate


class BaseEntityExtractor(ABC):
    """Contract for entity extractors."""

    @abstractmethod
    def extract(self, text: str, source: str = "") -> list[EntityCandidate]:
        """Return organization candidates found in text, deduplicated."""
        ...
