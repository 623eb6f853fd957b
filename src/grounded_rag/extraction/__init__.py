"""
Entity extraction.

Usage:
    from grounded_rag.extraction import RegexEntityExtractor, load_entity_patterns
"""

from .entities import EntityPatterns, RegexEntityExtractor, load_entity_patterns

__all__ = ["EntityPatterns", "RegexEntityExtractor", "load_entity_patterns"]
