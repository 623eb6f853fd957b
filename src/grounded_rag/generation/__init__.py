"""
Answer generation.

Usage:
    from grounded_rag.generation import GroundedGenerator
"""

from .generate import GroundedGenerator, collect_sources, format_context

__all__ = ["GroundedGenerator", "collect_sources", "format_context"]
