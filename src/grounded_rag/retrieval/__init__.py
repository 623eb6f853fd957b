"""
Retrieval components.

Usage:
    from grounded_rag.retrieval import Retriever, merge_matches
"""

from .search import Retriever, merge_matches

__all__ = ["Retriever", "merge_matches"]
