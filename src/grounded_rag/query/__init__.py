"""
Query-side components.

Usage:
    from grounded_rag.query import AggregationRouter
"""

from .routing import AggregationRouter

__all__ = ["AggregationRouter"]
