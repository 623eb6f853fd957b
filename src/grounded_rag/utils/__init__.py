"""
Utility functions.

Usage:
    from grounded_rag.utils import configure_logging, get_llm
"""

from .helpers import get_llm
from .logger import configure_logging

__all__ = ["configure_logging", "get_llm"]
