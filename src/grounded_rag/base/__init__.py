from .extractor import BaseEntityExtractor
from .generator import BaseGenerator
from .indexer import BaseChunker, BaseLoader
from .retriever import BaseRetriever
from .router import BaseRouter

__all__ = [
    "BaseChunker",
    "BaseEntityExtractor",
    "BaseGenerator",
    "BaseLoader",
    "BaseRetriever",
    "BaseRouter",
]
