"""
Abstract base classes for document loading and chunking.

Loading and chunking are separate so either can be swapped:
    loader = FileLoader()
    chunker = SlidingWindowChunker(config)
    chunks = chunker.chunk(loader.load("docs/web/visit.md"))
"""

from abc import ABC, abstractmethod
from typing import Optional

from langchain_core.documents import Document

from grounded_rag.config import ChunkingConfig
from grounded_rag.models.document import Chunk


class BaseLoader(ABC):
    """
    Contract for document loaders.

    A loader takes a source and returns one LangChain Document whose
    metadata carries "source" and, when known, "url". Returns None for
    sources it does not handle. The loader does NOT chunk.
    """

    @abstractmethod
    def load(self, source: str) -> Optional[Document]:
        """
        Load one document.

        Raises:
            MalformedDocumentError: If the source exists but cannot be read.
        """
        ...


class BaseChunker(ABC):
    """
    Contract for document chunkers.

    A chunker turns one Document into ordered Chunks with index,
    total_chunks and a deterministic chunk_id filled in.
    """

    def __init__(self, config: ChunkingConfig):
        self.config = config

    @abstractmethod
    def chunk(self, document: Document) -> list[Chunk]:
        ...
