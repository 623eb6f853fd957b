"""
Document loaders.

Turns files in the docs directory into LangChain Documents. The corpus
is a mix of converted PDFs and scraped web pages saved as Markdown; a
scraped page starts with an optional "# Title" line and a
"Source: <url>" line, which becomes the document's url.

    docs/
        handbook.pdf
        web/
            visit.md        # "# Visit Us\n\nSource: https://.../visit\n\n..."

Usage:
    from grounded_rag.indexing.loaders import FileLoader, iter_document_paths

    loader = FileLoader(root="docs")
    for path in iter_document_paths("docs"):
        document = loader.load(path)
"""

import logging
import re
from pathlib import Path
from typing import Optional, Union

from langchain_core.documents import Document

from grounded_rag.base.indexer import BaseLoader
from grounded_rag.exceptions import MalformedDocumentError

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = {".md", ".markdown", ".txt"}
PDF_EXTENSIONS = {".pdf"}
SUPPORTED_EXTENSIONS = TEXT_EXTENSIONS | PDF_EXTENSIONS

_SOURCE_LINE = re.compile(r"^(?:#[^\n]*\n+)?Source:\s*(https?://\S+)")


def extract_source_url(text: str) -> Optional[str]:
    """Return the URL from a leading "Source: <url>" line, if there is one."""
    match = _SOURCE_LINE.match(text.lstrip())
    return match.group(1) if match else None


def iter_document_paths(docs_dir: Union[str, Path], skip_pdf: bool = False) -> list[Path]:
    """
    List loadable files under docs_dir, recursively, in sorted order.

    Hidden files and directories are ignored.
    """
    root = Path(docs_dir)
    extensions = TEXT_EXTENSIONS if skip_pdf else SUPPORTED_EXTENSIONS

    paths = []
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        if any(part.startswith(".") for part in path.relative_to(root).parts):
            continue
        if path.suffix.lower() in extensions:
            paths.append(path)
    return paths


class FileLoader(BaseLoader):
    """
    Loads .md/.txt files as UTF-8 and .pdf files through PyPDFLoader.

    The Document's "source" metadata is the path relative to root (POSIX
    separators) so ids stay stable no matter where the docs directory is
    mounted. "url" is set when the text starts with a Source line.
    """

    def __init__(self, root: Optional[Union[str, Path]] = None):
        self._root = Path(root) if root is not None else None

    def source_id(self, path: Path) -> str:
        if self._root is not None:
            try:
                return path.resolve().relative_to(self._root.resolve()).as_posix()
            except ValueError:
                pass
        return path.as_posix()

    def load(self, source: Union[str, Path]) -> Optional[Document]:
        path = Path(source)
        if self._root is not None and not path.is_absolute() and not path.exists():
            path = self._root / path

        extension = path.suffix.lower()
        if extension not in SUPPORTED_EXTENSIONS:
            logger.info("Skipping unsupported file type: %s", path)
            return None

        source_id = self.source_id(path)

        try:
            if extension in PDF_EXTENSIONS:
                text = self._read_pdf(path)
            else:
                text = path.read_text(encoding="utf-8", errors="replace")
        except Exception as e:
            raise MalformedDocumentError(
                f"Could not read document: {e}",
                source=source_id,
                details={"error_type": type(e).__name__},
            ) from e

        metadata = {"source": source_id}
        url = extract_source_url(text)
        if url:
            metadata["url"] = url

        return Document(page_content=text, metadata=metadata)

    def _read_pdf(self, path: Path) -> str:
        """Extract the text of every page, joined by blank lines."""
        from langchain_community.document_loaders import PyPDFLoader

        pages = PyPDFLoader(str(path)).load()
        return "\n\n".join(page.page_content for page in pages)
