"""
Document chunking.

Splits long, messy source text (converted PDFs, scraped Markdown pages)
into overlapping segments that are small enough to embed cheaply, large
enough to carry meaning, and identical across repeated ingestion runs.

How a document is cut:

    1. Normalize: unify line endings, squeeze horizontal whitespace,
       cap blank-line runs at one blank line. Documents shorter than
       min_document_length after this are ignored; documents that fit in
       one window are returned whole.
    2. Slide a window of max_chars over the text. Unless the window
       reaches the end of the document, pull its end back to the best
       break point, tried in order (a sentence end further into the
       window beats an earlier paragraph break):
           paragraph break  (at or after 50% of max_chars)
           sentence end     (at or after 60%)
           line break       (at or after 70%)
           word boundary    (around 80%)
       Weaker boundaries get higher floors: a sentence end near the
       start of the window is worse than a raw cut near its end.
    3. Advance by (window span - overlap), never by less than
       min_chunk_size, so the loop always terminates in O(n) windows.
    4. Windows that trim down to less than min_chunk_size are skipped.
    5. A leading "Source: <url>" header (optionally under a "# Title"
       line) is re-prepended to every chunk after the first, so each
       chunk stays attributable on its own.
    6. Chunks with no run of 10+ letters outside the header (pure links
       or formatting) are dropped.

Usage:
    from grounded_rag.indexing.chunking import chunk_text, SlidingWindowChunker

    pieces = chunk_text(raw_text, max_chars=1200, overlap=200)

    chunker = SlidingWindowChunker(ChunkingConfig())
    chunks = chunker.chunk(document)   # → list[Chunk] with ids and metadata
"""

import hashlib
import logging
import re
from typing import Optional

from langchain_core.documents import Document

from grounded_rag.base.indexer import BaseChunker
from grounded_rag.models.document import Chunk, ChunkMetadata

logger = logging.getLogger(__name__)

MIN_CHUNK_SIZE = 400
MIN_DOCUMENT_LENGTH = 100

# Break-point floors, as fractions of max_chars
PARAGRAPH_FLOOR = 0.5
SENTENCE_FLOOR = 0.6
LINE_FLOOR = 0.7
WORD_TARGET = 0.8

# Stop once the window start is this close to the end of the text
_TAIL_SLACK = 50

_HORIZONTAL_WS = re.compile(r"[^\S\n]+")
_SPACE_AROUND_NEWLINE = re.compile(r" *\n *")
_BLANK_LINE_RUN = re.compile(r"\n{3,}")
_SENTENCE_END = re.compile(r"[.!?](?=\s+[A-Z]|\s*$)")
_WHITESPACE = re.compile(r"\s")
_SOURCE_HEADER = re.compile(r"^(#[^\n]+\n+)?Source:\s*(https?://\S+)")
_LEADING_SOURCE_LINE = re.compile(r"^.*?Source:\s*https?://\S+\n*", re.IGNORECASE)
_REAL_CONTENT = re.compile(r"[A-Za-z]{10,}")


def normalize_text(text: Optional[str]) -> str:
    """
    Clean raw document text before chunking.

    Line structure is kept (paragraph and line breaks drive the break
    cascade); runs of spaces and tabs become one space, and more than one
    blank line in a row becomes exactly one.
    """
    clean = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    clean = _HORIZONTAL_WS.sub(" ", clean)
    clean = _SPACE_AROUND_NEWLINE.sub("\n", clean)
    clean = _BLANK_LINE_RUN.sub("\n\n", clean)
    return clean.strip()


def detect_source_header(text: str) -> str:
    """Return the leading "[# Title]\\nSource: <url>" block, or "" if absent."""
    match = _SOURCE_HEADER.match(text)
    return match.group(0) if match else ""


def strip_source_header(chunk: str, header: str = "") -> str:
    """Remove an attribution header from the start of a chunk."""
    if header and chunk.startswith(header):
        return chunk[len(header):]
    return _LEADING_SOURCE_LINE.sub("", chunk, count=1)


def has_real_content(chunk: str, header: str = "") -> bool:
    """True if the chunk has at least one run of 10+ letters outside its header."""
    return bool(_REAL_CONTENT.search(strip_source_header(chunk, header)))


def find_break(window: str, max_chars: int) -> tuple[int, str]:
    """
    Find the best cut point inside a window.

    A paragraph break wins unless a sentence end past the sentence floor
    sits further into the window.

    Returns (offset, kind) where kind is "paragraph", "sentence", "line"
    or "word"; (-1, "") when the window has no usable boundary at all.
    """
    paragraph = window.rfind("\n\n")
    if paragraph < max_chars * PARAGRAPH_FLOOR:
        paragraph = -1

    sentence = -1
    for match in _SENTENCE_END.finditer(window):
        sentence = match.start() + 1
    if sentence < max_chars * SENTENCE_FLOOR:
        sentence = -1

    if paragraph != -1 and paragraph >= sentence:
        return paragraph, "paragraph"
    if sentence != -1:
        return sentence, "sentence"

    line = window.rfind("\n")
    if line != -1 and line >= max_chars * LINE_FLOOR:
        return line, "line"

    # Word boundary: end of the word that crosses the target, else the
    # last boundary before it.
    target = min(int(max_chars * WORD_TARGET), len(window))
    after = _WHITESPACE.search(window, target)
    if after:
        return after.start(), "word"
    before = max(window.rfind(" ", 0, target), window.rfind("\n", 0, target))
    if before != -1:
        return before, "word"

    return -1, ""


def chunk_text(
    text: Optional[str],
    max_chars: int = 1200,
    overlap: int = 200,
    *,
    min_chunk_size: int = MIN_CHUNK_SIZE,
    min_document_length: int = MIN_DOCUMENT_LENGTH,
) -> list[str]:
    """
    Split text into overlapping, boundary-aware chunks.

    Pure and deterministic: the same arguments always give the same list.

    Args:
        text: Raw document text.
        max_chars: Window size; no chunk body is longer than this.
        overlap: Characters shared between consecutive chunks.
        min_chunk_size: Shortest chunk that is emitted, and the minimum
            window advance.
        min_document_length: Shorter documents produce no chunks.

    Returns:
        Ordered chunk strings. Empty for empty or too-short input.

    Raises:
        ValueError: If overlap is not smaller than max_chars.
    """
    if overlap >= max_chars:
        raise ValueError(f"overlap ({overlap}) must be less than max_chars ({max_chars})")

    clean = normalize_text(text)
    if len(clean) < min_document_length:
        return []
    if len(clean) <= max_chars:
        return [clean]

    header = detect_source_header(clean)
    length = len(clean)
    chunks: list[str] = []
    start = 0

    while start < length:
        end = min(start + max_chars, length)

        if end < length:
            cut, kind = find_break(clean[start:end], max_chars)
            if cut > min_chunk_size:
                end = start + cut
                logger.debug("Cut at %s boundary (offset %d)", kind, end)

        body = clean[start:end].strip()

        if len(body) >= min_chunk_size:
            if chunks and header and not body.startswith("Source:"):
                body = f"{header}\n\n{body}"
            chunks.append(body)
            if end >= length:
                break
            start += max(end - start - overlap, min_chunk_size)
        else:
            logger.debug("Skipping %d-char fragment at offset %d", len(body), start)
            start += min_chunk_size

        if start >= length - _TAIL_SLACK:
            break

    if len(chunks) > 1 and len(chunks[-1]) < min_chunk_size:
        chunks.pop()

    valid = [c for c in chunks if has_real_content(c, header)]
    if len(valid) < len(chunks):
        logger.debug("Dropped %d chunks with no prose", len(chunks) - len(valid))

    return valid


def derive_chunk_id(source: str, chunk_index: int) -> str:
    """
    Deterministic record id for a chunk.

    Depends only on (source, chunk_index), so re-ingesting a document
    overwrites its previous records instead of duplicating them.
    """
    return hashlib.sha256(f"{source}:{chunk_index}".encode("utf-8")).hexdigest()[:16]


class SlidingWindowChunker(BaseChunker):
    """
    Chunker that applies chunk_text() to a Document and attaches metadata.

    Every chunk gets its position, the document's chunk count, the
    document's source and url, and a chunk_id derived from source + index.
    """

    def chunk(self, document: Document) -> list[Chunk]:
        source = document.metadata.get("source", "")
        url = document.metadata.get("url")

        texts = chunk_text(
            document.page_content,
            max_chars=self.config.chunk_size,
            overlap=self.config.chunk_overlap,
            min_chunk_size=self.config.min_chunk_size,
            min_document_length=self.config.min_document_length,
        )

        total = len(texts)
        return [
            Chunk(
                chunk_id=derive_chunk_id(source, i),
                text=text,
                metadata=ChunkMetadata(
                    source=source,
                    url=url,
                    text=text,
                    chunk_index=i,
                    total_chunks=total,
                ),
            )
            for i, text in enumerate(texts)
        ]
