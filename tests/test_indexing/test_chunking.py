"""Tests for chunking: pure functions, no API calls needed."""

import pytest
from langchain_core.documents import Document

from grounded_rag.config import ChunkingConfig
from grounded_rag.indexing.chunking import (
    SlidingWindowChunker,
    chunk_text,
    derive_chunk_id,
    detect_source_header,
    find_break,
    has_real_content,
    normalize_text,
)
from conftest import make_paragraphs


class TestNormalizeText:

    def test_collapses_horizontal_whitespace(self):
        assert normalize_text("a   b\t\tc") == "a b c"

    def test_keeps_paragraph_breaks(self):
        assert normalize_text("one\n\ntwo") == "one\n\ntwo"

    def test_caps_blank_line_runs(self):
        assert normalize_text("one\n\n\n\n\ntwo") == "one\n\ntwo"

    def test_unifies_line_endings_and_trims_lines(self):
        assert normalize_text("  one  \r\n  two \r") == "one\ntwo"

    def test_none_and_whitespace(self):
        assert normalize_text(None) == ""
        assert normalize_text("   \n\t ") == ""


class TestFindBreak:

    def test_prefers_paragraph_break(self):
        window = "a" * 700 + "\n\n" + "b" * 400
        offset, kind = find_break(window, 1200)
        assert kind == "paragraph"
        assert offset == 700

    def test_paragraph_break_after_last_sentence_wins(self):
        window = "Word. " * 130 + "\n\n" + "b" * 300
        offset, kind = find_break(window, 1200)
        assert kind == "paragraph"
        assert offset == 780

    def test_later_sentence_end_beats_paragraph_break(self):
        window = "a" * 700 + "\n\n" + "b" * 200 + ". Next" + "c" * 200
        offset, kind = find_break(window, 1200)
        assert kind == "sentence"
        assert offset == 903

    def test_paragraph_break_below_floor_is_ignored(self):
        window = "a" * 100 + "\n\n" + "Word. " * 180
        offset, kind = find_break(window, 1200)
        assert kind == "sentence"
        assert offset >= 720

    def test_falls_back_to_line_break(self):
        window = "word " * 180 + "\n" + "more " * 50
        offset, kind = find_break(window, 1200)
        assert kind == "line"
        assert offset == 900

    def test_falls_back_to_word_boundary(self):
        window = "lowercase words only " * 60
        offset, kind = find_break(window, 1200)
        assert kind == "word"
        assert window[offset].isspace()
        assert offset >= 960

    def test_no_boundary(self):
        assert find_break("x" * 1200, 1200) == (-1, "")


class TestChunkText:

    def test_short_text_produces_no_chunks(self):
        assert chunk_text("Short text.") == []

    def test_empty_and_whitespace(self):
        assert chunk_text("") == []
        assert chunk_text(None) == []
        assert chunk_text("   \n\n   ") == []

    def test_text_that_fits_is_one_chunk(self):
        text = ("Hospitality " * 100)[:-1] + "s"
        assert len(text) == 1200
        assert chunk_text(text, max_chars=1200, overlap=200) == [text]

    def test_short_document_above_floor_is_single_chunk(self):
        text = "A single short paragraph about campus visits that is longer than one hundred characters in total length."
        assert 100 <= len(text) < 400
        assert chunk_text(text) == [text]

    def test_long_text_splits_into_a_few_chunks(self, long_text):
        chunks = chunk_text(long_text, max_chars=1200, overlap=200)
        assert 2 <= len(chunks) <= 3

    def test_paragraphs_every_600_chars(self):
        text = make_paragraphs(5, sentences_per_paragraph=7)
        assert 2800 <= len(text) <= 3000

        chunks = chunk_text(text, max_chars=1200, overlap=200)

        assert 2 <= len(chunks) <= 3
        assert all(400 <= len(c) <= 1200 for c in chunks)
        assert chunks[0] in text
        assert chunks[0][-150:] in chunks[1]


    def test_is_deterministic(self, long_text):
        assert chunk_text(long_text) == chunk_text(long_text)

    def test_chunks_are_bounded(self, long_text):
        for chunk in chunk_text(long_text, max_chars=1200, overlap=200):
            assert 400 <= len(chunk) <= 1200

    def test_adjacent_chunks_overlap(self, long_text):
        chunks = chunk_text(long_text, max_chars=1200, overlap=200)
        for current, following in zip(chunks, chunks[1:]):
            assert current[-50:] in following

    def test_cuts_at_sentence_ends(self, long_text):
        chunks = chunk_text(long_text, max_chars=1200, overlap=200)
        for chunk in chunks[:-1]:
            assert chunk.endswith("detail.")

    def test_cuts_at_sentence_end_without_paragraphs(self):
        text = make_paragraphs(1, sentences_per_paragraph=40)
        chunks = chunk_text(text, max_chars=1200, overlap=200)
        assert len(chunks) > 1
        assert chunks[0].endswith(".")

    def test_unbroken_text_terminates(self):
        text = "x" * 10_000
        chunks = chunk_text(text, max_chars=1200, overlap=200)
        assert 0 < len(chunks) <= 10_000 // 400
        assert all(len(c) <= 1200 for c in chunks)

    def test_every_window_advances(self):
        text = ("Hospitality. " * 5 + "\n\n") * 400
        chunks = chunk_text(text, max_chars=1200, overlap=1100, min_chunk_size=400)
        assert chunks
        assert len(chunks) <= len(normalize_text(text)) // 400 + 1

    def test_overlap_must_be_smaller_than_window(self):
        with pytest.raises(ValueError):
            chunk_text("x" * 2000, max_chars=500, overlap=500)

    def test_source_header_is_repeated(self, web_page_text):
        chunks = chunk_text(web_page_text, max_chars=1200, overlap=200)
        assert len(chunks) > 1
        for chunk in chunks:
            assert "Source: https://example.edu/visit" in chunk
        assert chunks[1].startswith("# Visit Us")

    def test_header_does_not_count_towards_content(self):
        header = "Source: https://example.edu/links\n\n"
        assert not has_real_content(header + "a b c d 1 2 3", header)
        assert has_real_content(header + "hospitality management", header)

    def test_link_only_chunks_are_dropped(self):
        body = make_paragraphs(3) + "\n\n" + "\n".join("- http://x.io/a" for _ in range(60))
        for chunk in chunk_text(body, max_chars=1200, overlap=200):
            assert has_real_content(chunk)


class TestSourceHeader:

    def test_detects_title_and_source(self):
        text = "# Visit Us\n\nSource: https://example.edu/visit\n\nBody"
        assert detect_source_header(text) == "# Visit Us\n\nSource: https://example.edu/visit"

    def test_detects_bare_source_line(self):
        assert detect_source_header("Source: http://a.b/c\nBody") == "Source: http://a.b/c"

    def test_no_header(self):
        assert detect_source_header("Just text") == ""


class TestSlidingWindowChunker:

    def test_attaches_metadata(self, web_document, chunking_config):
        chunks = SlidingWindowChunker(chunking_config).chunk(web_document)

        assert len(chunks) > 1
        for i, chunk in enumerate(chunks):
            assert chunk.metadata.chunk_index == i
            assert chunk.metadata.total_chunks == len(chunks)
            assert chunk.metadata.source == "web/visit.md"
            assert chunk.metadata.url == "https://example.edu/visit"
            assert chunk.metadata.text == chunk.text
            assert chunk.chunk_id == derive_chunk_id("web/visit.md", i)

    def test_ids_are_stable_across_runs(self, sample_document, chunking_config):
        chunker = SlidingWindowChunker(chunking_config)
        first = [c.chunk_id for c in chunker.chunk(sample_document)]
        second = [c.chunk_id for c in chunker.chunk(sample_document)]
        assert first == second
        assert len(set(first)) == len(first)

    def test_respects_config(self, long_text):
        config = ChunkingConfig(chunk_size=800, chunk_overlap=100, min_chunk_size=300)
        chunks = SlidingWindowChunker(config).chunk(Document(page_content=long_text, metadata={"source": "a.md"}))
        assert all(len(c.text) <= 800 for c in chunks)

    def test_short_document_has_no_chunks(self, chunking_config):
        document = Document(page_content="Short text.", metadata={"source": "tiny.md"})
        assert SlidingWindowChunker(chunking_config).chunk(document) == []


def test_derive_chunk_id():
    chunk_id = derive_chunk_id("web/visit.md", 0)
    assert len(chunk_id) == 16
    assert chunk_id == derive_chunk_id("web/visit.md", 0)
    assert chunk_id != derive_chunk_id("web/visit.md", 1)
    assert chunk_id != derive_chunk_id("web/other.md", 0)
