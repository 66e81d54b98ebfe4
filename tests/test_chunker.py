"""
Chunker Tests

Covers span placement, the chunking policy (coverage, bounds,
determinism, overlap) and chunking statistics.
"""

import pytest

from semsearch.ingestion.chunker import (
    Chunker,
    ChunkingOptions,
    absorb_blank_spans,
    chunking_stats,
    locate_spans,
)

SENTENCE = "A" * 98 + ". "


def _article(paragraphs: int = 6) -> str:
    parts = []
    for p in range(paragraphs):
        sentences = [
            f"Paragraph {p} sentence {s} talks about hiking boots and trail care."
            for s in range(8)
        ]
        parts.append(" ".join(sentences))
    return "\n\n".join(parts)


class TestSpanPlacement:
    def test_repeated_text_is_placed_so_the_last_piece_ends_the_input(self):
        spans = locate_spans("xyxyxyxy", ["xyxy", "xyxy"], overlap=2)
        assert spans == [(0, 4), (4, 8)]

    def test_hints_that_break_coverage_are_overridden(self):
        spans = locate_spans("xyxyxyxy", ["xyxy", "xyxy"], overlap=2, hints=[0, 2])
        assert spans == [(0, 4), (4, 8)]

    def test_pieces_that_do_not_fit_raise(self):
        with pytest.raises(ValueError):
            locate_spans("hello world", ["hello", "xyz"], overlap=2)

    def test_blank_spans_are_absorbed(self):
        assert absorb_blank_spans("abc   def", [(0, 3), (3, 6), (6, 9)]) == [(0, 6), (6, 9)]
        assert absorb_blank_spans("   abc", [(0, 3), (3, 6)]) == [(0, 6)]


class TestChunkingPolicy:
    def test_empty_and_whitespace_input_yield_no_chunks(self):
        chunker = Chunker()
        assert chunker.chunk("doc", "Title", "", "site-a") == []
        assert chunker.chunk("doc", "Title", "   \n\t ", "site-a") == []

    def test_short_text_is_a_single_chunk(self):
        text = "A short post about boots."
        chunks = Chunker().chunk("doc", "Title", text, "site-a", url="https://x/doc")

        assert len(chunks) == 1
        chunk = chunks[0]
        assert (chunk.start_offset, chunk.end_offset) == (0, len(text))
        assert chunk.text == text
        assert chunk.chunk_id == "site-a:doc:chunk-0"
        assert chunk.parent_title == "Title"
        assert chunk.parent_url == "https://x/doc"

    def test_3200_characters_with_limit_1500_make_three_chunks(self):
        text = SENTENCE * 32
        assert len(text) == 3200

        chunker = Chunker(ChunkingOptions(max_chunk_length=1500, overlap=200))
        chunks = chunker.chunk("doc", "Title", text, "site-a")

        assert [c.sequence_index for c in chunks] == [0, 1, 2]
        assert chunks[0].start_offset == 0
        assert chunks[-1].end_offset == 3200
        assert [(c.start_offset, c.end_offset) for c in chunks] == [
            (0, 1500),
            (1300, 2800),
            (2600, 3200),
        ]

    def test_chunks_cover_input_and_respect_bounds(self):
        text = _article()
        options = ChunkingOptions(max_chunk_length=400, overlap=80)
        chunks = Chunker(options).chunk("doc", "Title", text, "site-a")

        assert len(chunks) > 1
        assert chunks[0].start_offset == 0
        assert chunks[-1].end_offset == len(text)

        for previous, current in zip(chunks, chunks[1:]):
            assert current.start_offset > previous.start_offset
            assert current.start_offset <= previous.end_offset

        for chunk in chunks:
            assert chunk.end_offset - chunk.start_offset <= options.max_chunk_length
            assert chunk.text == text[chunk.start_offset:chunk.end_offset]

    def test_chunks_end_on_sentence_boundaries_when_possible(self):
        text = _article()
        chunks = Chunker(ChunkingOptions(max_chunk_length=400, overlap=80)).chunk(
            "doc", "Title", text, "site-a"
        )
        for chunk in chunks:
            assert chunk.text.rstrip().endswith(".")

    def test_chunks_within_a_paragraph_overlap(self):
        text = _article()
        chunks = Chunker(ChunkingOptions(max_chunk_length=400, overlap=80)).chunk(
            "doc", "Title", text, "site-a"
        )

        # Six sentences of 64 chars fill the first chunk; the sixth is repeated
        assert (chunks[0].start_offset, chunks[0].end_offset) == (0, 384)
        assert chunks[1].start_offset == 320
        assert chunks[1].text.startswith("Paragraph 0 sentence 5")
        assert chunks[2].text.startswith("Paragraph 1 sentence 0")

    def test_repeated_sentences_are_covered(self):
        text = "Boots. " * 50
        chunks = Chunker(ChunkingOptions(max_chunk_length=100, overlap=30)).chunk(
            "doc", "T", text, "site-a"
        )

        assert [(c.start_offset, c.end_offset) for c in chunks] == [
            (0, 98),
            (70, 168),
            (140, 238),
            (210, 308),
            (280, 350),
        ]

    def test_chunking_is_deterministic(self):
        text = _article()
        chunker = Chunker(ChunkingOptions(max_chunk_length=300, overlap=50))
        assert chunker.chunk("doc", "T", text, "site-a") == chunker.chunk("doc", "T", text, "site-a")

    def test_text_without_punctuation_breaks_on_whitespace(self):
        text = " ".join(["word"] * 200)
        chunks = Chunker(ChunkingOptions(max_chunk_length=100, overlap=0)).chunk(
            "doc", "T", text, "site-a"
        )

        assert chunks[-1].end_offset == len(text)
        for chunk in chunks[:-1]:
            assert chunk.text.endswith(" ")
            assert len(chunk.text) <= 100

    def test_zero_overlap_chunks_are_contiguous(self):
        text = SENTENCE * 10
        chunks = Chunker(ChunkingOptions(max_chunk_length=300, overlap=0)).chunk(
            "doc", "T", text, "site-a"
        )
        for previous, current in zip(chunks, chunks[1:]):
            assert current.start_offset == previous.end_offset

    def test_invalid_options_rejected(self):
        with pytest.raises(ValueError):
            ChunkingOptions(max_chunk_length=100, overlap=100)
        with pytest.raises(ValueError):
            ChunkingOptions(max_chunk_length=0)


class TestChunkingStats:
    def test_empty(self):
        stats = chunking_stats([])
        assert stats.total_chunks == 0
        assert stats.sentence_completeness == 0.0

    def test_stats_summarize_chunks(self):
        chunker = Chunker(ChunkingOptions(max_chunk_length=1500, overlap=200))
        chunks = chunker.chunk("a", "A", SENTENCE * 32, "site-a")
        chunks += chunker.chunk("b", "B", "no punctuation here", "site-a")

        stats = chunking_stats(chunks)

        assert stats.total_chunks == 4
        assert stats.total_documents == 2
        assert stats.chunks_per_document == {"a": 3, "b": 1}
        assert stats.sentence_completeness == pytest.approx(0.75)
