"""
Text Chunker

Splits a document's extracted text into bounded, position-tracked chunks for
embedding.

Policy
------
- Splitting is done by langchain's RecursiveCharacterTextSplitter. It cuts at
  paragraph breaks first, then after sentence punctuation, then at spaces,
  and only as a last resort between characters.
- Separators stay at the end of the piece they close and whitespace is never
  stripped, so every chunk is an exact slice of the input.
- Consecutive chunks overlap by up to `overlap` characters.
- Offsets index into the original text. The union of all chunk spans covers
  the whole input. A whitespace-only piece is absorbed into its neighbour.

The chunker is pure: identical input always yields identical chunks and ids.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from langchain_text_splitters import RecursiveCharacterTextSplitter

from ..embeddings.models import Chunk, make_chunk_id

logger = logging.getLogger("semsearch.chunker")


PARAGRAPH_SEPARATORS = ["\n\n"]
SENTENCE_SEPARATORS = [". ", "! ", "? ", " ", ""]

_ENDS_WITH_SENTENCE = re.compile(r"[.!?][\"'\)\]]*$")


# ---------------------------------------------------------------------
# Options / Stats
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class ChunkingOptions:
    max_chunk_length: int = 1000
    overlap: int = 200
    prefer_paragraphs: bool = True

    def __post_init__(self) -> None:
        if self.max_chunk_length <= 0:
            raise ValueError("max_chunk_length must be positive")
        if not 0 <= self.overlap < self.max_chunk_length:
            raise ValueError("overlap must be in [0, max_chunk_length)")

    @property
    def separators(self) -> List[str]:
        if self.prefer_paragraphs:
            return PARAGRAPH_SEPARATORS + SENTENCE_SEPARATORS
        return list(SENTENCE_SEPARATORS)


@dataclass
class ChunkingStats:
    total_chunks: int = 0
    average_chunk_length: int = 0
    total_documents: int = 0
    chunks_per_document: Dict[str, int] = field(default_factory=dict)
    sentence_completeness: float = 0.0


def chunking_stats(chunks: Sequence[Chunk]) -> ChunkingStats:
    """
    Summarize a chunking run for monitoring.

    `sentence_completeness` is the share of chunks whose text ends with
    sentence punctuation.
    """
    if not chunks:
        return ChunkingStats()

    per_doc: Dict[str, int] = {}
    for chunk in chunks:
        per_doc[chunk.parent_document_id] = per_doc.get(chunk.parent_document_id, 0) + 1

    complete = sum(1 for c in chunks if _ENDS_WITH_SENTENCE.search(c.text.strip()))

    return ChunkingStats(
        total_chunks=len(chunks),
        average_chunk_length=round(sum(len(c.text) for c in chunks) / len(chunks)),
        total_documents=len(per_doc),
        chunks_per_document=per_doc,
        sentence_completeness=complete / len(chunks),
    )


# ---------------------------------------------------------------------
# Span Placement
# ---------------------------------------------------------------------

def _occurrences(text: str, piece: str, low: int, high: int) -> List[int]:
    """Return every start in [low, high] where `piece` occurs in `text`."""
    found = []
    pos = text.find(piece, low, high + len(piece))
    while pos != -1:
        found.append(pos)
        pos = text.find(piece, pos + 1, high + len(piece))
    return found


def locate_spans(
    text: str,
    pieces: Sequence[str],
    overlap: int,
    hints: Optional[Sequence[int]] = None,
) -> List[Tuple[int, int]]:
    """
    Place consecutive split pieces back onto the text they came from.

    Each piece starts strictly after the previous one, no later than the
    previous end and no earlier than `overlap` characters before it. The
    last piece ends at len(text). Repeated passages can match in more than
    one place; the search backtracks until every piece fits. `hints` are the
    starts to try first for each piece.

    Raises
    ------
    ValueError
        If the pieces cannot be laid over the text.
    """
    if not pieces:
        return []

    length = len(text)

    def candidates(index: int, low: int, high: int) -> List[int]:
        found = _occurrences(text, pieces[index], low, high)
        if hints is not None and hints[index] in found:
            found.remove(hints[index])
            found.insert(0, hints[index])
        return found

    starts: List[int] = []
    pending = [candidates(0, 0, 0)]
    dead = set()

    while pending:
        index = len(pending) - 1
        if not pending[index]:
            pending.pop()
            if starts:
                dead.add((index - 1, starts.pop()))
            continue

        start = pending[index].pop(0)
        if (index, start) in dead:
            continue
        end = start + len(pieces[index])

        if index == len(pieces) - 1:
            if end == length:
                starts.append(start)
                return [(s, s + len(p)) for s, p in zip(starts, pieces)]
            continue

        starts.append(start)
        pending.append(candidates(index + 1, max(start + 1, end - overlap), end))

    raise ValueError("split pieces do not cover the input text")


def absorb_blank_spans(text: str, spans: List[Tuple[int, int]]) -> List[Tuple[int, int]]:
    """Merge spans holding only whitespace into the preceding span (or the next one)."""
    merged: List[Tuple[int, int]] = []
    carry_start: Optional[int] = None

    for start, end in spans:
        if not text[start:end].strip():
            if merged:
                merged[-1] = (merged[-1][0], max(merged[-1][1], end))
            elif carry_start is None:
                carry_start = start
            continue
        if carry_start is not None:
            start, carry_start = carry_start, None
        if merged and end <= merged[-1][1]:
            continue
        merged.append((start, end))

    return merged


# ---------------------------------------------------------------------
# Chunker
# ---------------------------------------------------------------------

class Chunker:
    """
    Recursive-separator text chunker.

    Stateless apart from its options; safe to share across requests.
    """

    def __init__(self, options: Optional[ChunkingOptions] = None) -> None:
        self.options = options or ChunkingOptions()
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=self.options.max_chunk_length,
            chunk_overlap=self.options.overlap,
            length_function=len,
            separators=self.options.separators,
            keep_separator="end",
            strip_whitespace=False,
            add_start_index=True,
        )

    def chunk(
        self,
        parent_document_id: str,
        title: str,
        text: str,
        tenant_id: str,
        url: str = "",
    ) -> List[Chunk]:
        """
        Split a document into chunks.

        Parameters
        ----------
        parent_document_id : str
            Identifier of the source document within the tenant.

        title : str
            Document title; carried on every chunk, never chunked.

        text : str
            Extracted plain text.

        tenant_id : str
            Owning tenant.

        url : str
            Document URL, carried on every chunk.

        Returns
        -------
        List[Chunk]
            Chunks ordered by sequence_index. Empty for empty input.
        """
        spans = self.split_spans(text)
        logger.debug(
            "Chunked document %s (%d chars) into %d chunks",
            parent_document_id,
            len(text),
            len(spans),
        )
        return [
            Chunk(
                chunk_id=make_chunk_id(tenant_id, parent_document_id, index),
                tenant_id=tenant_id,
                parent_document_id=parent_document_id,
                parent_title=title,
                parent_url=url,
                sequence_index=index,
                text=text[start:end],
                start_offset=start,
                end_offset=end,
            )
            for index, (start, end) in enumerate(spans)
        ]

    def split_spans(self, text: str) -> List[Tuple[int, int]]:
        """
        Compute the (start, end) offsets of each chunk.
        """
        if not text or not text.strip():
            return []

        if len(text) <= self.options.max_chunk_length:
            return [(0, len(text))]

        documents = self._splitter.create_documents([text])
        pieces = [doc.page_content for doc in documents]
        hints = [doc.metadata["start_index"] for doc in documents]

        spans = locate_spans(text, pieces, self.options.overlap, hints=hints)
        return absorb_blank_spans(text, spans)
