"""
Chunker - Split raw document text into overlapping character windows

Part of the Concept Mapper implementation.
Ingestion: Text chunking

License: MIT
"""

from typing import List, Optional, Sequence, Tuple
import logging

from .models import Chunk, RawDocument

logger = logging.getLogger(__name__)

# Breakpoints in order of preference: paragraph, line, sentence, word.
DEFAULT_SEPARATORS = ("\n\n", "\n", ". ", " ")


class TextChunker:
    """
    Character-based chunker with overlap and natural-boundary preference.

    Consecutive chunks of one block always share exactly ``chunk_overlap``
    characters, so the block can be rebuilt from its chunks.
    """

    def __init__(
        self,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        separators: Sequence[str] = DEFAULT_SEPARATORS,
    ):
        """
        Initialize the chunker.

        Args:
            chunk_size: Maximum number of characters per chunk
            chunk_overlap: Number of characters shared by consecutive chunks
            separators: Breakpoints to try, most preferred first

        Raises:
            ValueError: Unless 0 <= chunk_overlap < chunk_size
        """
        if chunk_size < 1:
            raise ValueError(f"Chunk size must be at least 1, got {chunk_size}")
        if not 0 <= chunk_overlap < chunk_size:
            raise ValueError(
                f"Overlap ({chunk_overlap}) must be non-negative and less than "
                f"chunk size ({chunk_size})"
            )

        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.separators = tuple(separators)

    def split_documents(self, documents: Sequence[RawDocument]) -> List[Chunk]:
        """
        Chunk a sequence of raw documents.

        Args:
            documents: Raw text blocks with provenance metadata

        Returns:
            Chunks of every document, in document order
        """
        chunks: List[Chunk] = []
        for document in documents:
            chunks.extend(self.split_text(document.text, document.source_path, document.page_count))

        logger.info(f"Split {len(documents)} documents into {len(chunks)} chunks")
        return chunks

    def split_text(
        self, text: str, source_path: str, page_count: Optional[int] = None
    ) -> List[Chunk]:
        """
        Split one text block into overlapping chunks.

        Args:
            text: Source text to chunk
            source_path: Path of the source document, copied into every chunk
            page_count: Page count of the source document, copied into every chunk

        Returns:
            Ordered chunks; empty for empty or whitespace-only text
        """
        if not text or not text.strip():
            logger.warning(f"Empty text provided for chunking from {source_path}")
            return []

        return [
            Chunk(
                text=text[start:end],
                source_path=source_path,
                page_count=page_count,
                sequence_index=index,
            )
            for index, (start, end) in enumerate(self._split_spans(text))
        ]

    def _split_spans(self, text: str) -> List[Tuple[int, int]]:
        """Compute (start, end) offsets of every chunk."""
        text_length = len(text)
        spans = []
        start = 0

        while True:
            window_end = start + self.chunk_size
            if window_end >= text_length:
                spans.append((start, text_length))
                return spans

            end = self._find_breakpoint(text, start, window_end)
            spans.append((start, end))
            start = end - self.chunk_overlap

    def _find_breakpoint(self, text: str, start: int, window_end: int) -> int:
        """
        Pick the end offset of the chunk starting at ``start``.

        Only the second half of the window is searched, and the end must lie
        beyond ``start + chunk_overlap`` so the next chunk always advances.
        """
        lower = max(start + self.chunk_overlap + 1, start + self.chunk_size // 2)

        for separator in self.separators:
            position = text.rfind(separator, lower, window_end)
            if position != -1:
                return position + len(separator)

        return window_end
