"""Document chunking.

Splits extracted text into bounded, overlapping character windows
suitable for embedding and retrieval.
"""

import logging
import math
from dataclasses import dataclass

from src.core.config import Settings

logger = logging.getLogger(__name__)

MIN_CHUNK_SIZE = 100
MAX_CHUNK_SIZE = 10_000
MIN_STEP = 50  # overlap is capped at chunk_size - MIN_STEP
MAX_CHUNKS = 10_000


@dataclass(frozen=True)
class Chunk:
    """A document chunk ready for embedding."""

    index: int
    text: str
    filename: str
    file_id: str
    department: str

    @property
    def length(self) -> int:
        return len(self.text)


class SlidingWindowChunker:
    """Fixed-size chunking with overlap.

    A window of ``chunk_size`` characters slides across the text; each
    window starts ``overlap`` characters before the previous one ended.
    Near the end of the text the last window is just the overlap.
    """

    def __init__(self, chunk_size: int = 2000, overlap: int = 400):
        self.chunk_size = chunk_size
        self.overlap = overlap

    @staticmethod
    def clamp(chunk_size: int, overlap: int) -> tuple[int, int]:
        """Clamp parameters to chunk_size in [100, 10000], overlap in [0, chunk_size - 50]."""
        chunk_size = max(MIN_CHUNK_SIZE, min(chunk_size, MAX_CHUNK_SIZE))
        overlap = max(0, min(overlap, chunk_size - MIN_STEP))
        return chunk_size, overlap

    def chunk(
        self,
        text: str,
        chunk_size: int | None = None,
        overlap: int | None = None,
    ) -> list[str]:
        """Split text into fixed-size overlapping chunks.

        Args:
            text: Text to split
            chunk_size: Window size in characters (defaults to the configured size)
            overlap: Characters shared by consecutive windows (defaults to the configured overlap)

        Returns:
            Trimmed, non-empty chunk strings in document order
        """
        if not isinstance(text, str) or not text:
            return []

        size, overlap = self.clamp(
            self.chunk_size if chunk_size is None else chunk_size,
            self.overlap if overlap is None else overlap,
        )
        logger.debug(
            f"[Chunker] Chunking {len(text)} characters (chunk size: {size}, overlap: {overlap})"
        )

        if len(text) <= size:
            trimmed = text.strip()
            return [trimmed] if trimmed else []

        max_iterations = math.ceil(len(text) / (size - overlap)) + 10

        chunks: list[str] = []
        start = 0
        iterations = 0

        while start < len(text) and iterations < max_iterations:
            end = min(start + size, len(text))
            window = text[start:end].strip()
            if window:
                chunks.append(window)

            if len(chunks) >= MAX_CHUNKS:
                logger.warning(f"[Chunker] Chunk limit reached ({MAX_CHUNKS}), stopping")
                break

            # Each window starts `overlap` characters before the previous end
            next_start = end - overlap
            if next_start <= start:
                next_start = start + max(1, size // 2)
            start = next_start
            iterations += 1

        logger.debug(f"[Chunker] Created {len(chunks)} chunks")
        return chunks


def get_chunker(settings: Settings) -> SlidingWindowChunker:
    """Build a chunker from configured defaults."""
    return SlidingWindowChunker(chunk_size=settings.chunk_size, overlap=settings.chunk_overlap)


__all__ = [
    "Chunk",
    "SlidingWindowChunker",
    "get_chunker",
]
