"""Word-window chunking for note text.

Plain text is split on whitespace and cut into windows of ``size`` words.
Consecutive windows share ``overlap`` words so a sentence straddling a
boundary is still whole in at least one chunk.  The window advances by
``size - overlap`` words; the last window may be shorter.
"""

from __future__ import annotations

from allknower.utils.errors import ConfigurationError

DEFAULT_CHUNK_SIZE = 512
DEFAULT_CHUNK_OVERLAP = 64


class TextChunker:
    """Splits plain text into overlapping fixed-size word windows.

    The window parameters are validated once at construction, so a
    configuration that could never advance fails immediately instead of
    looping.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: int = DEFAULT_CHUNK_OVERLAP,
    ) -> None:
        if chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be positive, got {chunk_size}")
        if overlap < 0:
            raise ConfigurationError(f"overlap must not be negative, got {overlap}")
        if overlap >= chunk_size:
            raise ConfigurationError(
                f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})"
            )
        self._chunk_size = chunk_size
        self._overlap = overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    def chunk(self, text: str) -> list[str]:
        """Return the word windows of *text*; empty input gives ``[]``."""
        words = text.split()
        if not words:
            return []

        step = self._chunk_size - self._overlap
        chunks: list[str] = []
        start = 0
        while start < len(words):
            end = min(start + self._chunk_size, len(words))
            chunks.append(" ".join(words[start:end]))
            if end == len(words):
                break
            start += step
        return chunks


def chunk_text(
    text: str,
    size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> list[str]:
    """Functional form of :meth:`TextChunker.chunk`."""
    return TextChunker(chunk_size=size, overlap=overlap).chunk(text)
