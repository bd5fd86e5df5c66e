"""Word-aligned text chunker.

Packs whitespace-separated words into chunks of at most ``chunk_size``
characters. Words are never split; a single word longer than the budget
becomes a chunk of its own. Any text with a non-whitespace character
therefore yields at least one chunk, so no raw-prefix fallback is needed.
"""

from __future__ import annotations

from collections.abc import Iterator

DEFAULT_CHUNK_SIZE = 1000


def iter_chunks(text: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[str]:
    """Lazily yield chunks of *text*, joined by single spaces.

    Args:
        text: Extracted document text.
        chunk_size: Character budget per chunk.

    Yields:
        Non-empty chunk strings in document order.
    """
    current: list[str] = []
    current_len = 0

    for word in text.split():
        # +1 for the separator
        if current and current_len + len(word) + 1 > chunk_size:
            yield " ".join(current)
            current = []
            current_len = 0
        current.append(word)
        current_len += len(word) + 1

    if current:
        yield " ".join(current)


def chunk_text(text: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> list[str]:
    """List form of :func:`iter_chunks`."""
    return list(iter_chunks(text, chunk_size))
