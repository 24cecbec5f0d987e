"""Chunking utilities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from letters_rag.core.errors import ConfigurationError


@dataclass(slots=True)
class Window:
    text: str
    start: int
    end: int


def validate_window(size: int, overlap: int) -> None:
    """Reject window settings for which the scan would never terminate."""
    if size <= 0:
        raise ConfigurationError(f"chunk size must be positive, got {size}")
    if overlap < 0 or overlap >= size:
        raise ConfigurationError(f"chunk overlap must be in [0, {size}), got {overlap}")


def iter_windows(text: str, size: int, overlap: int) -> Iterator[Window]:
    """Yield fixed-width overlapping windows with their character offsets.

    Windows advance by ``size - overlap``. Once a window reaches the end of the
    text the scan stops: the next window would lie entirely inside it.
    """
    validate_window(size, overlap)
    step = size - overlap
    length = len(text)
    start = 0
    while start < length:
        end = min(start + size, length)
        yield Window(text=text[start:end], start=start, end=end)
        # A further window would start inside this one and end at the same
        # offset, so it is not emitted: 2500 chars at 1000/200 give 3 chunks
        # (1000, 1000, 900), not 4 with a trailing 100-char duplicate.
        if end >= length:
            break
        start += step


def chunk_text(text: str, size: int = 1000, overlap: int = 200) -> list[str]:
    """Split text into overlapping windows, trimmed, dropping empty ones."""
    chunks: list[str] = []
    for window in iter_windows(text, size, overlap):
        trimmed = window.text.strip()
        if trimmed:
            chunks.append(trimmed)
    return chunks


__all__ = ["Window", "chunk_text", "iter_windows", "validate_window"]
