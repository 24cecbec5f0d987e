"""Context assembly for the answer prompt."""

from __future__ import annotations

import re
from typing import Sequence

from letters_rag.models.entities import RetrievedChunk

CHUNK_SEPARATOR = "\n\n---\n\n"
_CITATION_RE = re.compile(r"\[Chunk\s+(\d+)", re.IGNORECASE)


def chunk_marker(number: int, chunk: RetrievedChunk) -> str:
    """``[Chunk 2 (Source: letters/1999.pdf, Year: 1999)]``; the annotation is dropped when nothing is known."""
    parts: list[str] = []
    if chunk.source:
        parts.append(f"Source: {chunk.source}")
    if chunk.year is not None:
        parts.append(f"Year: {chunk.year}")
    annotation = f" ({', '.join(parts)})" if parts else ""
    return f"[Chunk {number}{annotation}]"


def assemble_context(chunks: Sequence[RetrievedChunk]) -> str:
    """Label chunks 1..n in retrieval order and join them with a separator."""
    return CHUNK_SEPARATOR.join(
        f"{chunk_marker(number, chunk)}\n{chunk.content}" for number, chunk in enumerate(chunks, start=1)
    )


def chunk_preview(content: str, length: int = 100) -> str:
    return content[:length] + "..."


def cited_chunk_numbers(answer: str, chunk_count: int) -> list[int]:
    """Chunk numbers referenced in ``answer``, ascending, limited to ``1..chunk_count``."""
    numbers = {int(match) for match in _CITATION_RE.findall(answer)}
    return sorted(number for number in numbers if 1 <= number <= chunk_count)


__all__ = ["CHUNK_SEPARATOR", "assemble_context", "chunk_marker", "chunk_preview", "cited_chunk_numbers"]
