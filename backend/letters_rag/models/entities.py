"""Internal dataclasses representing persisted and transient entities."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

UNKNOWN = "Unknown"

Role = Literal["user", "assistant"]


@dataclass(slots=True)
class Document:
    id: int
    source: str
    year: int
    page_count: int
    file_size: int
    created_at: datetime | None


@dataclass(slots=True)
class Chunk:
    id: int
    document_id: int
    chunk_index: int
    content: str
    embedding: tuple[float, ...]
    created_at: datetime | None


@dataclass(slots=True)
class RetrievedChunk:
    """A chunk matched by a query, with its relevance score and provenance."""

    content: str
    score: float
    source: str | None = None
    year: int | None = None

    @property
    def source_label(self) -> str:
        return self.source or UNKNOWN

    @property
    def year_label(self) -> int | str:
        return self.year if self.year is not None else UNKNOWN


@dataclass(slots=True, frozen=True)
class ConversationTurn:
    role: Role
    content: str


__all__ = ["UNKNOWN", "Role", "Document", "Chunk", "RetrievedChunk", "ConversationTurn"]
