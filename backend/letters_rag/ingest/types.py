"""Common ingestion data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal


@dataclass(slots=True)
class LoadedDocument:
    """Text extracted from a source file, ready for chunking."""

    path: Path
    text: str
    year: int | None
    page_count: int
    size_bytes: int

    @property
    def source(self) -> str:
        return str(self.path)


@dataclass(slots=True)
class IngestStats:
    """Aggregated ingest statistics."""

    processed: int = 0
    skipped: int = 0
    chunks: int = 0
    chunks_skipped: int = 0
    chunks_failed: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "processed": self.processed,
            "skipped": self.skipped,
            "chunks": self.chunks,
            "chunks_skipped": self.chunks_skipped,
            "chunks_failed": self.chunks_failed,
        }


@dataclass(slots=True)
class DocumentResult:
    """Outcome for a single document."""

    path: Path
    status: Literal["processed", "skipped"]
    document_id: int | None = None
    year: int | None = None
    stored_indices: list[int] = field(default_factory=list)
    skipped_indices: list[int] = field(default_factory=list)
    failed_indices: list[int] = field(default_factory=list)
    detail: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": str(self.path),
            "status": self.status,
            "document_id": self.document_id,
            "year": self.year,
            "stored_indices": list(self.stored_indices),
            "skipped_indices": list(self.skipped_indices),
            "failed_indices": list(self.failed_indices),
            "detail": self.detail,
        }


@dataclass(slots=True)
class IngestReport:
    status: Literal["completed"]
    stats: IngestStats
    results: list[DocumentResult]
    duration_seconds: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "stats": self.stats.to_dict(),
            "results": [result.to_dict() for result in self.results],
            "duration_seconds": round(self.duration_seconds, 3),
        }


__all__ = ["LoadedDocument", "IngestStats", "DocumentResult", "IngestReport"]
