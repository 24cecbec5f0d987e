"""Document and chunk persistence with cosine-similarity search."""

from __future__ import annotations

import sqlite3
import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterator, Sequence

from letters_rag.core.errors import ConfigurationError, DimensionMismatch, StoreUnavailable
from letters_rag.db.sqlite import SQLiteDatabase
from letters_rag.models.entities import Chunk, Document
from letters_rag.utils.vectors import parse_vector_literal, to_vector_literal

_DIM_KEY = "embedding_dim"


@dataclass(slots=True)
class SearchHit:
    content: str
    source: str | None
    year: int | None
    score: float


class VectorStore:
    """Store adapter bound to a single embedding width."""

    def __init__(self, db: SQLiteDatabase, dim: int) -> None:
        self.db = db
        self.dim = dim

    def ensure_schema(self) -> None:
        """Create tables if missing and pin the store to ``self.dim``.

        Safe to call on every startup. A store created for another width is
        rejected with :class:`ConfigurationError`.
        """
        with self._locked("create schema"):
            self.db.ensure_schema()
            row = self.db.execute("SELECT value FROM store_meta WHERE key = ?", [_DIM_KEY]).fetchone()
            if row is None:
                self.db.execute("INSERT INTO store_meta (key, value) VALUES (?, ?)", [_DIM_KEY, str(self.dim)])
                self.db.commit()
                return
        recorded = int(row["value"])
        if recorded != self.dim:
            raise ConfigurationError(
                f"Store {self.db.db_path} holds {recorded}-dimensional embeddings; "
                f"the active embedder produces {self.dim}"
            )

    def insert_document(self, source: str, year: int, page_count: int, file_size: int) -> int:
        with self._locked("insert document"):
            cursor = self.db.execute(
                """
                INSERT INTO documents (source, year, page_count, file_size, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                [source, year, page_count, file_size, _now_ms()],
            )
            self.db.commit()
        return int(cursor.lastrowid)

    def insert_chunk(
        self,
        document_id: int,
        chunk_index: int,
        content: str,
        embedding: Sequence[float] | str,
    ) -> int:
        """Persist one chunk; a vector of the wrong width raises ``DimensionMismatch``.

        Callers are responsible for discarding chunks below the minimum length.
        """
        literal = self._validated_literal(embedding)
        with self._locked("insert chunk"):
            cursor = self.db.execute(
                """
                INSERT INTO document_chunks (document_id, chunk_index, content, embedding, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                [document_id, chunk_index, content, literal, _now_ms()],
            )
            self.db.commit()
        return int(cursor.lastrowid)

    def search(self, query_embedding: Sequence[float] | str, limit: int = 5) -> list[SearchHit]:
        """Return the ``limit`` nearest chunks, best first, scored ``1 - cosine distance``."""
        if limit < 1:
            raise ValueError("limit must be at least 1")
        literal = self._validated_literal(query_embedding)
        with self._locked("search"):
            rows = self.db.query(
                """
                SELECT
                  c.content,
                  d.source,
                  d.year,
                  cosine_distance(c.embedding, ?) AS distance
                FROM document_chunks c
                JOIN documents d ON d.id = c.document_id
                ORDER BY distance ASC, c.id ASC
                LIMIT ?
                """,
                [literal, limit],
            )
        return [
            SearchHit(
                content=row["content"],
                source=row["source"],
                year=row["year"],
                score=1.0 - float(row["distance"]),
            )
            for row in rows
        ]

    def counts(self) -> tuple[int, int]:
        """Return ``(documents, chunks)``."""
        with self._locked("count rows"):
            documents = self.db.execute("SELECT COUNT(*) FROM documents").fetchone()[0]
            chunks = self.db.execute("SELECT COUNT(*) FROM document_chunks").fetchone()[0]
        return int(documents), int(chunks)

    def list_documents(self) -> list[Document]:
        with self._locked("list documents"):
            rows = self.db.query(
                "SELECT id, source, year, page_count, file_size, created_at FROM documents ORDER BY id",
            )
        return [
            Document(
                id=row["id"],
                source=row["source"],
                year=row["year"],
                page_count=row["page_count"],
                file_size=row["file_size"],
                created_at=_from_ms(row["created_at"]),
            )
            for row in rows
        ]

    def list_chunks(self, document_id: int) -> list[Chunk]:
        """Chunks of a document in index order."""
        with self._locked("list chunks"):
            rows = self.db.query(
                """
                SELECT id, document_id, chunk_index, content, embedding, created_at
                FROM document_chunks
                WHERE document_id = ?
                ORDER BY chunk_index
                """,
                [document_id],
            )
        return [
            Chunk(
                id=row["id"],
                document_id=row["document_id"],
                chunk_index=row["chunk_index"],
                content=row["content"],
                embedding=parse_vector_literal(row["embedding"], self.dim),
                created_at=_from_ms(row["created_at"]),
            )
            for row in rows
        ]

    @contextmanager
    def _locked(self, action: str) -> Iterator[None]:
        with self.db.lock, _store_errors(action):
            yield

    def _validated_literal(self, embedding: Sequence[float] | str) -> str:
        if isinstance(embedding, str):
            return to_vector_literal(parse_vector_literal(embedding, self.dim))
        if len(embedding) != self.dim:
            raise DimensionMismatch(self.dim, len(embedding))
        return to_vector_literal(embedding)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _from_ms(value: int | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except sqlite3.IntegrityError:
        raise
    except sqlite3.Error as exc:
        raise StoreUnavailable(f"Failed to {action}: {exc}") from exc


__all__ = ["SearchHit", "VectorStore"]
