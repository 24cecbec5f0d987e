"""Query-time retrieval."""

from __future__ import annotations

import time

from letters_rag.core.logging import get_logger
from letters_rag.ingest.embeddings import Embedder
from letters_rag.models.entities import RetrievedChunk
from letters_rag.retrieval.vector_store import VectorStore

logger = get_logger(__name__)

DEFAULT_LIMIT = 5


class Retriever:
    """Embed a query with the store's embedder and return the nearest chunks."""

    def __init__(self, store: VectorStore, embedder: Embedder) -> None:
        self.store = store
        self.embedder = embedder

    def retrieve(self, query_text: str, limit: int = DEFAULT_LIMIT) -> list[RetrievedChunk]:
        """Best match first; an empty store yields an empty list.

        ``EmbeddingFailure`` propagates: nothing can stand in for the query vector.
        """
        started = time.perf_counter()
        vector = self.embedder.embed(query_text)
        hits = self.store.search(vector, limit=limit)
        logger.debug(
            "Retrieved %s chunks in %.3fs",
            len(hits),
            time.perf_counter() - started,
            extra={"ctx_query_length": len(query_text), "ctx_limit": limit},
        )
        return [RetrievedChunk(content=hit.content, score=hit.score, source=hit.source, year=hit.year) for hit in hits]


__all__ = ["Retriever", "DEFAULT_LIMIT"]
