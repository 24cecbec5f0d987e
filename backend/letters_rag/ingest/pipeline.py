"""Ingest pipeline orchestration."""

from __future__ import annotations

import time
from functools import partial
from pathlib import Path
from typing import Callable, Iterable, Iterator

from letters_rag.core.config import Settings
from letters_rag.core.errors import StoreUnavailable
from letters_rag.core.logging import get_logger
from letters_rag.core.metrics import INDEX_SIZE, INGEST_CHUNKS, INGEST_DURATION
from letters_rag.ingest.chunker import chunk_text, validate_window
from letters_rag.ingest.embeddings import Embedder
from letters_rag.ingest.loaders import PDFLoader, parse_year
from letters_rag.ingest.types import DocumentResult, IngestReport, IngestStats, LoadedDocument
from letters_rag.retrieval.vector_store import VectorStore

logger = get_logger(__name__)

Chunker = Callable[[str], list[str]]


class IngestPipeline:
    """Coordinate loading, chunking, embeddings, and persistence.

    Documents and chunks are processed one at a time, in order. A failing chunk
    is logged and skipped; anything that breaks a whole document (loading, the
    document row, a lost store) aborts the run.
    """

    def __init__(
        self,
        store: VectorStore,
        embedder: Embedder,
        settings: Settings,
        loader: PDFLoader | None = None,
        chunker: Chunker | None = None,
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.settings = settings
        self.loader = loader or PDFLoader()
        if chunker is None:
            validate_window(settings.chunk_size, settings.chunk_overlap)
            chunker = partial(chunk_text, size=settings.chunk_size, overlap=settings.chunk_overlap)
        self.chunker = chunker

    def ingest_directory(self, directory: Path | None = None) -> IngestReport:
        """Ingest every PDF in ``directory`` (defaults to ``settings.data_dir``)."""
        target = Path(directory) if directory is not None else self.settings.data_dir
        logger.info("Ingesting PDFs from %s", target)
        return self._run(self._load_directory(target))

    def ingest_documents(self, documents: Iterable[LoadedDocument]) -> IngestReport:
        return self._run(documents)

    # Internal helpers -------------------------------------------------

    def _run(self, documents: Iterable[LoadedDocument]) -> IngestReport:
        started = time.perf_counter()
        stats = IngestStats()
        results: list[DocumentResult] = []
        try:
            self.store.ensure_schema()
            for document in documents:
                if document.year is None:
                    logger.info("Skipping %s: no year in file name", document.path.name)
                    stats.skipped += 1
                    results.append(
                        DocumentResult(path=document.path, status="skipped", detail="no year in file name")
                    )
                    continue
                results.append(self._ingest_document(document, stats))
        except Exception as exc:
            logger.exception("Ingest run aborted: %s", exc, extra={"ctx_stats": stats.to_dict()})
            raise
        finally:
            INGEST_DURATION.observe(time.perf_counter() - started)

        self._update_index_metric()
        duration = time.perf_counter() - started
        logger.info(
            "Ingest completed: %s documents, %s chunks stored",
            stats.processed,
            stats.chunks,
            extra={"ctx_stats": stats.to_dict()},
        )
        return IngestReport(status="completed", stats=stats, results=results, duration_seconds=duration)

    def _load_directory(self, directory: Path) -> Iterator[LoadedDocument]:
        for path in self.loader.discover(directory):
            if parse_year(path.name) is None:
                # Year-less files are reported but never extracted.
                yield LoadedDocument(path=path, text="", year=None, page_count=0, size_bytes=path.stat().st_size)
                continue
            yield self.loader.load(path)

    def _ingest_document(self, document: LoadedDocument, stats: IngestStats) -> DocumentResult:
        document_id = self.store.insert_document(
            source=document.source,
            year=document.year,
            page_count=document.page_count,
            file_size=document.size_bytes,
        )
        chunks = self.chunker(document.text)
        logger.info(
            "Processing %s: %s chunks",
            document.path.name,
            len(chunks),
            extra={"ctx_document_id": document_id, "ctx_year": document.year},
        )
        result = DocumentResult(path=document.path, status="processed", document_id=document_id, year=document.year)
        if not chunks:
            logger.warning("Document %s produced no chunks", document.path)

        for index, chunk in enumerate(chunks):
            if len(chunk) < self.settings.min_chunk_chars:
                result.skipped_indices.append(index)
                stats.chunks_skipped += 1
                INGEST_CHUNKS.labels(status="skipped").inc()
                continue
            try:
                embedding = self.embedder.embed(chunk)
                self.store.insert_chunk(document_id, index, chunk, embedding)
            except StoreUnavailable:
                raise
            except Exception as exc:
                logger.warning(
                    "Chunk %s of %s failed: %s",
                    index,
                    document.path.name,
                    exc,
                    extra={"ctx_document_id": document_id, "ctx_chunk_index": index},
                )
                result.failed_indices.append(index)
                stats.chunks_failed += 1
                INGEST_CHUNKS.labels(status="failed").inc()
                continue
            result.stored_indices.append(index)
            stats.chunks += 1
            INGEST_CHUNKS.labels(status="stored").inc()

        stats.processed += 1
        return result

    def _update_index_metric(self) -> None:
        _, chunks = self.store.counts()
        INDEX_SIZE.set(chunks)


__all__ = ["IngestPipeline", "Chunker"]
