"""Process-wide resources, built once at startup and closed on shutdown."""

from __future__ import annotations

from dataclasses import dataclass

from letters_rag.core.config import Settings
from letters_rag.core.logging import get_logger
from letters_rag.db.sqlite import SQLiteDatabase
from letters_rag.generation.answer import AnswerGenerator, ChatModel
from letters_rag.generation.llm import get_chat_model
from letters_rag.generation.service import AnswerService
from letters_rag.ingest.embeddings import Embedder, build_embedder
from letters_rag.ingest.pipeline import IngestPipeline
from letters_rag.retrieval import Retriever, VectorStore

logger = get_logger(__name__)


@dataclass(slots=True)
class AppResources:
    settings: Settings
    db: SQLiteDatabase
    embedder: Embedder
    store: VectorStore
    retriever: Retriever
    pipeline: IngestPipeline
    answer_service: AnswerService | None

    def close(self) -> None:
        self.db.close()
        logger.info("Store connection closed")


def build_resources(
    settings: Settings,
    *,
    embedder: Embedder | None = None,
    chat_model: ChatModel | None = None,
    with_generation: bool = True,
) -> AppResources:
    """Open the store, validate it against the embedder and wire the components.

    Raises ``ConfigurationError`` for missing credentials or a store built for
    another embedding width, ``StoreUnavailable`` when the database cannot be
    opened. The connection is closed again if wiring fails.
    """
    embedder = embedder or build_embedder(settings)
    db = SQLiteDatabase(settings.db_path, timeout=settings.request_timeout)
    try:
        store = VectorStore(db, dim=embedder.dim)
        store.ensure_schema()
        answer_service = None
        retriever = Retriever(store, embedder)
        if with_generation:
            generator = AnswerGenerator(chat_model or get_chat_model(settings), corpus_name=settings.corpus_name)
            answer_service = AnswerService(retriever, generator, default_limit=settings.top_k)
        pipeline = IngestPipeline(store, embedder, settings)
    except Exception:
        db.close()
        raise
    logger.info(
        "Resources ready: %s embeddings (%s dims), store %s",
        embedder.name,
        embedder.dim,
        settings.db_path,
    )
    return AppResources(
        settings=settings,
        db=db,
        embedder=embedder,
        store=store,
        retriever=retriever,
        pipeline=pipeline,
        answer_service=answer_service,
    )


__all__ = ["AppResources", "build_resources"]
