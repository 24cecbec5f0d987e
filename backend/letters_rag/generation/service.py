"""Question answering: retrieve, assemble context, generate, report provenance."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from letters_rag.core.errors import DimensionMismatch, EmbeddingFailure, GenerationFailure, StoreUnavailable
from letters_rag.core.logging import get_logger
from letters_rag.core.metrics import GENERATION_FAILURES
from letters_rag.generation.answer import AnswerGenerator
from letters_rag.generation.context import assemble_context, chunk_preview, cited_chunk_numbers
from letters_rag.models.entities import ConversationTurn, RetrievedChunk
from letters_rag.retrieval.retriever import DEFAULT_LIMIT, Retriever

logger = get_logger(__name__)

NO_RELEVANT_INFORMATION_TEMPLATE = "I couldn't find any relevant information in the {corpus} to answer this question."


def no_relevant_information_answer(corpus: str) -> str:
    return NO_RELEVANT_INFORMATION_TEMPLATE.format(corpus=corpus)


@dataclass(slots=True)
class ChunkUsage:
    chunk_number: int
    source: str
    year: int | str
    relevance_score: float
    preview: str


@dataclass(slots=True)
class SourceReference:
    source: str
    year: int | str
    score: float


@dataclass(slots=True)
class Verification:
    """Audit block echoing what the answer was generated from.

    ``cited_chunks`` lists the chunk markers found in the answer; it is
    informational and never used to reject an answer.
    """

    chunks_retrieved: int = 0
    chunks_used: list[ChunkUsage] = field(default_factory=list)
    context_length: int = 0
    verified_from_database: bool = True
    cited_chunks: list[int] = field(default_factory=list)


@dataclass(slots=True)
class QueryOutcome:
    success: bool
    question: str
    answer: str | None = None
    sources: list[SourceReference] = field(default_factory=list)
    verification: Verification | None = None
    error: str | None = None
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        verification = self.verification
        return {
            "success": self.success,
            "question": self.question,
            "answer": self.answer,
            "sources": [
                {"source": ref.source, "year": ref.year, "score": ref.score} for ref in self.sources
            ],
            "verification": None
            if verification is None
            else {
                "chunks_retrieved": verification.chunks_retrieved,
                "chunks_used": [
                    {
                        "chunk_number": usage.chunk_number,
                        "source": usage.source,
                        "year": usage.year,
                        "relevance_score": usage.relevance_score,
                        "preview": usage.preview,
                    }
                    for usage in verification.chunks_used
                ],
                "context_length": verification.context_length,
                "verified_from_database": verification.verified_from_database,
                "cited_chunks": list(verification.cited_chunks),
            },
            "error": self.error,
            "message": self.message,
        }


class AnswerService:
    """Coordinates retrieval and generation and reports provenance."""

    def __init__(self, retriever: Retriever, generator: AnswerGenerator, default_limit: int = DEFAULT_LIMIT) -> None:
        self.retriever = retriever
        self.generator = generator
        self.default_limit = default_limit

    def answer(
        self,
        question: str,
        limit: int | None = None,
        history: Sequence[ConversationTurn] | None = None,
    ) -> QueryOutcome:
        """Answer ``question``; failures come back as ``success=False`` outcomes."""
        top_k = limit or self.default_limit
        try:
            chunks = self.retriever.retrieve(question, top_k)
        except (EmbeddingFailure, StoreUnavailable, DimensionMismatch) as exc:
            logger.error("Retrieval failed: %s", exc, extra={"ctx_query_length": len(question)})
            return QueryOutcome(
                success=False,
                question=question,
                error="Failed to retrieve chunks",
                message=str(exc),
            )

        if not chunks:
            # Generating from empty context only invites hallucination.
            return QueryOutcome(
                success=True,
                question=question,
                answer=no_relevant_information_answer(self.generator.corpus_name),
                verification=Verification(),
            )

        context = assemble_context(chunks)
        verification = _verification(chunks, context)
        try:
            answer = self.generator.generate(question, context, history=history)
        except GenerationFailure as exc:
            GENERATION_FAILURES.inc()
            logger.error("Generation failed: %s", exc, extra={"ctx_chunks": len(chunks)})
            return QueryOutcome(
                success=False,
                question=question,
                verification=verification,
                error="Failed to generate answer",
                message=str(exc),
            )

        verification.cited_chunks = cited_chunk_numbers(answer, len(chunks))
        if not verification.cited_chunks:
            logger.info("Answer cites no chunk markers", extra={"ctx_chunks": len(chunks)})
        return QueryOutcome(
            success=True,
            question=question,
            answer=answer,
            sources=[
                SourceReference(source=chunk.source_label, year=chunk.year_label, score=chunk.score)
                for chunk in chunks
            ],
            verification=verification,
        )


def _verification(chunks: Sequence[RetrievedChunk], context: str) -> Verification:
    return Verification(
        chunks_retrieved=len(chunks),
        chunks_used=[
            ChunkUsage(
                chunk_number=number,
                source=chunk.source_label,
                year=chunk.year_label,
                relevance_score=round(chunk.score, 4),
                preview=chunk_preview(chunk.content),
            )
            for number, chunk in enumerate(chunks, start=1)
        ],
        context_length=len(context),
    )


__all__ = [
    "NO_RELEVANT_INFORMATION_TEMPLATE",
    "AnswerService",
    "ChunkUsage",
    "QueryOutcome",
    "SourceReference",
    "Verification",
    "no_relevant_information_answer",
]
