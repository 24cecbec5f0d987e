"""Retrieval and question answering routes.

Handlers stay synchronous so embedding and model calls run in the threadpool,
off the event loop.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from letters_rag.api.dependencies import get_answer_service, get_retriever
from letters_rag.core.errors import DimensionMismatch, EmbeddingFailure, StoreUnavailable
from letters_rag.core.logging import get_logger
from letters_rag.generation.service import AnswerService
from letters_rag.models.dto import (
    ErrorResponse,
    QueryRequest,
    QueryResponse,
    RetrievedChunkModel,
    RetrieveRequest,
    RetrieveResponse,
)
from letters_rag.models.entities import ConversationTurn
from letters_rag.retrieval.retriever import Retriever

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "/retrieve",
    response_model=RetrieveResponse,
    responses={500: {"model": ErrorResponse}},
    summary="Retrieve chunks without generating an answer",
)
def retrieve(request: RetrieveRequest, retriever: Retriever = Depends(get_retriever)):
    try:
        chunks = retriever.retrieve(request.query, request.limit)
    except (EmbeddingFailure, StoreUnavailable, DimensionMismatch) as exc:
        logger.error("Retrieve request failed: %s", exc)
        body = ErrorResponse(error="Failed to retrieve chunks", message=str(exc))
        return JSONResponse(status_code=500, content=body.model_dump())
    return RetrieveResponse(
        query=request.query,
        chunks=[
            RetrievedChunkModel(
                index=number,
                content=chunk.content,
                score=chunk.score,
                source=chunk.source_label,
                year=chunk.year_label,
            )
            for number, chunk in enumerate(chunks, start=1)
        ],
        total=len(chunks),
        summary=f"Retrieved {len(chunks)} relevant chunk(s).",
    )


@router.post(
    "/query",
    response_model=QueryResponse,
    responses={500: {"model": QueryResponse}},
    summary="Answer a question from retrieved context",
)
def run_query(request: QueryRequest, service: AnswerService = Depends(get_answer_service)):
    history = [ConversationTurn(role=turn.role, content=turn.content) for turn in request.history]
    outcome = service.answer(request.question, limit=request.limit, history=history)
    payload = QueryResponse(**outcome.to_dict())
    if not outcome.success:
        return JSONResponse(status_code=500, content=payload.model_dump())
    return payload


__all__ = ["router"]
