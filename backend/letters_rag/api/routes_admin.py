"""Status, inventory and metrics routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from letters_rag.api.dependencies import get_resources, get_store
from letters_rag.core.errors import StoreUnavailable
from letters_rag.core.metrics import INDEX_SIZE, metrics_response
from letters_rag.models.dto import DatabaseStatus, DocumentResponse, EnvironmentStatus, StatusResponse
from letters_rag.resources import AppResources
from letters_rag.retrieval.vector_store import VectorStore

router = APIRouter()


@router.get("/status", response_model=StatusResponse, summary="Database connectivity and index size")
def status(resources: AppResources = Depends(get_resources)):
    try:
        connected = resources.db.ping()
        total_documents, total_chunks = resources.store.counts()
    except StoreUnavailable as exc:
        body = StatusResponse(status="error", database=DatabaseStatus(connected=False), message=str(exc))
        return JSONResponse(status_code=500, content=body.model_dump())
    INDEX_SIZE.set(total_chunks)
    settings = resources.settings
    return StatusResponse(
        status="ok",
        database=DatabaseStatus(
            connected=connected,
            total_chunks=total_chunks,
            total_documents=total_documents,
            ready=total_chunks > 0,
        ),
        environment=EnvironmentStatus(
            embedding_backend=settings.embedding_backend,
            embedding_dim=resources.embedder.dim,
            has_openai_key=bool(settings.openai_api_key),
            generation_enabled=resources.answer_service is not None,
        ),
    )


@router.get("/documents", response_model=list[DocumentResponse], summary="List ingested documents")
def list_documents(store: VectorStore = Depends(get_store)) -> list[DocumentResponse]:
    return [
        DocumentResponse(
            id=document.id,
            source=document.source,
            year=document.year,
            page_count=document.page_count,
            file_size=document.file_size,
            created_at=document.created_at,
        )
        for document in store.list_documents()
    ]


@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics():
    return metrics_response()


__all__ = ["router"]
