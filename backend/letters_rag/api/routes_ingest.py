"""Ingest API routes."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from letters_rag.api.dependencies import get_ingest_pipeline
from letters_rag.core.errors import ConfigurationError, DocumentLoadError, StoreUnavailable
from letters_rag.core.logging import get_logger
from letters_rag.ingest.pipeline import IngestPipeline
from letters_rag.models.dto import ErrorResponse, IngestRequest, IngestResponse

logger = get_logger(__name__)

router = APIRouter()

# Failures that abort a run, mapped to the status code reported to the caller.
_ABORT_STATUS = (
    (ConfigurationError, 400),
    (DocumentLoadError, 422),
    (StoreUnavailable, 503),
)


@router.post(
    "",
    response_model=IngestResponse,
    responses={code: {"model": ErrorResponse} for _, code in _ABORT_STATUS},
    summary="Ingest a directory of PDFs",
)
def trigger_ingest(
    request: IngestRequest,
    pipeline: IngestPipeline = Depends(get_ingest_pipeline),
):
    directory = Path(request.directory).expanduser() if request.directory else None
    try:
        report = pipeline.ingest_directory(directory)
    except (ConfigurationError, DocumentLoadError, StoreUnavailable) as exc:
        status_code = next(code for error_type, code in _ABORT_STATUS if isinstance(exc, error_type))
        logger.error("Ingest request aborted: %s", exc)
        body = ErrorResponse(error="Ingestion aborted", message=str(exc))
        return JSONResponse(status_code=status_code, content=body.model_dump())
    return IngestResponse(**report.to_dict())


__all__ = ["router"]
