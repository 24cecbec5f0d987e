"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from letters_rag.generation.service import AnswerService
from letters_rag.ingest.pipeline import IngestPipeline
from letters_rag.resources import AppResources
from letters_rag.retrieval import Retriever, VectorStore


def get_resources(request: Request) -> AppResources:
    resources = getattr(request.app.state, "resources", None)
    if resources is None:
        raise HTTPException(status_code=503, detail="Service is starting up")
    return resources


def get_store(resources: AppResources = Depends(get_resources)) -> VectorStore:
    return resources.store


def get_retriever(resources: AppResources = Depends(get_resources)) -> Retriever:
    return resources.retriever


def get_ingest_pipeline(resources: AppResources = Depends(get_resources)) -> IngestPipeline:
    return resources.pipeline


def get_answer_service(resources: AppResources = Depends(get_resources)) -> AnswerService:
    if resources.answer_service is None:
        raise HTTPException(status_code=503, detail="Answer generation is not configured")
    return resources.answer_service


__all__ = [
    "get_resources",
    "get_store",
    "get_retriever",
    "get_ingest_pipeline",
    "get_answer_service",
]
