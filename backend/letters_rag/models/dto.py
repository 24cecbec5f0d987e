"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class ConversationTurnModel(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class RetrieveRequest(BaseModel):
    model_config = {"str_strip_whitespace": True}

    query: str = Field(min_length=1)
    limit: int = Field(default=5, ge=1, le=50)


class QueryRequest(BaseModel):
    model_config = {"str_strip_whitespace": True}

    question: str = Field(min_length=1)
    limit: int | None = Field(default=None, ge=1, le=50, description="Chunks to retrieve; server default when omitted")
    history: list[ConversationTurnModel] = Field(default_factory=list, description="Earlier turns of this chat")


class RetrievedChunkModel(BaseModel):
    index: int
    content: str
    score: float
    source: str
    year: int | str


class RetrieveResponse(BaseModel):
    success: bool = True
    query: str
    chunks: list[RetrievedChunkModel]
    total: int
    summary: str


class ChunkUsageModel(BaseModel):
    chunk_number: int
    source: str
    year: int | str
    relevance_score: float
    preview: str


class VerificationModel(BaseModel):
    chunks_retrieved: int
    chunks_used: list[ChunkUsageModel]
    context_length: int
    verified_from_database: bool
    cited_chunks: list[int]


class SourceModel(BaseModel):
    source: str
    year: int | str
    score: float


class QueryResponse(BaseModel):
    success: bool
    question: str
    answer: str | None = None
    sources: list[SourceModel] = Field(default_factory=list)
    verification: VerificationModel | None = None
    error: str | None = None
    message: str | None = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    message: str


class IngestRequest(BaseModel):
    directory: str | None = Field(default=None, description="Directory of PDFs; server data_dir when omitted")


class IngestResponse(BaseModel):
    status: str
    stats: dict[str, int]
    results: list[dict[str, Any]]
    duration_seconds: float


class DatabaseStatus(BaseModel):
    connected: bool
    total_chunks: int = 0
    total_documents: int = 0
    ready: bool = False


class EnvironmentStatus(BaseModel):
    embedding_backend: str
    embedding_dim: int
    has_openai_key: bool
    generation_enabled: bool


class StatusResponse(BaseModel):
    status: Literal["ok", "error"]
    database: DatabaseStatus
    environment: EnvironmentStatus | None = None
    message: str | None = None


class DocumentResponse(BaseModel):
    id: int
    source: str
    year: int
    page_count: int
    file_size: int
    created_at: datetime | None


__all__ = [
    "ConversationTurnModel",
    "RetrieveRequest",
    "RetrieveResponse",
    "RetrievedChunkModel",
    "QueryRequest",
    "QueryResponse",
    "ChunkUsageModel",
    "VerificationModel",
    "SourceModel",
    "ErrorResponse",
    "IngestRequest",
    "IngestResponse",
    "DatabaseStatus",
    "EnvironmentStatus",
    "StatusResponse",
    "DocumentResponse",
]
