"""Embedding backends.

Two interchangeable strategies share the :class:`Embedder` interface:

* :class:`LocalHashEmbedder` hashes tokens into a 384-wide bag-of-words vector.
  It needs nothing external and is fully deterministic, but only captures
  lexical overlap.
* :class:`SemanticEmbedder` delegates to a hosted embedding model through
  LangChain's ``OpenAIEmbeddings``.

Vectors of different backends are not comparable, so a store is bound to one
width (see :class:`letters_rag.retrieval.vector_store.VectorStore`).
"""

from __future__ import annotations

import logging
import math
import re
from typing import Protocol, Sequence

from langchain_openai import OpenAIEmbeddings

from letters_rag.core.config import LOCAL_EMBEDDING_DIM, SEMANTIC_EMBEDDING_DIM, Settings
from letters_rag.core.errors import EmbeddingFailure

logger = logging.getLogger(__name__)

_STRIP_RE = re.compile(r"[^a-z0-9\s]")
MAX_TOKENS = 100
_HASH_BASE = 31
_HASH_MASK = 0xFFFFFFFF


class QueryEmbeddingClient(Protocol):
    def embed_query(self, text: str) -> list[float]: ...


class Embedder:
    """Text to fixed-width vector."""

    name: str = "embedder"

    @property
    def dim(self) -> int:  # pragma: no cover - interface
        raise NotImplementedError

    def embed(self, text: str) -> list[float]:  # pragma: no cover - interface
        raise NotImplementedError


class LocalHashEmbedder(Embedder):
    """Lightweight hashed embedding model with deterministic output."""

    name = "local-hash"

    def __init__(self, dim: int = LOCAL_EMBEDDING_DIM, max_tokens: int = MAX_TOKENS) -> None:
        self._dim = dim
        self.max_tokens = max_tokens

    @property
    def dim(self) -> int:
        return self._dim

    def embed(self, text: str) -> list[float]:
        vector = [0.0] * self._dim
        for token in _tokenize(text)[: self.max_tokens]:
            vector[_hash_token(token) % self._dim] += 1.0
        return _normalize(vector)


class SemanticEmbedder(Embedder):
    """Hosted embedding model; failures surface as :class:`EmbeddingFailure`."""

    def __init__(self, client: QueryEmbeddingClient, dim: int = SEMANTIC_EMBEDDING_DIM, model_name: str = "") -> None:
        self.client = client
        self._dim = dim
        self.name = model_name or "semantic"

    @property
    def dim(self) -> int:
        return self._dim

    def embed(self, text: str) -> list[float]:
        try:
            vector = self.client.embed_query(text)
        except Exception as exc:
            raise EmbeddingFailure(f"Embedding call to {self.name} failed: {exc}") from exc
        if len(vector) != self._dim:
            raise EmbeddingFailure(f"{self.name} returned {len(vector)} dimensions, expected {self._dim}")
        return [float(value) for value in vector]


def build_embedder(settings: Settings) -> Embedder:
    """Instantiate the backend selected by ``settings.embedding_backend``."""
    if settings.embedding_backend == "local":
        return LocalHashEmbedder()
    kwargs: dict = {
        "model": settings.embedding_model,
        "api_key": settings.client_api_key(),
        "timeout": settings.request_timeout,
        "max_retries": 2,
    }
    if settings.embedding_dim:
        kwargs["dimensions"] = settings.embedding_dim
    if settings.openai_base_url:
        kwargs["base_url"] = settings.openai_base_url
    logger.info("Using hosted embeddings %s (%s dims)", settings.embedding_model, settings.vector_width)
    return SemanticEmbedder(OpenAIEmbeddings(**kwargs), dim=settings.vector_width, model_name=settings.embedding_model)


def _tokenize(text: str) -> list[str]:
    return _STRIP_RE.sub("", text.lower()).split()


def _hash_token(token: str) -> int:
    value = 0
    for char in token:
        value = (value * _HASH_BASE + ord(char)) & _HASH_MASK
    return value


def _normalize(vector: Sequence[float]) -> list[float]:
    norm = math.sqrt(sum(value * value for value in vector)) or 1.0
    return [value / norm for value in vector]


__all__ = ["Embedder", "LocalHashEmbedder", "SemanticEmbedder", "build_embedder"]
