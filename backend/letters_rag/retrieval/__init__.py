"""Retrieval components."""

from .retriever import DEFAULT_LIMIT, Retriever
from .vector_store import SearchHit, VectorStore

__all__ = [
    "DEFAULT_LIMIT",
    "Retriever",
    "SearchHit",
    "VectorStore",
]
