"""Vector literal encoding and similarity helpers."""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Sequence

from letters_rag.core.errors import DimensionMismatch


def to_vector_literal(vector: Sequence[float]) -> str:
    """Serialize a vector to the bracketed literal stored in the database."""
    return "[" + ",".join(repr(float(value)) for value in vector) + "]"


def parse_vector_literal(literal: str, dim: int | None = None) -> tuple[float, ...]:
    """Parse ``"[0.1,-0.2,...]"`` into floats, checking the width when ``dim`` is given."""
    text = literal.strip()
    if not (text.startswith("[") and text.endswith("]")):
        raise ValueError(f"Malformed vector literal: {literal[:40]!r}")
    body = text[1:-1].strip()
    values = tuple(float(part) for part in body.split(",")) if body else ()
    if dim is not None and len(values) != dim:
        raise DimensionMismatch(dim, len(values))
    return values


@lru_cache(maxsize=64)
def _parse_cached(literal: str) -> tuple[float, ...]:
    return parse_vector_literal(literal)


def cosine_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Return ``1 - cos(a, b)``; a zero-norm operand has distance 1.0."""
    if len(a) != len(b):
        raise DimensionMismatch(len(a), len(b))
    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    if norm_a == 0.0 or norm_b == 0.0:
        return 1.0
    return 1.0 - dot / (math.sqrt(norm_a) * math.sqrt(norm_b))


def sql_cosine_distance(left: str | None, right: str | None) -> float | None:
    """SQLite scalar function over two vector literals."""
    if left is None or right is None:
        return None
    return cosine_distance(_parse_cached(left), _parse_cached(right))


__all__ = ["to_vector_literal", "parse_vector_literal", "cosine_distance", "sql_cosine_distance"]
