"""Error taxonomy shared across ingestion, retrieval and generation."""

from __future__ import annotations


class LettersRagError(Exception):
    """Base class for all application errors."""


class ConfigurationError(LettersRagError):
    """Missing or inconsistent configuration; the process must not proceed."""


class StoreUnavailable(LettersRagError):
    """The vector store could not be reached or a query against it failed."""


class DimensionMismatch(LettersRagError, ValueError):
    """A vector does not match the width configured for the store."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Expected a vector of width {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class DocumentLoadError(LettersRagError):
    """A source document could not be read or parsed."""

    def __init__(self, path, reason: str) -> None:
        super().__init__(f"Cannot load {path}: {reason}")
        self.path = path


class EmbeddingFailure(LettersRagError):
    """The embedding backend failed to produce a vector."""


class GenerationFailure(LettersRagError):
    """The generation model failed to produce an answer."""


__all__ = [
    "LettersRagError",
    "ConfigurationError",
    "StoreUnavailable",
    "DimensionMismatch",
    "DocumentLoadError",
    "EmbeddingFailure",
    "GenerationFailure",
]
