"""PDF discovery and text extraction."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterator

import fitz  # PyMuPDF

from letters_rag.core.errors import ConfigurationError, DocumentLoadError
from letters_rag.ingest.types import LoadedDocument

_YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")
_WHITESPACE_RE = re.compile(r"\s+")


def parse_year(filename: str) -> int | None:
    """Return the first plausible 4-digit year (1900-2099) in a file name."""
    match = _YEAR_RE.search(filename)
    return int(match.group(0)) if match else None


class PDFLoader:
    """Find PDF files in a directory and extract their plain text."""

    suffixes: tuple[str, ...] = (".pdf",)

    def can_load(self, path: Path) -> bool:
        return path.suffix.lower() in self.suffixes

    def discover(self, directory: Path) -> Iterator[Path]:
        directory = directory.expanduser()
        if not directory.is_dir():
            raise ConfigurationError(f"Data directory {directory} does not exist")
        for path in sorted(directory.iterdir()):
            if path.is_file() and self.can_load(path):
                yield path

    def load(self, path: Path) -> LoadedDocument:
        try:
            raw = path.read_bytes()
            with fitz.open(stream=raw, filetype="pdf") as doc:
                pages = [page.get_text("text") for page in doc]
        except (OSError, RuntimeError) as exc:
            # PyMuPDF reports damaged or non-PDF input as FileDataError, a RuntimeError.
            raise DocumentLoadError(path, str(exc)) from exc
        return LoadedDocument(
            path=path,
            text=_WHITESPACE_RE.sub(" ", " ".join(pages)).strip(),
            year=parse_year(path.name),
            page_count=len(pages),
            size_bytes=len(raw),
        )


__all__ = ["PDFLoader", "parse_year"]
