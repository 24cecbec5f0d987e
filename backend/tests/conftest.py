"""Test fixtures for Letters RAG."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from langchain_core.messages import AIMessage  # noqa: E402

from letters_rag.core.config import Settings, get_settings  # noqa: E402
from letters_rag.db.sqlite import SQLiteDatabase  # noqa: E402
from letters_rag.ingest.embeddings import LocalHashEmbedder  # noqa: E402
from letters_rag.retrieval.vector_store import VectorStore  # noqa: E402

BUFFETT_SENTENCE = "Buffett believes in long-term value investing. "


class FakeChatModel:
    """Chat model double recording every prompt it receives."""

    def __init__(self, reply: str = "Berkshire favours long-term value investing [Chunk 1].") -> None:
        self.reply = reply
        self.error: Exception | None = None
        self.calls: list[list[Any]] = []

    def invoke(self, messages: list[Any]) -> AIMessage:
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return AIMessage(content=self.reply)


class FakeEmbeddingClient:
    def __init__(self, vector: list[float]) -> None:
        self.vector = vector
        self.error: Exception | None = None
        self.queries: list[str] = []

    def embed_query(self, text: str) -> list[float]:
        self.queries.append(text)
        if self.error is not None:
            raise self.error
        return list(self.vector)


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate settings and environment between tests."""
    for key in list(os.environ):
        if key.startswith("LRAG_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setenv("LRAG_DB_PATH", str(tmp_path / "env.db"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        db_path=tmp_path / "letters.db",
        data_dir=tmp_path / "data",
        chunk_size=200,
        chunk_overlap=50,
        log_json=False,
    )


@pytest.fixture
def database(settings: Settings) -> SQLiteDatabase:
    db = SQLiteDatabase(settings.db_path)
    yield db
    db.close()


@pytest.fixture
def embedder() -> LocalHashEmbedder:
    return LocalHashEmbedder()


@pytest.fixture
def store(database: SQLiteDatabase, embedder: LocalHashEmbedder) -> VectorStore:
    vector_store = VectorStore(database, dim=embedder.dim)
    vector_store.ensure_schema()
    return vector_store


@pytest.fixture
def fake_chat_model() -> FakeChatModel:
    return FakeChatModel()


@pytest.fixture
def fake_embedding_client() -> FakeEmbeddingClient:
    return FakeEmbeddingClient([0.5, 0.5, 0.5, 0.5])


@pytest.fixture(scope="session")
def buffett_text() -> str:
    return BUFFETT_SENTENCE * 30


def write_pdf(path: Path, text: str) -> Path:
    """Create a one-page PDF holding ``text``."""
    import fitz

    doc = fitz.open()
    page = doc.new_page()
    page.insert_textbox(fitz.Rect(72, 72, 540, 770), text, fontsize=10)
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def pdf_factory():
    return write_pdf
