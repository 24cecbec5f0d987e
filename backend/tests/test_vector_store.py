import math
import sqlite3
from concurrent.futures import ThreadPoolExecutor

import pytest

from letters_rag.core.errors import ConfigurationError, DimensionMismatch, StoreUnavailable
from letters_rag.db.sqlite import SQLiteDatabase
from letters_rag.retrieval.vector_store import VectorStore
from letters_rag.utils.vectors import cosine_distance, parse_vector_literal, to_vector_literal


@pytest.fixture
def store3(database):
    store = VectorStore(database, dim=3)
    store.ensure_schema()
    return store


def _document(store, source="letters/1999.pdf", year=1999):
    return store.insert_document(source=source, year=year, page_count=3, file_size=1024)


def test_ensure_schema_is_idempotent(database):
    store = VectorStore(database, dim=3)
    store.ensure_schema()
    store.ensure_schema()
    tables = database.query("SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'document_chunks'")
    assert len(tables) == 1


def test_store_is_pinned_to_first_width(database, store3):
    with pytest.raises(ConfigurationError, match="3-dimensional"):
        VectorStore(database, dim=4).ensure_schema()


def test_literal_round_trip_scores_one(store3):
    document_id = _document(store3)
    store3.insert_chunk(document_id, 0, "exact match chunk", "[1,2,3]")
    hits = store3.search([1.0, 2.0, 3.0], limit=1)
    assert len(hits) == 1
    assert hits[0].content == "exact match chunk"
    assert hits[0].score == pytest.approx(1.0)
    assert hits[0].source == "letters/1999.pdf"
    assert hits[0].year == 1999


def test_search_orders_by_similarity(store3):
    document_id = _document(store3)
    store3.insert_chunk(document_id, 0, "x axis", [1.0, 0.0, 0.0])
    store3.insert_chunk(document_id, 1, "y axis", [0.0, 1.0, 0.0])
    store3.insert_chunk(document_id, 2, "diagonal", [1.0, 1.0, 0.0])
    hits = store3.search([1.0, 0.0, 0.0], limit=5)
    assert [hit.content for hit in hits] == ["x axis", "diagonal", "y axis"]
    assert [round(hit.score, 4) for hit in hits] == [1.0, round(1 / math.sqrt(2), 4), 0.0]
    assert [hit.content for hit in store3.search([1.0, 0.0, 0.0], limit=2)] == ["x axis", "diagonal"]


def test_ties_keep_insertion_order(store3):
    document_id = _document(store3)
    for index in range(3):
        store3.insert_chunk(document_id, index, f"same {index}", [0.0, 0.0, 1.0])
    assert [hit.content for hit in store3.search([0.0, 0.0, 1.0])] == ["same 0", "same 1", "same 2"]


def test_search_empty_store(store3):
    assert store3.search([1.0, 0.0, 0.0]) == []


def test_search_rejects_non_positive_limit(store3):
    with pytest.raises(ValueError):
        store3.search([1.0, 0.0, 0.0], limit=0)


def test_wrong_width_is_rejected_and_not_persisted(store3):
    document_id = _document(store3)
    with pytest.raises(DimensionMismatch) as excinfo:
        store3.insert_chunk(document_id, 0, "too wide", [1.0, 2.0, 3.0, 4.0])
    assert (excinfo.value.expected, excinfo.value.actual) == (3, 4)
    with pytest.raises(DimensionMismatch):
        store3.insert_chunk(document_id, 0, "too narrow", "[1,2]")
    with pytest.raises(DimensionMismatch):
        store3.search([1.0, 2.0])
    assert store3.counts() == (1, 0)


def test_chunk_requires_existing_document(store3):
    with pytest.raises(sqlite3.IntegrityError):
        store3.insert_chunk(999, 0, "orphan", [1.0, 0.0, 0.0])


def test_listing_documents_and_chunks(store3):
    first = _document(store3, "letters/1998.pdf", 1998)
    second = _document(store3, "letters/1999.pdf", 1999)
    store3.insert_chunk(second, 1, "second", [0.0, 1.0, 0.0])
    store3.insert_chunk(second, 0, "first", [1.0, 0.0, 0.0])
    documents = store3.list_documents()
    assert [(d.id, d.source, d.year) for d in documents] == [(first, "letters/1998.pdf", 1998), (second, "letters/1999.pdf", 1999)]
    assert documents[0].created_at is not None
    chunks = store3.list_chunks(second)
    assert [(c.chunk_index, c.content) for c in chunks] == [(0, "first"), (1, "second")]
    assert chunks[0].embedding == (1.0, 0.0, 0.0)
    assert store3.counts() == (2, 2)


def test_unopenable_database_raises_store_unavailable(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file", encoding="utf-8")
    with pytest.raises(StoreUnavailable):
        SQLiteDatabase(blocker / "letters.db").connect()


def test_database_context_manager_closes(tmp_path):
    with SQLiteDatabase(tmp_path / "ctx.db") as db:
        assert db.ping()
        assert db.is_open
    assert not db.is_open


def test_vector_literals():
    assert to_vector_literal([1, 2.5, -3]) == "[1.0,2.5,-3.0]"
    assert parse_vector_literal(" [1, 2,3] ") == (1.0, 2.0, 3.0)
    assert parse_vector_literal("[]") == ()
    with pytest.raises(ValueError):
        parse_vector_literal("1,2,3")
    with pytest.raises(DimensionMismatch):
        parse_vector_literal("[1,2,3]", dim=2)


def test_cosine_distance():
    assert cosine_distance([1.0, 0.0], [1.0, 0.0]) == pytest.approx(0.0)
    assert cosine_distance([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(2.0)
    assert cosine_distance([0.0, 0.0], [1.0, 0.0]) == 1.0
    with pytest.raises(DimensionMismatch):
        cosine_distance([1.0], [1.0, 2.0])


def test_concurrent_writers_and_readers_share_connection(store3):
    document_id = _document(store3)

    def insert(index):
        store3.insert_chunk(document_id, index, f"chunk {index}", [1.0, float(index), 0.0])
        return len(store3.search([1.0, 0.0, 0.0], limit=3))

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(insert, range(40)))

    assert all(1 <= found <= 3 for found in results)
    assert store3.counts() == (1, 40)
    assert [chunk.chunk_index for chunk in store3.list_chunks(document_id)] == list(range(40))
