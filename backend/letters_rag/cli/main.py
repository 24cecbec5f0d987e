"""CLI entrypoint for Letters RAG."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

import requests
import typer

from letters_rag.core.config import get_settings
from letters_rag.core.errors import LettersRagError
from letters_rag.core.logging import configure_from_settings
from letters_rag.db.sqlite import SQLiteDatabase
from letters_rag.generation.memory import ConversationMemory
from letters_rag.ingest.embeddings import build_embedder
from letters_rag.ingest.pipeline import IngestPipeline
from letters_rag.retrieval.vector_store import VectorStore

app = typer.Typer(name="lrag", help="Letters RAG command-line interface")

DEFAULT_HOST = "http://127.0.0.1:8000"
_EXIT_WORDS = {"exit", "quit", ":q"}


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip("/")
    env_host = os.environ.get("LRAG_HOST")
    if env_host:
        return env_host.rstrip("/")
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    try:
        resp = requests.request(method, url, timeout=120, **kwargs)
    except requests.RequestException as exc:
        typer.echo(f"Cannot reach {base}: {exc}", err=True)
        raise typer.Exit(code=1)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


@app.command()
def ingest(
    directory: Optional[Path] = typer.Argument(None, help="Directory of PDFs (defaults to the configured data_dir)"),
) -> None:
    """Chunk, embed and store every PDF in a directory."""
    try:
        settings = get_settings()
        configure_from_settings(settings)
        embedder = build_embedder(settings)
        with SQLiteDatabase(settings.db_path, timeout=settings.request_timeout) as db:
            store = VectorStore(db, dim=embedder.dim)
            pipeline = IngestPipeline(store, embedder, settings)
            report = pipeline.ingest_directory(directory.expanduser() if directory else None)
    except LettersRagError as exc:
        typer.echo(f"Ingestion failed: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(report.to_dict(), indent=2))


@app.command()
def query(
    question: str = typer.Argument(..., help="Question to answer"),
    limit: int = typer.Option(5, "--limit", "-k", min=1, max=50, help="Number of chunks to retrieve"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Answer a question from the indexed documents."""
    resp = _request("POST", "/query", host=host, json={"question": question, "limit": limit})
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def retrieve(
    q: str = typer.Argument(..., help="Query text"),
    limit: int = typer.Option(5, "--limit", "-k", min=1, max=50, help="Number of chunks to return"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Show the chunks a question would be answered from."""
    resp = _request("POST", "/retrieve", host=host, json={"query": q, "limit": limit})
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def status(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Report database connectivity and index size."""
    resp = _request("GET", "/status", host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def chat(
    limit: int = typer.Option(5, "--limit", "-k", min=1, max=50, help="Number of chunks per question"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Interactive session; earlier turns are sent along with each question.

    Type ``/clear`` to forget the conversation and ``exit`` to leave.
    """
    memory = ConversationMemory()
    while True:
        question = typer.prompt("you").strip()
        if question.lower() in _EXIT_WORDS:
            break
        if question == "/clear":
            memory.clear()
            typer.echo("(conversation cleared)")
            continue
        history = [{"role": turn.role, "content": turn.content} for turn in memory.get()]
        resp = _request("POST", "/query", host=host, json={"question": question, "limit": limit, "history": history})
        payload = resp.json()
        answer = payload.get("answer") or ""
        typer.echo(f"assistant: {answer}")
        cited = (payload.get("verification") or {}).get("cited_chunks") or []
        if cited:
            typer.echo(f"  cited chunks: {', '.join(str(number) for number in cited)}")
        memory.add("user", question)
        memory.add("assistant", answer)


if __name__ == "__main__":
    app()
