"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

REQUEST_COUNT = Counter(
    "lrag_requests_total",
    "Total HTTP requests",
    labelnames=("endpoint", "status"),
    registry=REGISTRY,
)

REQUEST_LATENCY = Histogram(
    "lrag_request_latency_seconds",
    "Latency of HTTP requests",
    labelnames=("endpoint",),
    registry=REGISTRY,
)

INGEST_DURATION = Histogram(
    "lrag_ingest_duration_seconds",
    "Ingest pipeline duration",
    buckets=(1, 5, 15, 60, 300, 900, 3600),
    registry=REGISTRY,
)

INGEST_CHUNKS = Counter(
    "lrag_ingest_chunks_total",
    "Chunks seen by the ingest pipeline",
    labelnames=("status",),
    registry=REGISTRY,
)

GENERATION_FAILURES = Counter(
    "lrag_generation_failures_total",
    "Answer generation calls that failed",
    registry=REGISTRY,
)

INDEX_SIZE = Gauge(
    "lrag_index_chunks",
    "Number of chunks stored in the vector store",
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "INGEST_DURATION",
    "INGEST_CHUNKS",
    "GENERATION_FAILURES",
    "INDEX_SIZE",
    "metrics_response",
]
