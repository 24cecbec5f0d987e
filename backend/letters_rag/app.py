"""FastAPI application setup for Letters RAG."""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from letters_rag.api.routes_admin import router as admin_router
from letters_rag.api.routes_ingest import router as ingest_router
from letters_rag.api.routes_query import router as query_router
from letters_rag.core.config import Settings, get_settings
from letters_rag.core.logging import configure_from_settings
from letters_rag.core.metrics import REQUEST_COUNT, REQUEST_LATENCY
from letters_rag.resources import AppResources, build_resources

SERVICE_NAME = "Letters RAG API"

ResourcesFactory = Callable[[Settings], AppResources]


def create_app(settings: Settings | None = None, resources_factory: ResourcesFactory | None = None) -> FastAPI:
    """Build the application; resources are opened in the lifespan and closed on shutdown."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        active = settings or get_settings()
        configure_from_settings(active)
        resources = (resources_factory or build_resources)(active)
        app.state.resources = resources
        try:
            yield
        finally:
            app.state.resources = None
            resources.close()

    app = FastAPI(
        title="Letters RAG",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def record_metrics(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        # Label by route template so unknown paths cannot grow the label set.
        endpoint = getattr(request.scope.get("route"), "path", "unmatched")
        REQUEST_LATENCY.labels(endpoint=endpoint).observe(time.perf_counter() - started)
        REQUEST_COUNT.labels(endpoint=endpoint, status=str(response.status_code)).inc()
        return response

    app.include_router(ingest_router, prefix="/ingest", tags=["ingest"])
    app.include_router(query_router, prefix="", tags=["query"])
    app.include_router(admin_router, prefix="", tags=["admin"])

    @app.get("/health", tags=["admin"])
    def health() -> dict[str, str]:
        """Simple liveness check."""
        return {"status": "ok", "timestamp": datetime.now(tz=timezone.utc).isoformat(), "service": SERVICE_NAME}

    return app


app = create_app()
