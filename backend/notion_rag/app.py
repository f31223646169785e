"""FastAPI application setup for notion-rag."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from notion_rag.api.dependencies import build_services
from notion_rag.api.routes_admin import router as admin_router
from notion_rag.api.routes_ingest import router as ingest_router
from notion_rag.api.routes_query import router as query_router
from notion_rag.core.config import Settings, get_settings
from notion_rag.core.logging import configure_logging
from notion_rag.ingest.embeddings import Embedder
from notion_rag.source.types import ContentSource


def create_app(
    settings: Settings | None = None,
    source: ContentSource | None = None,
    embedder: Embedder | None = None,
) -> FastAPI:
    """Build the app; services live for the duration of the lifespan."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        services = build_services(settings or get_settings(), source=source, embedder=embedder)
        app.state.services = services
        try:
            yield
        finally:
            services.close()

    app = FastAPI(
        title="notion-rag",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.include_router(ingest_router, prefix="/ingest", tags=["ingest"])
    app.include_router(query_router, prefix="", tags=["query"])
    app.include_router(admin_router, prefix="", tags=["admin"])
    return app


configure_logging()

app = create_app()
