"""Service wiring shared by the API and the CLI."""

from __future__ import annotations

from dataclasses import dataclass, field

from fastapi import Request

from notion_rag.core.config import Settings
from notion_rag.db.sqlite import SQLiteDatabase
from notion_rag.ingest.embeddings import Embedder, build_embedder
from notion_rag.ingest.pipeline import IngestPipeline
from notion_rag.retrieval.search import Retriever
from notion_rag.retrieval.vector_store import SQLiteVectorStore, VectorStore
from notion_rag.source.notion import NotionClient
from notion_rag.source.types import ContentSource


@dataclass
class Services:
    """Process-scoped collaborators, created once by the composition root."""

    settings: Settings
    database: SQLiteDatabase | None
    store: VectorStore
    embedder: Embedder
    source: ContentSource | None = None
    _retriever: Retriever | None = field(default=None, repr=False)

    @property
    def retriever(self) -> Retriever:
        if self._retriever is None:
            self._retriever = Retriever(self.embedder, self.store, limit=self.settings.retrieval_limit)
        return self._retriever

    def content_source(self) -> ContentSource:
        """Return the content source, creating the Notion client on first use."""
        if self.source is None:
            self.source = NotionClient(
                api_token=self.settings.require_notion_token(),
                notion_version=self.settings.notion_version,
                timeout=self.settings.request_timeout,
            )
        return self.source

    def pipeline(self) -> IngestPipeline:
        return IngestPipeline(
            source=self.content_source(),
            embedder=self.embedder,
            store=self.store,
            settings=self.settings,
        )

    def close(self) -> None:
        if isinstance(self.source, NotionClient):
            self.source.close()
        if self.database is not None:
            self.database.close()


def build_services(
    settings: Settings,
    source: ContentSource | None = None,
    embedder: Embedder | None = None,
) -> Services:
    database = SQLiteDatabase(settings.db_path)
    return Services(
        settings=settings,
        database=database,
        store=SQLiteVectorStore(database),
        embedder=embedder or build_embedder(settings),
        source=source,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


__all__ = ["Services", "build_services", "get_services"]
