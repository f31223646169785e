"""Ingest pipeline orchestration."""

from __future__ import annotations

from typing import Sequence

from notion_rag.core.config import DatabaseSource, PageSource, Settings
from notion_rag.core.errors import EmbeddingError, SourceError, StoreError
from notion_rag.core.logging import get_logger
from notion_rag.core.metrics import CHUNKS_STORED, INDEX_SIZE, INGEST_DURATION, ITEMS_INGESTED
from notion_rag.ingest.embeddings import Embedder
from notion_rag.ingest.fetcher import TreeFetcher
from notion_rag.ingest.segmenter import segment
from notion_rag.ingest.types import IngestReport, ItemFailure, ItemResult
from notion_rag.models.entities import Chunk, DocumentRecord
from notion_rag.retrieval.vector_store import VectorStore
from notion_rag.source.types import ContentSource

logger = get_logger(__name__)

UNTITLED = "Untitled"

# Errors that abort one item but never the whole run.
ITEM_ERRORS = (SourceError, EmbeddingError, StoreError)


class IngestPipeline:
    """Coordinate fetching, segmentation, embeddings, and persistence."""

    def __init__(
        self,
        source: ContentSource,
        embedder: Embedder,
        store: VectorStore,
        settings: Settings,
    ) -> None:
        self.source = source
        self.embedder = embedder
        self.store = store
        self.settings = settings
        self.fetcher = TreeFetcher(source)

    def run(
        self,
        pages: Sequence[PageSource] | None = None,
        databases: Sequence[DatabaseSource] | None = None,
        force: bool = False,
    ) -> IngestReport:
        """Ingest every configured page and database row."""
        pages = self.settings.pages if pages is None else pages
        databases = self.settings.databases if databases is None else databases
        report = IngestReport()
        with INGEST_DURATION.time():
            for page in pages:
                self._process_item(page.id, page.name, report, force)
            for database in databases:
                self._process_database(database, report, force)
        self._update_index_metric()
        logger.info(
            "Sync finished: %s processed, %s skipped, %s failed, %s chunks",
            report.processed,
            report.skipped,
            report.failed,
            report.chunks,
        )
        return report

    # Internal helpers -------------------------------------------------

    def _process_database(self, database: DatabaseSource, report: IngestReport, force: bool) -> None:
        logger.info("Processing database %s (%s)", database.name, database.id)
        try:
            rows = self.source.query_collection(database.id, database.filter)
        except SourceError as exc:
            logger.exception("Failed to query database %s: %s", database.id, exc)
            ITEMS_INGESTED.labels(status="error").inc()
            report.record(
                ItemResult(item_id=database.id, status="error", title=database.name, detail=str(exc))
            )
            report.record_failure(
                ItemFailure(
                    item_id=database.id,
                    title=database.name,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
            )
            return
        logger.info("Found %s pages in database %s", len(rows), database.id)
        for row in rows:
            self._process_item(row.id, row.title or database.name, report, force)

    def _process_item(self, item_id: str, name: str | None, report: IngestReport, force: bool) -> None:
        try:
            result = self._ingest_item(item_id, name, force)
        except ITEM_ERRORS as exc:
            logger.exception("Failed to process page %s: %s", item_id, exc, extra={"ctx_item_id": item_id})
            result = ItemResult(item_id=item_id, status="error", title=name, detail=str(exc))
            report.record_failure(
                ItemFailure(item_id=item_id, title=name, error=str(exc), error_type=type(exc).__name__)
            )
        ITEMS_INGESTED.labels(status=result.status).inc()
        report.record(result)

    def _ingest_item(self, item_id: str, name: str | None, force: bool) -> ItemResult:
        logger.info("Processing page %s (%s)", name or UNTITLED, item_id)
        metadata = self.source.get_root_metadata(item_id)

        if self.settings.skip_unchanged and not force and metadata.last_modified:
            existing = self.store.get_document(item_id)
            if existing is not None and existing.last_modified == metadata.last_modified:
                logger.debug("Skipping unchanged page %s", item_id)
                return ItemResult(
                    item_id=item_id,
                    status="skipped",
                    title=existing.title,
                    document_id=existing.id,
                    detail="unchanged",
                )

        nodes = self.fetcher.fetch_subtree(item_id)
        title = name or (metadata.title_candidates[0] if metadata.title_candidates else UNTITLED)
        # last_modified is written only after every chunk is stored
        document_id = self.store.upsert_document(
            DocumentRecord(external_id=item_id, title=title, url=metadata.url)
        )
        chunks = segment(nodes, document_id, max_chars=self.settings.chunk_max_chars)
        stored, failures = self._store_chunks(chunks)
        pruned = self.store.prune_chunks(document_id, keep=len(chunks))
        if not failures:
            self.store.upsert_document(
                DocumentRecord(
                    external_id=item_id,
                    title=title,
                    url=metadata.url,
                    last_modified=metadata.last_modified,
                )
            )
        logger.info(
            "Page processed: %s blocks, %s chunks stored, %s pruned",
            len(nodes),
            stored,
            pruned,
            extra={"ctx_item_id": item_id, "ctx_document_id": document_id},
        )
        return ItemResult(
            item_id=item_id,
            status="processed",
            title=title,
            document_id=document_id,
            chunks=stored,
            chunk_failures=failures,
        )

    def _store_chunks(self, chunks: Sequence[Chunk]) -> tuple[int, int]:
        stored = 0
        failures = 0
        for chunk in chunks:
            try:
                vector = self.embedder.embed(chunk.content)
                self.store.upsert_chunk_embedding(chunk, vector)
            except (EmbeddingError, StoreError) as exc:
                if self.settings.chunk_failure_policy == "fail_fast":
                    raise
                failures += 1
                logger.warning(
                    "Skipping chunk %s of document %s: %s",
                    chunk.ordinal,
                    chunk.document_id,
                    exc,
                )
                continue
            stored += 1
            CHUNKS_STORED.inc()
        return stored, failures

    def _update_index_metric(self) -> None:
        try:
            INDEX_SIZE.set(self.store.count_chunks())
        except StoreError as exc:
            logger.warning("Could not refresh index size metric: %s", exc)


def reembed_all(embedder: Embedder, store: VectorStore) -> int:
    """Recompute the embedding of every stored chunk; errors propagate."""
    chunks = store.iter_chunks()
    logger.info("Creating embeddings for %s stored chunks", len(chunks))
    for chunk in chunks:
        store.update_embedding(chunk.id, embedder.embed(chunk.content))
    return len(chunks)


__all__ = ["IngestPipeline", "reembed_all"]
