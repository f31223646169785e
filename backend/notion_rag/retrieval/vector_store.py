"""Chunk and embedding persistence with similarity search."""

from __future__ import annotations

import sqlite3
from typing import Protocol, Sequence

from notion_rag.core.errors import StoreError
from notion_rag.db.sqlite import SQLiteDatabase
from notion_rag.ingest.embeddings import vector_from_bytes, vector_to_bytes
from notion_rag.models.entities import Chunk, DocumentRecord, SimilarityResult, StoredChunk
from notion_rag.retrieval.similarity import rank_by_similarity, validate_vector
from notion_rag.utils.time import now_ms

DEFAULT_LIMIT = 5


class VectorStore(Protocol):
    """Persistence contract used by ingestion and retrieval."""

    def upsert_document(self, record: DocumentRecord) -> int:
        ...

    def get_document(self, external_id: str) -> DocumentRecord | None:
        ...

    def upsert_chunk_embedding(self, chunk: Chunk, vector: Sequence[float]) -> None:
        ...

    def prune_chunks(self, document_id: int, keep: int) -> int:
        ...

    def similarity_search(
        self, query_vector: Sequence[float], threshold: float, limit: int = DEFAULT_LIMIT
    ) -> list[SimilarityResult]:
        ...

    def iter_chunks(self) -> list[StoredChunk]:
        ...

    def update_embedding(self, chunk_id: int, vector: Sequence[float]) -> None:
        ...

    def count_chunks(self) -> int:
        ...


class SQLiteVectorStore:
    """Stores embeddings as float32 blobs and ranks them with a full scan."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self.db = database
        try:
            self.db.ensure_schema()
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot initialise schema at {database.db_path}: {exc}") from exc

    def upsert_document(self, record: DocumentRecord) -> int:
        now = now_ms()
        try:
            with self.db.transaction() as cursor:
                cursor.execute(
                    """
                    INSERT INTO documents (external_id, title, url, last_modified, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT (external_id) DO UPDATE SET
                      title = excluded.title,
                      url = excluded.url,
                      last_modified = excluded.last_modified,
                      updated_at = excluded.updated_at
                    """,
                    [record.external_id, record.title, record.url, record.last_modified, now, now],
                )
                row = cursor.execute(
                    "SELECT id FROM documents WHERE external_id = ?", [record.external_id]
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to upsert document {record.external_id}: {exc}") from exc
        record.id = int(row["id"])
        return record.id

    def get_document(self, external_id: str) -> DocumentRecord | None:
        try:
            row = self.db.execute(
                "SELECT id, external_id, title, url, last_modified FROM documents WHERE external_id = ?",
                [external_id],
            ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to read document {external_id}: {exc}") from exc
        if row is None:
            return None
        return DocumentRecord(
            id=row["id"],
            external_id=row["external_id"],
            title=row["title"],
            url=row["url"],
            last_modified=row["last_modified"],
        )

    def upsert_chunk_embedding(self, chunk: Chunk, vector: Sequence[float]) -> None:
        values = validate_vector(vector)
        try:
            with self.db.transaction() as cursor:
                cursor.execute(
                    """
                    INSERT INTO chunks (document_id, ordinal, source_node_id, content, context, dim, embedding, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT (document_id, ordinal) DO UPDATE SET
                      source_node_id = excluded.source_node_id,
                      content = excluded.content,
                      context = excluded.context,
                      dim = excluded.dim,
                      embedding = excluded.embedding,
                      updated_at = excluded.updated_at
                    """,
                    [
                        chunk.document_id,
                        chunk.ordinal,
                        chunk.source_node_id,
                        chunk.content,
                        chunk.context,
                        len(values),
                        vector_to_bytes(values),
                        now_ms(),
                    ],
                )
        except sqlite3.Error as exc:
            raise StoreError(
                f"Failed to store chunk {chunk.ordinal} of document {chunk.document_id}: {exc}"
            ) from exc

    def prune_chunks(self, document_id: int, keep: int) -> int:
        try:
            with self.db.transaction() as cursor:
                cursor.execute(
                    "DELETE FROM chunks WHERE document_id = ? AND ordinal >= ?",
                    [document_id, keep],
                )
                return cursor.rowcount
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to prune chunks of document {document_id}: {exc}") from exc

    def similarity_search(
        self, query_vector: Sequence[float], threshold: float, limit: int = DEFAULT_LIMIT
    ) -> list[SimilarityResult]:
        query = validate_vector(query_vector)
        try:
            rows = self.db.query(
                """
                SELECT id, document_id, source_node_id, content, context, dim, embedding
                FROM chunks
                ORDER BY id ASC
                """
            )
        except sqlite3.Error as exc:
            raise StoreError(f"Similarity search failed: {exc}") from exc
        candidates = []
        for row in rows:
            if row["dim"] != len(query):
                raise StoreError(
                    f"Stored chunk {row['id']} has dimension {row['dim']}, query has {len(query)}"
                )
            candidates.append((row, vector_from_bytes(row["embedding"])))
        ranked = rank_by_similarity(query, candidates, threshold, limit)
        return [
            SimilarityResult(
                chunk_id=row["id"],
                document_id=row["document_id"],
                content=row["content"],
                context=row["context"],
                source_node_id=row["source_node_id"],
                similarity=score,
            )
            for row, score in ranked
        ]

    def iter_chunks(self) -> list[StoredChunk]:
        try:
            rows = self.db.query(
                "SELECT id, document_id, ordinal, content, context FROM chunks ORDER BY id ASC"
            )
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to list chunks: {exc}") from exc
        return [
            StoredChunk(
                id=row["id"],
                document_id=row["document_id"],
                ordinal=row["ordinal"],
                content=row["content"],
                context=row["context"],
            )
            for row in rows
        ]

    def update_embedding(self, chunk_id: int, vector: Sequence[float]) -> None:
        values = validate_vector(vector)
        try:
            with self.db.transaction() as cursor:
                cursor.execute(
                    "UPDATE chunks SET dim = ?, embedding = ?, updated_at = ? WHERE id = ?",
                    [len(values), vector_to_bytes(values), now_ms(), chunk_id],
                )
                if cursor.rowcount == 0:
                    raise StoreError(f"Chunk {chunk_id} does not exist")
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to update embedding of chunk {chunk_id}: {exc}") from exc

    def count_chunks(self) -> int:
        try:
            row = self.db.execute("SELECT COUNT(*) AS count FROM chunks").fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to count chunks: {exc}") from exc
        return int(row["count"]) if row else 0


__all__ = ["DEFAULT_LIMIT", "SQLiteVectorStore", "VectorStore"]
