"""In-process vector store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from notion_rag.core.errors import StoreError
from notion_rag.models.entities import Chunk, DocumentRecord, SimilarityResult, StoredChunk
from notion_rag.retrieval.similarity import rank_by_similarity, validate_vector
from notion_rag.retrieval.vector_store import DEFAULT_LIMIT


@dataclass(slots=True)
class _Entry:
    id: int
    chunk: Chunk
    vector: list[float]


class InMemoryVectorStore:
    """Keeps documents and embeddings in dictionaries; nothing survives the process."""

    def __init__(self, dim: int | None = None) -> None:
        self.dim = dim
        self._documents: dict[str, DocumentRecord] = {}
        self._entries: dict[tuple[int, int], _Entry] = {}
        self._next_chunk_id = 1

    @property
    def size(self) -> int:
        return len(self._entries)

    def upsert_document(self, record: DocumentRecord) -> int:
        existing = self._documents.get(record.external_id)
        record.id = existing.id if existing is not None else len(self._documents) + 1
        self._documents[record.external_id] = record
        return record.id

    def get_document(self, external_id: str) -> DocumentRecord | None:
        return self._documents.get(external_id)

    def upsert_chunk_embedding(self, chunk: Chunk, vector: Sequence[float]) -> None:
        values = validate_vector(vector, self.dim)
        key = (chunk.document_id, chunk.ordinal)
        entry = self._entries.get(key)
        if entry is None:
            self._entries[key] = _Entry(id=self._next_chunk_id, chunk=chunk, vector=values)
            self._next_chunk_id += 1
        else:
            entry.chunk = chunk
            entry.vector = values

    def prune_chunks(self, document_id: int, keep: int) -> int:
        stale = [key for key in self._entries if key[0] == document_id and key[1] >= keep]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def similarity_search(
        self, query_vector: Sequence[float], threshold: float, limit: int = DEFAULT_LIMIT
    ) -> list[SimilarityResult]:
        query = validate_vector(query_vector, self.dim)
        ordered = sorted(self._entries.values(), key=lambda entry: entry.id)
        ranked = rank_by_similarity(query, [(entry, entry.vector) for entry in ordered], threshold, limit)
        return [
            SimilarityResult(
                chunk_id=entry.id,
                document_id=entry.chunk.document_id,
                content=entry.chunk.content,
                context=entry.chunk.context,
                source_node_id=entry.chunk.source_node_id,
                similarity=score,
            )
            for entry, score in ranked
        ]

    def iter_chunks(self) -> list[StoredChunk]:
        return [
            StoredChunk(
                id=entry.id,
                document_id=entry.chunk.document_id,
                ordinal=entry.chunk.ordinal,
                content=entry.chunk.content,
                context=entry.chunk.context,
            )
            for entry in sorted(self._entries.values(), key=lambda entry: entry.id)
        ]

    def update_embedding(self, chunk_id: int, vector: Sequence[float]) -> None:
        values = validate_vector(vector, self.dim)
        for entry in self._entries.values():
            if entry.id == chunk_id:
                entry.vector = values
                return
        raise StoreError(f"Chunk {chunk_id} does not exist")

    def count_chunks(self) -> int:
        return self.size


__all__ = ["InMemoryVectorStore"]
