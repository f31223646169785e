"""Internal dataclasses representing persisted entities."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class DocumentRecord:
    external_id: str
    title: str
    url: str | None = None
    last_modified: str | None = None
    id: int | None = None


@dataclass(slots=True, frozen=True)
class Chunk:
    document_id: int
    content: str
    source_node_id: str | None
    context: str
    ordinal: int = 0


@dataclass(slots=True)
class StoredChunk:
    id: int
    document_id: int
    ordinal: int
    content: str
    context: str


@dataclass(slots=True)
class SimilarityResult:
    chunk_id: int
    document_id: int
    content: str
    context: str
    source_node_id: str | None
    similarity: float

    def to_dict(self) -> dict[str, object]:
        return {
            "chunk_id": self.chunk_id,
            "document_id": self.document_id,
            "content": self.content,
            "context": self.context,
            "source_node_id": self.source_node_id,
            "similarity": self.similarity,
        }
