"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class QueryRequest(BaseModel):
    query: str = Field(min_length=1)
    threshold: float | None = Field(default=None, ge=-1.0, le=1.0)


class ChunkResult(BaseModel):
    chunk_id: int
    document_id: int
    content: str
    context: str
    source_node_id: str | None
    similarity: float


class QueryResponse(BaseModel):
    results: list[ChunkResult]
    context: str


class IngestRequest(BaseModel):
    force: bool = Field(default=False, description="Re-index pages even when unchanged")


class IngestResponse(BaseModel):
    stats: dict[str, int]
    failures: list[dict[str, Any]]
    results: list[dict[str, Any]]


__all__ = [
    "ChunkResult",
    "IngestRequest",
    "IngestResponse",
    "QueryRequest",
    "QueryResponse",
]
