"""Common ingestion data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class ItemFailure:
    """A top-level item that could not be ingested."""

    item_id: str
    title: str | None
    error: str
    error_type: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "item_id": self.item_id,
            "title": self.title,
            "error": self.error,
            "error_type": self.error_type,
        }


@dataclass(slots=True)
class ItemResult:
    """Outcome for a single top-level page or database row."""

    item_id: str
    status: str
    title: str | None = None
    document_id: int | None = None
    chunks: int = 0
    chunk_failures: int = 0
    detail: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "item_id": self.item_id,
            "status": self.status,
            "title": self.title,
            "document_id": self.document_id,
            "chunks": self.chunks,
            "chunk_failures": self.chunk_failures,
            "detail": self.detail,
        }


@dataclass(slots=True)
class IngestReport:
    """Aggregated result of one sync run."""

    processed: int = 0
    skipped: int = 0
    failed: int = 0
    chunks: int = 0
    chunk_failures: int = 0
    failures: list[ItemFailure] = field(default_factory=list)
    results: list[ItemResult] = field(default_factory=list)

    def record(self, result: ItemResult) -> None:
        self.results.append(result)
        self.chunk_failures += result.chunk_failures
        if result.status == "processed":
            self.processed += 1
            self.chunks += result.chunks
        elif result.status == "skipped":
            self.skipped += 1
        elif result.status == "error":
            self.failed += 1

    def record_failure(self, failure: ItemFailure) -> None:
        self.failures.append(failure)

    def stats(self) -> dict[str, int]:
        return {
            "processed": self.processed,
            "skipped": self.skipped,
            "failed": self.failed,
            "chunks": self.chunks,
            "chunk_failures": self.chunk_failures,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "stats": self.stats(),
            "failures": [failure.to_dict() for failure in self.failures],
            "results": [result.to_dict() for result in self.results],
        }


__all__ = ["IngestReport", "ItemFailure", "ItemResult"]
