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
    "nrag_requests_total",
    "Total HTTP requests",
    labelnames=("endpoint", "method", "status"),
    registry=REGISTRY,
)

ITEMS_INGESTED = Counter(
    "nrag_ingest_items_total",
    "Top-level pages processed by the ingest pipeline",
    labelnames=("status",),
    registry=REGISTRY,
)

CHUNKS_STORED = Counter(
    "nrag_chunks_stored_total",
    "Chunks embedded and written to the vector store",
    registry=REGISTRY,
)

INGEST_DURATION = Histogram(
    "nrag_ingest_duration_seconds",
    "Duration of a full sync run",
    registry=REGISTRY,
)

RETRIEVAL_LATENCY = Histogram(
    "nrag_retrieval_latency_seconds",
    "Latency of embed + similarity search",
    registry=REGISTRY,
)

INDEX_SIZE = Gauge(
    "nrag_index_chunks",
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
    "ITEMS_INGESTED",
    "CHUNKS_STORED",
    "INGEST_DURATION",
    "RETRIEVAL_LATENCY",
    "INDEX_SIZE",
    "metrics_response",
]
