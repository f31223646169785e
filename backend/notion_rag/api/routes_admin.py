"""Administrative routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from notion_rag.api.dependencies import Services, get_services
from notion_rag.core.metrics import INDEX_SIZE, metrics_response

router = APIRouter()


@router.get("/health", summary="Liveness check")
def health() -> dict[str, bool]:
    return {"ok": True}


@router.get("/stats", summary="Vector store statistics")
def stats(services: Services = Depends(get_services)) -> dict[str, int]:
    count = services.store.count_chunks()
    INDEX_SIZE.set(count)
    return {"chunks": count}


@router.get("/metrics", summary="Prometheus metrics")
def metrics() -> Response:
    return metrics_response()
