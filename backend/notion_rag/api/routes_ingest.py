"""Ingest API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from notion_rag.api.dependencies import Services, get_services
from notion_rag.core.errors import ConfigError
from notion_rag.core.metrics import REQUEST_COUNT
from notion_rag.models.dto import IngestRequest, IngestResponse

router = APIRouter()


@router.post("", response_model=IngestResponse, summary="Sync configured pages and databases")
def trigger_ingest(request: IngestRequest, services: Services = Depends(get_services)) -> IngestResponse:
    try:
        pipeline = services.pipeline()
    except ConfigError as exc:
        REQUEST_COUNT.labels(endpoint="ingest", method="POST", status="503").inc()
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    report = pipeline.run(force=request.force)
    REQUEST_COUNT.labels(endpoint="ingest", method="POST", status="200").inc()
    return IngestResponse(**report.to_dict())
