"""Query API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from notion_rag.api.dependencies import Services, get_services
from notion_rag.core.errors import EmbeddingError, StoreError
from notion_rag.core.logging import get_logger
from notion_rag.core.metrics import REQUEST_COUNT
from notion_rag.models.dto import ChunkResult, QueryRequest, QueryResponse
from notion_rag.retrieval.search import format_context

logger = get_logger(__name__)

router = APIRouter()


@router.post("/query", response_model=QueryResponse, summary="Retrieve the chunks closest to a question")
def run_query(request: QueryRequest, services: Services = Depends(get_services)) -> QueryResponse:
    threshold = request.threshold
    if threshold is None:
        threshold = services.settings.similarity_threshold
    try:
        results = services.retriever.retrieve(request.query, threshold)
    except EmbeddingError as exc:
        logger.exception("Query embedding failed: %s", exc)
        REQUEST_COUNT.labels(endpoint="query", method="POST", status="502").inc()
        raise HTTPException(status_code=502, detail=f"Embedding failed: {exc}") from exc
    except StoreError as exc:
        logger.exception("Similarity search failed: %s", exc)
        REQUEST_COUNT.labels(endpoint="query", method="POST", status="503").inc()
        raise HTTPException(status_code=503, detail=f"Vector store unavailable: {exc}") from exc
    REQUEST_COUNT.labels(endpoint="query", method="POST", status="200").inc()
    return QueryResponse(
        results=[ChunkResult(**result.to_dict()) for result in results],
        context=format_context(results),
    )
