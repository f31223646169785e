"""Query-time retrieval."""

from __future__ import annotations

import time
from typing import Sequence

from notion_rag.core.logging import get_logger
from notion_rag.core.metrics import RETRIEVAL_LATENCY
from notion_rag.ingest.embeddings import Embedder
from notion_rag.models.entities import SimilarityResult
from notion_rag.retrieval.vector_store import DEFAULT_LIMIT, VectorStore

logger = get_logger(__name__)


class Retriever:
    """Embeds a question and returns the stored chunks closest to it."""

    def __init__(self, embedder: Embedder, store: VectorStore, limit: int = DEFAULT_LIMIT) -> None:
        self.embedder = embedder
        self.store = store
        self.limit = limit

    def retrieve(self, query_text: str, threshold: float) -> list[SimilarityResult]:
        start_time = time.perf_counter()
        query_vector = self.embedder.embed(query_text)
        results = self.store.similarity_search(query_vector, threshold, self.limit)
        RETRIEVAL_LATENCY.observe(time.perf_counter() - start_time)
        logger.debug("Retrieved %s chunks above %.2f", len(results), threshold)
        for result in results:
            logger.debug("(Similarity: %.3f) %s", result.similarity, result.content)
        return results


def format_context(results: Sequence[SimilarityResult]) -> str:
    """Join chunk contents into the context block handed to the prompt."""
    return "\n".join(result.content for result in results)


__all__ = ["Retriever", "format_context"]
