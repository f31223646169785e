"""Tests for query-time retrieval."""

from __future__ import annotations

import math
from unittest.mock import MagicMock

import pytest

from notion_rag.core.errors import EmbeddingError, StoreError
from notion_rag.ingest.embeddings import HashedEmbedder
from notion_rag.models.entities import Chunk, DocumentRecord, SimilarityResult
from notion_rag.retrieval import InMemoryVectorStore, Retriever, format_context


def _store_with(texts: list[str], embedder: HashedEmbedder) -> InMemoryVectorStore:
    store = InMemoryVectorStore(dim=embedder.dim)
    doc_id = store.upsert_document(DocumentRecord(external_id="page", title="Page"))
    for ordinal, text in enumerate(texts):
        chunk = Chunk(document_id=doc_id, content=text, source_node_id=f"n{ordinal}", context="", ordinal=ordinal)
        store.upsert_chunk_embedding(chunk, embedder.embed(text))
    return store


def test_retrieve_ranks_relevant_chunk_first() -> None:
    embedder = HashedEmbedder(dim=256)
    store = _store_with(
        ["vacation policy allows twenty days", "deploys run every friday", "expense reports are monthly"],
        embedder,
    )
    results = Retriever(embedder, store).retrieve("how many vacation days", threshold=0.1)
    assert results
    assert results[0].content == "vacation policy allows twenty days"


def test_retrieve_returns_store_result_unmodified() -> None:
    expected = [
        SimilarityResult(chunk_id=1, document_id=1, content="a", context="", source_node_id=None, similarity=0.9)
    ]
    embedder = MagicMock()
    embedder.embed.return_value = [1.0, 0.0]
    store = MagicMock()
    store.similarity_search.return_value = expected
    results = Retriever(embedder, store).retrieve("question", threshold=0.3)
    assert results is expected
    store.similarity_search.assert_called_once_with([1.0, 0.0], 0.3, 5)


def test_retrieve_propagates_failures() -> None:
    embedder = MagicMock()
    embedder.embed.side_effect = EmbeddingError("down")
    with pytest.raises(EmbeddingError):
        Retriever(embedder, MagicMock()).retrieve("question", threshold=0.3)

    embedder = MagicMock()
    embedder.embed.return_value = [1.0]
    store = MagicMock()
    store.similarity_search.side_effect = StoreError("locked")
    with pytest.raises(StoreError):
        Retriever(embedder, store).retrieve("question", threshold=0.3)


def test_retrieve_on_empty_store() -> None:
    embedder = HashedEmbedder(dim=16)
    assert Retriever(embedder, InMemoryVectorStore()).retrieve("anything", threshold=0.0) == []


def test_format_context_joins_contents() -> None:
    results = [
        SimilarityResult(chunk_id=idx, document_id=1, content=text, context="", source_node_id=None, similarity=0.5)
        for idx, text in enumerate(["first", "second"])
    ]
    assert format_context(results) == "first\nsecond"
    assert format_context([]) == ""


def test_hashed_vectors_are_unit_length() -> None:
    vector = HashedEmbedder(dim=32).embed("hello world")
    assert math.isclose(sum(value * value for value in vector), 1.0, rel_tol=1e-9)
