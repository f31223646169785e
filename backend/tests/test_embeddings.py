"""Tests for embedding providers."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from notion_rag.core.config import Settings
from notion_rag.core.errors import ConfigError, EmbeddingError
from notion_rag.ingest.embeddings import (
    GeminiEmbedder,
    HashedEmbedder,
    build_embedder,
    vector_from_bytes,
    vector_to_bytes,
)


def _response(status: int = 200, payload: object = None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.ok = status < 400
    resp.text = "error body"
    resp.json.return_value = payload
    return resp


def test_hashed_embedder_is_deterministic() -> None:
    model = HashedEmbedder(dim=64)
    first = model.embed("Hello world")
    assert first == model.embed("hello WORLD")
    assert len(first) == model.dim
    assert abs(sum(value * value for value in first) - 1.0) < 1e-6


def test_hashed_embedder_empty_text_is_zero_vector() -> None:
    assert HashedEmbedder(dim=8).embed("") == [0.0] * 8


def test_gemini_embedder_posts_text() -> None:
    session = MagicMock()
    session.post.return_value = _response(payload={"embedding": {"values": [0.1, 0.2, 0.3]}})
    embedder = GeminiEmbedder(api_key="key", session=session)
    assert embedder.embed("some text") == [0.1, 0.2, 0.3]
    assert embedder.dim == 3
    args, kwargs = session.post.call_args
    assert args[0].endswith("/models/embedding-001:embedContent")
    assert kwargs["params"] == {"key": "key"}
    assert kwargs["json"]["content"]["parts"][0]["text"] == "some text"


@pytest.mark.parametrize(
    "response",
    [
        _response(status=500),
        _response(payload={"unexpected": True}),
        _response(payload={"embedding": {"values": []}}),
    ],
)
def test_gemini_embedder_failures(response: MagicMock) -> None:
    session = MagicMock()
    session.post.return_value = response
    with pytest.raises(EmbeddingError):
        GeminiEmbedder(api_key="key", session=session).embed("text")


def test_gemini_embedder_network_error() -> None:
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("refused")
    with pytest.raises(EmbeddingError):
        GeminiEmbedder(api_key="key", session=session).embed("text")


def test_gemini_embedder_rejects_blank_text() -> None:
    with pytest.raises(EmbeddingError):
        GeminiEmbedder(api_key="key", session=MagicMock()).embed("   ")


def test_build_embedder(settings: Settings) -> None:
    assert isinstance(build_embedder(settings), HashedEmbedder)
    settings.embedding_backend = "gemini"
    with pytest.raises(ConfigError):
        build_embedder(settings)
    settings.google_api_key = "key"
    assert isinstance(build_embedder(settings), GeminiEmbedder)


def test_vector_bytes_roundtrip_uses_float32() -> None:
    payload = vector_to_bytes([0.5, -1.25])
    assert len(payload) == 8
    assert vector_from_bytes(payload) == [0.5, -1.25]
