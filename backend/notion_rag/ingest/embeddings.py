"""Embedding providers."""

from __future__ import annotations

import hashlib
import math
import re
from array import array
from typing import Protocol, Sequence

import requests

from notion_rag.core.config import Settings
from notion_rag.core.errors import ConfigError, EmbeddingError
from notion_rag.core.logging import get_logger

logger = get_logger(__name__)

_TOKEN_RE = re.compile(r"\w+")

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta"


class Embedder(Protocol):
    """Turns text into a fixed-length vector."""

    @property
    def dim(self) -> int | None:
        ...

    def embed(self, text: str) -> list[float]:
        ...


class HashedEmbedder:
    """Deterministic hashed bag-of-words embedder; needs no network access."""

    def __init__(self, dim: int = 384) -> None:
        if dim <= 0:
            raise ValueError("dim must be positive")
        self._dim = dim

    @property
    def dim(self) -> int:
        return self._dim

    def embed(self, text: str) -> list[float]:
        if not isinstance(text, str):
            raise EmbeddingError(f"Cannot embed {type(text).__name__}")
        vector = [0.0] * self._dim
        for token in _tokenize(text):
            vector[_hash_token(token, self._dim)] += 1.0
        _normalize(vector)
        return vector


class GeminiEmbedder:
    """Google Generative Language ``embedContent`` over HTTP."""

    def __init__(
        self,
        api_key: str,
        model: str = "embedding-001",
        timeout: float = 30.0,
        base_url: str = GEMINI_API_URL,
        session: requests.Session | None = None,
    ) -> None:
        if not api_key:
            raise ConfigError("A Google API key is required for the gemini embedding backend")
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self._dim: int | None = None

    @property
    def dim(self) -> int | None:
        return self._dim

    def embed(self, text: str) -> list[float]:
        if not isinstance(text, str) or not text.strip():
            raise EmbeddingError("Cannot embed empty text")
        url = f"{self.base_url}/models/{self.model}:embedContent"
        body = {
            "model": f"models/{self.model}",
            "content": {"parts": [{"text": text}]},
        }
        logger.debug("Embedding %s chars with %s", len(text), self.model)
        try:
            resp = self.session.post(url, params={"key": self.api_key}, json=body, timeout=self.timeout)
        except requests.RequestException as exc:
            raise EmbeddingError(f"Embedding request failed: {exc}") from exc
        if not resp.ok:
            raise EmbeddingError(f"Embedding request failed ({resp.status_code}): {resp.text}")
        try:
            values = resp.json()["embedding"]["values"]
            vector = [float(value) for value in values]
        except (ValueError, KeyError, TypeError) as exc:
            raise EmbeddingError("Malformed embedding response") from exc
        if not vector:
            raise EmbeddingError("Embedding response contained no values")
        self._dim = len(vector)
        return vector


def build_embedder(settings: Settings) -> Embedder:
    if settings.embedding_backend == "hashed":
        return HashedEmbedder(dim=settings.hashed_dim)
    return GeminiEmbedder(
        api_key=settings.google_api_key,
        model=settings.embedding_model,
        timeout=settings.request_timeout,
    )


def vector_to_bytes(vector: Sequence[float]) -> bytes:
    return array("f", vector).tobytes()


def vector_from_bytes(payload: bytes) -> list[float]:
    floats = array("f")
    floats.frombytes(payload)
    return list(floats)


def _tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


def _hash_token(token: str, dim: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    value = int.from_bytes(digest, "big")
    return value % dim


def _normalize(vector: list[float]) -> None:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return
    inv = 1.0 / norm
    for idx, value in enumerate(vector):
        vector[idx] = value * inv


__all__ = [
    "Embedder",
    "GeminiEmbedder",
    "HashedEmbedder",
    "build_embedder",
    "vector_from_bytes",
    "vector_to_bytes",
]
