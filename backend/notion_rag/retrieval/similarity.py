"""Cosine similarity ranking shared by the vector store backends."""

from __future__ import annotations

import math
from typing import Iterable, Sequence, TypeVar

from notion_rag.core.errors import StoreError

T = TypeVar("T")


def validate_vector(vector: Sequence[float], dim: int | None = None) -> list[float]:
    """Return ``vector`` as a list of floats or raise StoreError."""
    if not vector:
        raise StoreError("Vector is empty")
    try:
        values = [float(value) for value in vector]
    except (TypeError, ValueError) as exc:
        raise StoreError("Vector contains non-numeric values") from exc
    if not all(math.isfinite(value) for value in values):
        raise StoreError("Vector contains non-finite values")
    if dim is not None and len(values) != dim:
        raise StoreError(f"Vector dimension mismatch: expected {dim}, got {len(values)}")
    return values


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float | None:
    """``1 - cosine distance``, clamped to [-1, 1]; None when either norm is zero."""
    if len(a) != len(b):
        raise StoreError(f"Vector dimension mismatch: {len(a)} != {len(b)}")
    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    if norm_a == 0.0 or norm_b == 0.0:
        return None
    score = dot / (math.sqrt(norm_a) * math.sqrt(norm_b))
    return max(-1.0, min(1.0, score))


def rank_by_similarity(
    query: Sequence[float],
    candidates: Iterable[tuple[T, Sequence[float]]],
    threshold: float,
    limit: int,
) -> list[tuple[T, float]]:
    """Score every candidate and keep the best ``limit`` strictly above ``threshold``.

    Candidates must be supplied in insertion order; equal scores keep that order.
    """
    if limit <= 0:
        return []
    scored: list[tuple[float, int, T]] = []
    for position, (item, vector) in enumerate(candidates):
        score = cosine_similarity(query, vector)
        if score is not None and score > threshold:
            scored.append((score, position, item))
    scored.sort(key=lambda entry: (-entry[0], entry[1]))
    return [(item, score) for score, _, item in scored[:limit]]


__all__ = ["cosine_similarity", "rank_by_similarity", "validate_vector"]
