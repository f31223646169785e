"""Error taxonomy shared by ingestion and retrieval."""

from __future__ import annotations


class NotionRagError(Exception):
    """Base class for all package errors."""


class ConfigError(NotionRagError):
    """Missing or invalid configuration."""


class SourceError(NotionRagError):
    """Content source request failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(SourceError):
    """Content source rejected the request with a rate limit."""

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class NotFoundError(SourceError):
    """Requested node does not exist or is not shared with the integration."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=404)


class EmbeddingError(NotionRagError):
    """Embedding provider failure or malformed input."""


class StoreError(NotionRagError):
    """Vector store persistence or query failure."""


__all__ = [
    "NotionRagError",
    "ConfigError",
    "SourceError",
    "RateLimitError",
    "NotFoundError",
    "EmbeddingError",
    "StoreError",
]
