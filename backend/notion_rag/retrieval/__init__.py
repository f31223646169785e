"""Retrieval components."""

from .search import Retriever, format_context
from .vector_index import InMemoryVectorStore
from .vector_store import SQLiteVectorStore, VectorStore

__all__ = [
    "InMemoryVectorStore",
    "Retriever",
    "SQLiteVectorStore",
    "VectorStore",
    "format_context",
]
