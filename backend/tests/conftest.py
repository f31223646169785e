"""Test fixtures for notion-rag."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Iterable

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from notion_rag.core.config import Settings  # noqa: E402
from notion_rag.core.errors import NotFoundError, SourceError  # noqa: E402
from notion_rag.source.types import (  # noqa: E402
    BlockType,
    ChildrenPage,
    CollectionItem,
    ContentNode,
    RootMetadata,
)

_counter = {"value": 0}


def _next_id(prefix: str) -> str:
    _counter["value"] += 1
    return f"{prefix}-{_counter['value']}"


def heading(text: str, level: int = 1, node_id: str | None = None) -> ContentNode:
    return ContentNode(id=node_id or _next_id("h"), type=BlockType(f"heading_{level}"), text=text)


def paragraph(text: str, node_id: str | None = None, has_children: bool = False) -> ContentNode:
    return ContentNode(
        id=node_id or _next_id("p"),
        type=BlockType.PARAGRAPH,
        text=text,
        has_children=has_children,
    )


def node(block_type: BlockType, text: str = "", node_id: str | None = None, **kwargs: Any) -> ContentNode:
    return ContentNode(id=node_id or _next_id(block_type.value), type=block_type, text=text, **kwargs)


class FakeSource:
    """In-memory content source serving children in fixed-size pages."""

    def __init__(
        self,
        children: dict[str, list[ContentNode]] | None = None,
        page_size: int = 2,
        metadata: dict[str, RootMetadata] | None = None,
        collections: dict[str, list[CollectionItem]] | None = None,
        failing: Iterable[str] = (),
    ) -> None:
        self.children = children or {}
        self.page_size = page_size
        self.metadata = metadata or {}
        self.collections = collections or {}
        self.failing = set(failing)
        self.calls: list[tuple[str, str | None]] = []
        self.collection_filters: list[dict[str, Any] | None] = []

    def list_children(self, node_id: str, cursor: str | None = None) -> ChildrenPage:
        self.calls.append((node_id, cursor))
        if node_id in self.failing:
            raise SourceError(f"cannot list {node_id}", status_code=500)
        items = self.children.get(node_id, [])
        start = int(cursor) if cursor else 0
        end = start + self.page_size
        has_more = end < len(items)
        return ChildrenPage(
            items=list(items[start:end]),
            has_more=has_more,
            next_cursor=str(end) if has_more else None,
        )

    def get_root_metadata(self, root_id: str) -> RootMetadata:
        if root_id in self.failing:
            raise NotFoundError(f"page {root_id} not found")
        return self.metadata.get(root_id, RootMetadata(id=root_id, url=f"https://notion.so/{root_id}"))

    def query_collection(self, collection_id: str, filter: dict[str, Any] | None = None) -> list[CollectionItem]:
        self.collection_filters.append(filter)
        if collection_id in self.failing:
            raise SourceError(f"cannot query {collection_id}", status_code=500)
        return list(self.collections.get(collection_id, []))


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset cached settings and environment between tests."""
    from notion_rag.core.config import get_settings

    for name in ("NRAG_CONFIG", "NRAG_DB_PATH", "NOTION_API_TOKEN", "GOOGLE_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        db_path=tmp_path / "nrag.db",
        embedding_backend="hashed",
        hashed_dim=64,
        notion_api_token="secret-token",
    )
