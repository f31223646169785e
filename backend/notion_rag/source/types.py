"""Content source data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, Sequence


class BlockType(str, Enum):
    HEADING_1 = "heading_1"
    HEADING_2 = "heading_2"
    HEADING_3 = "heading_3"
    PARAGRAPH = "paragraph"
    BULLETED_LIST_ITEM = "bulleted_list_item"
    NUMBERED_LIST_ITEM = "numbered_list_item"
    TOGGLE = "toggle"
    CODE = "code"
    QUOTE = "quote"
    CALLOUT = "callout"
    TABLE = "table"
    UNSUPPORTED = "unsupported"

    @classmethod
    def parse(cls, value: str | None) -> "BlockType":
        try:
            return cls(value)
        except ValueError:
            return cls.UNSUPPORTED

    @property
    def is_heading(self) -> bool:
        return self in _HEADINGS


_HEADINGS = frozenset({BlockType.HEADING_1, BlockType.HEADING_2, BlockType.HEADING_3})


@dataclass(slots=True)
class ContentNode:
    """One block of the source tree, flattened to plain text."""

    id: str
    type: BlockType
    text: str = ""
    has_children: bool = False
    language: str = ""
    # False when the block carried no payload for its type tag.
    has_payload: bool = True


@dataclass(slots=True)
class ChildrenPage:
    """One page of child blocks as returned by the source."""

    items: list[ContentNode]
    has_more: bool
    next_cursor: str | None = None


@dataclass(slots=True)
class RootMetadata:
    """Metadata for a top-level page."""

    id: str
    url: str | None = None
    last_modified: str | None = None
    title_candidates: list[str] = field(default_factory=list)


@dataclass(slots=True)
class CollectionItem:
    """A row of a database query; each row is ingested as its own document."""

    id: str
    title: str | None = None


class ContentSource(Protocol):
    """Paginated, tree-shaped content store."""

    def list_children(self, node_id: str, cursor: str | None = None) -> ChildrenPage:
        ...

    def get_root_metadata(self, root_id: str) -> RootMetadata:
        ...

    def query_collection(
        self, collection_id: str, filter: dict[str, Any] | None = None
    ) -> Sequence[CollectionItem]:
        ...


__all__ = [
    "BlockType",
    "ChildrenPage",
    "CollectionItem",
    "ContentNode",
    "ContentSource",
    "RootMetadata",
]
