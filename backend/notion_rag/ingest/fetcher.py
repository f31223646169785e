"""Flatten a paginated block tree into an ordered node list."""

from __future__ import annotations

from collections import deque

from notion_rag.core.logging import get_logger
from notion_rag.source.types import ContentNode, ContentSource

logger = get_logger(__name__)


class TreeFetcher:
    """Collects every descendant of a node.

    Direct children come first in delivery order. The list is then walked
    front to back while it grows: every node with children, including nodes
    appended by an earlier expansion, has its subtree appended to the end.
    Descendants already returned by a nested expansion are expanded again, so
    nodes below the second level can appear more than once.
    """

    def __init__(self, source: ContentSource) -> None:
        self.source = source

    def fetch_subtree(self, node_id: str) -> list[ContentNode]:
        nodes = self.fetch_children(node_id)
        pending = deque(node for node in nodes if node.has_children)
        while pending:
            parent = pending.popleft()
            subtree = self.fetch_subtree(parent.id)
            nodes.extend(subtree)
            pending.extend(node for node in subtree if node.has_children)
        return nodes

    def fetch_children(self, node_id: str) -> list[ContentNode]:
        children: list[ContentNode] = []
        cursor: str | None = None
        pages = 0
        while True:
            page = self.source.list_children(node_id, cursor)
            children.extend(page.items)
            pages += 1
            if not page.has_more:
                break
            cursor = page.next_cursor
        logger.debug("Fetched %s children of %s in %s pages", len(children), node_id, pages)
        return children


def fetch_subtree(source: ContentSource, node_id: str) -> list[ContentNode]:
    return TreeFetcher(source).fetch_subtree(node_id)


__all__ = ["TreeFetcher", "fetch_subtree"]
