"""Heading-aware segmentation of a flattened block list into chunks."""

from __future__ import annotations

from typing import Sequence

from notion_rag.models.entities import Chunk
from notion_rag.source.types import BlockType, ContentNode

DEFAULT_MAX_CHARS = 1000

_BLOCK_TEMPLATES: dict[BlockType, str] = {
    BlockType.PARAGRAPH: "{text}\n\n",
    BlockType.TOGGLE: "{text}\n\n",
    BlockType.QUOTE: '"{text}"\n\n',
    BlockType.CALLOUT: "Note: {text}\n\n",
    BlockType.BULLETED_LIST_ITEM: "• {text}\n",
    BlockType.NUMBERED_LIST_ITEM: "• {text}\n",
}


class _TextBuffer:
    """Append-only string builder that tracks its length."""

    __slots__ = ("_parts", "_length")

    def __init__(self, initial: str = "") -> None:
        self._parts: list[str] = []
        self._length = 0
        self.reset(initial)

    def __len__(self) -> int:
        return self._length

    def append(self, text: str) -> None:
        self._parts.append(text)
        self._length += len(text)

    def reset(self, initial: str = "") -> None:
        self._parts.clear()
        self._length = 0
        if initial:
            self.append(initial)

    def getvalue(self) -> str:
        return "".join(self._parts)


def render_node(node: ContentNode) -> str | None:
    """Render a non-heading node, or None when it contributes no text."""
    if not node.text.strip():
        return None
    if node.type is BlockType.CODE:
        return f"Code ({node.language}):\n{node.text}\n\n"
    template = _BLOCK_TEMPLATES.get(node.type)
    if template is None:
        # tables and unsupported blocks: their text arrives through child nodes
        return None
    return template.format(text=node.text)


def segment(
    nodes: Sequence[ContentNode],
    document_id: int,
    max_chars: int = DEFAULT_MAX_CHARS,
) -> list[Chunk]:
    """Split an ordered node list into chunks for one document.

    Every heading closes the running section and starts a new one. A section
    whose accumulated text grows past ``max_chars`` is flushed after the node
    that pushed it over, and continues under a ``(continued)`` header. Nodes
    are never split, and a continuation header with no text after it is
    dropped. The returned chunks carry consecutive ordinals.
    """
    chunks: list[Chunk] = []
    buffer = _TextBuffer()
    heading = ""
    # set while the buffer holds nothing but a "(continued)" header
    header_only = False

    def flush(source_node_id: str | None) -> None:
        content = buffer.getvalue().strip()
        if content and not header_only:
            chunks.append(
                Chunk(
                    document_id=document_id,
                    content=content,
                    source_node_id=source_node_id,
                    context=heading,
                    ordinal=len(chunks),
                )
            )

    for node in nodes:
        if not node.has_payload:
            continue

        if node.type.is_heading:
            flush(node.id)
            heading = node.text
            buffer.reset(f"{heading}:\n")
            header_only = False
        else:
            rendered = render_node(node)
            if rendered is not None:
                buffer.append(rendered)
                header_only = False

        if len(buffer) > max_chars:
            flush(node.id)
            buffer.reset(f"{heading} (continued):\n" if heading else "")
            header_only = bool(heading)

    flush(nodes[-1].id if nodes else None)
    return chunks


__all__ = ["DEFAULT_MAX_CHARS", "render_node", "segment"]
