"""Notion REST API client implementing the content source protocol."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

import requests

from notion_rag.core.errors import NotFoundError, RateLimitError, SourceError
from notion_rag.core.logging import get_logger
from notion_rag.source.types import (
    BlockType,
    ChildrenPage,
    CollectionItem,
    ContentNode,
    RootMetadata,
)

logger = get_logger(__name__)

NOTION_API_URL = "https://api.notion.com/v1"
PAGE_SIZE = 100


class NotionClient:
    """Blocking client for the subset of the Notion API used during ingest."""

    def __init__(
        self,
        api_token: str,
        notion_version: str = "2022-06-28",
        timeout: float = 30.0,
        base_url: str = NOTION_API_URL,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {api_token}",
                "Notion-Version": notion_version,
                "Content-Type": "application/json",
            }
        )

    def list_children(self, node_id: str, cursor: str | None = None) -> ChildrenPage:
        params: dict[str, Any] = {"page_size": PAGE_SIZE}
        if cursor:
            params["start_cursor"] = cursor
        payload = self._request("GET", f"/blocks/{node_id}/children", params=params)
        items = [parse_block(block) for block in payload.get("results", [])]
        return ChildrenPage(
            items=items,
            has_more=bool(payload.get("has_more")),
            next_cursor=payload.get("next_cursor"),
        )

    def get_root_metadata(self, root_id: str) -> RootMetadata:
        payload = self._request("GET", f"/pages/{root_id}")
        return RootMetadata(
            id=payload.get("id", root_id),
            url=payload.get("url"),
            last_modified=payload.get("last_edited_time"),
            title_candidates=title_candidates(payload.get("properties")),
        )

    def query_collection(
        self, collection_id: str, filter: dict[str, Any] | None = None
    ) -> list[CollectionItem]:
        items: list[CollectionItem] = []
        cursor: str | None = None
        while True:
            body: dict[str, Any] = {"page_size": PAGE_SIZE}
            if filter:
                body["filter"] = filter
            if cursor:
                body["start_cursor"] = cursor
            payload = self._request("POST", f"/databases/{collection_id}/query", json=body)
            for row in payload.get("results", []):
                candidates = title_candidates(row.get("properties"))
                items.append(CollectionItem(id=row["id"], title=candidates[0] if candidates else None))
            if not payload.get("has_more"):
                break
            cursor = payload.get("next_cursor")
        logger.debug("Database %s returned %s rows", collection_id, len(items))
        return items

    def close(self) -> None:
        self.session.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise SourceError(f"{method} {path} failed: {exc}") from exc
        if resp.status_code == 429:
            raise RateLimitError(
                f"{method} {path} rate limited",
                retry_after=_retry_after_seconds(resp.headers.get("Retry-After")),
            )
        if resp.status_code == 404:
            raise NotFoundError(f"{method} {path} not found: {_error_message(resp)}")
        if not resp.ok:
            raise SourceError(
                f"{method} {path} failed ({resp.status_code}): {_error_message(resp)}",
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise SourceError(f"{method} {path} returned invalid JSON") from exc


def parse_block(block: Mapping[str, Any]) -> ContentNode:
    """Convert a raw Notion block object into a ContentNode."""
    raw_type = block.get("type")
    payload = block.get(raw_type) if raw_type else None
    block_type = BlockType.parse(raw_type)
    if not isinstance(payload, Mapping):
        return ContentNode(
            id=block["id"],
            type=block_type,
            has_children=bool(block.get("has_children")),
            has_payload=False,
        )
    return ContentNode(
        id=block["id"],
        type=block_type,
        text=plain_text(payload.get("rich_text", [])),
        has_children=bool(block.get("has_children")),
        language=payload.get("language") or "",
    )


def plain_text(rich_text: Iterable[Mapping[str, Any]]) -> str:
    return "".join(part.get("plain_text", "") for part in rich_text)


def title_candidates(properties: Mapping[str, Any] | None) -> list[str]:
    """Return the non-empty text of every title-typed property."""
    if not properties:
        return []
    titles: list[str] = []
    for prop in properties.values():
        if prop.get("type") != "title" or not prop.get("title"):
            continue
        text = plain_text(prop["title"])
        if text:
            titles.append(text)
    return titles


def _error_message(resp: requests.Response) -> str:
    try:
        return resp.json().get("message", resp.text)
    except ValueError:
        return resp.text


def _retry_after_seconds(value: str | None) -> float | None:
    """Delay-seconds form of Retry-After; HTTP-dates and junk give None."""
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


__all__ = ["NotionClient", "parse_block", "plain_text", "title_candidates"]
