"""Tests for the Notion API client."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from notion_rag.core.errors import NotFoundError, RateLimitError, SourceError
from notion_rag.source.notion import NotionClient, parse_block, title_candidates
from notion_rag.source.types import BlockType


def _rich(text: str) -> list[dict[str, str]]:
    return [{"type": "text", "plain_text": part} for part in text.split("|")]


def _response(status: int = 200, payload: object = None, headers: dict | None = None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.ok = status < 400
    resp.headers = headers or {}
    resp.text = "body"
    resp.json.return_value = payload if payload is not None else {}
    return resp


def _client(*responses: MagicMock) -> tuple[NotionClient, MagicMock]:
    session = MagicMock()
    session.headers = {}
    session.request.side_effect = list(responses)
    return NotionClient(api_token="secret", session=session), session


def test_headers_are_set() -> None:
    client, session = _client()
    assert session.headers["Authorization"] == "Bearer secret"
    assert session.headers["Notion-Version"] == "2022-06-28"
    assert client.base_url == "https://api.notion.com/v1"


def test_list_children_parses_blocks_and_cursor() -> None:
    payload = {
        "results": [
            {"id": "b1", "type": "heading_2", "has_children": False, "heading_2": {"rich_text": _rich("Set|up")}},
            {"id": "b2", "type": "code", "has_children": False, "code": {"rich_text": _rich("ls"), "language": "bash"}},
            {"id": "b3", "type": "table", "has_children": True, "table": {"table_width": 2}},
        ],
        "has_more": True,
        "next_cursor": "cursor-2",
    }
    client, session = _client(_response(payload=payload))
    page = client.list_children("root", cursor="cursor-1")
    assert page.has_more is True
    assert page.next_cursor == "cursor-2"
    assert [item.type for item in page.items] == [BlockType.HEADING_2, BlockType.CODE, BlockType.TABLE]
    assert page.items[0].text == "Setup"
    assert page.items[1].language == "bash"
    assert page.items[2].has_children is True
    method, url = session.request.call_args.args
    assert (method, url) == ("GET", "https://api.notion.com/v1/blocks/root/children")
    assert session.request.call_args.kwargs["params"] == {"page_size": 100, "start_cursor": "cursor-1"}


def test_parse_block_handles_unknown_and_missing_payload() -> None:
    unknown = parse_block({"id": "u", "type": "embed", "embed": {"url": "https://x"}})
    assert unknown.type is BlockType.UNSUPPORTED
    assert unknown.has_payload is True
    bare = parse_block({"id": "m", "type": "paragraph"})
    assert bare.has_payload is False


def test_get_root_metadata() -> None:
    payload = {
        "id": "page-1",
        "url": "https://www.notion.so/page-1",
        "last_edited_time": "2024-05-01T10:00:00.000Z",
        "properties": {
            "Name": {"type": "title", "title": _rich("Team|book")},
            "Tags": {"type": "multi_select", "multi_select": []},
        },
    }
    client, _ = _client(_response(payload=payload))
    metadata = client.get_root_metadata("page-1")
    assert metadata.url == "https://www.notion.so/page-1"
    assert metadata.last_modified == "2024-05-01T10:00:00.000Z"
    assert metadata.title_candidates == ["Teambook"]


def test_query_collection_paginates_with_filter() -> None:
    first = {
        "results": [{"id": "r1", "properties": {"Name": {"type": "title", "title": _rich("Row one")}}}],
        "has_more": True,
        "next_cursor": "next",
    }
    second = {"results": [{"id": "r2", "properties": {"Name": {"type": "title", "title": []}}}], "has_more": False}
    client, session = _client(_response(payload=first), _response(payload=second))
    rows = client.query_collection("db", {"property": "Status"})
    assert [(row.id, row.title) for row in rows] == [("r1", "Row one"), ("r2", None)]
    bodies = [call.kwargs["json"] for call in session.request.call_args_list]
    assert bodies[0] == {"page_size": 100, "filter": {"property": "Status"}}
    assert bodies[1]["start_cursor"] == "next"


def test_rate_limit_maps_to_rate_limit_error() -> None:
    client, _ = _client(_response(status=429, headers={"Retry-After": "3"}))
    with pytest.raises(RateLimitError) as excinfo:
        client.list_children("root")
    assert excinfo.value.retry_after == 3.0
    assert isinstance(excinfo.value, SourceError)


@pytest.mark.parametrize("header", ["Wed, 21 Oct 2015 07:28:00 GMT", "soon", ""])
def test_rate_limit_with_unparseable_retry_after(header: str) -> None:
    client, _ = _client(_response(status=429, headers={"Retry-After": header}))
    with pytest.raises(RateLimitError) as excinfo:
        client.list_children("root")
    assert excinfo.value.retry_after is None


def test_not_found_and_server_errors() -> None:
    client, _ = _client(_response(status=404, payload={"message": "missing"}))
    with pytest.raises(NotFoundError, match="missing"):
        client.get_root_metadata("gone")

    client, _ = _client(_response(status=502, payload={"message": "bad gateway"}))
    with pytest.raises(SourceError) as excinfo:
        client.list_children("root")
    assert excinfo.value.status_code == 502


def test_transport_errors_become_source_errors() -> None:
    session = MagicMock()
    session.headers = {}
    session.request.side_effect = requests.Timeout("slow")
    client = NotionClient(api_token="secret", session=session)
    with pytest.raises(SourceError):
        client.list_children("root")


def test_title_candidates_skips_empty_titles() -> None:
    assert title_candidates(None) == []
    assert title_candidates({"Name": {"type": "title", "title": []}}) == []
