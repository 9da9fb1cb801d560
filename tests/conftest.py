"""
Shared fixtures: canned Wikipedia payloads and a patched requests.get.

Nothing here touches the network; every test that reaches the client
goes through the `requests_get` mock.
"""

from __future__ import annotations

from typing import Any, Optional
from unittest.mock import MagicMock, patch

import pytest

BATMAN_URL = "https://en.wikipedia.org/wiki/Batman"


def make_response(
    status: int = 200, payload: Any = None, *, invalid_json: bool = False
) -> MagicMock:
    """Build a stand-in for requests.Response."""
    resp = MagicMock()
    resp.status_code = status
    if invalid_json:
        resp.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
    else:
        resp.json.return_value = payload
    return resp


def hit_payload(
    title: str,
    pageid: int,
    snippet: str = "",
    *,
    size: int = 1000,
    wordcount: int = 150,
    timestamp: str = "2024-01-01T00:00:00Z",
) -> dict[str, Any]:
    return {
        "ns": 0,
        "title": title,
        "pageid": pageid,
        "size": size,
        "wordcount": wordcount,
        "snippet": snippet,
        "timestamp": timestamp,
    }


def search_payload(*hits: dict[str, Any], totalhits: Optional[int] = None) -> dict[str, Any]:
    return {
        "batchcomplete": "",
        "query": {
            "searchinfo": {"totalhits": totalhits if totalhits is not None else len(hits)},
            "search": list(hits),
        },
    }


def summary_payload(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "type": "standard",
        "title": "Batman",
        "pageid": 4335,
        "extract": "Batman is a superhero appearing in American comic books.",
        "timestamp": "2024-01-01T00:00:00Z",
        "content_urls": {
            "desktop": {"page": BATMAN_URL},
            "mobile": {"page": "https://en.m.wikipedia.org/wiki/Batman"},
        },
    }
    data.update(overrides)
    return data


@pytest.fixture
def requests_get():
    """Patch the only HTTP entry point the client uses."""
    with patch("batwiki.wiki_client.requests.get") as get:
        yield get


@pytest.fixture
def five_hits_payload() -> dict[str, Any]:
    """Two Batman hits among three unrelated ones."""
    return search_payload(
        hit_payload("Batman", 4335, "The <span class=\"searchmatch\">Dark</span> Knight"),
        hit_payload("Robin Hood", 100, "An English outlaw"),
        hit_payload("Knightfall", 101, "A story arc about a fall"),
        hit_payload("Batman Begins", 102, "A 2005 film"),
        hit_payload("Wayne County", 103, "A county in Michigan"),
    )
