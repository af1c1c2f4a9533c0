from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List

import pytest
import requests

from .client import OverpassClient


@dataclass
class FakeResponse:
    payload: Any
    status: int = 200

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self) -> Any:
        return self.payload


@dataclass
class FakeSession:
    response: FakeResponse
    posts: List[Dict[str, Any]] = field(default_factory=list)

    def post(self, url, data=None, timeout=None):
        self.posts.append({"url": url, "data": data, "timeout": timeout})
        return self.response

    def get(self, url, timeout=None):
        self.posts.append({"url": url, "timeout": timeout})
        return self.response


def test_query_posts_overpass_ql_as_form_data() -> None:
    session = FakeSession(FakeResponse({"elements": [{"type": "node", "id": 1}]}))
    client = OverpassClient(url="http://overpass.test/api", timeout=5, session=session)

    data = asyncio.run(client.query_async("[out:json];node(1);out;"))
    assert data["elements"][0]["id"] == 1
    assert session.posts == [{
        "url": "http://overpass.test/api",
        "data": {"data": "[out:json];node(1);out;"},
        "timeout": 5,
    }]


def test_http_errors_propagate() -> None:
    client = OverpassClient(url="http://overpass.test/api", session=FakeSession(FakeResponse({}, status=504)))
    with pytest.raises(requests.HTTPError):
        client.query("[out:json];node(1);out;")
