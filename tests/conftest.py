"""Shared fixtures for md2slides tests."""

from __future__ import annotations

import itertools
import json

import httpx
import pytest

from md2slides.clients import GistClient
from md2slides.services.gists import GistGateway

API_URL = "https://api.github.test"
RAW_HOST = "gist.githubusercontent.test"


# ---------------------------------------------------------------------------
# In-memory Gist API
# ---------------------------------------------------------------------------

class FakeGistApi:
    """Just enough of the GitHub Gist REST API, served via ``httpx.MockTransport``.

    ``foreign`` IDs exist but refuse PATCH/DELETE with a 404 (what GitHub
    answers for gists owned by someone else), ``broken`` IDs answer 500 to
    everything, and ``offline`` turns every call into a connection error.
    """

    def __init__(self) -> None:
        self.gists: dict[str, dict] = {}
        self.raw: dict[str, str] = {}
        self.foreign: set[str] = set()
        self.broken: set[str] = set()
        self.offline = False
        self.requests: list[httpx.Request] = []
        self._ids = itertools.count(1)

    # -- seeding ----------------------------------------------------------

    def add(self, files: dict[str, dict], description: str | None = None) -> str:
        gist_id = f"g{next(self._ids):04x}"
        self.gists[gist_id] = self._build(gist_id, files, description)
        return gist_id

    def add_document(self, content: str, title: str | None = None) -> str:
        files = {"presentation.md": {"content": content}}
        if title is not None:
            files["metadata.json"] = {"content": json.dumps({"title": title})}
        return self.add(files, description=title)

    def content_of(self, gist_id: str) -> str:
        return self.gists[gist_id]["files"]["presentation.md"]["content"]

    def _build(self, gist_id: str, files: dict[str, dict], description: str | None) -> dict:
        return {
            "id": gist_id,
            "description": description,
            "public": False,
            "html_url": f"https://gist.github.test/{gist_id}",
            "created_at": "2024-01-01T00:00:00Z",
            "updated_at": "2024-01-02T00:00:00Z",
            "files": {
                name: {
                    "filename": name,
                    "content": entry.get("content"),
                    "truncated": entry.get("truncated", False),
                    "raw_url": entry.get("raw_url"),
                }
                for name, entry in files.items()
            },
        }

    # -- transport ----------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.offline:
            raise httpx.ConnectError("network is down", request=request)

        if request.url.host == RAW_HOST:
            body = self.raw.get(str(request.url))
            if body is None:
                return httpx.Response(404)
            return httpx.Response(200, text=body)

        parts = request.url.path.strip("/").split("/")
        if parts == ["gists"] and request.method == "POST":
            payload = json.loads(request.content)
            gist_id = self.add(payload["files"], payload.get("description"))
            return httpx.Response(201, json=self.gists[gist_id])

        if len(parts) != 2 or parts[0] != "gists":
            return httpx.Response(404, json={"message": "Not Found"})

        gist_id = parts[1]
        if gist_id in self.broken:
            return httpx.Response(500, json={"message": "Server Error"})
        if gist_id not in self.gists:
            return httpx.Response(404, json={"message": "Not Found"})

        if request.method == "GET":
            return httpx.Response(200, json=self.gists[gist_id])
        if gist_id in self.foreign:
            return httpx.Response(404, json={"message": "Not Found"})
        if request.method == "PATCH":
            payload = json.loads(request.content)
            self.gists[gist_id] = self._build(
                gist_id, payload["files"], payload.get("description")
            )
            return httpx.Response(200, json=self.gists[gist_id])
        if request.method == "DELETE":
            del self.gists[gist_id]
            return httpx.Response(204)
        return httpx.Response(405)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_api():
    return FakeGistApi()


@pytest.fixture
def http_client(fake_api):
    return httpx.AsyncClient(
        transport=httpx.MockTransport(fake_api.handler), base_url=API_URL
    )


@pytest.fixture
def gist_client(http_client):
    return GistClient(token="test-token", http_client=http_client)


@pytest.fixture
def gateway(gist_client):
    return GistGateway(gist_client)


@pytest.fixture
def unconfigured_gateway(http_client):
    return GistGateway(GistClient(token="", http_client=http_client))
