"""Shared pytest fixtures for Caption Gallery tests."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from capgallery.core.config import GalleryConfig
from capgallery.core.models import CaptionRecord, ImageRecord
from capgallery.core.session import SessionContext
from capgallery.core.store import StoreClient


class FakeStore:
    """In-memory stand-in for the remote store, served over httpx.MockTransport.

    Tables are lists of row dicts.  Range requests are answered with the
    inclusive slice named in the ``Range`` header, capped at ``row_cap``.

    Attributes:
        tables: Table name to rows.
        users: Access token to user object.
        row_cap: Maximum rows returned per request, like the real store.
        fail_table: Table whose requests fail.
        fail_from_offset: Only fail requests starting at or after this offset.
        fail_status: HTTP status returned for failing requests.
        requests: Every request received, in order.
    """

    def __init__(
        self,
        tables: dict[str, list[dict[str, Any]]] | None = None,
        users: dict[str, dict[str, Any]] | None = None,
        row_cap: int = 1000,
    ) -> None:
        self.tables = tables or {}
        self.users = users or {}
        self.row_cap = row_cap
        self.fail_table: str | None = None
        self.fail_from_offset = 0
        self.fail_status = 500
        self.requests: list[httpx.Request] = []

    def range_requests(self, table: str) -> list[tuple[int, int]]:
        """Return the ``(start, end)`` ranges requested for ``table``."""
        ranges = []
        for request in self.requests:
            if request.url.path == f"/rest/v1/{table}":
                start, end = request.headers["Range"].split("-")
                ranges.append((int(start), int(end)))
        return ranges

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/auth/v1/user":
            token = request.headers.get("Authorization", "").removeprefix("Bearer ")
            user = self.users.get(token)
            if user is None:
                return httpx.Response(401, json={"message": "invalid token"})
            return httpx.Response(200, json=user)

        if path.startswith("/rest/v1/"):
            table = path.removeprefix("/rest/v1/")
            start, end = (int(part) for part in request.headers["Range"].split("-"))

            if table == self.fail_table and start >= self.fail_from_offset:
                return httpx.Response(self.fail_status, json={"message": "boom"})
            if table not in self.tables:
                return httpx.Response(404, json={"message": f"relation {table} does not exist"})

            end = min(end, start + self.row_cap - 1)
            rows = self.tables[table][start : end + 1]
            return httpx.Response(200, content=json.dumps(rows).encode())

        return httpx.Response(404)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client_factory(self):
        """Return a callable building StoreClients wired to this fake store."""

        def factory(config: GalleryConfig, access_token: str | None = None) -> StoreClient:
            return StoreClient(config, access_token=access_token, transport=self.transport())

        return factory


@pytest.fixture
def test_config(monkeypatch) -> GalleryConfig:
    """Create a test configuration isolated from the environment.

    Returns:
        GalleryConfig instance for testing
    """
    for name in ("STORE_URL", "STORE_ANON_KEY", "FETCH_LIMIT", "ITEMS_PER_PAGE"):
        monkeypatch.delenv(f"CAPGALLERY_{name}", raising=False)

    return GalleryConfig(
        store_url="http://store.test",
        store_anon_key="anon-key",
        fetch_limit=1000,
        items_per_page=100,
        max_page_buttons=5,
        _env_file=None,
    )


@pytest.fixture
def session() -> SessionContext:
    """An authenticated session for the test user."""
    return SessionContext(access_token="good-token", user_id="user-1", email="user@example.com")


@pytest.fixture
def sample_image_rows() -> list[dict]:
    """Two images; the second has no captions."""
    return [{"id": 1, "url": "a"}, {"id": 2, "url": "b"}]


@pytest.fixture
def sample_caption_rows() -> list[dict]:
    """Two captions for image 1 and one for an image that does not exist."""
    return [
        {"content": "x", "image_id": 1},
        {"content": "y", "image_id": 1},
        {"content": "z", "image_id": 99},
    ]


@pytest.fixture
def sample_images(sample_image_rows) -> list[ImageRecord]:
    return [ImageRecord.from_row(row) for row in sample_image_rows]


@pytest.fixture
def sample_captions(sample_caption_rows) -> list[CaptionRecord]:
    return [CaptionRecord.from_row(row) for row in sample_caption_rows]


@pytest.fixture
def fake_store(sample_image_rows, sample_caption_rows) -> FakeStore:
    """Fake remote store holding the sample tables and one valid user."""
    return FakeStore(
        tables={"images": sample_image_rows, "captions": sample_caption_rows},
        users={"good-token": {"id": "user-1", "email": "user@example.com"}},
    )


@pytest.fixture
def make_store():
    """Factory for FakeStore instances with custom tables."""
    return FakeStore


@pytest.fixture
def test_client(test_config, fake_store):
    """FastAPI TestClient wired to the fake store.

    The client is used as a context manager so the application lifespan
    (session gate and gallery store setup) runs.
    """
    from fastapi.testclient import TestClient

    from capgallery.api.main import create_app

    app = create_app(test_config, client_factory=fake_store.client_factory())
    with TestClient(app) as client:
        yield client


@pytest.fixture
def logged_in_client(test_client):
    """TestClient with an active session and a finished gallery load."""
    resp = test_client.post("/api/session", json={"access_token": "good-token"})
    assert resp.status_code == 200
    test_client.get("/api/gallery?wait=true")
    return test_client
