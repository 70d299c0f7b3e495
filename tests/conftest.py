"""Shared test fixtures and configuration."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from bright.client.client import AsyncBrightClient, BrightClient
from bright.config.settings import ClientSettings


class MockServer:
    """In-process stand-in for a Bright server, used as an ``httpx.MockTransport``.

    Routes are keyed by ``(method, path)``; unrouted requests get a 404 with
    an ``INDEX_NOT_FOUND`` envelope.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], dict[str, Any]] = {}

    def route(
        self,
        method: str,
        path: str,
        *,
        status: int = 200,
        json_body: Any = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        spec: dict[str, Any] = {"headers": headers}
        if json_body is not None:
            spec["json"] = json_body
        else:
            spec["content"] = content or b""
        self._routes[(method, path)] = {"status": status, **spec}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.raw_path.split(b"?")[0].decode())
        if key in self._routes:
            spec = dict(self._routes[key])
            return httpx.Response(spec.pop("status"), **spec)
        return httpx.Response(404, json={"error": "Not found", "code": "INDEX_NOT_FOUND"})

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last.content)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def server() -> MockServer:
    return MockServer()


@pytest.fixture
async def client(server: MockServer) -> AsyncBrightClient:
    """Async client wired to the mock server, with an API key."""
    async with AsyncBrightClient(
        "http://bright.test/",
        api_key="test-key",
        transport=server.transport(),
    ) as c:
        yield c


@pytest.fixture
def sync_client(server: MockServer) -> BrightClient:
    return BrightClient("http://bright.test", transport=server.transport())


@pytest.fixture
def settings() -> ClientSettings:
    """Create a test ClientSettings instance with defaults."""
    return ClientSettings(
        _env_file=None,  # type: ignore[call-arg]
        base_url="http://bright.test/",
        api_key="test-key",
    )


@pytest.fixture
def postgres_ingress_payload() -> dict[str, Any]:
    return {
        "id": "pg-books",
        "index_id": "books",
        "type": "postgres",
        "status": "running",
        "statistics": {
            "last_sync_at": "2025-01-02T03:04:05Z",
            "documents_synced": 120,
            "documents_deleted": 3,
            "full_sync_complete": True,
            "error_count": 0,
        },
        "config": {
            "dsn": "postgres://user:pass@db:5432/library",
            "table": "books",
            "schema": "public",
            "sync_mode": "listen",
            "batch_size": 500,
        },
    }
