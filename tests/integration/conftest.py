"""Pytest fixtures for integration tests.

This module provides an in-memory WebDAV-like blob store served as an
ASGI app, and sync replicas wired to it through httpx's ASGI transport.
No sockets are opened.
"""

from __future__ import annotations

import base64
import re
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI, Request, Response

from snapsync.client.api import WebDAVClient
from snapsync.client.registry import DomainRegistry, build_registry
from snapsync.client.state import MemoryState
from snapsync.client.sync import SyncEngine
from snapsync.core.config import SyncConfig, WebDAVConfig
from snapsync.core.types import DomainName
from snapsync.relay.app import create_app as create_relay_app

USERNAME = "alice"
PASSWORD = "secret"
STORE_URL = "http://dav.test"
RELAY_URL = "http://relay.test"

_RANGE_RE = re.compile(r"bytes (\d+)-(\d+)/(\d+)")


@dataclass
class BlobStore:
    """State of the in-memory store."""

    blobs: dict[str, bytes] = field(default_factory=dict)
    pending: dict[str, bytearray] = field(default_factory=dict)
    requests: list[tuple[str, str, str | None]] = field(default_factory=list)
    reject_ranges: bool = False

    def puts(self) -> list[tuple[str, str, str | None]]:
        return [r for r in self.requests if r[0] == "PUT"]


def create_store_app(store: BlobStore) -> FastAPI:
    """WebDAV-like store: Basic auth, GET/PUT/PROPFIND, range reassembly."""
    app = FastAPI()
    expected = "Basic " + base64.b64encode(f"{USERNAME}:{PASSWORD}".encode()).decode()

    @app.api_route("/{path:path}", methods=["GET", "PUT", "PROPFIND", "MKCOL"])
    async def handle(path: str, request: Request) -> Response:
        content_range = request.headers.get("content-range")
        store.requests.append((request.method, path, content_range))

        if request.headers.get("authorization") != expected:
            return Response(status_code=401)
        if request.method in ("PROPFIND", "MKCOL"):
            return Response(status_code=207 if request.method == "PROPFIND" else 201)
        if request.method == "GET":
            if path not in store.blobs:
                return Response(status_code=404)
            return Response(content=store.blobs[path], media_type="application/octet-stream")

        body = await request.body()
        if content_range is None:
            store.blobs[path] = body
            return Response(status_code=201)

        match = _RANGE_RE.fullmatch(content_range)
        if store.reject_ranges or match is None:
            return Response(status_code=416)
        start, end, total = (int(g) for g in match.groups())
        buffer = store.pending.setdefault(path, bytearray())
        if start != len(buffer) or end - start + 1 != len(body):
            store.pending.pop(path, None)
            return Response(status_code=416)
        buffer.extend(body)
        if len(buffer) == total:
            store.blobs[path] = bytes(store.pending.pop(path))
        return Response(status_code=204)

    return app


@dataclass
class Replica:
    """One sync participant: live state, registry, client and engine."""

    name: str
    containers: dict[DomainName, MemoryState]
    registry: DomainRegistry
    client: WebDAVClient
    engine: SyncEngine

    def state(self, domain: DomainName) -> dict[str, Any]:
        return self.containers[domain].get_state()

    def set_state(self, domain: DomainName, state: dict[str, Any]) -> None:
        self.containers[domain].set_state(state)


def initial_state(name: str) -> dict[DomainName, MemoryState]:
    """Per-replica starting state with one session and one prompt."""
    return {
        DomainName.CHAT: MemoryState(
            {
                "sessions": [
                    {
                        "id": f"session-{name}",
                        "topic": f"from {name}",
                        "lastUpdate": 1000 if name == "a" else 2000,
                        "messages": [{"id": f"msg-{name}", "date": 1, "content": "hi"}],
                    }
                ]
            }
        ),
        DomainName.ACCESS: MemoryState({"accessCode": f"code-{name}", "lastUpdateTime": 0}),
        DomainName.CONFIG: MemoryState({"theme": f"theme-{name}", "lastUpdateTime": 0}),
        DomainName.MASK: MemoryState({"masks": {}}),
        DomainName.PROMPT: MemoryState({"prompts": {f"prompt-{name}": {"title": name}}}),
    }


def make_replica(
    name: str,
    transport: httpx.AsyncBaseTransport,
    proxy_url: str | None = None,
    password: str = PASSWORD,
    chunk_size: int = 1024 * 1024,
) -> Replica:
    containers = initial_state(name)
    registry = build_registry(containers)
    webdav = WebDAVConfig(endpoint=STORE_URL, username=USERNAME, password=password)
    client = WebDAVClient(
        webdav,
        proxy_url=proxy_url,
        chunk_size=chunk_size,
        max_retries=1,
        initial_backoff=0,
        transport=transport,
    )
    engine = SyncEngine(registry, client, config=SyncConfig(webdav=webdav, chunk_size=chunk_size))
    return Replica(name, containers, registry, client, engine)


@pytest.fixture
def blob_store() -> BlobStore:
    return BlobStore()


@pytest.fixture
def store_transport(blob_store: BlobStore) -> httpx.ASGITransport:
    return httpx.ASGITransport(app=create_store_app(blob_store))


@pytest.fixture
def relay_transport(store_transport: httpx.ASGITransport) -> httpx.ASGITransport:
    return httpx.ASGITransport(app=create_relay_app(transport=store_transport))


@pytest_asyncio.fixture
async def replicas(
    store_transport: httpx.ASGITransport,
) -> AsyncGenerator[tuple[Replica, Replica], None]:
    """Two replicas talking to the store directly."""
    a = make_replica("a", store_transport)
    b = make_replica("b", store_transport)
    yield a, b
    await a.client.close()
    await b.client.close()


@pytest_asyncio.fixture
async def relayed_replicas(
    relay_transport: httpx.ASGITransport,
) -> AsyncGenerator[tuple[Replica, Replica], None]:
    """Two replicas talking to the store through the relay."""
    a = make_replica("a", relay_transport, proxy_url=RELAY_URL)
    b = make_replica("b", relay_transport, proxy_url=RELAY_URL)
    yield a, b
    await a.client.close()
    await b.client.close()
