"""FastAPI forwarding relay for WebDAV stores.

Browsers and restricted networks cannot always reach a WebDAV server
directly. The relay accepts requests under ``/api/webdav/<path>`` and
forwards them to ``<endpoint>/<path>``, where ``endpoint`` is a query
parameter. ``proxy_method`` overrides the forwarded method (for clients
that cannot send PROPFIND).

Usage:
    uvicorn snapsync.relay.app:app_factory --factory --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
import os
from urllib.parse import urlsplit

import httpx
from fastapi import FastAPI, HTTPException, Request, Response

logger = logging.getLogger(__name__)

RELAY_METHODS = ["GET", "PUT", "PROPFIND", "MKCOL"]
FORWARDED_HEADERS = ("authorization", "content-type", "content-range", "depth")
DEFAULT_RELAY_TIMEOUT = 30.0

# Configuration from environment variables with defaults
ALLOWED_ENDPOINTS_ENV = "SNAPSYNC_RELAY_ALLOWED_ENDPOINTS"
TIMEOUT_ENV = "SNAPSYNC_RELAY_TIMEOUT"


def _origin(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}".lower()


def is_endpoint_allowed(endpoint: str, allowed_endpoints: list[str] | None) -> bool:
    """Check an endpoint against the allow-list.

    An endpoint is allowed when it shares the origin of an allowed URL
    and its path starts with that URL's path. ``None`` allows any
    http(s) endpoint.
    """
    parts = urlsplit(endpoint)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return False
    if allowed_endpoints is None:
        return True
    for allowed in allowed_endpoints:
        allowed_path = urlsplit(allowed).path.rstrip("/")
        if _origin(allowed) == _origin(endpoint) and parts.path.startswith(allowed_path):
            return True
    return False


def create_app(
    allowed_endpoints: list[str] | None = None,
    timeout: float = DEFAULT_RELAY_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create the relay application.

    Args:
        allowed_endpoints: Upstream URL prefixes the relay may contact.
            None allows any http(s) endpoint.
        timeout: Upstream request timeout in seconds.
        transport: Optional httpx transport for upstream requests.

    Returns:
        Configured FastAPI application.
    """
    application = FastAPI(
        title="SnapSync Relay",
        description="Forwarding relay for WebDAV snapshot stores",
        version="0.1.0",
    )
    application.state.allowed_endpoints = allowed_endpoints
    application.state.timeout = timeout

    @application.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok"}

    @application.api_route("/api/webdav/{path:path}", methods=RELAY_METHODS)
    async def relay(path: str, request: Request) -> Response:
        """Forward a request to the upstream WebDAV endpoint."""
        endpoint = request.query_params.get("endpoint")
        if not endpoint:
            raise HTTPException(status_code=400, detail="Missing endpoint parameter")
        if not is_endpoint_allowed(endpoint, application.state.allowed_endpoints):
            logger.warning(f"Rejected relay request to {endpoint}")
            raise HTTPException(status_code=403, detail="Endpoint not allowed")

        method = (request.query_params.get("proxy_method") or request.method).upper()
        target = f"{endpoint.rstrip('/')}/{path.lstrip('/')}"
        headers = {
            name: value
            for name, value in request.headers.items()
            if name.lower() in FORWARDED_HEADERS
        }
        body = await request.body()

        async with httpx.AsyncClient(
            timeout=application.state.timeout,
            transport=transport,
        ) as client:
            try:
                upstream = await client.request(
                    method,
                    target,
                    headers=headers,
                    content=body or None,
                )
            except httpx.RequestError as e:
                logger.error(f"Relay {method} {target} failed: {e}")
                raise HTTPException(status_code=502, detail="Upstream unreachable") from e

        logger.info(f"Relay {method} {target}: {upstream.status_code}")
        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            media_type=upstream.headers.get("content-type"),
        )

    return application


def _allowed_from_env() -> list[str] | None:
    raw = os.environ.get(ALLOWED_ENDPOINTS_ENV, "")
    endpoints = [item.strip() for item in raw.split(",") if item.strip()]
    return endpoints or None


def app_factory() -> FastAPI:
    """Factory function for uvicorn --factory mode."""
    return create_app(
        allowed_endpoints=_allowed_from_env(),
        timeout=float(os.environ.get(TIMEOUT_ENV, DEFAULT_RELAY_TIMEOUT)),
    )
