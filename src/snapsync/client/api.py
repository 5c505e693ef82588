"""Remote store clients.

This module provides:
- RemoteStore: the get/set/check capability the sync engine depends on
- WebDAVClient: HTTP implementation against a WebDAV-like blob store
- create_remote_store: provider selection from SyncConfig
- APIError hierarchy used to classify transfer failures
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import httpx

from snapsync.client.retry import (
    DEFAULT_INITIAL_BACKOFF,
    DEFAULT_MAX_BACKOFF,
    retry_with_backoff,
)
from snapsync.core.chunking import DEFAULT_CHUNK_SIZE, chunk_bytes, count_chunks
from snapsync.core.config import (
    DEFAULT_MAX_PAYLOAD_SIZE,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
    ConfigError,
    WebDAVConfig,
)
from snapsync.core.types import ProviderType

if TYPE_CHECKING:
    from snapsync.core.config import SyncConfig

logger = logging.getLogger(__name__)

# Statuses meaning "the store answered": reachable, maybe misconfigured
CHECK_OK_STATUSES = frozenset({200, 207, 401, 403})

RELAY_PATH_PREFIX = "/api/webdav/"


class APIError(Exception):
    """Base exception for remote store errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NetworkError(APIError):
    """Remote store unreachable or request timed out."""


class StatusError(APIError):
    """Unexpected non-success status. Transient for uploads."""


class AuthenticationError(APIError):
    """Credentials rejected by the remote store."""


class RangeNotSatisfiableError(APIError):
    """Store rejected a Content-Range (protocol mismatch)."""


class PayloadTooLargeError(APIError):
    """Payload exceeds the configured maximum size."""


class UploadError(APIError):
    """Upload failed after exhausting the retry budget."""

    def __init__(
        self,
        message: str,
        chunk_index: int | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, status_code)
        self.chunk_index = chunk_index


class RemoteStore(ABC):
    """Keyed blob store used as the shared replica."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name recorded as last_provider."""

    @abstractmethod
    async def check(self) -> bool:
        """Probe reachability without transferring the blob.

        Returns:
            False only when the store cannot be reached.
        """

    @abstractmethod
    async def get(self, key: str) -> bytes:
        """Fetch a blob.

        Returns:
            Blob content, or b"" if the key does not exist.

        Raises:
            APIError: On any other failure.
        """

    @abstractmethod
    async def set(self, key: str, data: bytes) -> None:
        """Store a blob.

        Raises:
            APIError: If the blob could not be stored.
        """

    async def close(self) -> None:
        """Release transport resources."""

    async def __aenter__(self) -> RemoteStore:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()


class WebDAVClient(RemoteStore):
    """HTTP client for a WebDAV-like blob store.

    Requests go directly to the configured endpoint, or through a
    forwarding relay when ``proxy_url`` is set. Large payloads are sent
    as sequential range-addressed chunks, each retried independently.
    """

    def __init__(
        self,
        config: WebDAVConfig,
        proxy_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_retries: int = DEFAULT_MAX_RETRIES,
        max_payload_size: int = DEFAULT_MAX_PAYLOAD_SIZE,
        initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
        max_backoff: float = DEFAULT_MAX_BACKOFF,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the WebDAV client.

        Args:
            config: Endpoint, credentials and folder.
            proxy_url: Optional relay base URL.
            timeout: Per-request timeout in seconds.
            chunk_size: Payloads above this size are uploaded in chunks.
            max_retries: Retries per chunk after the first attempt.
            max_payload_size: Uploads above this size are rejected.
            initial_backoff: First retry delay in seconds.
            max_backoff: Upper bound for retry delays.
            transport: Optional httpx transport (tests, custom stacks).
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._config = config
        self._proxy_url = proxy_url.rstrip("/") if proxy_url else None
        self._chunk_size = chunk_size
        self._max_retries = max_retries
        self._max_payload_size = max_payload_size
        self._initial_backoff = initial_backoff
        self._max_backoff = max_backoff
        self._client = httpx.AsyncClient(
            timeout=timeout,
            auth=httpx.BasicAuth(config.username, config.password),
            transport=transport,
        )

    @property
    def name(self) -> str:
        return ProviderType.WEBDAV.value

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    # === URL building ===

    def _path(self, key: str | None = None) -> str:
        folder = self._config.folder.strip("/")
        if key is None:
            return folder
        return f"{folder}/{key.lstrip('/')}" if folder else key.lstrip("/")

    def _url(self, path: str, proxy_method: str | None = None) -> tuple[str, dict[str, str]]:
        """Build request URL and query params for a store path."""
        if self._proxy_url is None:
            return f"{self._config.endpoint.rstrip('/')}/{path}", {}

        params = {"endpoint": self._config.endpoint}
        if proxy_method:
            params["proxy_method"] = proxy_method
        return f"{self._proxy_url}{RELAY_PATH_PREFIX}{path}", params

    # === Request helpers ===

    async def _request(
        self,
        method: str,
        path: str,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
        proxy_method: str | None = None,
    ) -> httpx.Response:
        url, params = self._url(path, proxy_method)
        try:
            return await self._client.request(
                method, url, params=params, content=content, headers=headers
            )
        except httpx.TimeoutException as e:
            raise NetworkError(f"{method} {path} timed out: {e}") from e
        except httpx.RequestError as e:
            raise NetworkError(f"{method} {path} failed: {e}") from e

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str) -> None:
        """Raise the typed error matching a non-success response."""
        status = response.status_code
        if response.is_success:
            return
        if status in (401, 403):
            raise AuthenticationError(f"{action}: credentials rejected ({status})", status)
        if status == 416:
            raise RangeNotSatisfiableError(f"{action}: range not satisfiable", status)
        raise StatusError(f"{action}: unexpected status {status} {response.reason_phrase}", status)

    # === RemoteStore operations ===

    async def check(self) -> bool:
        """Probe the store folder with PROPFIND.

        200/207 mean reachable and authorized, 401/403 reachable but
        unauthorized. Any other status or a transport error is reported
        as unreachable.
        """
        try:
            response = await self._request(
                "PROPFIND",
                self._path(),
                headers={"Depth": "1"},
                proxy_method="PROPFIND",
            )
        except NetworkError as e:
            logger.error(f"WebDAV check failed, store unreachable: {e}")
            return False

        success = response.status_code in CHECK_OK_STATUSES
        logger.info(
            f"WebDAV check {'success' if success else 'failed'}: "
            f"{response.status_code} {response.reason_phrase}"
        )
        return success

    async def get(self, key: str) -> bytes:
        """Download a blob. Missing blobs are returned as b""."""
        path = self._path(key)
        response = await self._request("GET", path)
        logger.debug(f"WebDAV get {path}: {response.status_code}")

        if response.status_code == 404:
            return b""
        self._raise_for_status(response, f"GET {path}")
        return response.content

    async def set(self, key: str, data: bytes) -> None:
        """Upload a blob, chunked when larger than the chunk size.

        Raises:
            PayloadTooLargeError: Before sending anything, if over the cap.
            AuthenticationError: Credentials rejected (not retried).
            RangeNotSatisfiableError: Store rejected a range (not retried).
            UploadError: A chunk kept failing after all retries.
        """
        path = self._path(key)
        total = len(data)
        if total > self._max_payload_size:
            raise PayloadTooLargeError(
                f"Payload of {total} bytes exceeds the {self._max_payload_size} byte limit"
            )

        if total <= self._chunk_size:
            await self._put_with_retry(path, data, {}, chunk_index=None)
            logger.info(f"WebDAV set {path}: {total} bytes")
            return

        n_chunks = count_chunks(total, self._chunk_size)
        for chunk in chunk_bytes(data, self._chunk_size):
            headers = {"Content-Range": chunk.content_range(total)}
            await self._put_with_retry(path, chunk.data, headers, chunk_index=chunk.index)
            logger.debug(f"WebDAV set {path}: chunk {chunk.index + 1}/{n_chunks} sent")
        logger.info(f"WebDAV set {path}: {total} bytes in {n_chunks} chunks")

    async def _put_with_retry(
        self,
        path: str,
        data: bytes,
        headers: dict[str, str],
        chunk_index: int | None,
    ) -> None:
        label = f"PUT {path}" if chunk_index is None else f"PUT {path} chunk {chunk_index}"

        async def attempt() -> None:
            response = await self._request(
                "PUT",
                path,
                content=data,
                headers={"Content-Type": "application/octet-stream", **headers},
            )
            self._raise_for_status(response, label)

        try:
            await retry_with_backoff(
                attempt,
                max_retries=self._max_retries,
                initial_backoff=self._initial_backoff,
                max_backoff=self._max_backoff,
                retryable_exceptions=(NetworkError, StatusError),
                description=label,
            )
        except (NetworkError, StatusError) as e:
            raise UploadError(
                f"{label} failed after {self._max_retries + 1} attempts: {e}",
                chunk_index=chunk_index,
                status_code=e.status_code,
            ) from e


def create_remote_store(
    config: SyncConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RemoteStore:
    """Create the remote store for the configured provider.

    Raises:
        ConfigError: If the selected provider is not fully configured.
    """
    if not config.is_configured():
        raise ConfigError(f"Provider '{config.provider.value}' is not fully configured")

    if config.provider == ProviderType.LOCAL:
        from snapsync.client.local import LocalFolderStore

        return LocalFolderStore(config.local.path, max_payload_size=config.max_payload_size)

    return WebDAVClient(
        config.webdav,
        proxy_url=config.effective_proxy_url,
        timeout=config.timeout,
        chunk_size=config.chunk_size,
        max_retries=config.max_retries,
        max_payload_size=config.max_payload_size,
        transport=transport,
    )
