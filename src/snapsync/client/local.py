"""Directory-backed remote store.

This module provides LocalFolderStore, a RemoteStore that keeps the
shared snapshot in a plain directory. Useful for NAS mounts, USB drives
and folders replicated by another tool.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from snapsync.client.api import APIError, PayloadTooLargeError, RemoteStore
from snapsync.core.config import DEFAULT_MAX_PAYLOAD_SIZE
from snapsync.core.types import ProviderType

logger = logging.getLogger(__name__)


class LocalFolderStore(RemoteStore):
    """Remote store backed by a local or mounted directory."""

    def __init__(self, path: str | Path, max_payload_size: int = DEFAULT_MAX_PAYLOAD_SIZE) -> None:
        """Initialize the store.

        Args:
            path: Directory holding the blobs. Created on first write.
            max_payload_size: Uploads above this size are rejected.
        """
        self._base_path = Path(path).expanduser()
        self._max_payload_size = max_payload_size

    @property
    def name(self) -> str:
        return ProviderType.LOCAL.value

    @property
    def location(self) -> str:
        return str(self._base_path)

    def _blob_path(self, key: str) -> Path:
        # Keys are flat names; reject anything that would escape the folder
        name = Path(key).name
        if not name or name != key.strip("/"):
            raise APIError(f"Invalid key: {key!r}")
        return self._base_path / name

    async def check(self) -> bool:
        """The folder exists or can be created."""

        def _check() -> bool:
            try:
                self._base_path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error(f"Local store {self._base_path} unavailable: {e}")
                return False
            return self._base_path.is_dir()

        return await asyncio.to_thread(_check)

    async def get(self, key: str) -> bytes:
        blob_path = self._blob_path(key)

        def _read() -> bytes:
            try:
                return blob_path.read_bytes()
            except FileNotFoundError:
                return b""
            except OSError as e:
                raise APIError(f"Failed to read {blob_path}: {e}") from e

        return await asyncio.to_thread(_read)

    async def set(self, key: str, data: bytes) -> None:
        if len(data) > self._max_payload_size:
            raise PayloadTooLargeError(
                f"Payload of {len(data)} bytes exceeds the {self._max_payload_size} byte limit"
            )
        blob_path = self._blob_path(key)

        def _write() -> None:
            tmp_path = blob_path.with_name(blob_path.name + ".tmp")
            try:
                blob_path.parent.mkdir(parents=True, exist_ok=True)
                tmp_path.write_bytes(data)
                os.replace(tmp_path, blob_path)
            except OSError as e:
                raise APIError(f"Failed to write {blob_path}: {e}") from e

        await asyncio.to_thread(_write)
        logger.info(f"Local store set {blob_path}: {len(data)} bytes")
