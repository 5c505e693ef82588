"""Tests for the directory-backed remote store."""

from __future__ import annotations

from pathlib import Path

import pytest

from snapsync.client.api import APIError, PayloadTooLargeError
from snapsync.client.local import LocalFolderStore


@pytest.fixture
def store(tmp_path: Path) -> LocalFolderStore:
    """Create a store in a not-yet-existing directory."""
    return LocalFolderStore(tmp_path / "shared")


class TestLocalFolderStore:
    """Tests for LocalFolderStore."""

    @pytest.mark.asyncio
    async def test_check_creates_directory(self, store: LocalFolderStore) -> None:
        """check() succeeds when the folder can be created."""
        assert await store.check() is True
        assert Path(store.location).is_dir()

    @pytest.mark.asyncio
    async def test_check_fails_when_path_is_a_file(self, tmp_path: Path) -> None:
        """A file in the way makes the store unreachable."""
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        assert await LocalFolderStore(blocker).check() is False

    @pytest.mark.asyncio
    async def test_get_missing_is_empty(self, store: LocalFolderStore) -> None:
        """A missing key reads as empty."""
        assert await store.get("backup.json") == b""

    @pytest.mark.asyncio
    async def test_set_then_get(self, store: LocalFolderStore) -> None:
        """Written blobs read back unchanged."""
        await store.set("backup.json", b"\x1f\x8b payload")
        assert await store.get("backup.json") == b"\x1f\x8b payload"

    @pytest.mark.asyncio
    async def test_set_replaces_without_leftovers(self, store: LocalFolderStore) -> None:
        """Atomic replace leaves no temp file behind."""
        await store.set("backup.json", b"one")
        await store.set("backup.json", b"two")

        assert await store.get("backup.json") == b"two"
        assert sorted(p.name for p in Path(store.location).iterdir()) == ["backup.json"]

    @pytest.mark.asyncio
    async def test_oversized_payload_rejected(self, tmp_path: Path) -> None:
        """Payloads over the cap are not written."""
        store = LocalFolderStore(tmp_path, max_payload_size=4)
        with pytest.raises(PayloadTooLargeError):
            await store.set("backup.json", b"12345")
        assert not (tmp_path / "backup.json").exists()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["../escape.json", "sub/dir.json", ""])
    async def test_rejects_path_keys(self, store: LocalFolderStore, key: str) -> None:
        """Keys cannot point outside the folder."""
        with pytest.raises(APIError):
            await store.get(key)

    def test_name(self, store: LocalFolderStore) -> None:
        """Provider name is 'local'."""
        assert store.name == "local"
