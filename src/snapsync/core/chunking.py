"""Fixed-size chunking for range-addressed uploads.

Payloads larger than the configured chunk size are split into
consecutive windows. Each window is sent with a Content-Range header
so the receiving store can reassemble the blob by byte offset.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

DEFAULT_CHUNK_SIZE = 1 * 1024 * 1024   # 1 MB


@dataclass
class Chunk:
    """A window of a payload."""

    index: int
    offset: int
    data: bytes

    @property
    def size(self) -> int:
        """Return the size of this chunk in bytes."""
        return len(self.data)

    @property
    def end(self) -> int:
        """Inclusive offset of the last byte in this chunk."""
        return self.offset + self.size - 1

    def content_range(self, total: int) -> str:
        """Build the Content-Range header value for this chunk.

        Args:
            total: Size of the complete payload.

        Returns:
            Header value such as "bytes 0-1048575/10485760".
        """
        return f"bytes {self.offset}-{self.end}/{total}"


def chunk_bytes(data: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[Chunk]:
    """Split data into fixed-size chunks in ascending offset order.

    Args:
        data: Raw bytes to chunk.
        chunk_size: Maximum size of each chunk.

    Yields:
        Chunk objects. The last chunk may be shorter.

    Raises:
        ValueError: If chunk_size is not positive.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    for index, offset in enumerate(range(0, len(data), chunk_size)):
        yield Chunk(index=index, offset=offset, data=data[offset : offset + chunk_size])


def count_chunks(size: int, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    """Number of chunks chunk_bytes() produces for a payload of this size."""
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    return -(-size // chunk_size)
