"""Snapshot serialization and transport compression.

This module provides:
- dump_snapshot / load_snapshot: JSON (de)serialization of a Snapshot
- encode / decode: reversible gzip compression for the remote store
"""

from __future__ import annotations

import gzip
import json
import zlib
from typing import Any

# Fixed gzip header mtime so identical snapshots encode to identical bytes
GZIP_MTIME = 0
COMPRESS_LEVEL = 9


class CodecError(Exception):
    """Payload could not be decoded into a snapshot."""


def encode(data: bytes) -> bytes:
    """Compress serialized snapshot bytes for transport.

    Args:
        data: Serialized snapshot.

    Returns:
        gzip-compressed bytes. Deterministic for a given input.
    """
    return gzip.compress(data, compresslevel=COMPRESS_LEVEL, mtime=GZIP_MTIME)


def decode(data: bytes) -> bytes:
    """Decompress a transport payload.

    Args:
        data: Bytes previously produced by encode().

    Returns:
        Original serialized snapshot bytes.

    Raises:
        CodecError: If the payload is not a valid gzip stream.
    """
    try:
        return gzip.decompress(data)
    except (gzip.BadGzipFile, zlib.error, EOFError) as e:
        raise CodecError(f"Malformed payload: {e}") from e


def dump_snapshot(snapshot: dict[str, Any]) -> bytes:
    """Serialize a snapshot to UTF-8 JSON bytes."""
    return json.dumps(snapshot, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def load_snapshot(data: bytes) -> dict[str, Any]:
    """Parse snapshot bytes.

    Raises:
        CodecError: If the bytes are not a JSON object.
    """
    try:
        snapshot = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CodecError(f"Snapshot is not valid JSON: {e}") from e
    if not isinstance(snapshot, dict):
        raise CodecError(f"Snapshot must be an object, got {type(snapshot).__name__}")
    return snapshot


def pack(snapshot: dict[str, Any]) -> bytes:
    """Serialize and encode a snapshot in one step."""
    return encode(dump_snapshot(snapshot))


def unpack(data: bytes) -> dict[str, Any]:
    """Decode and parse a transport payload in one step.

    Raises:
        CodecError: On any decode or parse failure.
    """
    return load_snapshot(decode(data))
