"""Core module - Shared config, codec, chunking, and types."""

from snapsync.core.chunking import DEFAULT_CHUNK_SIZE, Chunk, chunk_bytes, count_chunks
from snapsync.core.codec import (
    CodecError,
    decode,
    dump_snapshot,
    encode,
    load_snapshot,
    pack,
    unpack,
)
from snapsync.core.config import (
    SCHEMA_VERSION,
    ConfigError,
    LocalConfig,
    SyncConfig,
    WebDAVConfig,
    load_sync_config,
    migrate,
    save_sync_config,
)
from snapsync.core.types import DomainName, ProviderType, SyncPhase

__all__ = [
    # Chunking
    "DEFAULT_CHUNK_SIZE",
    "Chunk",
    "chunk_bytes",
    "count_chunks",
    # Codec
    "CodecError",
    "decode",
    "dump_snapshot",
    "encode",
    "load_snapshot",
    "pack",
    "unpack",
    # Config
    "SCHEMA_VERSION",
    "ConfigError",
    "LocalConfig",
    "SyncConfig",
    "WebDAVConfig",
    "load_sync_config",
    "migrate",
    "save_sync_config",
    # Types
    "DomainName",
    "ProviderType",
    "SyncPhase",
]
