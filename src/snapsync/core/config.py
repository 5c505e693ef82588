"""Persisted sync configuration.

This module defines the versioned configuration shared by the sync
engine, the remote store clients and the CLI:
- Provider selection and credentials (WebDAV, local folder)
- Relay (proxy) settings
- Transfer tuning (timeout, chunk size, retry budget, payload cap)
- Sync bookkeeping (last sync time, last provider)

Older on-disk schema versions are migrated field by field before
validation.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from snapsync.core.chunking import DEFAULT_CHUNK_SIZE
from snapsync.core.types import DomainName, ProviderType

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 3

# Default folder (and storage key) on the remote store
STORAGE_KEY = "snapsync"
DEFAULT_REMOTE_KEY = "backup.json"

# Relay URL shipped by schema v1/v2 that no longer exists
LEGACY_PROXY_URL = "/api/cors/"

DEFAULT_TIMEOUT = 30.0  # seconds
DEFAULT_MAX_RETRIES = 3
DEFAULT_MAX_PAYLOAD_SIZE = 500 * 1024 * 1024  # 500 MB
DEFAULT_SYNC_INTERVAL_MINUTES = 5


class ConfigError(Exception):
    """Sync configuration is invalid or incomplete."""


class WebDAVConfig(BaseModel):
    """Credentials and location of a WebDAV store."""

    endpoint: str = ""
    username: str = ""
    password: str = ""
    folder: str = STORAGE_KEY

    def is_configured(self) -> bool:
        """All connection fields are filled in."""
        return all([self.endpoint, self.username, self.password])


class LocalConfig(BaseModel):
    """Directory used as a remote store (NAS, USB drive, mounted share)."""

    path: str = ""

    def is_configured(self) -> bool:
        return bool(self.path)


class SyncConfig(BaseModel):
    """Complete sync configuration."""

    version: int = SCHEMA_VERSION
    provider: ProviderType = ProviderType.WEBDAV

    use_proxy: bool = False
    proxy_url: str = ""

    webdav: WebDAVConfig = Field(default_factory=WebDAVConfig)
    local: LocalConfig = Field(default_factory=LocalConfig)

    remote_key: str = DEFAULT_REMOTE_KEY
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, gt=0)
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    max_payload_size: int = Field(default=DEFAULT_MAX_PAYLOAD_SIZE, gt=0)

    auto_sync_enabled: bool = False
    sync_interval_minutes: float = Field(default=DEFAULT_SYNC_INTERVAL_MINUTES, gt=0)
    exclude_domains: list[DomainName] = Field(default_factory=list)

    last_sync_time: int = 0  # epoch milliseconds
    last_provider: str = ""

    @property
    def effective_proxy_url(self) -> str | None:
        """Relay URL to route requests through, if any."""
        if self.use_proxy and self.proxy_url:
            return self.proxy_url
        return None

    def is_configured(self) -> bool:
        """Check whether the selected provider has all required settings."""
        if self.provider == ProviderType.WEBDAV:
            return self.webdav.is_configured()
        return self.local.is_configured()

    def mark_synced(self, now_ms: int) -> None:
        """Record a successful sync cycle."""
        self.last_sync_time = now_ms
        self.last_provider = self.provider.value


def migrate(data: dict[str, Any]) -> dict[str, Any]:
    """Upgrade raw config data to the current schema version.

    Args:
        data: Config as loaded from disk (not modified).

    Returns:
        New dict at SCHEMA_VERSION.
    """
    migrated = json.loads(json.dumps(data))
    version = migrated.get("version", 1)

    if version < 2:
        webdav = migrated.setdefault("webdav", {})
        if not webdav.get("folder"):
            webdav["folder"] = STORAGE_KEY
        logger.debug(f"Migrated sync config to v2: webdav.folder={webdav['folder']}")

    if version < 3:
        if migrated.get("proxy_url") == LEGACY_PROXY_URL:
            migrated["proxy_url"] = ""
            logger.debug("Migrated sync config to v3: cleared legacy proxy URL")

    migrated["version"] = SCHEMA_VERSION
    return migrated


def parse_sync_config(data: dict[str, Any]) -> SyncConfig:
    """Migrate and validate raw config data.

    Raises:
        ConfigError: If the data does not validate.
    """
    try:
        return SyncConfig.model_validate(migrate(data))
    except ValidationError as e:
        raise ConfigError(str(e)) from e


def load_sync_config(path: Path) -> SyncConfig:
    """Load sync configuration from a JSON file.

    Returns defaults when the file does not exist or cannot be read.
    """
    path = Path(path)
    if not path.exists():
        return SyncConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ConfigError("config root must be an object")
        return parse_sync_config(data)
    except (OSError, json.JSONDecodeError, ConfigError) as e:
        logger.warning(f"Failed to load sync config from {path}: {e}")
        return SyncConfig()


def save_sync_config(config: SyncConfig, path: Path) -> None:
    """Persist sync configuration to a JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(config.model_dump(mode="json"), indent=2),
        encoding="utf-8",
    )
