"""Tests for core configuration classes."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from snapsync.core.config import (
    DEFAULT_MAX_PAYLOAD_SIZE,
    LEGACY_PROXY_URL,
    SCHEMA_VERSION,
    STORAGE_KEY,
    ConfigError,
    SyncConfig,
    WebDAVConfig,
    load_sync_config,
    migrate,
    parse_sync_config,
    save_sync_config,
)
from snapsync.core.types import DomainName, ProviderType


class TestSyncConfig:
    """Tests for SyncConfig defaults and helpers."""

    def test_defaults(self) -> None:
        """Should initialize with documented defaults."""
        config = SyncConfig()
        assert config.version == SCHEMA_VERSION
        assert config.provider == ProviderType.WEBDAV
        assert config.use_proxy is False
        assert config.timeout == 30.0
        assert config.chunk_size == 1024 * 1024
        assert config.max_retries == 3
        assert config.max_payload_size == DEFAULT_MAX_PAYLOAD_SIZE
        assert config.sync_interval_minutes == 5
        assert config.remote_key == "backup.json"
        assert config.webdav.folder == STORAGE_KEY
        assert config.last_sync_time == 0

    def test_is_configured_webdav(self) -> None:
        """WebDAV needs endpoint, username and password."""
        config = SyncConfig(webdav=WebDAVConfig(endpoint="https://dav.test", username="u"))
        assert not config.is_configured()
        config.webdav.password = "p"
        assert config.is_configured()

    def test_is_configured_local(self) -> None:
        """Local provider needs a path."""
        config = SyncConfig(provider=ProviderType.LOCAL)
        assert not config.is_configured()
        config.local.path = "/mnt/nas"
        assert config.is_configured()

    def test_effective_proxy_url(self) -> None:
        """Proxy URL is only used when enabled."""
        assert SyncConfig(proxy_url="http://relay").effective_proxy_url is None
        assert SyncConfig(use_proxy=True).effective_proxy_url is None
        assert SyncConfig(use_proxy=True, proxy_url="http://relay").effective_proxy_url == "http://relay"

    def test_mark_synced(self) -> None:
        """mark_synced stamps time and provider."""
        config = SyncConfig(provider=ProviderType.LOCAL)
        config.mark_synced(1234)
        assert config.last_sync_time == 1234
        assert config.last_provider == "local"

    def test_rejects_invalid_values(self) -> None:
        """Validation errors surface as ConfigError."""
        with pytest.raises(ConfigError):
            parse_sync_config({"chunk_size": 0})
        with pytest.raises(ConfigError):
            parse_sync_config({"exclude_domains": ["nope"]})

    def test_exclude_domains_parsed(self) -> None:
        """Domain names parse into DomainName members."""
        config = parse_sync_config({"exclude_domains": ["access", "config"]})
        assert config.exclude_domains == [DomainName.ACCESS, DomainName.CONFIG]


class TestMigrate:
    """Tests for schema migrations."""

    def test_v1_fills_folder(self) -> None:
        """v1 configs get the default folder."""
        migrated = migrate({"version": 1, "webdav": {"endpoint": "https://dav.test", "folder": ""}})
        assert migrated["webdav"]["folder"] == STORAGE_KEY
        assert migrated["version"] == SCHEMA_VERSION

    def test_missing_version_treated_as_v1(self) -> None:
        """Unversioned data starts at v1."""
        migrated = migrate({})
        assert migrated["webdav"]["folder"] == STORAGE_KEY
        assert migrated["version"] == SCHEMA_VERSION

    def test_v1_keeps_custom_folder(self) -> None:
        """An explicit folder is not replaced."""
        migrated = migrate({"version": 1, "webdav": {"folder": "mine"}})
        assert migrated["webdav"]["folder"] == "mine"

    def test_v2_clears_legacy_proxy(self) -> None:
        """The retired relay URL is cleared."""
        migrated = migrate({"version": 2, "proxy_url": LEGACY_PROXY_URL})
        assert migrated["proxy_url"] == ""

    def test_v2_keeps_custom_proxy(self) -> None:
        """Other relay URLs are kept."""
        migrated = migrate({"version": 2, "proxy_url": "https://relay.test"})
        assert migrated["proxy_url"] == "https://relay.test"

    def test_current_version_untouched(self) -> None:
        """Current configs pass through unchanged."""
        data = {"version": SCHEMA_VERSION, "proxy_url": LEGACY_PROXY_URL}
        assert migrate(data) == data

    def test_input_not_modified(self) -> None:
        """migrate() returns a new dict."""
        data = {"version": 1, "proxy_url": LEGACY_PROXY_URL}
        migrate(data)
        assert data == {"version": 1, "proxy_url": LEGACY_PROXY_URL}


class TestLoadSave:
    """Tests for loading and saving the config file."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        """No file means default config."""
        assert load_sync_config(tmp_path / "nope.json") == SyncConfig()

    def test_corrupt_file_gives_defaults(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        """A corrupt file is logged and ignored."""
        path = tmp_path / "config.json"
        path.write_text("{not json")

        with caplog.at_level(logging.WARNING, logger="snapsync.core.config"):
            assert load_sync_config(path) == SyncConfig()

        assert f"Failed to load sync config from {path}" in caplog.text

    def test_save_then_load(self, tmp_path: Path) -> None:
        """Saved config loads back equal."""
        path = tmp_path / "nested" / "config.json"
        config = SyncConfig(
            webdav=WebDAVConfig(endpoint="https://dav.test", username="u", password="p"),
            exclude_domains=[DomainName.ACCESS],
            last_sync_time=99,
        )
        save_sync_config(config, path)
        assert load_sync_config(path) == config

    def test_load_migrates_old_file(self, tmp_path: Path) -> None:
        """Old files are migrated on load."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"version": 1, "use_proxy": True, "proxy_url": LEGACY_PROXY_URL}))
        config = load_sync_config(path)
        assert config.version == SCHEMA_VERSION
        assert config.proxy_url == ""
        assert config.effective_proxy_url is None
