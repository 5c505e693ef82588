"""Shared types for snapsync.

This module defines enums used by the client, the orchestrator and the CLI.
"""

from __future__ import annotations

from enum import Enum


class DomainName(str, Enum):
    """Named partitions of application state.

    Declaration order is the order in which domains are snapshotted,
    merged and applied.
    """

    CHAT = "chat"
    ACCESS = "access"
    CONFIG = "config"
    MASK = "mask"
    PROMPT = "prompt"


class SyncPhase(str, Enum):
    """Phase of the sync orchestrator state machine."""

    IDLE = "idle"
    FETCHING = "fetching"
    BOOTSTRAPPING = "bootstrapping"
    MERGING = "merging"
    UPLOADING = "uploading"
    ERROR = "error"


class ProviderType(str, Enum):
    """Supported remote store providers."""

    WEBDAV = "webdav"
    LOCAL = "local"
