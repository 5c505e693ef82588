"""Shared types for sync operations.

This module provides:
- SyncError, DomainApplyError: Exception classes
- SyncOutcome, SyncResult: Result of one sync cycle
- Type aliases for callbacks
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from snapsync.core.types import SyncPhase

if TYPE_CHECKING:
    from snapsync.client.notifications import Notification


class SyncError(Exception):
    """Base exception for sync errors."""


class DomainApplyError(SyncError):
    """Writing a merged domain back to live state failed.

    Domains applied before this one keep their new state.
    """

    def __init__(self, domain: str, cause: Exception) -> None:
        self.domain = domain
        self.cause = cause
        super().__init__(f"Failed to apply domain '{domain}': {cause}")


class SyncOutcome(Enum):
    """How a sync cycle ended."""

    SYNCED = "synced"  # Remote merged (or repaired) and re-uploaded
    BOOTSTRAPPED = "bootstrapped"  # Remote was empty, local uploaded as-is
    SKIPPED = "skipped"  # Another cycle was already running
    FAILED = "failed"


@dataclass
class SyncResult:
    """Result of one sync cycle.

    Attributes:
        outcome: How the cycle ended.
        phase: Phase reached when the cycle ended (the failing phase on error).
        error: Human-readable error for FAILED cycles.
        merged: Remote state was merged into local state.
        repaired: Remote payload was unreadable and local state was re-uploaded.
        synced_at: Epoch ms stamped on success.
    """

    outcome: SyncOutcome
    phase: SyncPhase = SyncPhase.IDLE
    error: str | None = None
    merged: bool = False
    repaired: bool = False
    synced_at: int | None = None
    domains: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.outcome in (SyncOutcome.SYNCED, SyncOutcome.BOOTSTRAPPED)


# Type aliases for callbacks
NotifyCallback = Callable[["Notification"], object]
PhaseCallback = Callable[[SyncPhase], None]
