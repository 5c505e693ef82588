"""Sync engine coordinating snapshot synchronization.

This module provides:
- SyncEngine: runs one pull-merge-push cycle against the remote store

Cycle:
    IDLE -> FETCHING -> BOOTSTRAPPING -> UPLOADING -> IDLE   (empty remote)
    IDLE -> FETCHING -> MERGING -> UPLOADING -> IDLE         (remote present)
    any phase -> ERROR -> IDLE                                (failure)

Only one cycle runs at a time; a cycle requested while another is in
flight is dropped. Failures never propagate to the caller: they end the
cycle with a FAILED result and an error notification. Cancelling the
task running sync() aborts the in-flight request and propagates.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from snapsync.client.api import APIError
from snapsync.client.notifications import (
    bootstrap_notification,
    error_notification,
    log_notification,
    sync_complete_notification,
)
from snapsync.client.sync.domain import now_ms
from snapsync.client.sync.types import (
    DomainApplyError,
    NotifyCallback,
    PhaseCallback,
    SyncOutcome,
    SyncResult,
)
from snapsync.core.codec import CodecError, pack, unpack
from snapsync.core.config import SyncConfig, save_sync_config
from snapsync.core.types import SyncPhase

if TYPE_CHECKING:
    from snapsync.client.api import RemoteStore
    from snapsync.client.registry import DomainRegistry, Snapshot

logger = logging.getLogger(__name__)

# Raised by merge strategies fed a structurally incompatible remote state
MERGE_DATA_ERRORS: tuple[type[Exception], ...] = (
    AttributeError,
    KeyError,
    TypeError,
    ValueError,
)


class SyncEngine:
    """Coordinates state synchronization between live state and a remote store."""

    def __init__(
        self,
        registry: DomainRegistry,
        store: RemoteStore,
        config: SyncConfig | None = None,
        config_path: Path | None = None,
        notifier: NotifyCallback = log_notification,
        clock: Callable[[], int] = now_ms,
        on_phase: PhaseCallback | None = None,
    ) -> None:
        """Initialize the sync engine.

        Args:
            registry: Domains to snapshot, merge and apply.
            store: Remote store holding the shared snapshot.
            config: Sync configuration (remote key, excluded domains,
                bookkeeping). Defaults to SyncConfig().
            config_path: Where to persist config after a successful cycle.
            notifier: Receives user-visible outcome notifications.
            clock: Epoch-millisecond clock used for lastSyncTime.
            on_phase: Optional callback on every phase transition.
        """
        self._registry = registry
        self._store = store
        self._config = config or SyncConfig()
        self._config_path = Path(config_path) if config_path else None
        self._notifier = notifier
        self._clock = clock
        self._on_phase = on_phase

        self._phase = SyncPhase.IDLE
        self._in_progress = False
        self._last_result: SyncResult | None = None

    @property
    def phase(self) -> SyncPhase:
        return self._phase

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    @property
    def config(self) -> SyncConfig:
        return self._config

    @property
    def last_result(self) -> SyncResult | None:
        return self._last_result

    @property
    def synced_domains(self) -> list[str]:
        """Registered domains not excluded by configuration."""
        excluded = {domain.value for domain in self._config.exclude_domains}
        return [name for name in self._registry.names() if name not in excluded]

    def _set_phase(self, phase: SyncPhase) -> None:
        if phase != self._phase:
            logger.debug(f"Sync phase: {self._phase.value} -> {phase.value}")
        self._phase = phase
        if self._on_phase:
            self._on_phase(phase)

    def _notify(self, notification: Any) -> None:
        try:
            self._notifier(notification)
        except Exception:
            logger.exception("Notifier failed")

    async def check(self) -> bool:
        """Probe the remote store."""
        try:
            return await self._store.check()
        except APIError as e:
            logger.error(f"Remote check failed: {e}")
            return False

    async def sync(self) -> SyncResult:
        """Run one sync cycle.

        Returns:
            SyncResult describing the outcome. SKIPPED if a cycle was
            already running.
        """
        if self._in_progress:
            logger.info("Sync already in progress, dropping trigger")
            return SyncResult(outcome=SyncOutcome.SKIPPED, phase=self._phase)

        self._in_progress = True
        try:
            try:
                result = await self._run_cycle()
            except Exception as e:
                logger.exception("Unexpected error during sync")
                result = self._fail(f"Unexpected error: {e}")
        finally:
            self._in_progress = False
            self._set_phase(SyncPhase.IDLE)

        self._last_result = result
        return result

    async def _run_cycle(self) -> SyncResult:
        synced = self.synced_domains
        local = self._registry.snapshot(only=synced)
        key = self._config.remote_key

        self._set_phase(SyncPhase.FETCHING)
        logger.info(f"Fetching remote state '{key}' from {self._store.name}")
        try:
            raw = await self._store.get(key)
        except APIError as e:
            return self._fail(f"Failed to fetch remote state: {e}")

        if not raw:
            return await self._bootstrap(key, local, synced)
        return await self._merge_and_upload(key, local, raw, synced)

    async def _bootstrap(self, key: str, local: Snapshot, synced: list[str]) -> SyncResult:
        self._set_phase(SyncPhase.BOOTSTRAPPING)
        logger.info("Remote state is empty, uploading local state as baseline")

        error = await self._upload(key, local)
        if error:
            return self._fail(error)

        synced_at = self._mark_synced()
        self._notify(bootstrap_notification())
        return SyncResult(
            outcome=SyncOutcome.BOOTSTRAPPED,
            phase=SyncPhase.BOOTSTRAPPING,
            synced_at=synced_at,
            domains=synced,
        )

    async def _merge_and_upload(
        self,
        key: str,
        local: Snapshot,
        raw: bytes,
        synced: list[str],
    ) -> SyncResult:
        self._set_phase(SyncPhase.MERGING)
        merged = False
        upload: dict[str, Any] = dict(local)

        remote = self._read_remote(raw)
        if remote is not None:
            try:
                merged_snapshot = self._registry.merge(local, remote, only=synced)
            except MERGE_DATA_ERRORS as e:
                logger.error(f"Remote state is incompatible, keeping local state: {e}")
                remote = None
            else:
                try:
                    applied = self._registry.apply(merged_snapshot)
                except DomainApplyError as e:
                    return self._fail(str(e))
                logger.info(f"Merged remote state into {len(applied)} domains")
                merged = True
                # Excluded domains travel through unchanged
                upload = {
                    **{name: state for name, state in remote.items() if name not in synced},
                    **merged_snapshot,
                }

        repaired = remote is None
        if repaired:
            logger.warning("Re-uploading local state to repair remote copy")

        error = await self._upload(key, upload)
        if error:
            return self._fail(error, merged=merged, repaired=repaired)

        synced_at = self._mark_synced()
        self._notify(sync_complete_notification(merged=merged, repaired=repaired))
        return SyncResult(
            outcome=SyncOutcome.SYNCED,
            phase=SyncPhase.UPLOADING,
            merged=merged,
            repaired=repaired,
            synced_at=synced_at,
            domains=synced,
        )

    def _read_remote(self, raw: bytes) -> dict[str, Any] | None:
        """Decode the remote payload, or None if it is unreadable."""
        try:
            return unpack(raw)
        except CodecError as e:
            logger.error(f"Failed to decode remote state, merge skipped: {e}")
            return None

    async def _upload(self, key: str, snapshot: dict[str, Any]) -> str | None:
        """Encode and upload a snapshot.

        Returns:
            Error message, or None on success.
        """
        self._set_phase(SyncPhase.UPLOADING)
        try:
            payload = pack(snapshot)
        except (TypeError, ValueError) as e:
            return f"Failed to encode local state: {e}"

        logger.info(f"Uploading {len(payload)} bytes to {self._store.name}")
        try:
            await self._store.set(key, payload)
        except APIError as e:
            return f"Failed to upload state: {e}"
        return None

    def _mark_synced(self) -> int:
        synced_at = self._clock()
        self._config.mark_synced(synced_at)
        if self._config_path:
            try:
                save_sync_config(self._config, self._config_path)
            except OSError as e:
                logger.warning(f"Failed to persist sync bookkeeping: {e}")
        logger.info("Sync completed")
        return synced_at

    def _fail(self, message: str, merged: bool = False, repaired: bool = False) -> SyncResult:
        failed_phase = self._phase
        self._set_phase(SyncPhase.ERROR)
        logger.error(f"Sync failed during {failed_phase.value}: {message}")
        self._notify(error_notification(message))
        return SyncResult(
            outcome=SyncOutcome.FAILED,
            phase=failed_phase,
            error=message,
            merged=merged,
            repaired=repaired,
        )
