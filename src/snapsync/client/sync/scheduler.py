"""Scheduler for automatic sync cycles.

This module provides:
- AutoSyncScheduler: runs SyncEngine.sync() at a fixed interval while
  auto sync is enabled
- Manual triggers that share the engine's single-cycle guard

The scheduler is owned by the host process and must be started from
inside a running asyncio event loop.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from snapsync.core.config import DEFAULT_SYNC_INTERVAL_MINUTES

if TYPE_CHECKING:
    from snapsync.client.sync.engine import SyncEngine
    from snapsync.client.sync.types import SyncResult

logger = logging.getLogger(__name__)

JOB_ID = "auto_sync"


class AutoSyncScheduler:
    """Periodic sync driver."""

    def __init__(
        self,
        engine: SyncEngine,
        interval_minutes: float = DEFAULT_SYNC_INTERVAL_MINUTES,
        run_immediately: bool = True,
    ) -> None:
        """Initialize the scheduler.

        Args:
            engine: Engine whose sync() is invoked.
            interval_minutes: Minutes between cycles.
            run_immediately: Run the first cycle as soon as started.
        """
        if interval_minutes <= 0:
            raise ValueError(f"interval_minutes must be positive, got {interval_minutes}")
        self._engine = engine
        self._interval_minutes = interval_minutes
        self._run_immediately = run_immediately
        self._scheduler: AsyncIOScheduler | None = None
        self._current_task: asyncio.Task[Any] | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    @property
    def interval_minutes(self) -> float:
        return self._interval_minutes

    async def _sync_job(self) -> None:
        """Job function for scheduled sync.

        Skips the tick when auto sync is disabled in the engine's config.
        """
        if not self._engine.config.auto_sync_enabled:
            logger.info("Auto sync disabled, skipping scheduled cycle")
            return

        self._current_task = asyncio.current_task()
        try:
            result = await self._engine.sync()
            logger.info(f"Scheduled sync finished: {result.outcome.value}")
        finally:
            self._current_task = None

    def start(self) -> None:
        """Start the scheduler."""
        if self._scheduler is not None:
            return  # Already running

        self._scheduler = AsyncIOScheduler()

        job_kwargs: dict[str, Any] = {}
        if self._run_immediately:
            job_kwargs["next_run_time"] = datetime.now(UTC)

        self._scheduler.add_job(
            self._sync_job,
            trigger=IntervalTrigger(minutes=self._interval_minutes),
            id=JOB_ID,
            name="Periodic state sync",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **job_kwargs,
        )

        self._scheduler.start()
        logger.info(f"Auto sync scheduler started (every {self._interval_minutes:g} minutes)")

    def stop(self, cancel_running: bool = False) -> None:
        """Stop the scheduler.

        Args:
            cancel_running: Also cancel a cycle started by the scheduler.
        """
        if cancel_running and self._current_task is not None:
            self._current_task.cancel()
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("Auto sync scheduler stopped")

    async def trigger(self) -> SyncResult:
        """Run a cycle now (manual trigger). Dropped if one is in flight."""
        return await self._engine.sync()
