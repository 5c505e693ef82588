"""Sync commands for SnapSync CLI.

Commands:
- sync: Run one sync cycle
- check: Probe the remote store
- auto: Sync periodically until interrupted
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from snapsync.client.cli.config import get_config_file, get_state_db, load_config

if TYPE_CHECKING:
    from snapsync.client.sync.types import NotifyCallback, SyncResult
    from snapsync.core.config import SyncConfig


def _require_configured() -> SyncConfig:
    """Load the config, exiting if the selected provider is incomplete."""
    config = load_config()
    if not config.is_configured():
        click.echo(
            f"Error: Provider '{config.provider.value}' is not configured. "
            "Run 'snapsync config set-webdav' or 'snapsync config set-local' first.",
            err=True,
        )
        sys.exit(1)
    return config


def _notifier(native: bool) -> NotifyCallback:
    from snapsync.client.notifications import log_notification, send_notification

    return send_notification if native else log_notification


async def _run_sync(config: SyncConfig, state_db: Path, config_path: Path, native: bool) -> SyncResult:
    from snapsync.client.api import create_remote_store
    from snapsync.client.registry import registry_for_app_state
    from snapsync.client.state import LocalAppState
    from snapsync.client.sync import SyncEngine

    with LocalAppState(state_db) as app_state:
        async with create_remote_store(config) as store:
            engine = SyncEngine(
                registry_for_app_state(app_state),
                store,
                config=config,
                config_path=config_path,
                notifier=_notifier(native),
            )
            return await engine.sync()


@click.command()
@click.option("--notify", is_flag=True, help="Show desktop notifications.")
def sync(notify: bool) -> None:
    """Run one sync cycle against the remote store.

    Downloads the shared snapshot, merges it into local state and
    uploads the merged result. An empty remote is seeded from local state.
    """
    from snapsync.client.sync import SyncOutcome

    config = _require_configured()
    result = asyncio.run(_run_sync(config, get_state_db(), get_config_file(), notify))

    if result.outcome == SyncOutcome.FAILED:
        click.echo(f"Error: {result.error}", err=True)
        sys.exit(1)

    if result.outcome == SyncOutcome.BOOTSTRAPPED:
        click.echo("Remote was empty: uploaded local state as the shared baseline.")
    elif result.repaired:
        click.echo("Remote copy was unreadable: replaced it with local state.")
    else:
        click.echo(f"Synced {len(result.domains)} domains.")


@click.command()
def check() -> None:
    """Check that the remote store is reachable."""
    from snapsync.client.api import create_remote_store

    config = _require_configured()

    async def probe() -> bool:
        async with create_remote_store(config) as store:
            return await store.check()

    if not asyncio.run(probe()):
        click.echo("Error: Remote store is unreachable.", err=True)
        sys.exit(1)
    click.echo("Remote store is reachable.")


@click.command()
@click.option(
    "--interval",
    "-i",
    type=float,
    default=None,
    help="Minutes between cycles (default: from config).",
)
@click.option("--notify", is_flag=True, help="Show desktop notifications.")
def auto(interval: float | None, notify: bool) -> None:
    """Sync now, then periodically until interrupted (Ctrl+C)."""
    from snapsync.client.api import create_remote_store
    from snapsync.client.registry import registry_for_app_state
    from snapsync.client.state import LocalAppState
    from snapsync.client.sync import AutoSyncScheduler, SyncEngine

    config = _require_configured()
    minutes = interval if interval is not None else config.sync_interval_minutes
    if minutes <= 0:
        click.echo("Error: Interval must be positive.", err=True)
        sys.exit(1)
    if not config.auto_sync_enabled:
        click.echo("Error: Auto sync is disabled. Run 'snapsync config set --auto' first.", err=True)
        sys.exit(1)

    async def run() -> None:
        with LocalAppState(get_state_db()) as app_state:
            async with create_remote_store(config) as store:
                engine = SyncEngine(
                    registry_for_app_state(app_state),
                    store,
                    config=config,
                    config_path=get_config_file(),
                    notifier=_notifier(notify),
                )
                scheduler = AutoSyncScheduler(engine, interval_minutes=minutes)
                scheduler.start()
                try:
                    await asyncio.Event().wait()
                finally:
                    scheduler.stop(cancel_running=True)

    click.echo(f"Auto sync every {minutes:g} minutes. Press Ctrl+C to stop.")
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        click.echo("\nAuto sync stopped.")
