"""Backup commands for SnapSync CLI.

Commands:
- export: Write local state to a timestamped backup file
- import: Merge a backup file into local state
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from snapsync.client.cli.config import get_state_db


@click.command("export")
@click.argument(
    "directory",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
)
def export_cmd(directory: Path) -> None:
    """Export local state to DIRECTORY as Backup-<timestamp>.json."""
    from snapsync.client.backup import BackupError, export_backup
    from snapsync.client.registry import registry_for_app_state
    from snapsync.client.state import LocalAppState

    with LocalAppState(get_state_db()) as app_state:
        try:
            path = export_backup(registry_for_app_state(app_state), directory)
        except BackupError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    click.echo(f"Backup written to {path}")


@click.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def import_cmd(path: Path) -> None:
    """Merge the backup file at PATH into local state.

    Applications using this state must be restarted afterwards.
    """
    from snapsync.client.backup import BackupError, import_backup
    from snapsync.client.registry import registry_for_app_state
    from snapsync.client.state import LocalAppState

    with LocalAppState(get_state_db()) as app_state:
        try:
            result = import_backup(registry_for_app_state(app_state), path)
        except BackupError as e:
            click.echo(f"Error: Import failed: {e}", err=True)
            sys.exit(1)

    click.echo(f"Imported {len(result.domains)} domains: {', '.join(result.domains)}")
    if result.restart_required:
        click.echo("Restart applications using this state for the import to take effect.")
