"""Command-line interface for SnapSync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- sync: Run one sync cycle
- check: Probe the remote store
- auto: Sync periodically until interrupted
- export: Export local state to a backup file
- import: Merge a backup file into local state
- config: Show and change sync configuration
- relay: Serve the WebDAV forwarding relay
"""

from __future__ import annotations

import click

from snapsync.client.cli.backup import export_cmd, import_cmd
from snapsync.client.cli.config import (
    get_config_dir,
    get_config_file,
    get_log_file,
    get_state_db,
    load_config,
    save_config,
    setup_logging,
)
from snapsync.client.cli.relay import relay
from snapsync.client.cli.settings import config_group
from snapsync.client.cli.sync import auto, check, sync


@click.group()
@click.version_option(package_name="snapsync")
@click.option("--verbose", "-v", is_flag=True, help="Show log output.")
def cli(verbose: bool) -> None:
    """SnapSync - Offline-first state sync over WebDAV."""
    setup_logging(get_log_file(), verbose)


# Sync commands
cli.add_command(sync)
cli.add_command(check)
cli.add_command(auto)

# Backup commands
cli.add_command(export_cmd)
cli.add_command(import_cmd)

# Configuration commands
cli.add_command(config_group)

# Relay command
cli.add_command(relay)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
    # Config utilities
    "get_config_dir",
    "get_config_file",
    "get_log_file",
    "get_state_db",
    "load_config",
    "save_config",
    "setup_logging",
]
