"""Configuration commands for SnapSync CLI.

Commands:
- config show: Print the current configuration
- config set-webdav: Use a WebDAV store
- config set-local: Use a local folder as the store
- config set: Change proxy, scheduling and transfer settings
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import click

from snapsync.client.cli.config import get_config_file, load_config, save_config
from snapsync.core.config import ConfigError, SyncConfig, parse_sync_config
from snapsync.core.types import DomainName, ProviderType

MASK = "********"


def _update(config: SyncConfig, **changes: Any) -> SyncConfig:
    """Validate and save a changed configuration, exiting on error."""
    data = config.model_dump(mode="json")
    for key, value in changes.items():
        if isinstance(value, dict):
            data[key] = {**data[key], **value}
        else:
            data[key] = value
    try:
        updated = parse_sync_config(data)
    except ConfigError as e:
        click.echo(f"Error: Invalid configuration: {e}", err=True)
        sys.exit(1)
    save_config(updated)
    return updated


@click.group("config")
def config_group() -> None:
    """View and change sync configuration."""


@config_group.command("show")
@click.option("--show-password", is_flag=True, help="Print the WebDAV password.")
def show(show_password: bool) -> None:
    """Print the current configuration as JSON."""
    data = load_config().model_dump(mode="json")
    if data["webdav"]["password"] and not show_password:
        data["webdav"]["password"] = MASK
    click.echo(f"# {get_config_file()}")
    click.echo(json.dumps(data, indent=2))


@config_group.command("set-webdav")
@click.option("--endpoint", "-e", required=True, help="WebDAV server URL.")
@click.option("--username", "-u", required=True, help="WebDAV user name.")
@click.option("--password", "-p", prompt=True, hide_input=True, help="WebDAV password.")
@click.option("--folder", "-f", default=None, help="Remote folder (default: snapsync).")
def set_webdav(endpoint: str, username: str, password: str, folder: str | None) -> None:
    """Sync through a WebDAV server."""
    webdav: dict[str, str] = {"endpoint": endpoint, "username": username, "password": password}
    if folder is not None:
        webdav["folder"] = folder
    _update(load_config(), provider=ProviderType.WEBDAV.value, webdav=webdav)
    click.echo(f"WebDAV store configured: {endpoint}")


@config_group.command("set-local")
@click.argument("path", type=click.Path(file_okay=False, path_type=Path))
def set_local(path: Path) -> None:
    """Sync through a local folder (NAS, USB drive, mounted share)."""
    resolved = path.expanduser().resolve()
    _update(load_config(), provider=ProviderType.LOCAL.value, local={"path": str(resolved)})
    click.echo(f"Local folder store configured: {resolved}")


@config_group.command("set")
@click.option("--proxy-url", default=None, help="Relay base URL.")
@click.option("--use-proxy/--no-proxy", default=None, help="Route requests through the relay.")
@click.option("--auto/--no-auto", "auto_sync", default=None, help="Enable periodic sync.")
@click.option("--interval", type=float, default=None, help="Minutes between automatic syncs.")
@click.option("--chunk-size", type=int, default=None, help="Upload chunk size in bytes.")
@click.option("--max-retries", type=int, default=None, help="Retries per chunk.")
@click.option("--timeout", type=float, default=None, help="Request timeout in seconds.")
@click.option(
    "--exclude",
    multiple=True,
    type=click.Choice([name.value for name in DomainName]),
    help="Domain to leave out of sync (repeatable).",
)
@click.option("--clear-excludes", is_flag=True, help="Sync every domain again.")
def set_options(
    proxy_url: str | None,
    use_proxy: bool | None,
    auto_sync: bool | None,
    interval: float | None,
    chunk_size: int | None,
    max_retries: int | None,
    timeout: float | None,
    exclude: tuple[str, ...],
    clear_excludes: bool,
) -> None:
    """Change proxy, scheduling and transfer settings."""
    config = load_config()
    changes: dict[str, Any] = {
        key: value
        for key, value in {
            "proxy_url": proxy_url,
            "use_proxy": use_proxy,
            "auto_sync_enabled": auto_sync,
            "sync_interval_minutes": interval,
            "chunk_size": chunk_size,
            "max_retries": max_retries,
            "timeout": timeout,
        }.items()
        if value is not None
    }

    excluded = [] if clear_excludes else [domain.value for domain in config.exclude_domains]
    for name in exclude:
        if name not in excluded:
            excluded.append(name)
    if exclude or clear_excludes:
        changes["exclude_domains"] = excluded

    if not changes:
        click.echo("Nothing to change.")
        return

    _update(config, **changes)
    click.echo(f"Updated: {', '.join(sorted(changes))}")
