"""Local backup export and import.

Backups are the offline path: the full snapshot of every registered
domain written as a plain JSON document. Importing a backup merges it
into local state with the same strategies as a remote sync; the host
application must restart for the imported state to take effect.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from snapsync.client.sync.types import DomainApplyError
from snapsync.core.codec import CodecError, dump_snapshot, load_snapshot

if TYPE_CHECKING:
    from snapsync.client.registry import DomainRegistry

logger = logging.getLogger(__name__)

BACKUP_PREFIX = "Backup-"
BACKUP_TIME_FORMAT = "%Y-%m-%d_%H-%M-%S"


class BackupError(Exception):
    """Backup file could not be written, read or applied."""


@dataclass
class ImportResult:
    """Outcome of a backup import."""

    domains: list[str] = field(default_factory=list)
    restart_required: bool = True


def backup_filename(now: datetime | None = None) -> str:
    """Timestamped backup file name."""
    stamp = (now or datetime.now()).strftime(BACKUP_TIME_FORMAT)
    return f"{BACKUP_PREFIX}{stamp}.json"


def export_backup(
    registry: DomainRegistry,
    directory: Path,
    now: datetime | None = None,
) -> Path:
    """Write a snapshot of every domain to a backup file.

    Args:
        registry: Domains to export.
        directory: Target directory (created if missing).
        now: Timestamp for the file name. Defaults to the current time.

    Returns:
        Path of the written backup file.

    Raises:
        BackupError: If the file cannot be written.
    """
    directory = Path(directory)
    path = directory / backup_filename(now)
    try:
        directory.mkdir(parents=True, exist_ok=True)
        path.write_bytes(dump_snapshot(registry.snapshot()))
    except (OSError, TypeError, ValueError) as e:
        raise BackupError(f"Failed to write backup {path}: {e}") from e

    logger.info(f"Exported {len(registry)} domains to {path}")
    return path


def import_backup(registry: DomainRegistry, path: Path) -> ImportResult:
    """Merge a backup file into local state.

    Args:
        registry: Domains to merge into.
        path: Backup file to read.

    Returns:
        ImportResult naming the domains written.

    Raises:
        BackupError: If the file cannot be read, is not a snapshot, or a
            domain fails to apply.
    """
    path = Path(path)
    try:
        backup = load_snapshot(path.read_bytes())
    except OSError as e:
        raise BackupError(f"Failed to read backup {path}: {e}") from e
    except CodecError as e:
        raise BackupError(f"Invalid backup {path}: {e}") from e

    local = registry.snapshot()
    try:
        merged = registry.merge(local, backup)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise BackupError(f"Backup {path} is incompatible with local state: {e}") from e

    try:
        domains = registry.apply(merged)
    except DomainApplyError as e:
        raise BackupError(str(e)) from e

    logger.info(f"Imported backup {path} into {len(domains)} domains")
    return ImportResult(domains=domains)


def list_backups(directory: Path) -> list[Path]:
    """Backup files in a directory, newest name first."""
    directory = Path(directory)
    if not directory.is_dir():
        return []
    return sorted(directory.glob(f"{BACKUP_PREFIX}*.json"), reverse=True)


__all__ = [
    "BackupError",
    "ImportResult",
    "backup_filename",
    "export_backup",
    "import_backup",
    "list_backups",
]
