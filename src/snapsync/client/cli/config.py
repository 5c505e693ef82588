"""Configuration utilities for SnapSync CLI.

This module provides shared paths, config access and logging setup used
across CLI commands.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from snapsync.core.config import SyncConfig, load_sync_config, save_sync_config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_config_dir() -> Path:
    """Get the configuration directory for SnapSync.

    Returns:
        Path to ~/.snapsync or equivalent.
    """
    return Path.home() / ".snapsync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def get_state_db() -> Path:
    """Get the path to the local application state database."""
    return get_config_dir() / "state.db"


def get_log_file() -> Path:
    """Get the path to the log file."""
    return get_config_dir() / "snapsync.log"


def load_config() -> SyncConfig:
    """Load sync configuration from the config file."""
    return load_sync_config(get_config_file())


def save_config(config: SyncConfig) -> None:
    """Save sync configuration to the config file."""
    save_sync_config(config, get_config_file())


def setup_logging(log_path: Path, verbose: bool = False) -> None:
    """Configure logging to output to both file and stdout.

    Args:
        log_path: Path to the log file.
        verbose: Show INFO messages on stdout (warnings only otherwise).
    """
    formatter = logging.Formatter(LOG_FORMAT)

    # Root logger for snapsync
    root_logger = logging.getLogger("snapsync")
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    # Stdout handler
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    stdout_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root_logger.addHandler(stdout_handler)

    # File handler
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)
