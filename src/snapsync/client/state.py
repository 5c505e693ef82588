"""Live application state containers.

This module provides:
- StateContainer: get/set access to one domain's live state
- MemoryState: in-process container
- LocalAppState: SQLite-backed application state, one row per domain
- data_fields: strip behaviour members from a state mapping

Architecture:
    Each domain's state is a JSON-compatible mapping. Containers hand
    out copies, so callers never alias live state.
"""

from __future__ import annotations

import copy
import json
import logging
import sqlite3
import threading
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class StateContainer(Protocol):
    """Handle on one domain's live state."""

    def get_state(self) -> dict[str, Any]:
        """Return a copy of the current state."""
        ...

    def set_state(self, state: Mapping[str, Any]) -> None:
        """Replace the current state."""
        ...


def data_fields(state: Mapping[str, Any]) -> dict[str, Any]:
    """Keep only data members of a state mapping.

    Callables (actions attached to a store) are not part of a snapshot.
    """
    return {key: value for key, value in state.items() if not callable(value)}


class MemoryState:
    """In-process state container."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._lock = threading.Lock()
        self._state: dict[str, Any] = copy.deepcopy(dict(initial or {}))

    def get_state(self) -> dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._state)

    def set_state(self, state: Mapping[str, Any]) -> None:
        with self._lock:
            self._state = copy.deepcopy(dict(state))


class LocalAppState:
    """SQLite-based application state.

    Stores each domain's state as a JSON document keyed by domain name.
    """

    def __init__(self, db_path: Path) -> None:
        """Initialize the application state database.

        Args:
            db_path: Path to SQLite database file.
        """
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        # Lock for thread-safe database access
        self._lock = threading.RLock()

        self._conn = sqlite3.connect(
            str(self._db_path),
            check_same_thread=False,
            isolation_level=None,  # Autocommit mode
        )
        self._conn.row_factory = sqlite3.Row

        # Enable WAL mode for better concurrency
        self._conn.execute("PRAGMA journal_mode=WAL")

        self._create_tables()

    def _create_tables(self) -> None:
        """Create database tables if they don't exist."""
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS domain_state (
                domain TEXT PRIMARY KEY,
                data TEXT NOT NULL,
                updated_at REAL NOT NULL
            );
        """)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> LocalAppState:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def read(self, domain: str) -> dict[str, Any]:
        """Read a domain's state. Unknown domains read as empty."""
        with self._lock:
            cursor = self._conn.execute(
                "SELECT data FROM domain_state WHERE domain = ?",
                (domain,),
            )
            row = cursor.fetchone()
        if row is None:
            return {}
        return dict(json.loads(row["data"]))

    def write(self, domain: str, state: Mapping[str, Any]) -> None:
        """Replace a domain's state."""
        data = json.dumps(data_fields(state), ensure_ascii=False)
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO domain_state (domain, data, updated_at) VALUES (?, ?, ?)",
                (domain, data, time.time()),
            )
        logger.debug(f"Wrote {len(data)} bytes of state for domain '{domain}'")

    def domains(self) -> list[str]:
        """List domains with stored state."""
        with self._lock:
            cursor = self._conn.execute("SELECT domain FROM domain_state ORDER BY domain")
            rows = cursor.fetchall()
        return [row["domain"] for row in rows]

    def container(self, domain: str) -> DomainContainer:
        """Get a StateContainer bound to one domain."""
        return DomainContainer(self, domain)


class DomainContainer:
    """StateContainer view on one domain of a LocalAppState."""

    def __init__(self, app_state: LocalAppState, domain: str) -> None:
        self._app_state = app_state
        self._domain = domain

    def get_state(self) -> dict[str, Any]:
        return self._app_state.read(self._domain)

    def set_state(self, state: Mapping[str, Any]) -> None:
        self._app_state.write(self._domain, state)
