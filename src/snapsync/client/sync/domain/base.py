"""Merge strategy interface and timestamp helpers."""

from __future__ import annotations

import time
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Protocol

# Formats produced by Date.toLocaleString() in common locales
_LOCALE_FORMATS = (
    "%Y/%m/%d %H:%M:%S",
    "%m/%d/%Y, %I:%M:%S %p",
    "%d/%m/%Y, %H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
)


class MergeStrategy(Protocol):
    """Reconciles one domain's local and remote state.

    Implementations are pure: they return a new mapping and never
    mutate their arguments.
    """

    def merge(self, local: Mapping[str, Any], remote: Mapping[str, Any]) -> dict[str, Any]:
        ...


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def to_timestamp(value: Any) -> float:
    """Convert a stored timestamp to a sortable number.

    Accepts epoch numbers, numeric strings, ISO-8601 strings and a few
    locale date formats. Anything else sorts as 0.
    """
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, int | float):
        return float(value)
    if not isinstance(value, str) or not value.strip():
        return 0.0

    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).timestamp() * 1000
    except ValueError:
        pass
    for fmt in _LOCALE_FORMATS:
        try:
            return datetime.strptime(text, fmt).timestamp() * 1000
        except ValueError:
            continue
    return 0.0
