"""Record merges for keyed collections and timestamped settings.

- union_merge / UnionMerge: prompts and masks. Local entries win,
  remote-only keys are kept.
- merge_with_update / LastWriteWinsMerge: config and access. The
  newer side is the base, missing fields are filled from the older
  side, and the result is stamped with the merge time.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from typing import Any

from snapsync.client.sync.domain.base import now_ms, to_timestamp

LAST_UPDATE_FIELD = "lastUpdateTime"


def union_merge(local: Mapping[str, Any], remote: Mapping[str, Any]) -> dict[str, Any]:
    """Start from remote, overlay every local key."""
    return copy.deepcopy({**remote, **local})


class UnionMerge:
    """Union merge applied to one collection field of a domain state.

    Args:
        field: Name of the key -> record mapping, e.g. "prompts".
    """

    def __init__(self, field: str) -> None:
        self.field = field

    def merge(self, local: Mapping[str, Any], remote: Mapping[str, Any]) -> dict[str, Any]:
        result = copy.deepcopy(dict(local))
        result[self.field] = union_merge(
            local.get(self.field) or {},
            remote.get(self.field) or {},
        )
        return result


def backfill(base: Mapping[str, Any], source: Mapping[str, Any]) -> dict[str, Any]:
    """Fill keys missing from base with values from source, recursively.

    Nested records are descended into; scalars and lists are copied only
    where base lacks the key. Values already in base are never replaced.

    Returns:
        New mapping. Neither argument is modified.
    """
    result = copy.deepcopy(dict(base))
    for key, value in source.items():
        if key not in result:
            result[key] = copy.deepcopy(value)
        elif isinstance(value, Mapping) and isinstance(result[key], Mapping):
            result[key] = backfill(result[key], value)
    return result


def merge_with_update(
    local: Mapping[str, Any],
    remote: Mapping[str, Any],
    now: int,
) -> dict[str, Any]:
    """Last-write-wins merge with field-level backfill.

    Args:
        local: Local state, optionally carrying ``lastUpdateTime``.
        remote: Remote state, optionally carrying ``lastUpdateTime``.
        now: Merge moment in epoch milliseconds.

    Returns:
        The newer side filled from the older side. On a tie local is
        the base. ``lastUpdateTime`` is set to ``now``.
    """
    local_time = to_timestamp(local.get(LAST_UPDATE_FIELD, 0))
    remote_time = to_timestamp(remote.get(LAST_UPDATE_FIELD, 0))

    if remote_time > local_time:
        base, source = remote, local
    else:
        base, source = local, remote

    merged = backfill(base, source)
    merged[LAST_UPDATE_FIELD] = now
    return merged


class LastWriteWinsMerge:
    """Merge strategy for timestamped settings records."""

    def __init__(self, clock: Callable[[], int] = now_ms) -> None:
        self._clock = clock

    def merge(self, local: Mapping[str, Any], remote: Mapping[str, Any]) -> dict[str, Any]:
        return merge_with_update(local, remote, self._clock())
