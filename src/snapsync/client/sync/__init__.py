"""Sync operations for multi-domain state snapshots.

Architecture:
    DomainRegistry -> SyncEngine -> RemoteStore
                          |
                     domain/ merge strategies

Components:
- **SyncEngine**: fetch -> decode -> merge -> apply -> encode -> upload
- **domain/**: pure per-domain merge strategies
- **AutoSyncScheduler**: periodic and manual triggers

All public symbols are re-exported here.
"""

from snapsync.client.sync.domain import (
    ChatMerge,
    LastWriteWinsMerge,
    MergeStrategy,
    UnionMerge,
    backfill,
    merge_chat,
    merge_messages,
    merge_with_update,
    union_merge,
)
from snapsync.client.sync.engine import SyncEngine
from snapsync.client.sync.scheduler import AutoSyncScheduler
from snapsync.client.sync.types import (
    DomainApplyError,
    NotifyCallback,
    PhaseCallback,
    SyncError,
    SyncOutcome,
    SyncResult,
)

__all__ = [
    # Engine and scheduling
    "AutoSyncScheduler",
    "SyncEngine",
    # Merge strategies
    "ChatMerge",
    "LastWriteWinsMerge",
    "MergeStrategy",
    "UnionMerge",
    "backfill",
    "merge_chat",
    "merge_messages",
    "merge_with_update",
    "union_merge",
    # Types
    "DomainApplyError",
    "NotifyCallback",
    "PhaseCallback",
    "SyncError",
    "SyncOutcome",
    "SyncResult",
]
