"""Domain modules for merge business rules.

This package centralizes how each state domain is reconciled:
- chat: session/message union with tombstone propagation
- records: union merge (prompts, masks) and last-write-wins (config, access)
- base: MergeStrategy protocol and timestamp parsing

Architecture:
    domain/ contains pure functions without I/O. The orchestrator and
    the registry decide when to call them.
"""

from snapsync.client.sync.domain.base import MergeStrategy, now_ms, to_timestamp
from snapsync.client.sync.domain.chat import (
    DELETED_IDS_FIELD,
    ChatMerge,
    merge_chat,
    merge_messages,
)
from snapsync.client.sync.domain.records import (
    LAST_UPDATE_FIELD,
    LastWriteWinsMerge,
    UnionMerge,
    backfill,
    merge_with_update,
    union_merge,
)

__all__ = [
    # base
    "MergeStrategy",
    "now_ms",
    "to_timestamp",
    # chat
    "DELETED_IDS_FIELD",
    "ChatMerge",
    "merge_chat",
    "merge_messages",
    # records
    "LAST_UPDATE_FIELD",
    "LastWriteWinsMerge",
    "UnionMerge",
    "backfill",
    "merge_with_update",
    "union_merge",
]
