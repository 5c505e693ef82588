"""Chat session merge.

Rules, applied for every remote session:
- Sessions without messages are ephemeral and never merged.
- A remote tombstone marks the local counterpart deleted and records
  its id in the ledger, even when there is no local counterpart.
- A local tombstone is never cleared by a remote update.
- Unknown remote sessions are added (messages deduplicated), unless
  their id is in the deletion ledger.
- Sessions present on both sides get the union of their messages by
  id, ordered by date ascending.

Tombstoned sessions are then compacted out and their ids recorded in
the ``deletedSessionIds`` ledger, which travels with the chat state
so a stale replica cannot bring them back. The ledger is never pruned:
it grows by one id per deleted session. Surviving sessions are
ordered by ``lastUpdate`` descending.
"""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from snapsync.client.sync.domain.base import to_timestamp

logger = logging.getLogger(__name__)

SESSIONS_FIELD = "sessions"
DELETED_IDS_FIELD = "deletedSessionIds"


def is_ephemeral(session: Mapping[str, Any]) -> bool:
    """A session with no messages is never propagated."""
    return not session.get("messages")


def merge_messages(
    local_messages: Iterable[Mapping[str, Any]],
    remote_messages: Iterable[Mapping[str, Any]],
) -> list[dict[str, Any]]:
    """Union two message lists by id, sorted by date ascending.

    Local messages win on id collision. Messages without an id are
    deduplicated by content only. The sort is stable, so messages with
    equal or unparseable dates keep their order.
    """
    merged: list[dict[str, Any]] = []
    seen: set[Any] = set()
    for message in [*local_messages, *remote_messages]:
        message_id = message.get("id")
        key = ("id", message_id) if message_id is not None else ("content", _content_key(message))
        if key in seen:
            continue
        seen.add(key)
        merged.append(copy.deepcopy(dict(message)))

    merged.sort(key=lambda m: to_timestamp(m.get("date")))
    return merged


def _content_key(message: Mapping[str, Any]) -> str:
    return json.dumps(message, sort_keys=True, default=str)


def _merge_ledgers(*ledgers: Any) -> set[Any]:
    ids: set[Any] = set()
    for ledger in ledgers:
        ids.update(ledger or [])
    return ids


def merge_chat(local: Mapping[str, Any], remote: Mapping[str, Any]) -> dict[str, Any]:
    """Merge chat domain state.

    Args:
        local: Local chat state (``sessions`` plus other fields).
        remote: Remote chat state.

    Returns:
        New chat state. Non-session fields come from local.
    """
    result = copy.deepcopy(dict(local))
    sessions: list[dict[str, Any]] = list(result.get(SESSIONS_FIELD) or [])
    deleted_ids = _merge_ledgers(local.get(DELETED_IDS_FIELD), remote.get(DELETED_IDS_FIELD))

    local_index = {session.get("id"): session for session in sessions}

    for remote_session in remote.get(SESSIONS_FIELD) or []:
        if is_ephemeral(remote_session):
            continue

        session_id = remote_session.get("id")
        local_session = local_index.get(session_id)

        if remote_session.get("isDeleted"):
            deleted_ids.add(session_id)
            if local_session is not None:
                local_session["isDeleted"] = True
            continue

        if local_session is None:
            if session_id in deleted_ids:
                continue
            added = copy.deepcopy(dict(remote_session))
            added["messages"] = merge_messages(added["messages"], [])
            sessions.append(added)
            local_index[session_id] = added
            continue

        if local_session.get("isDeleted"):
            continue

        local_session["messages"] = merge_messages(
            local_session.get("messages") or [],
            remote_session.get("messages") or [],
        )

    kept: list[dict[str, Any]] = []
    for session in sessions:
        session_id = session.get("id")
        if session.get("isDeleted"):
            deleted_ids.add(session_id)
            continue
        if session_id in deleted_ids:
            continue
        kept.append(session)

    kept.sort(key=lambda s: to_timestamp(s.get("lastUpdate")), reverse=True)

    result[SESSIONS_FIELD] = kept
    if deleted_ids or DELETED_IDS_FIELD in local:
        result[DELETED_IDS_FIELD] = sorted(deleted_ids, key=str)

    dropped = len(sessions) - len(kept)
    if dropped:
        logger.debug(f"Compacted {dropped} deleted chat sessions")
    return result


class ChatMerge:
    """Merge strategy for the chat domain."""

    def merge(self, local: Mapping[str, Any], remote: Mapping[str, Any]) -> dict[str, Any]:
        return merge_chat(local, remote)
