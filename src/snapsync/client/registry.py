"""Domain registry.

The registry is the single place that knows which state domains exist,
where their live state lives, and how each one is merged. It is built
once at startup and injected into the sync engine.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from snapsync.client.state import StateContainer, data_fields
from snapsync.client.sync.domain import (
    ChatMerge,
    LastWriteWinsMerge,
    MergeStrategy,
    UnionMerge,
)
from snapsync.client.sync.types import DomainApplyError
from snapsync.core.types import DomainName

if TYPE_CHECKING:
    from snapsync.client.state import LocalAppState

logger = logging.getLogger(__name__)

Snapshot = dict[str, dict[str, Any]]


@dataclass(frozen=True)
class Domain:
    """A registered state domain."""

    name: str
    container: StateContainer
    strategy: MergeStrategy


class DomainRegistry:
    """Ordered set of domains with snapshot/apply/merge over all of them."""

    def __init__(self, domains: Iterable[Domain] = ()) -> None:
        self._domains: dict[str, Domain] = {}
        for domain in domains:
            self.register(domain)

    def register(self, domain: Domain) -> None:
        """Add a domain. Names must be unique."""
        if domain.name in self._domains:
            raise ValueError(f"Domain '{domain.name}' already registered")
        self._domains[domain.name] = domain

    def names(self) -> list[str]:
        return list(self._domains)

    def get(self, name: str) -> Domain:
        return self._domains[name]

    def __contains__(self, name: object) -> bool:
        return name in self._domains

    def __len__(self) -> int:
        return len(self._domains)

    def snapshot(self, only: Iterable[str] | None = None) -> Snapshot:
        """Read every domain's live data fields.

        Args:
            only: Restrict to these domain names.
        """
        wanted = set(only) if only is not None else None
        return {
            name: data_fields(domain.container.get_state())
            for name, domain in self._domains.items()
            if wanted is None or name in wanted
        }

    def apply(self, snapshot: Mapping[str, Mapping[str, Any]]) -> list[str]:
        """Write snapshot domains back to live state, one at a time.

        Domains not present in the snapshot are left untouched.

        Returns:
            Names of the domains written.

        Raises:
            DomainApplyError: On the first failing domain. Earlier
                domains stay applied.
        """
        applied: list[str] = []
        for name, domain in self._domains.items():
            if name not in snapshot:
                continue
            try:
                domain.container.set_state(snapshot[name])
            except Exception as e:
                raise DomainApplyError(name, e) from e
            applied.append(name)
        return applied

    def merge(
        self,
        local: Mapping[str, Mapping[str, Any]],
        remote: Mapping[str, Any],
        only: Iterable[str] | None = None,
    ) -> Snapshot:
        """Merge remote into local, domain by domain.

        Domains missing (or not records) on the remote side keep their
        local state unchanged.

        Returns:
            New snapshot covering the local domains.
        """
        wanted = set(only) if only is not None else None
        merged: Snapshot = {}
        for name, local_state in local.items():
            remote_state = remote.get(name)
            domain = self._domains.get(name)
            if (
                domain is None
                or (wanted is not None and name not in wanted)
                or not isinstance(remote_state, Mapping)
            ):
                merged[name] = dict(local_state)
                continue
            merged[name] = domain.strategy.merge(local_state, remote_state)
            logger.debug(f"Merged domain '{name}'")
        return merged


def default_strategies() -> dict[DomainName, MergeStrategy]:
    """Merge strategy for each built-in domain."""
    return {
        DomainName.CHAT: ChatMerge(),
        DomainName.ACCESS: LastWriteWinsMerge(),
        DomainName.CONFIG: LastWriteWinsMerge(),
        DomainName.MASK: UnionMerge("masks"),
        DomainName.PROMPT: UnionMerge("prompts"),
    }


def build_registry(
    containers: Mapping[DomainName, StateContainer],
    strategies: Mapping[DomainName, MergeStrategy] | None = None,
) -> DomainRegistry:
    """Build a registry for the built-in domains.

    Args:
        containers: Live state container per domain.
        strategies: Overrides for default_strategies().
    """
    merged_strategies = {**default_strategies(), **(strategies or {})}
    registry = DomainRegistry()
    for name in DomainName:
        if name not in containers:
            continue
        registry.register(Domain(name.value, containers[name], merged_strategies[name]))
    return registry


def registry_for_app_state(app_state: LocalAppState) -> DomainRegistry:
    """Registry over every built-in domain of a LocalAppState."""
    return build_registry({name: app_state.container(name.value) for name in DomainName})
