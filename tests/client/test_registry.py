"""Tests for the domain registry."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pytest

from snapsync.client.registry import (
    Domain,
    DomainRegistry,
    build_registry,
    default_strategies,
    registry_for_app_state,
)
from snapsync.client.state import LocalAppState, MemoryState
from snapsync.client.sync.domain import ChatMerge, LastWriteWinsMerge, UnionMerge
from snapsync.client.sync.types import DomainApplyError
from snapsync.core.types import DomainName


class FailingState:
    """Container whose setter always fails."""

    def get_state(self) -> dict[str, Any]:
        return {"value": 1}

    def set_state(self, state: Mapping[str, Any]) -> None:
        raise RuntimeError("disk full")


@pytest.fixture
def containers() -> dict[DomainName, MemoryState]:
    """One in-memory container per built-in domain."""
    return {
        DomainName.CHAT: MemoryState({"sessions": []}),
        DomainName.ACCESS: MemoryState({"token": "t", "lastUpdateTime": 1}),
        DomainName.CONFIG: MemoryState({"theme": "dark", "lastUpdateTime": 1}),
        DomainName.MASK: MemoryState({"masks": {"m1": {"name": "M1"}}}),
        DomainName.PROMPT: MemoryState({"prompts": {"p1": {"title": "P1"}}}),
    }


class TestDefaultStrategies:
    """Tests for the built-in strategy table."""

    def test_strategy_per_domain(self) -> None:
        """Each built-in domain has its strategy."""
        strategies = default_strategies()
        assert isinstance(strategies[DomainName.CHAT], ChatMerge)
        assert isinstance(strategies[DomainName.ACCESS], LastWriteWinsMerge)
        assert isinstance(strategies[DomainName.CONFIG], LastWriteWinsMerge)
        mask = strategies[DomainName.MASK]
        prompt = strategies[DomainName.PROMPT]
        assert isinstance(mask, UnionMerge) and mask.field == "masks"
        assert isinstance(prompt, UnionMerge) and prompt.field == "prompts"


class TestDomainRegistry:
    """Tests for DomainRegistry."""

    def test_registration_order(self, containers: dict[DomainName, MemoryState]) -> None:
        """Domains keep the fixed registration order."""
        registry = build_registry(containers)
        assert registry.names() == ["chat", "access", "config", "mask", "prompt"]
        assert len(registry) == 5
        assert "chat" in registry

    def test_duplicate_name_rejected(self) -> None:
        """Names must be unique."""
        registry = DomainRegistry([Domain("chat", MemoryState(), ChatMerge())])
        with pytest.raises(ValueError):
            registry.register(Domain("chat", MemoryState(), ChatMerge()))

    def test_snapshot_reads_data_fields(self) -> None:
        """Snapshots skip behaviour members."""
        container = MemoryState({"prompts": {}})
        container.set_state({"prompts": {}, "reset": len})
        registry = DomainRegistry([Domain("prompt", container, UnionMerge("prompts"))])
        assert registry.snapshot() == {"prompt": {"prompts": {}}}

    def test_snapshot_only(self, containers: dict[DomainName, MemoryState]) -> None:
        """snapshot(only=...) restricts the domains read."""
        registry = build_registry(containers)
        assert list(registry.snapshot(only=["mask", "chat"])) == ["chat", "mask"]

    def test_apply_writes_present_domains(self, containers: dict[DomainName, MemoryState]) -> None:
        """Domains missing from the snapshot are left alone."""
        registry = build_registry(containers)

        applied = registry.apply({"config": {"theme": "light"}})

        assert applied == ["config"]
        assert containers[DomainName.CONFIG].get_state() == {"theme": "light"}
        assert containers[DomainName.ACCESS].get_state()["token"] == "t"

    def test_apply_is_not_atomic(self) -> None:
        """Domains applied before a failure keep their new state."""
        first = MemoryState({"a": 1})
        registry = DomainRegistry(
            [
                Domain("first", first, UnionMerge("x")),
                Domain("broken", FailingState(), UnionMerge("x")),
            ]
        )

        with pytest.raises(DomainApplyError) as exc_info:
            registry.apply({"first": {"a": 2}, "broken": {"value": 2}})

        assert exc_info.value.domain == "broken"
        assert first.get_state() == {"a": 2}

    def test_merge_runs_each_strategy(self, containers: dict[DomainName, MemoryState]) -> None:
        """Every domain is merged with its own strategy."""
        registry = build_registry(containers)
        local = registry.snapshot()
        remote = {
            "prompt": {"prompts": {"p2": {"title": "P2"}}},
            "config": {"theme": "light", "lastUpdateTime": 5, "fontSize": 12},
        }

        merged = registry.merge(local, remote)

        assert merged["prompt"]["prompts"] == {"p1": {"title": "P1"}, "p2": {"title": "P2"}}
        assert merged["config"]["theme"] == "light"
        assert merged["config"]["lastUpdateTime"] > 5

    def test_merge_keeps_local_when_remote_missing(
        self, containers: dict[DomainName, MemoryState]
    ) -> None:
        """Domains absent or malformed remotely keep local state."""
        registry = build_registry(containers)
        local = registry.snapshot()

        merged = registry.merge(local, {"mask": "not a record"})

        assert merged == local

    def test_merge_only(self, containers: dict[DomainName, MemoryState]) -> None:
        """Domains outside only= are passed through."""
        registry = build_registry(containers)
        local = registry.snapshot()
        remote = {"prompt": {"prompts": {"p2": {}}}}

        merged = registry.merge(local, remote, only=["chat"])

        assert merged["prompt"] == local["prompt"]


class TestRegistryForAppState:
    """Tests for the SQLite-backed registry."""

    def test_round_trip(self, tmp_path: Path) -> None:
        """Applied snapshots are read back from the database."""
        with LocalAppState(tmp_path / "state.db") as app_state:
            registry = registry_for_app_state(app_state)
            assert registry.snapshot() == {name.value: {} for name in DomainName}

            registry.apply({"mask": {"masks": {"m": {"name": "M"}}}})

            assert registry.snapshot()["mask"] == {"masks": {"m": {"name": "M"}}}
            assert app_state.domains() == ["mask"]
