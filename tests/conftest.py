"""Shared test fixtures for esticli."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from esticli.errors import FilterCompileError
from esticli.models import (
    ClusterHealth,
    CounterSnapshot,
    IndexDetails,
    IndexRate,
    PollResult,
    SnapshotSet,
)


def make_index(
    name: str,
    rate: float = 0.0,
    doc_count: int = 0,
    size_bytes: int = 0,
    health: str = "green",
) -> IndexRate:
    """Create an IndexRate row for testing."""
    return IndexRate(
        name=name,
        doc_count=doc_count,
        size_bytes=size_bytes,
        health=health,
        rate_per_sec=rate,
    )


def make_snapshot(captured_at: float, **index_totals: int) -> SnapshotSet:
    """Create a SnapshotSet where each keyword is an index name and its index_total.

    Index names with dots or dashes can be passed via ``**{"logs-1": 10}``.
    """
    return SnapshotSet(
        captured_at=captured_at,
        counters={
            name: CounterSnapshot(doc_count=total, index_total=total, size_bytes=0, health="green")
            for name, total in index_totals.items()
        },
    )


def make_health(status: str = "green", **overrides: Any) -> ClusterHealth:
    """Create a ClusterHealth with plausible defaults."""
    values: dict[str, Any] = {
        "cluster_name": "test-cluster",
        "status": status,
        "number_of_nodes": 3,
        "number_of_data_nodes": 2,
        "active_primary_shards": 5,
        "active_shards": 10,
        "relocating_shards": 0,
        "initializing_shards": 0,
        "unassigned_shards": 0,
        "active_shards_percent": 100.0,
        "number_of_pending_tasks": 0,
    }
    values.update(overrides)
    return ClusterHealth(**values)


def make_poll(captured_at: float = 0.0, **index_totals: int) -> PollResult:
    return PollResult(snapshot=make_snapshot(captured_at, **index_totals), health=make_health())


class SubstringQuery:
    def __init__(self, needle: str) -> None:
        self.needle = needle

    def matches(self, item: dict[str, Any]) -> bool:
        return self.needle in item["name"]


class SubstringEngine:
    """Query engine that matches index names containing the filter text.

    Text starting with ``!`` fails to compile.
    """

    def compile(self, text: str) -> SubstringQuery:
        if text.startswith("!"):
            raise FilterCompileError(f"cannot compile {text!r}")
        return SubstringQuery(text)


class FakeClient:
    """Stands in for EsClient in dashboard tests.

    Each ``fetch_poll`` call pops the next queued result; exceptions in the
    queue are raised instead of returned.
    """

    url = "http://localhost:9200"

    def __init__(self, polls: list[Any] | None = None) -> None:
        self.polls: list[Any] = list(polls or [])
        self.poll_calls = 0
        self.details_calls: list[str] = []
        self.details_error: Exception | None = None
        self.closed = False

    async def fetch_poll(self) -> PollResult:
        self.poll_calls += 1
        result = self.polls.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    async def fetch_details(
        self, name: str, doc_count: int, rate_per_sec: float, size_bytes: int
    ) -> IndexDetails:
        self.details_calls.append(name)
        if self.details_error is not None:
            raise self.details_error
        return IndexDetails(
            name=name, doc_count=doc_count, rate_per_sec=rate_per_sec, size_bytes=size_bytes
        )

    async def close(self) -> None:
        self.closed = True


async def settle(rounds: int = 5) -> None:
    """Let background tasks created on the current loop run to completion."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def engine() -> SubstringEngine:
    return SubstringEngine()


@pytest.fixture
def client() -> FakeClient:
    return FakeClient()


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep config and log paths inside the test's temp dir."""
    monkeypatch.setenv("HOME", str(tmp_path))
    return tmp_path
