"""Data types shared by the client, the rate engine and the dashboard."""

from dataclasses import dataclass, field
from typing import Any

from esticli.formatting import format_bytes, format_number


@dataclass(frozen=True)
class CounterSnapshot:
    """Raw per-index counters from one poll."""

    doc_count: int
    index_total: int  # Cumulative write operations
    size_bytes: int
    health: str


@dataclass(frozen=True)
class SnapshotSet:
    """All counters captured by one poll, stamped with a monotonic time."""

    captured_at: float
    counters: dict[str, CounterSnapshot]


@dataclass
class IndexRate:
    """One row of the dashboard: an index with its smoothed indexing rate."""

    name: str
    doc_count: int
    size_bytes: int
    health: str
    rate_per_sec: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Plain value model handed to the filter engine."""
        return {
            "name": self.name,
            "doc_count": self.doc_count,
            "rate_per_sec": self.rate_per_sec,
            "size_bytes": self.size_bytes,
            "health": self.health,
        }

    def rate_human(self) -> str:
        return format_number(self.rate_per_sec)

    def size_human(self) -> str:
        return format_bytes(self.size_bytes)

    def doc_count_human(self) -> str:
        return format_number(self.doc_count)


@dataclass(frozen=True)
class ClusterHealth:
    """Cluster health summary from ``_cluster/health``."""

    cluster_name: str
    status: str
    number_of_nodes: int
    number_of_data_nodes: int
    active_primary_shards: int
    active_shards: int
    relocating_shards: int
    initializing_shards: int
    unassigned_shards: int
    active_shards_percent: float
    number_of_pending_tasks: int


@dataclass(frozen=True)
class ShardInfo:
    """One shard copy from ``_cat/shards``."""

    shard_id: int
    primary: bool
    state: str
    node: str
    docs: int | None = None
    size: str | None = None


@dataclass(frozen=True)
class DataStreamDetails:
    """Data stream an index belongs to, and where it sits among the backing indices."""

    name: str
    timestamp_field: str
    generation: int
    total_backing_indices: int
    backing_index_position: int  # 1-based
    is_write_index: bool
    template: str | None = None
    data_retention: str | None = None


@dataclass
class IndexDetails:
    """Everything shown in the details overlay for one index.

    Fields other than the name and the values copied from the table are
    best-effort: any ancillary request that fails leaves its field at the
    default (None, 0, or empty).
    """

    name: str
    doc_count: int
    rate_per_sec: float
    size_bytes: int
    provided_name: str | None = None
    creation_date: str | None = None
    uuid: str | None = None
    primary_shards: int = 0
    replica_shards: int = 0
    is_frozen: bool = False
    is_partial: bool = False
    ilm_policy: str | None = None
    ilm_phase: str | None = None
    total_segments: int = 0
    shard_allocation: list[ShardInfo] = field(default_factory=list)
    templates: list[str] = field(default_factory=list)
    health: str | None = None
    status: str | None = None
    data_stream: DataStreamDetails | None = None


@dataclass(frozen=True)
class PollResult:
    """Everything one periodic poll brings back."""

    snapshot: SnapshotSet
    health: ClusterHealth
