"""Per-index indexing rates from successive counter snapshots.

Two stages:

1. ``RateSnapshotStore`` keeps the previous poll's counters and turns the new
   poll into instantaneous rates (ops/sec since the previous poll).
2. ``RateSmoother`` keeps a short window of instantaneous rates per index and
   reports their mean, so a single bursty poll does not dominate the display.

Counters are cumulative. A counter that goes backwards (index recreated,
stats reset) yields 0 for that poll instead of a negative rate.
"""

from collections import deque

from esticli.models import IndexRate, SnapshotSet


def instantaneous_rate(previous: int, current: int, elapsed: float) -> float:
    """Rate between two cumulative counter readings, 0 on reset or zero elapsed time."""
    if elapsed > 0 and current >= previous:
        return (current - previous) / elapsed
    return 0.0


class RateSnapshotStore:
    """Holds exactly one previous snapshot set."""

    def __init__(self) -> None:
        self._previous: SnapshotSet | None = None

    @property
    def previous(self) -> SnapshotSet | None:
        return self._previous

    def advance(self, current: SnapshotSet) -> dict[str, float]:
        """Compute instantaneous rates for ``current`` and make it the new previous.

        Indices without a previous reading (first poll, newly created) get 0.
        """
        rates: dict[str, float] = {}
        previous = self._previous
        for name, counters in current.counters.items():
            if previous is None or name not in previous.counters:
                rates[name] = 0.0
                continue
            elapsed = current.captured_at - previous.captured_at
            rates[name] = instantaneous_rate(
                previous.counters[name].index_total, counters.index_total, elapsed
            )
        self._previous = current
        return rates


class RateSmoother:
    """Moving average of instantaneous rates, one bounded window per index."""

    def __init__(self, samples: int = 10) -> None:
        if samples < 1:
            raise ValueError(f"samples must be >= 1, got {samples}")
        self._samples = samples
        self._windows: dict[str, deque[float]] = {}

    @property
    def samples(self) -> int:
        return self._samples

    def __contains__(self, name: object) -> bool:
        return name in self._windows

    def window(self, name: str) -> list[float]:
        """Copy of one index's window, oldest first."""
        return list(self._windows.get(name, ()))

    def push(self, name: str, rate: float) -> float:
        """Record one instantaneous rate and return the smoothed rate."""
        window = self._windows.get(name)
        if window is None:
            window = deque(maxlen=self._samples)
            self._windows[name] = window
        window.append(rate)
        return sum(window) / len(window)

    def prune(self, live: set[str] | dict) -> None:
        """Drop windows for indices not present in ``live``."""
        for name in [n for n in self._windows if n not in live]:
            del self._windows[name]


def build_rates(
    snapshot: SnapshotSet,
    store: RateSnapshotStore,
    smoother: RateSmoother,
) -> list[IndexRate]:
    """Run one poll through both stages and return unsorted dashboard rows."""
    instant = store.advance(snapshot)
    rows: list[IndexRate] = []
    for name, counters in snapshot.counters.items():
        rows.append(
            IndexRate(
                name=name,
                doc_count=counters.doc_count,
                size_bytes=counters.size_bytes,
                health=counters.health,
                rate_per_sec=smoother.push(name, instant[name]),
            )
        )
    smoother.prune(snapshot.counters)
    return rows
