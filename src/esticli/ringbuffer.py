"""Ring buffer for cluster-wide indexing rate history.

Stores the last 60 smoothed cluster totals, one per successful poll. Feeds the
rate chart; oldest points fall off the left edge.
"""

from collections import deque

MAX_HISTORY_POINTS = 60


class RateHistory:
    """Bounded history of cluster-wide rates (oldest first)."""

    def __init__(self, max_points: int = MAX_HISTORY_POINTS) -> None:
        self._points: deque[float] = deque(maxlen=max_points)

    def __len__(self) -> int:
        """Return number of points in buffer."""
        return len(self._points)

    @property
    def is_empty(self) -> bool:
        """Return True if no poll has completed yet."""
        return len(self._points) == 0

    @property
    def capacity(self) -> int:
        """Return maximum number of points the buffer can hold."""
        return self._points.maxlen or 0

    @property
    def points(self) -> list[float]:
        """Read-only access to points (returns a copy)."""
        return list(self._points)

    @property
    def peak(self) -> float:
        return max(self._points, default=0.0)

    def push(self, rate: float) -> None:
        """Add a point, evicting the oldest at capacity."""
        self._points.append(rate)

    def clear(self) -> None:
        self._points.clear()
