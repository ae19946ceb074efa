"""Sparkline widget for the cluster indexing rate history.

Values are auto-scaled to the largest point currently shown. Each column is
coloured through ``color_func`` with the column's fraction of that peak, so
the active colormap paints the chart.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from rich.text import Text
from textual.reactive import reactive
from textual.widgets import Static

if TYPE_CHECKING:
    from textual.app import RenderResult

BLOCKS = " ▁▂▃▄▅▆▇█"
LEVELS_PER_ROW = 8


def scale_level(value: float, peak: float, height: int) -> int:
    """Scale ``value`` into 0..height*8 block levels relative to ``peak``."""
    total_levels = height * LEVELS_PER_ROW
    if peak <= 0:
        return 0
    normalized = max(0.0, min(1.0, value / peak))
    level = int(round(normalized * total_levels))
    # Any non-zero rate stays visible
    if value > 0 and level == 0:
        level = 1
    return level


def column_chars(level: int, height: int) -> list[str]:
    """Characters for one column, bottom row first."""
    chars = []
    for row in range(height):
        remaining = level - row * LEVELS_PER_ROW
        if remaining <= 0:
            chars.append(BLOCKS[0])
        elif remaining >= LEVELS_PER_ROW:
            chars.append(BLOCKS[LEVELS_PER_ROW])
        else:
            chars.append(BLOCKS[remaining])
    return chars


class Sparkline(Static):
    """Multi-row block sparkline, newest point on the right."""

    DEFAULT_CSS = """
    Sparkline {
        width: 1fr;
        height: 1fr;
    }
    """

    data: reactive[list[float]] = reactive(list, always_update=True)

    def __init__(
        self,
        height: int = 4,
        color_func: Callable[[float], str] | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._rows = max(1, height)
        self.color_func = color_func

    def render(self) -> RenderResult:
        width = max(1, self.size.width)
        rows = max(1, self.size.height or self._rows)
        points = self.data[-width:]
        if not points:
            return Text(" " * width)

        peak = max(points)
        lines: list[Text] = [Text() for _ in range(rows)]
        # Right-align so the newest point sits at the right edge
        pad = width - len(points)
        for line in lines:
            line.append(" " * pad)

        for value in points:
            fraction = value / peak if peak > 0 else 0.0
            style = self.color_func(fraction) if self.color_func else ""
            for row, char in enumerate(column_chars(scale_level(value, peak, rows), rows)):
                lines[row].append(char, style=style)

        result = Text()
        for i, line in enumerate(reversed(lines)):
            if i > 0:
                result.append("\n")
            result.append(line)
        return result

    def watch_data(self, new_data: list[float]) -> None:
        self.refresh()
