"""Full-screen dashboard for esticli.

Philosophy: the TUI only draws. Every key goes to ``Dashboard.handle_key``
and every frame starts with ``Dashboard.tick()``; widgets read the
dashboard's state and never change it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from rich.text import Text
from textual.app import App, ComposeResult
from textual.css.query import NoMatches
from textual.events import Key
from textual.widgets import DataTable, Static

from esticli.config import Config
from esticli.dashboard import Dashboard
from esticli.details import DetailState
from esticli.formatting import format_bytes, format_number
from esticli.logging import health_style
from esticli.models import ClusterHealth, IndexRate
from esticli.sort import SortColumn
from esticli.tui.sparkline import Sparkline

FRAME_SECONDS = 0.05

_BORDER_COLORS = {
    "green": "green",
    "yellow": "yellow",
    "red": "red",
}


# ─────────────────────────────────────────────────────────────────────────────
# Text builders (pure, used by the widgets below)
# ─────────────────────────────────────────────────────────────────────────────


def health_lines(health: ClusterHealth | None) -> Text:
    """Cluster health panel content."""
    if health is None:
        return Text("Waiting for cluster health...", style="dim")
    text = Text()
    text.append(f"{health.cluster_name} ", style="bold")
    text.append(health.status.upper(), style=health_style(health.status))
    text.append(
        f"\nNodes {health.number_of_nodes} ({health.number_of_data_nodes} data)"
        f"   Pending tasks {health.number_of_pending_tasks}"
    )
    text.append(
        f"\nShards {health.active_shards} active, {health.active_primary_shards} primary"
        f"   {health.active_shards_percent:.1f}% active"
    )
    moving = Text(
        f"\nRelocating {health.relocating_shards}   "
        f"Initializing {health.initializing_shards}   "
        f"Unassigned {health.unassigned_shards}"
    )
    if health.unassigned_shards:
        moving.stylize("yellow")
    text.append(moving)
    return text


def details_lines(details: DetailState) -> list[Text]:
    """Details overlay content, one Text per line."""
    if details.loading:
        return [Text(f"Loading details for {details.index_name}...", style="dim")]
    if details.error:
        return [Text(details.error, style="bold red")]
    d = details.data
    if d is None:
        return []

    def row(label: str, value: Any, style: str = "") -> Text:
        line = Text(f"{label:<18}", style="bold")
        line.append("-" if value is None or value == "" else str(value), style=style)
        return line

    lines = [
        row("Index", d.name, "cyan"),
        row("Provided name", d.provided_name),
        row("UUID", d.uuid),
        row("Created", d.creation_date),
        row("Health", d.health, health_style(d.health or "")),
        row("Status", d.status),
        row("Documents", format_number(d.doc_count)),
        row("Indexing rate", f"{format_number(d.rate_per_sec)}/s"),
        row("Size (primaries)", format_bytes(d.size_bytes)),
        row("Shards", f"{d.primary_shards} primary, {d.replica_shards} replica"),
        row("Segments", d.total_segments),
        row("Frozen", "yes" if d.is_frozen else "no"),
        row("Partial", "yes" if d.is_partial else "no"),
        row("ILM policy", d.ilm_policy),
        row("ILM phase", d.ilm_phase),
        row("Templates", ", ".join(d.templates) if d.templates else None),
    ]
    if d.data_stream is not None:
        ds = d.data_stream
        lines.append(Text(""))
        lines.append(Text("Data stream", style="bold underline"))
        lines.append(row("Name", ds.name, "cyan"))
        lines.append(row("Timestamp field", ds.timestamp_field))
        lines.append(row("Generation", ds.generation))
        lines.append(
            row(
                "Backing index",
                f"{ds.backing_index_position} of {ds.total_backing_indices}"
                + (" (write index)" if ds.is_write_index else ""),
            )
        )
        lines.append(row("Template", ds.template))
        lines.append(row("Retention", ds.data_retention))
    if d.shard_allocation:
        lines.append(Text(""))
        lines.append(Text("Shard allocation", style="bold underline"))
        for shard in sorted(d.shard_allocation, key=lambda s: (s.shard_id, not s.primary)):
            kind = "P" if shard.primary else "R"
            docs = format_number(shard.docs) if shard.docs is not None else "-"
            style = "" if shard.state == "STARTED" else "yellow"
            lines.append(
                Text(
                    f"  {shard.shard_id:>3} {kind} {shard.state:<12} {shard.node:<24} "
                    f"{docs:>8} {shard.size or '-':>10}",
                    style=style,
                )
            )
    return lines


def window(lines: list, scroll: int, height: int) -> list:
    """Slice ``lines`` for display, clamping the stored scroll offset to the content."""
    height = max(1, height)
    start = min(scroll, max(0, len(lines) - height))
    return lines[start : start + height]


def column_values(column: SortColumn, indices: list[IndexRate]) -> list[float]:
    if column is SortColumn.DOC_COUNT:
        return [float(i.doc_count) for i in indices]
    if column is SortColumn.SIZE:
        return [float(i.size_bytes) for i in indices]
    return [i.rate_per_sec for i in indices]


# ─────────────────────────────────────────────────────────────────────────────
# Widgets
# ─────────────────────────────────────────────────────────────────────────────


class HeaderBar(Static):
    """URL, total indexing rate (or the last error) and the clock."""

    DEFAULT_CSS = """
    HeaderBar {
        height: 1;
        padding: 0 1;
        background: $boost;
    }
    """

    def update_from(self, dash: Dashboard) -> None:
        text = Text()
        text.append("esticli ", style="bold cyan")
        text.append(dash.client.url, style="dim")
        text.append("   ")
        if dash.error:
            text.append(dash.error, style="bold red")
        else:
            text.append(f"{dash.total_cluster_rate_human()}/s", style="bold")
            text.append(" indexing", style="dim")
        if dash.paused:
            text.append("   PAUSED", style="bold yellow")
        text.append(f"   {datetime.now().strftime('%H:%M:%S')}", style="dim")
        self.update(text)


class RateChart(Static):
    """Cluster-wide indexing rate over the last polls."""

    DEFAULT_CSS = """
    RateChart {
        height: 8;
        border: solid $primary;
        border-title-align: left;
    }
    """

    def compose(self) -> ComposeResult:
        yield Sparkline(id="sparkline")

    def update_from(self, dash: Dashboard) -> None:
        points = dash.rate_history.points
        peak = format_number(dash.rate_history.peak)
        self.border_title = f"INDEXING RATE  peak {peak}/s  ({dash.colormap})"
        try:
            sparkline = self.query_one("#sparkline", Sparkline)
        except NoMatches:
            return
        sparkline.color_func = dash.colormap.color_at
        if sparkline.data != points:
            sparkline.data = points


class HealthPanel(Static):
    DEFAULT_CSS = """
    HealthPanel {
        height: 6;
        padding: 0 1;
        border: solid $primary;
        border-title-align: left;
    }
    """

    def on_mount(self) -> None:
        self.border_title = "CLUSTER"

    def update_from(self, dash: Dashboard) -> None:
        if dash.cluster_health is not None:
            color = _BORDER_COLORS.get(dash.cluster_health.status.lower())
            if color:
                self.styles.border = ("solid", color)
        self.update(health_lines(dash.cluster_health))


class IndexTable(Static):
    """Visible indices with the selection cursor.

    The DataTable is only rebuilt when what it shows has changed.
    """

    DEFAULT_CSS = """
    IndexTable {
        height: 1fr;
        border: solid $primary;
        border-title-align: left;
    }

    IndexTable DataTable {
        width: 100%;
        height: 100%;
    }
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._table: DataTable | None = None
        self._signature: tuple | None = None

    def compose(self) -> ComposeResult:
        table: DataTable = DataTable(id="index-table", zebra_stripes=True, cursor_type="row")
        table.can_focus = False
        yield table

    def on_mount(self) -> None:
        self._table = self.query_one("#index-table", DataTable)

    def update_from(self, dash: Dashboard) -> None:
        if self._table is None:
            return
        visible = dash.visible_indices()
        self.border_title = (
            f"INDICES {len(visible)}/{len(dash.indices)}"
            + (f"  excluded {len(dash.excluded)}" if dash.excluded else "")
            + ("  +system" if dash.show_system_indices else "")
        )
        signature = (
            tuple((i.name, i.doc_count, i.size_bytes, i.health, i.rate_per_sec) for i in visible),
            dash.sort.column,
            dash.sort.order,
            dash.colormap,
        )
        if signature != self._signature:
            self._signature = signature
            self._rebuild(dash, visible)

        selected = dash.selected_index
        self._table.show_cursor = selected is not None
        if selected is not None and selected != self._table.cursor_row:
            self._table.move_cursor(row=selected)

    def _rebuild(self, dash: Dashboard, visible: list[IndexRate]) -> None:
        table = self._table
        assert table is not None
        table.clear(columns=True)

        sort = dash.sort
        for column in SortColumn:
            title = column.title
            if column is sort.column:
                title = f"{title} {sort.order.arrow}"
            table.add_column(title, key=column.value)

        values = column_values(sort.column, visible)
        peak = max(values, default=0.0)
        for index, value in zip(visible, values):
            shade = dash.colormap.color_at(value / peak) if peak > 0 else "dim"
            cells = {
                SortColumn.NAME: Text(index.name),
                SortColumn.DOC_COUNT: Text(index.doc_count_human(), justify="right"),
                SortColumn.RATE: Text(index.rate_human(), justify="right"),
                SortColumn.SIZE: Text(index.size_human(), justify="right"),
                SortColumn.HEALTH: Text(index.health, style=health_style(index.health)),
            }
            if sort.column in (SortColumn.DOC_COUNT, SortColumn.RATE, SortColumn.SIZE):
                cells[sort.column].stylize(shade)
            table.add_row(*(cells[c] for c in SortColumn), key=index.name)


class FilterBar(Static):
    DEFAULT_CSS = """
    FilterBar {
        height: auto;
        padding: 0 1;
    }
    """

    def update_from(self, dash: Dashboard) -> None:
        f = dash.filter
        if not f.active and not f.text:
            self.display = False
            return
        self.display = True
        text = Text("/ ", style="bold cyan")
        if f.active:
            cursor = f.input.cursor
            text.append(f.text[:cursor])
            text.append(f.text[cursor : cursor + 1] or " ", style="reverse")
            text.append(f.text[cursor + 1 :])
        else:
            text.append(f.text, style="dim")
        if f.error:
            text.append(f"\n{f.error}", style="red")
        self.update(text)


class StatusLine(Static):
    """Spinner, fetch duration and the current settings."""

    DEFAULT_CSS = """
    StatusLine {
        height: 1;
        padding: 0 1;
        background: $boost;
    }
    """

    def update_from(self, dash: Dashboard) -> None:
        text = Text()
        text.append(f"{dash.spinner_char()} {dash.fetch_duration_display()}", style="cyan")
        text.append(f"  refresh {dash.refresh_interval}s", style="dim")
        text.append(f"  avg {dash.rate_samples}", style="dim")
        text.append(f"  sort {dash.sort.column.title} {dash.sort.order.arrow}", style="dim")
        if dash.paused:
            text.append("  paused", style="yellow")
        text.append("   ? help  / filter  q quit", style="dim")
        self.update(text)


class Overlay(Static):
    DEFAULT_CSS = """
    Overlay {
        layer: overlay;
        width: 90%;
        height: 80%;
        margin: 2 4;
        padding: 0 1;
        border: round $accent;
        border-title-align: left;
        background: $panel;
        display: none;
    }
    """

    def show_lines(self, title: str, lines: list, scroll: int) -> None:
        self.display = True
        self.border_title = title
        height = self.content_region.height or len(lines)
        text = Text()
        for i, line in enumerate(window(lines, scroll, height)):
            if i > 0:
                text.append("\n")
            text.append(line)
        self.update(text)

    def hide(self) -> None:
        self.display = False


# ─────────────────────────────────────────────────────────────────────────────
# App
# ─────────────────────────────────────────────────────────────────────────────


class EstiCliApp(App):
    """Live Elasticsearch indexing dashboard."""

    CSS = """
    Screen {
        layout: vertical;
        layers: base overlay;
    }
    """

    def __init__(self, dashboard: Dashboard, config: Config | None = None) -> None:
        super().__init__()
        self.dashboard = dashboard
        self.config = config or Config()

    def compose(self) -> ComposeResult:
        yield HeaderBar(id="header")
        yield RateChart(id="chart")
        yield HealthPanel(id="health")
        yield IndexTable(id="indices")
        yield FilterBar(id="filter")
        yield StatusLine(id="status")
        yield Overlay(id="help")
        yield Overlay(id="details")

    def on_mount(self) -> None:
        self.title = "esticli"
        self.set_interval(FRAME_SECONDS, self._frame)

    async def on_unmount(self) -> None:
        await self.dashboard.client.close()

    def _frame(self) -> None:
        self.dashboard.tick()
        self.redraw()

    def on_key(self, event: Key) -> None:
        if self.dashboard.handle_key(event.key, event.character):
            event.stop()
            event.prevent_default()
        if not self.dashboard.running:
            self.exit()
            return
        self.redraw()

    def redraw(self) -> None:
        dash = self.dashboard
        try:
            self.query_one("#header", HeaderBar).update_from(dash)
            chart = self.query_one("#chart", RateChart)
            health = self.query_one("#health", HealthPanel)
            table = self.query_one("#indices", IndexTable)
            self.query_one("#filter", FilterBar).update_from(dash)
            self.query_one("#status", StatusLine).update_from(dash)
            help_overlay = self.query_one("#help", Overlay)
            details_overlay = self.query_one("#details", Overlay)
        except NoMatches:
            return

        chart.display = dash.show_graph
        health.display = dash.show_health
        table.display = dash.show_indices
        if dash.show_graph:
            chart.update_from(dash)
        if dash.show_health:
            health.update_from(dash)
        if dash.show_indices:
            table.update_from(dash)

        if dash.show_help:
            help_overlay.show_lines(
                "HELP", [Text(line) for line in dash.help_lines], dash.help_scroll
            )
        else:
            help_overlay.hide()

        if dash.details.show_popup:
            details_overlay.show_lines(
                f"DETAILS {dash.details.index_name}",
                details_lines(dash.details),
                dash.details.scroll,
            )
        else:
            details_overlay.hide()


def run_tui(dashboard: Dashboard, config: Config | None = None) -> None:
    """Run the TUI application."""
    app = EstiCliApp(dashboard, config)
    app.run()
