"""Dashboard state machine.

``Dashboard`` owns everything the screen shows and every rule for changing
it. The TUI drives it with three calls:

- ``tick()`` once per frame: drain finished fetches, advance the spinner,
  start the next poll when it is due
- ``handle_key(key, character)`` for each key press
- read-only accessors (``visible_indices``, ``selected_index``, ...) while
  drawing

Nothing here awaits. Fetches run as background tasks (see ``esticli.fetch``)
and their results are applied on the next tick.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING

import structlog

from esticli.actions import Action
from esticli.colormap import Colormap
from esticli.config import MAX_REFRESH_SECONDS, MIN_REFRESH_SECONDS, Config, clamp_refresh
from esticli.details import DETAILS_PAGE_SIZE, DetailState
from esticli.fetch import Disconnected, Err, Ok, SingleFlight
from esticli.filter import FilterState, QueryEngine
from esticli.formatting import format_fetch_duration, format_number
from esticli.keymap import HELP_LINES, InputMode, current_mode, key_token, route_key
from esticli.models import ClusterHealth, IndexRate, PollResult
from esticli.rates import RateSmoother, RateSnapshotStore, build_rates
from esticli.ringbuffer import RateHistory
from esticli.selection import PAGE_SIZE, SelectionTracker
from esticli.sort import SortSetting
from esticli.view import derive, total_rate

if TYPE_CHECKING:
    from esticli.client import EsClient

log = structlog.get_logger()

SPINNER_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"
IDLE_MARK = "✓"


class Dashboard:
    def __init__(
        self,
        client: EsClient,
        *,
        refresh_interval: int = 5,
        rate_samples: int = 10,
        colormap: Colormap = Colormap.WARM,
        engine: QueryEngine | None = None,
        show_graph: bool = True,
        show_health: bool = True,
        show_indices: bool = True,
        show_system_indices: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.running = True
        self.paused = False
        self.error: str | None = None

        self.refresh_interval = clamp_refresh(refresh_interval)
        self.last_refresh: float | None = None
        self.spinner_frame = 0

        self.indices: list[IndexRate] = []
        self.cluster_health: ClusterHealth | None = None
        self.rate_history = RateHistory()
        self.excluded: set[str] = set()

        self.sort = SortSetting()
        self.filter = FilterState(engine)
        self.selection = SelectionTracker()
        self.details = DetailState()

        self.show_graph = show_graph
        self.show_health = show_health
        self.show_indices = show_indices
        self.show_system_indices = show_system_indices
        self.show_help = False
        self.help_scroll = 0
        self.colormap = colormap

        self._clock = clock
        self._snapshots = RateSnapshotStore()
        self._smoother = RateSmoother(max(1, rate_samples))
        self._poll: SingleFlight[PollResult] = SingleFlight("poll")

    @classmethod
    def from_config(
        cls,
        config: Config,
        client: EsClient,
        engine: QueryEngine | None = None,
    ) -> Dashboard:
        d = config.dashboard
        return cls(
            client,
            refresh_interval=d.refresh_interval,
            rate_samples=d.rate_samples,
            colormap=Colormap.parse(d.colormap),
            engine=engine,
            show_graph=d.show_graph,
            show_health=d.show_health,
            show_indices=d.show_indices,
            show_system_indices=d.show_system_indices,
        )

    # ─────────────────────────────────────────────────────────────────────
    # Read-only state for drawing
    # ─────────────────────────────────────────────────────────────────────

    @property
    def loading(self) -> bool:
        return self._poll.in_flight

    @property
    def selected_index(self) -> int | None:
        return self.selection.index

    @property
    def rate_samples(self) -> int:
        return self._smoother.samples

    @property
    def last_fetch_duration(self) -> float | None:
        return self._poll.last_duration

    @property
    def input_mode(self) -> InputMode:
        return current_mode(self.show_help, self.details.show_popup, self.filter.active)

    @property
    def help_lines(self) -> tuple[str, ...]:
        return HELP_LINES

    def visible_indices(self) -> list[IndexRate]:
        """Indices the table shows, in display order."""
        return derive(self.indices, self.excluded, self.show_system_indices, self.filter.is_match)

    def selected(self) -> IndexRate | None:
        if self.selection.index is None:
            return None
        visible = self.visible_indices()
        if self.selection.index >= len(visible):
            return None
        return visible[self.selection.index]

    def total_cluster_rate(self) -> float:
        """Sum of smoothed rates over the visible indices."""
        return total_rate(self.visible_indices())

    def total_cluster_rate_human(self) -> str:
        return format_number(self.total_cluster_rate())

    def spinner_char(self) -> str:
        return SPINNER_FRAMES[self.spinner_frame] if self.loading else IDLE_MARK

    def fetch_duration_display(self) -> str:
        if self.loading:
            return format_fetch_duration(self._poll.elapsed() or 0.0)
        return format_fetch_duration(self._poll.last_duration)

    # ─────────────────────────────────────────────────────────────────────
    # Periodic poll
    # ─────────────────────────────────────────────────────────────────────

    def should_refresh(self) -> bool:
        if self.paused:
            return False
        if self.last_refresh is None:
            return True
        return self._clock() - self.last_refresh >= self.refresh_interval

    def start_fetch(self) -> bool:
        """Start a poll in the background. No-op while one is in flight."""
        started = self._poll.start(self.client.fetch_poll)
        if started:
            log.debug("fetch_started", url=self.client.url)
        return started

    def poll_fetch_result(self) -> None:
        outcome = self._poll.poll()
        if outcome is None:
            return
        self.last_refresh = self._clock()
        match outcome:
            case Ok(value=result):
                self.apply_poll(result)
                log.debug(
                    "fetch_completed",
                    indices=len(self.indices),
                    duration=self._poll.last_duration,
                )
            case Err(error=e):
                self.error = str(e)
                log.warning("fetch_failed", error=self.error)
            case Disconnected():
                self.error = "Fetch task disconnected"

    def apply_poll(self, result: PollResult) -> None:
        """Replace indices and health with a successful poll result."""
        rows = build_rates(result.snapshot, self._snapshots, self._smoother)
        self.indices = self.sort.sort(rows)
        self.cluster_health = result.health
        self.error = None
        self.rate_history.push(self.total_cluster_rate())
        self._clamp_selection()

    def tick_spinner(self) -> None:
        if self.loading:
            self.spinner_frame = (self.spinner_frame + 1) % len(SPINNER_FRAMES)

    def tick(self) -> None:
        """Per-frame update. Must run inside the event loop."""
        self.poll_fetch_result()
        self.details.poll()
        self.tick_spinner()
        if self.should_refresh() and not self.loading:
            self.start_fetch()

    # ─────────────────────────────────────────────────────────────────────
    # Input
    # ─────────────────────────────────────────────────────────────────────

    def handle_key(self, key: str, character: str | None = None) -> bool:
        """Route one key press. Returns True if it was consumed."""
        mode = self.input_mode
        action = route_key(mode, key_token(key, character))
        if action is not None:
            self.handle_action(action)
            return True
        if mode is InputMode.FILTER:
            self.filter.input.handle_key(key, character)
            self.filter.recompile()
            self._clamp_selection()
            return True
        return False

    def handle_action(self, action: Action) -> None:
        match action:
            case Action.QUIT:
                self.running = False
            case Action.TOGGLE_HELP:
                self.show_help = not self.show_help
                if self.show_help:
                    self.help_scroll = 0
            case Action.HELP_SCROLL_UP:
                self.help_scroll = max(0, self.help_scroll - 1)
            case Action.HELP_SCROLL_DOWN:
                self.help_scroll += 1
            case Action.TOGGLE_PAUSE:
                self.paused = not self.paused
            case Action.SELECT_UP:
                self._move(-1)
            case Action.SELECT_DOWN:
                self._move(1)
            case Action.SELECT_PAGE_UP:
                self._move(-PAGE_SIZE)
            case Action.SELECT_PAGE_DOWN:
                self._move(PAGE_SIZE)
            case Action.SELECT_FIRST:
                self.selection.select_first(len(self.visible_indices()))
            case Action.SELECT_LAST:
                self.selection.select_last(len(self.visible_indices()))
            case Action.NEXT_COLUMN:
                self.sort.next_column()
                self._resort()
            case Action.PREV_COLUMN:
                self.sort.prev_column()
                self._resort()
            case Action.TOGGLE_SORT_ORDER:
                self.sort.toggle_order()
                self._resort()
            case Action.TOGGLE_GRAPH:
                self.show_graph = not self.show_graph
            case Action.TOGGLE_HEALTH:
                self.show_health = not self.show_health
            case Action.TOGGLE_INDICES:
                self.show_indices = not self.show_indices
            case Action.TOGGLE_SYSTEM_INDICES:
                self.show_system_indices = not self.show_system_indices
                self._clamp_selection()
            case Action.ENTER_FILTER_MODE:
                self.filter.enter()
            case Action.EXIT_FILTER_MODE:
                self.filter.exit()
            case Action.CLEAR_FILTER:
                self.filter.clear()
                self._clamp_selection()
            case Action.TOGGLE_EXCLUDE:
                self.toggle_exclude_selected()
            case Action.CLEAR_EXCLUSIONS:
                self.excluded.clear()
                self._clamp_selection()
            case Action.INCREASE_REFRESH_RATE:
                self.refresh_interval = max(MIN_REFRESH_SECONDS, self.refresh_interval - 1)
            case Action.DECREASE_REFRESH_RATE:
                self.refresh_interval = min(MAX_REFRESH_SECONDS, self.refresh_interval + 1)
            case Action.NEXT_COLORMAP:
                self.colormap = self.colormap.next()
            case Action.PREV_COLORMAP:
                self.colormap = self.colormap.prev()
            case Action.SHOW_DETAILS:
                self.show_selected_details()
            case Action.CLOSE_DETAILS:
                self.details.close()
            case Action.DETAILS_SCROLL_UP:
                self.details.scroll_up()
            case Action.DETAILS_SCROLL_DOWN:
                self.details.scroll_down()
            case Action.DETAILS_SCROLL_PAGE_UP:
                self.details.scroll_page_up(DETAILS_PAGE_SIZE)
            case Action.DETAILS_SCROLL_PAGE_DOWN:
                self.details.scroll_page_down(DETAILS_PAGE_SIZE)

    def toggle_exclude_selected(self) -> None:
        index = self.selected()
        if index is None:
            return
        if index.name in self.excluded:
            self.excluded.discard(index.name)
        else:
            self.excluded.add(index.name)
        self._clamp_selection()

    def show_selected_details(self) -> None:
        index = self.selected()
        if index is None:
            return
        self.details.fetch(
            self.client, index.name, index.doc_count, index.rate_per_sec, index.size_bytes
        )

    def _move(self, delta: int) -> None:
        self.selection.move(delta, len(self.visible_indices()))

    def _resort(self) -> None:
        self.indices = self.sort.sort(self.indices)

    def _clamp_selection(self) -> None:
        self.selection.clamp(len(self.visible_indices()))
