"""Tests for the dashboard state machine."""

import asyncio

import pytest
from tests.conftest import FakeClient, SubstringEngine, make_index, make_poll, settle

from esticli.actions import Action
from esticli.colormap import Colormap
from esticli.config import Config
from esticli.dashboard import IDLE_MARK, Dashboard
from esticli.errors import TransportError
from esticli.keymap import InputMode
from esticli.sort import SortColumn


def make_dashboard(client=None, **kwargs) -> Dashboard:
    kwargs.setdefault("engine", SubstringEngine())
    return Dashboard(client or FakeClient(), **kwargs)


def three_indices(dash: Dashboard) -> None:
    dash.indices = [make_index("index-1"), make_index("index-2"), make_index("index-3")]


def visible_names(dash: Dashboard) -> list[str]:
    return [i.name for i in dash.visible_indices()]


class TestSelection:
    def test_movement(self):
        dash = make_dashboard()
        three_indices(dash)
        assert dash.selected_index is None

        dash.handle_action(Action.SELECT_DOWN)
        assert dash.selected_index == 0
        dash.handle_action(Action.SELECT_DOWN)
        assert dash.selected_index == 1
        dash.handle_action(Action.SELECT_UP)
        assert dash.selected_index == 0
        dash.handle_action(Action.SELECT_UP)
        assert dash.selected_index == 0

        dash.handle_action(Action.SELECT_LAST)
        assert dash.selected_index == 2
        dash.handle_action(Action.SELECT_DOWN)
        assert dash.selected_index == 2
        dash.handle_action(Action.SELECT_FIRST)
        assert dash.selected_index == 0

    def test_pagination(self):
        dash = make_dashboard()
        three_indices(dash)

        dash.handle_action(Action.SELECT_FIRST)
        dash.handle_action(Action.SELECT_PAGE_DOWN)
        assert dash.selected_index == 2
        dash.handle_action(Action.SELECT_PAGE_UP)
        assert dash.selected_index == 0

    def test_empty_view_has_no_selection(self):
        dash = make_dashboard()
        dash.handle_action(Action.SELECT_DOWN)
        assert dash.selected_index is None
        assert dash.selected() is None


class TestExclusion:
    def test_exclude_selected(self):
        """Excluding the selected row keeps the position, which now points at the next row."""
        dash = make_dashboard()
        three_indices(dash)
        dash.handle_action(Action.SELECT_FIRST)

        dash.handle_action(Action.TOGGLE_EXCLUDE)

        assert "index-1" in dash.excluded
        assert dash.selected_index == 0
        assert dash.selected().name == "index-2"

    def test_excluding_last_row_selects_previous(self):
        dash = make_dashboard()
        three_indices(dash)
        dash.handle_action(Action.SELECT_LAST)

        dash.handle_action(Action.TOGGLE_EXCLUDE)
        assert dash.selected_index == 1

    def test_excluding_only_visible_row_clears_selection(self):
        dash = make_dashboard()
        dash.indices = [make_index("only")]
        dash.handle_action(Action.SELECT_FIRST)

        dash.handle_action(Action.TOGGLE_EXCLUDE)
        assert dash.visible_indices() == []
        assert dash.selected_index is None

    def test_exclude_without_selection_is_noop(self):
        dash = make_dashboard()
        three_indices(dash)
        dash.handle_action(Action.TOGGLE_EXCLUDE)
        assert dash.excluded == set()

    def test_clear_exclusions(self):
        dash = make_dashboard()
        three_indices(dash)
        dash.excluded = {"index-1", "index-2", "index-3"}
        dash.handle_action(Action.CLEAR_EXCLUSIONS)
        assert len(dash.visible_indices()) == 3
        assert dash.selected_index == 0


class TestClusterRate:
    def test_total_follows_visibility(self):
        dash = make_dashboard()
        dash.indices = [
            make_index("A", rate=1.0),
            make_index("B", rate=2.0),
            make_index("C", rate=3.0),
            make_index(".sys", rate=10.0),
        ]
        assert dash.total_cluster_rate() == 6.0

        dash.handle_action(Action.TOGGLE_SYSTEM_INDICES)
        assert dash.total_cluster_rate() == 16.0

        dash.handle_action(Action.TOGGLE_SYSTEM_INDICES)
        dash.handle_action(Action.SELECT_FIRST)
        assert dash.selected().name == "A"
        dash.handle_action(Action.TOGGLE_EXCLUDE)
        assert dash.total_cluster_rate() == 5.0
        assert dash.total_cluster_rate_human() == "5.0"

    def test_hiding_system_indices_reclamps_selection(self):
        dash = make_dashboard(show_system_indices=True)
        dash.indices = [make_index("a"), make_index(".sys")]
        dash.handle_action(Action.SELECT_LAST)
        assert dash.selected_index == 1

        dash.handle_action(Action.TOGGLE_SYSTEM_INDICES)
        assert dash.selected_index == 0


class TestRefreshInterval:
    def test_constructor_clamps(self):
        assert make_dashboard(refresh_interval=0).refresh_interval == 1
        assert make_dashboard(refresh_interval=600).refresh_interval == 60

    def test_faster_stops_at_one_second(self):
        dash = make_dashboard(refresh_interval=2)
        dash.handle_action(Action.INCREASE_REFRESH_RATE)
        assert dash.refresh_interval == 1
        dash.handle_action(Action.INCREASE_REFRESH_RATE)
        assert dash.refresh_interval == 1

    def test_slower_stops_at_sixty_seconds(self):
        dash = make_dashboard(refresh_interval=59)
        dash.handle_action(Action.DECREASE_REFRESH_RATE)
        assert dash.refresh_interval == 60
        dash.handle_action(Action.DECREASE_REFRESH_RATE)
        assert dash.refresh_interval == 60

    def test_should_refresh(self):
        now = [100.0]
        dash = make_dashboard(refresh_interval=5, clock=lambda: now[0])
        assert dash.should_refresh()

        dash.last_refresh = 100.0
        assert not dash.should_refresh()
        now[0] = 105.0
        assert dash.should_refresh()

        dash.handle_action(Action.TOGGLE_PAUSE)
        assert not dash.should_refresh()


class TestKeys:
    def test_quit(self):
        dash = make_dashboard()
        assert dash.handle_key("q", "q")
        assert not dash.running

    def test_escape_quits_in_normal_mode(self):
        dash = make_dashboard()
        dash.handle_key("escape")
        assert not dash.running

    def test_unbound_key_is_not_consumed(self):
        dash = make_dashboard()
        assert not dash.handle_key("z", "z")

    def test_help_mode_captures_keys(self):
        """While help is open, q closes help instead of quitting."""
        dash = make_dashboard()
        dash.handle_key("question_mark", "?")
        assert dash.input_mode is InputMode.HELP

        dash.handle_key("j", "j")
        dash.handle_key("j", "j")
        dash.handle_key("k", "k")
        assert dash.help_scroll == 1

        dash.handle_key("q", "q")
        assert dash.running
        assert not dash.show_help

    def test_reopening_help_resets_scroll(self):
        dash = make_dashboard()
        dash.handle_key("question_mark", "?")
        dash.handle_key("down")
        dash.handle_key("escape")
        dash.handle_key("question_mark", "?")
        assert dash.help_scroll == 0

    def test_sort_keys(self):
        dash = make_dashboard()
        dash.indices = [make_index("b", rate=1.0), make_index("a", rate=2.0)]

        dash.handle_key("right")
        assert dash.sort.column is SortColumn.SIZE
        dash.handle_key("h", "h")
        dash.handle_key("h", "h")
        assert dash.sort.column is SortColumn.DOC_COUNT

        dash.handle_key("left")
        assert dash.sort.column is SortColumn.NAME
        dash.handle_key("r", "r")
        assert visible_names(dash) == ["a", "b"]
        dash.handle_key("r", "r")
        assert visible_names(dash) == ["b", "a"]

    def test_panel_toggles(self):
        dash = make_dashboard()
        dash.handle_key("1", "1")
        dash.handle_key("2", "2")
        dash.handle_key("3", "3")
        assert not dash.show_graph
        assert not dash.show_health
        assert not dash.show_indices

    def test_colormap_cycle(self):
        dash = make_dashboard(colormap=Colormap.WARM)
        dash.handle_key("c", "c")
        assert dash.colormap is Colormap.COOL
        dash.handle_key("c", "c")
        assert dash.colormap is Colormap.INFERNO
        dash.handle_key("C", "C")
        assert dash.colormap is Colormap.COOL

    def test_refresh_keys(self):
        dash = make_dashboard(refresh_interval=5)
        dash.handle_key("plus", "+")
        assert dash.refresh_interval == 6
        dash.handle_key("minus", "-")
        dash.handle_key("underscore", "_")
        assert dash.refresh_interval == 4

    def test_pause_key(self):
        dash = make_dashboard()
        dash.handle_key("space", " ")
        assert dash.paused


class TestFilterMode:
    def test_typing_filters_and_reclamps(self):
        dash = make_dashboard()
        dash.indices = [make_index("metrics-1"), make_index("logs-1"), make_index("logs-2")]
        dash.handle_action(Action.SELECT_LAST)

        dash.handle_key("slash", "/")
        assert dash.input_mode is InputMode.FILTER
        for char in "logs":
            assert dash.handle_key(char, char)

        assert dash.filter.text == "logs"
        assert visible_names(dash) == ["logs-1", "logs-2"]
        assert dash.selected_index == 1

    def test_bound_letters_go_to_the_text(self):
        """q and j are text while filtering, not quit or navigation."""
        dash = make_dashboard()
        dash.handle_key("slash", "/")
        dash.handle_key("q", "q")
        dash.handle_key("j", "j")
        assert dash.running
        assert dash.filter.text == "qj"

    def test_enter_keeps_filter(self):
        dash = make_dashboard()
        dash.indices = [make_index("metrics-1"), make_index("logs-1")]
        dash.handle_key("slash", "/")
        dash.handle_key("l", "l")
        dash.handle_key("enter")

        assert dash.input_mode is InputMode.NORMAL
        assert dash.filter.text == "l"
        assert visible_names(dash) == ["logs-1"]

    def test_ctrl_u_clears_filter(self):
        dash = make_dashboard()
        dash.indices = [make_index("metrics-1"), make_index("logs-1")]
        dash.handle_key("slash", "/")
        dash.handle_key("l", "l")
        dash.handle_key("ctrl+u")

        assert dash.input_mode is InputMode.NORMAL
        assert dash.filter.text == ""
        assert len(dash.visible_indices()) == 2

    def test_compile_error_shows_all_rows(self):
        dash = make_dashboard()
        dash.indices = [make_index("metrics-1"), make_index("logs-1")]
        dash.handle_key("slash", "/")
        dash.handle_key("exclamation_mark", "!")

        assert dash.filter.error is not None
        assert len(dash.visible_indices()) == 2

    def test_backspace_edits_text(self):
        dash = make_dashboard()
        dash.handle_key("slash", "/")
        dash.handle_key("a", "a")
        dash.handle_key("b", "b")
        dash.handle_key("backspace")
        assert dash.filter.text == "a"


class TestPolling:
    @pytest.mark.asyncio
    async def test_tick_fetches_and_applies(self):
        now = [0.0]
        client = FakeClient([make_poll(0.0, a=0, b=0), make_poll(5.0, a=50, b=10)])
        dash = make_dashboard(client, refresh_interval=5, clock=lambda: now[0])

        dash.tick()
        assert dash.loading
        await settle()
        dash.tick()

        assert not dash.loading
        assert [i.rate_per_sec for i in dash.indices] == [0.0, 0.0]
        assert dash.cluster_health is not None
        assert dash.last_refresh == 0.0
        assert dash.selected_index == 0

        now[0] = 5.0
        dash.tick()
        await settle()
        dash.tick()

        # Smoothed over [0, 10] and [0, 2]
        assert [(i.name, i.rate_per_sec) for i in dash.indices] == [("a", 5.0), ("b", 1.0)]
        assert dash.rate_history.points == [0.0, 6.0]
        assert client.poll_calls == 2

    @pytest.mark.asyncio
    async def test_no_refetch_before_interval(self):
        now = [0.0]
        client = FakeClient([make_poll(0.0, a=0)])
        dash = make_dashboard(client, refresh_interval=5, clock=lambda: now[0])

        dash.tick()
        await settle()
        dash.tick()
        now[0] = 4.9
        dash.tick()
        assert not dash.loading
        assert client.poll_calls == 1

    @pytest.mark.asyncio
    async def test_error_keeps_stale_data(self):
        now = [0.0]
        client = FakeClient([make_poll(0.0, a=0), TransportError("refused"), make_poll(10.0, a=0)])
        dash = make_dashboard(client, refresh_interval=1, clock=lambda: now[0])

        dash.tick()
        await settle()
        dash.tick()
        now[0] = 1.0
        dash.tick()
        await settle()
        dash.tick()

        assert dash.error == "Elasticsearch connection failed: refused"
        assert [i.name for i in dash.indices] == ["a"]
        assert dash.last_refresh == 1.0

        now[0] = 2.0
        dash.tick()
        await settle()
        dash.tick()
        assert dash.error is None

    @pytest.mark.asyncio
    async def test_disconnected_task_is_reported(self):
        class DyingClient(FakeClient):
            async def fetch_poll(self):
                raise asyncio.CancelledError()

        dash = make_dashboard(DyingClient())
        dash.tick()
        await settle()
        dash.tick()

        assert dash.error == "Fetch task disconnected"
        assert not dash.loading

    @pytest.mark.asyncio
    async def test_paused_does_not_fetch(self):
        client = FakeClient([make_poll(0.0, a=0)])
        dash = make_dashboard(client)
        dash.handle_key("space", " ")
        dash.tick()
        await settle()
        assert client.poll_calls == 0
        assert dash.spinner_char() == IDLE_MARK
        assert dash.fetch_duration_display() == "-"


class TestDetails:
    @pytest.mark.asyncio
    async def test_enter_opens_details_for_selected(self):
        client = FakeClient()
        dash = make_dashboard(client)
        three_indices(dash)
        dash.handle_action(Action.SELECT_DOWN)
        dash.handle_action(Action.SELECT_DOWN)

        dash.handle_key("enter")
        assert dash.input_mode is InputMode.DETAIL
        assert dash.details.loading

        dash.tick_spinner()
        await settle()
        dash.details.poll()
        assert dash.details.data.name == "index-2"

        dash.handle_key("down")
        assert dash.details.scroll == 1
        dash.handle_key("escape")
        assert dash.input_mode is InputMode.NORMAL
        assert dash.running

    def test_enter_without_selection_is_noop(self):
        dash = make_dashboard()
        dash.handle_key("enter")
        assert not dash.details.show_popup


def test_from_config():
    config = Config()
    config.dashboard.refresh_interval = 7
    config.dashboard.rate_samples = 3
    config.dashboard.colormap = "viridis"
    config.dashboard.show_system_indices = True

    dash = Dashboard.from_config(config, FakeClient(), SubstringEngine())

    assert dash.refresh_interval == 7
    assert dash.rate_samples == 3
    assert dash.colormap is Colormap.VIRIDIS
    assert dash.show_system_indices
    assert dash.help_lines
