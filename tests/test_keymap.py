"""Tests for key routing by input mode."""

from esticli.actions import Action
from esticli.keymap import (
    HELP_LINES,
    InputMode,
    current_mode,
    key_token,
    route_key,
)


def test_key_token_prefers_printable_character():
    assert key_token("question_mark", "?") == "?"
    assert key_token("space", " ") == " "
    assert key_token("G", "G") == "G"


def test_key_token_falls_back_to_key_name():
    assert key_token("up", None) == "up"
    assert key_token("enter", "\r") == "enter"
    assert key_token("ctrl+u", "\x15") == "ctrl+u"


class TestModePriority:
    def test_help_wins(self):
        assert current_mode(True, True, True) is InputMode.HELP

    def test_details_over_filter(self):
        assert current_mode(False, True, True) is InputMode.DETAIL

    def test_filter_over_normal(self):
        assert current_mode(False, False, True) is InputMode.FILTER

    def test_normal(self):
        assert current_mode(False, False, False) is InputMode.NORMAL


class TestRouting:
    def test_normal_mode(self):
        assert route_key(InputMode.NORMAL, "q") is Action.QUIT
        assert route_key(InputMode.NORMAL, "escape") is Action.QUIT
        assert route_key(InputMode.NORMAL, "/") is Action.ENTER_FILTER_MODE
        assert route_key(InputMode.NORMAL, "x") is Action.TOGGLE_EXCLUDE
        assert route_key(InputMode.NORMAL, "X") is Action.CLEAR_EXCLUSIONS
        assert route_key(InputMode.NORMAL, "G") is Action.SELECT_LAST
        assert route_key(InputMode.NORMAL, "ctrl+f") is Action.SELECT_PAGE_DOWN
        assert route_key(InputMode.NORMAL, ".") is Action.TOGGLE_SYSTEM_INDICES
        assert route_key(InputMode.NORMAL, " ") is Action.TOGGLE_PAUSE

    def test_refresh_direction(self):
        """+ slows polling down, - speeds it up."""
        assert route_key(InputMode.NORMAL, "+") is Action.DECREASE_REFRESH_RATE
        assert route_key(InputMode.NORMAL, "=") is Action.DECREASE_REFRESH_RATE
        assert route_key(InputMode.NORMAL, "-") is Action.INCREASE_REFRESH_RATE
        assert route_key(InputMode.NORMAL, "_") is Action.INCREASE_REFRESH_RATE

    def test_help_mode(self):
        for token in ("escape", "q", "?", "enter"):
            assert route_key(InputMode.HELP, token) is Action.TOGGLE_HELP
        assert route_key(InputMode.HELP, "j") is Action.HELP_SCROLL_DOWN
        assert route_key(InputMode.HELP, "x") is None

    def test_detail_mode(self):
        for token in ("escape", "enter", "q"):
            assert route_key(InputMode.DETAIL, token) is Action.CLOSE_DETAILS
        assert route_key(InputMode.DETAIL, "pagedown") is Action.DETAILS_SCROLL_PAGE_DOWN
        assert route_key(InputMode.DETAIL, "/") is None

    def test_filter_mode_passes_text_through(self):
        assert route_key(InputMode.FILTER, "ctrl+u") is Action.CLEAR_FILTER
        assert route_key(InputMode.FILTER, "enter") is Action.EXIT_FILTER_MODE
        assert route_key(InputMode.FILTER, "q") is None
        assert route_key(InputMode.FILTER, "x") is None


def test_help_lines_list_bindings_and_examples():
    text = "\n".join(HELP_LINES)
    assert "Exclude selected index" in text
    assert "Clear filter and exit" in text
    assert "select(.doc_count > 1000)" in text
    assert "Close details" in text
