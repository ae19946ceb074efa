"""Discrete actions the dashboard understands."""

from enum import Enum, auto


class Action(Enum):
    QUIT = auto()
    TOGGLE_HELP = auto()
    HELP_SCROLL_UP = auto()
    HELP_SCROLL_DOWN = auto()
    TOGGLE_PAUSE = auto()
    # Navigation
    SELECT_UP = auto()
    SELECT_DOWN = auto()
    SELECT_PAGE_UP = auto()
    SELECT_PAGE_DOWN = auto()
    SELECT_FIRST = auto()
    SELECT_LAST = auto()
    # Sorting
    NEXT_COLUMN = auto()
    PREV_COLUMN = auto()
    TOGGLE_SORT_ORDER = auto()
    # Panels
    TOGGLE_GRAPH = auto()
    TOGGLE_HEALTH = auto()
    TOGGLE_INDICES = auto()
    TOGGLE_SYSTEM_INDICES = auto()
    # Filtering and exclusion
    ENTER_FILTER_MODE = auto()
    EXIT_FILTER_MODE = auto()
    CLEAR_FILTER = auto()
    TOGGLE_EXCLUDE = auto()
    CLEAR_EXCLUSIONS = auto()
    # Refresh interval: "increase rate" polls more often
    INCREASE_REFRESH_RATE = auto()
    DECREASE_REFRESH_RATE = auto()
    NEXT_COLORMAP = auto()
    PREV_COLORMAP = auto()
    # Details overlay
    SHOW_DETAILS = auto()
    CLOSE_DETAILS = auto()
    DETAILS_SCROLL_UP = auto()
    DETAILS_SCROLL_DOWN = auto()
    DETAILS_SCROLL_PAGE_UP = auto()
    DETAILS_SCROLL_PAGE_DOWN = auto()
