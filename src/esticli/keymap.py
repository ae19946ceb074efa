"""Key bindings for each input mode, and the help text built from them.

Keys are routed by mode, checked in a fixed priority order: the help overlay,
then the details overlay, then filter editing, then normal navigation. A key
token is the printable character when there is one (``"x"``, ``"X"``,
``"?"``, ``" "``) and the Textual key name otherwise (``"up"``, ``"enter"``,
``"ctrl+u"``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from esticli.actions import Action


class InputMode(Enum):
    NORMAL = "normal"
    FILTER = "filter"
    DETAIL = "detail"
    HELP = "help"


@dataclass(frozen=True)
class Binding:
    keys: tuple[str, ...]
    action: Action
    description: str
    label: str = ""  # How the keys are shown in help; defaults to the keys joined


NORMAL_BINDINGS: tuple[Binding, ...] = (
    Binding(("up", "k"), Action.SELECT_UP, "Move selection up", "↑/k"),
    Binding(("down", "j"), Action.SELECT_DOWN, "Move selection down", "↓/j"),
    Binding(("pageup", "ctrl+b"), Action.SELECT_PAGE_UP, "Page up", "PgUp/^B"),
    Binding(("pagedown", "ctrl+f"), Action.SELECT_PAGE_DOWN, "Page down", "PgDn/^F"),
    Binding(("home", "g"), Action.SELECT_FIRST, "Jump to first index", "Home/g"),
    Binding(("end", "G"), Action.SELECT_LAST, "Jump to last index", "End/G"),
    Binding(("enter",), Action.SHOW_DETAILS, "Show index details", "Enter"),
    Binding(("right", "l"), Action.NEXT_COLUMN, "Sort by next column", "→/l"),
    Binding(("left", "h"), Action.PREV_COLUMN, "Sort by previous column", "←/h"),
    Binding(("r",), Action.TOGGLE_SORT_ORDER, "Reverse sort order"),
    Binding(("/",), Action.ENTER_FILTER_MODE, "Filter indices (jq)"),
    Binding(("x",), Action.TOGGLE_EXCLUDE, "Exclude selected index"),
    Binding(("X",), Action.CLEAR_EXCLUSIONS, "Clear all exclusions"),
    Binding((".",), Action.TOGGLE_SYSTEM_INDICES, "Show/hide system indices"),
    Binding(("1",), Action.TOGGLE_GRAPH, "Toggle rate graph"),
    Binding(("2",), Action.TOGGLE_HEALTH, "Toggle cluster health"),
    Binding(("3",), Action.TOGGLE_INDICES, "Toggle index table"),
    Binding(("+", "="), Action.DECREASE_REFRESH_RATE, "Refresh less often (+1s)", "+/="),
    Binding(("-", "_"), Action.INCREASE_REFRESH_RATE, "Refresh more often (-1s)", "-/_"),
    Binding(("c",), Action.NEXT_COLORMAP, "Next colormap"),
    Binding(("C",), Action.PREV_COLORMAP, "Previous colormap"),
    Binding((" ",), Action.TOGGLE_PAUSE, "Pause/resume refresh", "Space"),
    Binding(("?",), Action.TOGGLE_HELP, "Toggle this help"),
    Binding(("q", "escape"), Action.QUIT, "Quit", "q/Esc"),
)

HELP_BINDINGS: tuple[Binding, ...] = (
    Binding(("escape", "q", "?", "enter"), Action.TOGGLE_HELP, "Close help", "Esc/q/?"),
    Binding(("up", "k"), Action.HELP_SCROLL_UP, "Scroll up", "↑/k"),
    Binding(("down", "j"), Action.HELP_SCROLL_DOWN, "Scroll down", "↓/j"),
)

DETAIL_BINDINGS: tuple[Binding, ...] = (
    Binding(("escape", "enter", "q"), Action.CLOSE_DETAILS, "Close details", "Esc/Enter/q"),
    Binding(("up", "k"), Action.DETAILS_SCROLL_UP, "Scroll up", "↑/k"),
    Binding(("down", "j"), Action.DETAILS_SCROLL_DOWN, "Scroll down", "↓/j"),
    Binding(("pageup",), Action.DETAILS_SCROLL_PAGE_UP, "Page up", "PgUp"),
    Binding(("pagedown",), Action.DETAILS_SCROLL_PAGE_DOWN, "Page down", "PgDn"),
)

FILTER_BINDINGS: tuple[Binding, ...] = (
    Binding(("ctrl+u",), Action.CLEAR_FILTER, "Clear filter and exit", "^U"),
    Binding(("escape", "enter"), Action.EXIT_FILTER_MODE, "Keep filter and exit", "Esc/Enter"),
)


def _table(bindings: tuple[Binding, ...]) -> dict[str, Action]:
    table: dict[str, Action] = {}
    for binding in bindings:
        for key in binding.keys:
            table[key] = binding.action
    return table


_TABLES: dict[InputMode, dict[str, Action]] = {
    InputMode.HELP: _table(HELP_BINDINGS),
    InputMode.DETAIL: _table(DETAIL_BINDINGS),
    InputMode.FILTER: _table(FILTER_BINDINGS),
    InputMode.NORMAL: _table(NORMAL_BINDINGS),
}


def key_token(key: str, character: str | None) -> str:
    """Normalize a key press to the token used in the binding tables."""
    if character is not None and len(character) == 1 and character.isprintable():
        return character
    return key


def current_mode(help_open: bool, details_open: bool, filter_active: bool) -> InputMode:
    """Pick the mode that owns the keyboard, highest priority first."""
    if help_open:
        return InputMode.HELP
    if details_open:
        return InputMode.DETAIL
    if filter_active:
        return InputMode.FILTER
    return InputMode.NORMAL


def route_key(mode: InputMode, token: str) -> Action | None:
    """Action bound to ``token`` in ``mode``, or None.

    In FILTER mode None means the key belongs to the filter text input.
    """
    return _TABLES[mode].get(token)


FILTER_EXAMPLES: tuple[tuple[str, str], ...] = (
    ('select(.name == "idx-1")', "Exact index name"),
    ('select(.name | contains("test"))', "Name contains text"),
    ('select(.name | startswith("logs-"))', "Name prefix"),
    ("select(.doc_count > 1000)", "More than 1000 documents"),
    ('select(.health != "green")', "Unhealthy indices"),
    ("select(.rate_per_sec > 5)", "Indexing faster than 5/s"),
    ("select(.size_bytes > 1073741824)", "Larger than 1 GB"),
)


def _binding_lines(bindings: tuple[Binding, ...]) -> list[str]:
    return [f"  {b.label or '/'.join(b.keys):<12} {b.description}" for b in bindings]


def help_lines() -> list[str]:
    """Help overlay content, one string per line."""
    lines = ["Keys", ""]
    lines.extend(_binding_lines(NORMAL_BINDINGS))
    lines.extend(["", "While filtering", ""])
    lines.extend(_binding_lines(FILTER_BINDINGS))
    lines.extend(["", "Filter fields: name, doc_count, rate_per_sec, health, size_bytes", ""])
    lines.extend(f"  {expr:<38} {desc}" for expr, desc in FILTER_EXAMPLES)
    lines.extend(["", "In details", ""])
    lines.extend(_binding_lines(DETAIL_BINDINGS))
    return lines


HELP_LINES: tuple[str, ...] = tuple(help_lines())
