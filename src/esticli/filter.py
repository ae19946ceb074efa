"""Live filter for the index table.

The filter text is a query in an external query language. It is compiled
once per edit and the compiled predicate is cached, so drawing a frame only
evaluates it. While the text is empty or fails to compile, every index
matches and the compile error (if any) is shown under the table.

The query language sits behind ``QueryEngine``. The default is jq: each index
is handed to the program as an object with ``name``, ``doc_count``,
``rate_per_sec``, ``size_bytes`` and ``health``, and it matches when the
program yields at least one value that is neither ``false`` nor ``null``:

    select(.doc_count > 1000)
    select(.health != "green")
    .name | startswith("logs-")
"""

from __future__ import annotations

from typing import Any, Protocol

import jq
import structlog

from esticli.errors import FilterCompileError

log = structlog.get_logger()


class CompiledQuery(Protocol):
    def matches(self, item: dict[str, Any]) -> bool: ...


class QueryEngine(Protocol):
    def compile(self, text: str) -> CompiledQuery:
        """Compile ``text`` or raise FilterCompileError."""
        ...


class JqQuery:
    """A compiled jq program."""

    def __init__(self, program: Any) -> None:
        self._program = program

    def matches(self, item: dict[str, Any]) -> bool:
        # Stop at the first truthy output; programs like repeat(.) never end
        try:
            for value in self._program.input_value(item):
                if value is not None and value is not False:
                    return True
        except ValueError:
            # Runtime errors (e.g. comparing mismatched types) do not hide rows
            return True
        return False


class JqEngine:
    """QueryEngine backed by the ``jq`` library."""

    def compile(self, text: str) -> JqQuery:
        try:
            return JqQuery(jq.compile(text))
        except ValueError as e:
            raise FilterCompileError(str(e).strip()) from e


class LineInput:
    """Single-line text editor with a cursor (character offset)."""

    def __init__(self, text: str = "") -> None:
        self.text = text
        self.cursor = len(text)

    def __str__(self) -> str:
        return self.text

    def set(self, text: str) -> None:
        self.text = text
        self.cursor = len(text)

    def clear(self) -> None:
        self.set("")

    def insert(self, char: str) -> None:
        self.text = self.text[: self.cursor] + char + self.text[self.cursor :]
        self.cursor += len(char)

    def backspace(self) -> None:
        if self.cursor > 0:
            self.text = self.text[: self.cursor - 1] + self.text[self.cursor :]
            self.cursor -= 1

    def delete(self) -> None:
        if self.cursor < len(self.text):
            self.text = self.text[: self.cursor] + self.text[self.cursor + 1 :]

    def delete_word_back(self) -> None:
        start = self._word_start(self.cursor)
        self.text = self.text[:start] + self.text[self.cursor :]
        self.cursor = start

    def left(self) -> None:
        self.cursor = max(0, self.cursor - 1)

    def right(self) -> None:
        self.cursor = min(len(self.text), self.cursor + 1)

    def word_left(self) -> None:
        self.cursor = self._word_start(self.cursor)

    def word_right(self) -> None:
        pos = self.cursor
        n = len(self.text)
        while pos < n and not self.text[pos].isalnum():
            pos += 1
        while pos < n and self.text[pos].isalnum():
            pos += 1
        self.cursor = pos

    def home(self) -> None:
        self.cursor = 0

    def end(self) -> None:
        self.cursor = len(self.text)

    def _word_start(self, pos: int) -> int:
        while pos > 0 and not self.text[pos - 1].isalnum():
            pos -= 1
        while pos > 0 and self.text[pos - 1].isalnum():
            pos -= 1
        return pos

    def handle_key(self, key: str, character: str | None = None) -> bool:
        """Apply one key press. Returns True if the text or cursor changed.

        ``key`` is a Textual key name; ``character`` is the printable
        character for the press, if any.
        """
        edits = {
            "backspace": self.backspace,
            "ctrl+h": self.backspace,
            "delete": self.delete,
            "ctrl+w": self.delete_word_back,
            "left": self.left,
            "right": self.right,
            "ctrl+left": self.word_left,
            "ctrl+right": self.word_right,
            "home": self.home,
            "ctrl+a": self.home,
            "end": self.end,
            "ctrl+e": self.end,
        }
        edit = edits.get(key)
        if edit is not None:
            before = (self.text, self.cursor)
            edit()
            return (self.text, self.cursor) != before
        if character is not None and len(character) == 1 and character.isprintable():
            self.insert(character)
            return True
        return False


class FilterState:
    """Filter text, editing mode and the cached compiled predicate."""

    def __init__(self, engine: QueryEngine | None = None) -> None:
        self.engine: QueryEngine = engine if engine is not None else JqEngine()
        self.input = LineInput()
        self.active = False
        self.error: str | None = None
        self._compiled: CompiledQuery | None = None

    @property
    def text(self) -> str:
        return self.input.text

    @property
    def has_predicate(self) -> bool:
        return self._compiled is not None

    def enter(self) -> None:
        self.active = True

    def exit(self) -> None:
        self.active = False

    def clear(self) -> None:
        """Drop the filter entirely and leave editing mode."""
        self.input.clear()
        self.error = None
        self._compiled = None
        self.active = False

    def set_text(self, text: str) -> None:
        self.input.set(text)

    def recompile(self) -> None:
        text = self.input.text
        if not text:
            self.error = None
            self._compiled = None
            return
        try:
            compiled = self.engine.compile(text)
        except FilterCompileError as e:
            log.debug("filter_compile_failed", text=text, error=str(e))
            self.error = str(e)
            self._compiled = None
            return
        self.error = None
        self._compiled = compiled

    def is_match(self, item: Any) -> bool:
        """True if ``item`` passes the filter; everything passes without a predicate."""
        if self._compiled is None:
            return True
        return self._compiled.matches(item.to_dict())
