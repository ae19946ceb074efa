"""Selected row in the index table.

The selection is a position into the current visible list, never a name.
Whenever the list changes shape the owner calls ``clamp`` with the new
length, which keeps two rules true: nothing is selected exactly when the
list is empty, and a selected position is always in range.
"""

PAGE_SIZE = 20


class SelectionTracker:
    def __init__(self) -> None:
        self.index: int | None = None

    def move(self, delta: int, count: int) -> None:
        """Move by ``delta`` rows, clamped to the list.

        With nothing selected, a downward move lands on the first row and an
        upward move on the last.
        """
        if count == 0:
            self.index = None
            return
        if self.index is None:
            self.index = 0 if delta > 0 else count - 1
            return
        self.index = max(0, min(count - 1, self.index + delta))

    def select_first(self, count: int) -> None:
        if count > 0:
            self.index = 0

    def select_last(self, count: int) -> None:
        if count > 0:
            self.index = count - 1

    def clamp(self, count: int) -> None:
        """Re-fit the selection after the visible list changed length."""
        if count == 0:
            self.index = None
        elif self.index is None:
            self.index = 0
        elif self.index >= count:
            self.index = count - 1
