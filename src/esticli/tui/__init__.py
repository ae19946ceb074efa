"""Terminal UI for esticli."""

from esticli.tui.app import run_tui

__all__ = ["run_tui"]
