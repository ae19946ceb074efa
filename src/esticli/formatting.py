"""Formatting utilities for consistent output across CLI and TUI."""

_SI_SUFFIXES = ("", "K", "M", "B", "T")
_BYTE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")


def format_number(value: float) -> str:
    """Format a count or rate with one decimal and an SI-style suffix.

    Returns:
        "12.0", "1.2K", "3.4M", "5.0B", "1.0T"
    """
    magnitude = abs(value)
    idx = 0
    while magnitude >= 1000 and idx < len(_SI_SUFFIXES) - 1:
        magnitude /= 1000
        value /= 1000
        idx += 1
    return f"{value:.1f}{_SI_SUFFIXES[idx]}"


def format_bytes(size: int) -> str:
    """Format a byte count with binary (1024) steps.

    Returns:
        "512.0 B", "1.5 KB", "3.2 GB"
    """
    value = float(size)
    idx = 0
    while value >= 1024 and idx < len(_BYTE_UNITS) - 1:
        value /= 1024
        idx += 1
    return f"{value:.1f} {_BYTE_UNITS[idx]}"


def format_fetch_duration(seconds: float | None) -> str:
    """Format a fetch duration for the status line, "-" when nothing has been fetched yet."""
    if seconds is None:
        return "-"
    return f"{seconds:.1f}s"
