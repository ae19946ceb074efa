"""Colormaps for gradient visualization.

Each colormap is a list of evenly spaced hex stops approximating the
well-known scientific palettes. ``Colormap.color_at`` maps a normalized
position (0.0-1.0) to a hex color that Rich and Textual accept directly.
"""

from __future__ import annotations

from enum import Enum


def _parse_hex_color(hex_color: str) -> tuple[int, int, int]:
    """Parse a hex color string ("#RRGGBB" or "#RGB") to an RGB tuple."""
    hex_color = hex_color.lstrip("#")
    if len(hex_color) == 3:
        hex_color = "".join(c * 2 for c in hex_color)
    return (
        int(hex_color[0:2], 16),
        int(hex_color[2:4], 16),
        int(hex_color[4:6], 16),
    )


def _rgb_to_hex(r: int, g: int, b: int) -> str:
    return f"#{r:02x}{g:02x}{b:02x}"


def _lerp_color(
    color1: tuple[int, int, int],
    color2: tuple[int, int, int],
    t: float,
) -> tuple[int, int, int]:
    """Linearly interpolate between two RGB colors (t=0 is color1, t=1 is color2)."""
    t = max(0.0, min(1.0, t))
    return (
        int(color1[0] + (color2[0] - color1[0]) * t),
        int(color1[1] + (color2[1] - color1[1]) * t),
        int(color1[2] + (color2[2] - color1[2]) * t),
    )


class GradientColor:
    """A color gradient that interpolates between color stops.

    Example:
        ```python
        gradient = GradientColor([
            (0, "#50fa7b"),
            (50, "#f1fa8c"),
            (100, "#ff5555"),
        ])
        color = gradient(35)  # interpolated green-yellow
        ```
    """

    def __init__(self, stops: list[tuple[float, str]]) -> None:
        if len(stops) < 2:
            raise ValueError("Gradient requires at least 2 color stops")
        self._stops = sorted(stops, key=lambda s: s[0])
        self._parsed: list[tuple[float, tuple[int, int, int]]] = [
            (threshold, _parse_hex_color(color)) for threshold, color in self._stops
        ]

    @classmethod
    def even(cls, colors: list[str]) -> GradientColor:
        """Build a gradient over 0.0-1.0 with colors spaced evenly."""
        last = len(colors) - 1
        return cls([(i / last, color) for i, color in enumerate(colors)])

    def __call__(self, value: float) -> str:
        """Get interpolated hex color for a value."""
        if value <= self._parsed[0][0]:
            return _rgb_to_hex(*self._parsed[0][1])
        if value >= self._parsed[-1][0]:
            return _rgb_to_hex(*self._parsed[-1][1])

        for i in range(len(self._parsed) - 1):
            t1, c1 = self._parsed[i]
            t2, c2 = self._parsed[i + 1]
            if t1 <= value <= t2:
                t = (value - t1) / (t2 - t1) if t2 != t1 else 0.0
                return _rgb_to_hex(*_lerp_color(c1, c2, t))

        return _rgb_to_hex(*self._parsed[-1][1])


_STOPS: dict[str, list[str]] = {
    "inferno": ["#000004", "#420a68", "#932667", "#dd513a", "#fca50a", "#fcffa4"],
    "magma": ["#000004", "#3b0f70", "#8c2981", "#de4968", "#fe9f6d", "#fcfdbf"],
    "plasma": ["#0d0887", "#6a00a8", "#b12a90", "#e16462", "#fca636", "#f0f921"],
    "viridis": ["#440154", "#414487", "#2a788e", "#22a884", "#7ad151", "#fde725"],
    "turbo": ["#30123b", "#4686fb", "#1ae4b6", "#a2fc3c", "#fabb39", "#e4460a", "#7a0403"],
    "spectral": [
        "#9e0142",
        "#d53e4f",
        "#f46d43",
        "#fdae61",
        "#fee08b",
        "#ffffbf",
        "#e6f598",
        "#abdda4",
        "#66c2a5",
        "#3288bd",
        "#5e4fa2",
    ],
    "rainbow": ["#6e40aa", "#fe4b83", "#ff8c38", "#aff05b", "#1ac7c2", "#6e40aa"],
    "cividis": ["#00224e", "#35456c", "#666970", "#948e77", "#c8b866", "#fee838"],
    "warm": ["#6e40aa", "#bf3caf", "#fe4b83", "#ff7847", "#e2b72f", "#aff05b"],
    "cool": ["#6e40aa", "#4c6edb", "#23abd8", "#1ddfa3", "#52f667", "#aff05b"],
}

_GRADIENTS: dict[str, GradientColor] = {
    name: GradientColor.even(colors) for name, colors in _STOPS.items()
}


class Colormap(Enum):
    """Named gradient used for the rate chart and table highlights.

    Member order is the cycling order for ``next``/``prev``.
    """

    INFERNO = "inferno"
    MAGMA = "magma"
    PLASMA = "plasma"
    VIRIDIS = "viridis"
    TURBO = "turbo"
    SPECTRAL = "spectral"
    RAINBOW = "rainbow"
    CIVIDIS = "cividis"
    WARM = "warm"
    COOL = "cool"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: str) -> Colormap:
        """Look up a colormap by case-insensitive name."""
        try:
            return cls(text.lower())
        except ValueError:
            available = ", ".join(c.value for c in cls)
            raise ValueError(f"Unknown colormap '{text}'. Available: {available}") from None

    def next(self) -> Colormap:
        members = list(Colormap)
        return members[(members.index(self) + 1) % len(members)]

    def prev(self) -> Colormap:
        members = list(Colormap)
        return members[(members.index(self) - 1) % len(members)]

    def color_at(self, position: float) -> str:
        """Hex color at ``position`` (clamped to 0.0-1.0); high positions take the palette's start."""
        t = max(0.0, min(1.0, position))
        return _GRADIENTS[self.value](1.0 - t)
