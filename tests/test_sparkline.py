"""Tests for Sparkline widget."""

from esticli.tui.sparkline import BLOCKS, Sparkline, column_chars, scale_level


class TestSparklineScaling:
    """Tests for value scaling to levels."""

    def test_scale_zero_to_zero_level(self) -> None:
        assert scale_level(0, 100, 1) == 0

    def test_scale_peak_to_max_level(self) -> None:
        """The peak fills every row (height * 8 levels)."""
        assert scale_level(100, 100, 1) == 8
        assert scale_level(100, 100, 2) == 16

    def test_scale_mid_value(self) -> None:
        assert scale_level(50, 100, 2) == 8

    def test_tiny_rate_stays_visible(self) -> None:
        """Any non-zero value gets at least one level."""
        assert scale_level(0.01, 1000, 1) == 1

    def test_no_peak_is_flat(self) -> None:
        assert scale_level(5, 0, 4) == 0


class TestColumnChars:
    def test_full_and_partial_rows(self) -> None:
        assert column_chars(12, 2) == [BLOCKS[8], BLOCKS[4]]

    def test_empty_column(self) -> None:
        assert column_chars(0, 3) == [" ", " ", " "]


def test_sparkline_holds_color_func() -> None:
    sparkline = Sparkline(height=2, color_func=lambda fraction: "#ffffff")
    assert sparkline.color_func(0.5) == "#ffffff"
