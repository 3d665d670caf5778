"""Unit conversion helpers for WordprocessingML measurements."""
from __future__ import annotations

EMU_PER_PIXEL = 9525  # 96 DPI
HALF_POINTS_PER_POINT = 2
LINE_UNITS = 240


def pixels_to_emu(value: float) -> int:
    """Convert screen pixels to English Metric Units."""
    return int(round(value * EMU_PER_PIXEL))


def points_to_half_points(value: float) -> int:
    """Font sizes in run properties are expressed in half-points."""
    return int(round(value * HALF_POINTS_PER_POINT))


def line_height_to_spacing(multiplier: float) -> int:
    """Convert a line-height multiplier into an ``auto`` line value (240ths of a line)."""
    return int(round(multiplier * LINE_UNITS))
