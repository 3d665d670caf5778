"""Size images and table grids before they are written as WordprocessingML."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from markdown_docx.model.elements import Image, Table
from markdown_docx.parser.media_extractor import probe_dimensions
from markdown_docx.utils.units import pixels_to_emu

DEFAULT_IMAGE_SIZE = (400, 300)
MAX_IMAGE_WIDTH_PX = 600
MAX_IMAGE_HEIGHT_PX = 450
MIN_IMAGE_WIDTH_PX = 100

# Average glyph advance relative to the font size; good enough for column weighting
AVERAGE_CHAR_WIDTH_EM = 0.55
DEFAULT_CELL_PADDING_TWIPS = 216
MIN_COLUMN_TWIPS = 360

_MARKUP = re.compile(r"[*_~=`^]|\[\^[^\]]+\]|\]\([^)]*\)|[\[\]]")


@dataclass(slots=True)
class ImageExtent:
    """Final drawing size in pixels and EMU."""

    width_px: int
    height_px: int

    @property
    def cx(self) -> int:
        return pixels_to_emu(self.width_px)

    @property
    def cy(self) -> int:
        return pixels_to_emu(self.height_px)


def compute_image_size(
    intrinsic: Optional[Tuple[int, int]],
    explicit_width: Optional[int] = None,
    explicit_height: Optional[int] = None,
) -> Tuple[int, int]:
    """Return the (width, height) in pixels an image is drawn at.

    Both explicit values are used verbatim. With one explicit value the other
    follows the intrinsic aspect ratio. Without any, the intrinsic size is
    clamped to 600 wide and 450 high and raised to at least 100 wide; the
    height cap still holds after that raise, so extreme slivers lose aspect.
    """
    original_width, original_height = intrinsic or DEFAULT_IMAGE_SIZE

    if explicit_width and explicit_height:
        return explicit_width, explicit_height
    if explicit_width:
        return explicit_width, _scaled(explicit_width, original_height, original_width)
    if explicit_height:
        return _scaled(explicit_height, original_width, original_height), explicit_height

    width, height = original_width, original_height
    if width > MAX_IMAGE_WIDTH_PX:
        height = _scaled(MAX_IMAGE_WIDTH_PX, height, width)
        width = MAX_IMAGE_WIDTH_PX
    if height > MAX_IMAGE_HEIGHT_PX:
        width = _scaled(MAX_IMAGE_HEIGHT_PX, width, height)
        height = MAX_IMAGE_HEIGHT_PX
    if width < MIN_IMAGE_WIDTH_PX:
        height = min(_scaled(MIN_IMAGE_WIDTH_PX, height, width), MAX_IMAGE_HEIGHT_PX)
        width = MIN_IMAGE_WIDTH_PX
    return width, height


def _scaled(side: int, numerator: int, denominator: int) -> int:
    """``side * numerator / denominator`` rounded, never below one pixel."""
    return max(1, round(side * numerator / denominator))


class LayoutCalculator:
    """Geometry for drawings and table grids, in the units the writer needs."""

    def __init__(self, font_size_pt: float = 11.0) -> None:
        self._char_width_twips = font_size_pt * AVERAGE_CHAR_WIDTH_EM * 20

    def image_extent(self, image: Image) -> ImageExtent:
        intrinsic = probe_dimensions(image.data) if image.data else None
        width, height = compute_image_size(intrinsic, image.explicit_width, image.explicit_height)
        return ImageExtent(max(width, 1), max(height, 1))

    def table_grid(self, table: Table, available_width: int) -> List[int]:
        """Column widths in twips that fill ``available_width``."""
        column_count = table.column_count
        if column_count <= 0:
            return [available_width]

        min_widths = [0.0] * column_count
        preferred = [0.0] * column_count
        for row in table.rows:
            for index, cell in enumerate(row[:column_count]):
                text = _MARKUP.sub("", cell)
                words = text.split()
                longest_word = max((len(word) for word in words), default=0)
                min_widths[index] = max(min_widths[index], self._text_width(longest_word))
                preferred[index] = max(preferred[index], self._text_width(len(text)))

        min_widths = [max(width, MIN_COLUMN_TWIPS) for width in min_widths]
        preferred = [max(width, minimum) for width, minimum in zip(preferred, min_widths)]
        widths = self._resolve_column_widths(preferred, min_widths, float(available_width))
        return _round_to_total(widths, available_width)

    def _text_width(self, characters: int) -> float:
        return characters * self._char_width_twips + DEFAULT_CELL_PADDING_TWIPS

    def _resolve_column_widths(
        self,
        preferred: List[float],
        min_widths: List[float],
        available_width: float,
    ) -> List[float]:
        column_count = len(preferred)
        column_widths = list(preferred)
        total_width = sum(column_widths)

        if total_width < available_width:
            leftover = available_width - total_width
            weight_sum = sum(preferred)
            for i in range(column_count):
                column_widths[i] += leftover * (preferred[i] / weight_sum)
            return column_widths

        excess = total_width - available_width
        adjustable = [column_widths[i] - min_widths[i] for i in range(column_count)]
        adjustable_sum = sum(value for value in adjustable if value > 0)
        if adjustable_sum > 0:
            for i in range(column_count):
                extra = adjustable[i]
                if extra > 0:
                    column_widths[i] -= min(extra, excess * (extra / adjustable_sum))
        if sum(column_widths) > available_width:
            column_widths = _scale_widths(column_widths, available_width)
        return column_widths


def _scale_widths(widths: Sequence[float], target_width: float) -> List[float]:
    total = sum(widths)
    if total <= 0 or target_width <= 0:
        return list(widths)
    scale = target_width / total
    return [width * scale for width in widths]


def _round_to_total(widths: Sequence[float], total: int) -> List[int]:
    rounded = [int(width) for width in widths]
    if rounded:
        rounded[-1] += total - sum(rounded)
    return rounded
