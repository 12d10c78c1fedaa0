"""Span-based (scanline) flood fill over a :class:`PixelBuffer`."""

from __future__ import annotations

import logging

import numpy as np

from sketchpad.core.color_utils import color_distance, is_same_color, to_packed
from sketchpad.core.pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)


class SeedOutOfBoundsError(ValueError):
    """The fill seed lies outside the buffer."""

    def __init__(self, x: int, y: int, width: int, height: int):
        super().__init__(f"Seed ({x}, {y}) is outside the {width}x{height} buffer.")
        self.x = x
        self.y = y


def pixel_matcher(color: int, tolerance: float):
    """Predicate telling whether a packed pixel is within *tolerance* of *color*."""
    if tolerance == 0:
        return lambda pixel: int(pixel) == color
    return lambda pixel: color_distance(int(pixel), color) <= tolerance


def flood_fill(buffer: PixelBuffer, x: int, y: int, color, tolerance: float = 0) -> int:
    """
    Repaints the 4-connected region around (x, y) with *color*.

    A pixel belongs to the region when it is within *tolerance* of the seed
    pixel's original color. The buffer is mutated in place and the number of
    repainted pixels is returned; 0 means the fill was a no-op because the
    new color is indistinguishable from the seed color.

    Raises :class:`SeedOutOfBoundsError` before touching the buffer when the
    seed is outside it.
    """
    if tolerance < 0:
        raise ValueError("Tolerance must be non-negative.")
    x = int(x)
    y = int(y)
    width = buffer.width
    height = buffer.height
    if not buffer.contains(x, y):
        raise SeedOutOfBoundsError(x, y, width, height)

    new_color = to_packed(color)
    replaced_color = buffer.pixel(x, y)
    if is_same_color(replaced_color, new_color, tolerance):
        return 0

    data = buffer.data
    # The new color is further than tolerance from the replaced one, so
    # painted pixels never match again.
    matches = pixel_matcher(replaced_color, tolerance)
    fill_value = np.uint32(new_color)
    painted = 0

    def fill_line_at(column: int, row: int):
        nonlocal painted
        row_data = data[row]
        if not matches(row_data[column]):
            return None
        left = column
        while left > 0 and matches(row_data[left - 1]):
            left -= 1
        right = column
        while right + 1 < width and matches(row_data[right + 1]):
            right += 1
        row_data[left:right + 1] = fill_value
        painted += right - left + 1
        return left, right

    # Each entry is (start, end, row, parent_row).
    queue: list[tuple[int, int, int, int | None]] = [(x, x, y, None)]
    while queue:
        start, end, row, parent_row = queue.pop()
        column = start
        while column <= end:
            span = fill_line_at(column, row)
            if span is None:
                column += 1
                continue
            left, right = span
            if parent_row is not None and left >= start and right <= end:
                # The parent row over this range is already painted.
                if parent_row < row and row + 1 < height:
                    queue.append((left, right, row + 1, row))
                if parent_row > row and row > 0:
                    queue.append((left, right, row - 1, row))
            else:
                if row > 0:
                    queue.append((left, right, row - 1, row))
                if row + 1 < height:
                    queue.append((left, right, row + 1, row))
            column = right + 1

    logger.debug("Flood fill at (%d, %d) repainted %d pixels", x, y, painted)
    return painted
