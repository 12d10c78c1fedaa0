from __future__ import annotations

from PySide6.QtGui import QColor


def to_packed(color) -> int:
    """
    Returns *color* as a packed ``0xAARRGGBB`` integer (the ``QRgb`` layout).

    Accepts a QColor, a CSS/hex string understood by QColor, an ``(r, g, b)``
    or ``(r, g, b, a)`` tuple, or an already packed integer.
    """
    if isinstance(color, int):
        return color & 0xFFFFFFFF
    if isinstance(color, str):
        qcolor = QColor(color)
        if not qcolor.isValid():
            raise ValueError(f"Unrecognized color: {color!r}")
        return qcolor.rgba() & 0xFFFFFFFF
    if isinstance(color, QColor):
        return color.rgba() & 0xFFFFFFFF
    channels = tuple(color)
    if len(channels) == 3:
        r, g, b = channels
        a = 255
    elif len(channels) == 4:
        r, g, b, a = channels
    else:
        raise ValueError(f"Expected 3 or 4 channels, got {len(channels)}")
    return pack_rgba(r, g, b, a)


def pack_rgba(r: int, g: int, b: int, a: int = 255) -> int:
    return ((a & 0xFF) << 24) | ((r & 0xFF) << 16) | ((g & 0xFF) << 8) | (b & 0xFF)


def unpack_rgba(packed: int) -> tuple[int, int, int, int]:
    return (
        (packed >> 16) & 0xFF,
        (packed >> 8) & 0xFF,
        packed & 0xFF,
        (packed >> 24) & 0xFF,
    )


def color_distance(first: int, second: int) -> int:
    """Largest per-channel difference between two packed colors, alpha included."""
    return max(
        abs(a - b) for a, b in zip(unpack_rgba(first), unpack_rgba(second))
    )


def is_same_color(first: int, second: int, tolerance: float = 0) -> bool:
    return color_distance(first, second) <= tolerance
