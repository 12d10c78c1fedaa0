from __future__ import annotations

import numpy as np
from PIL import Image
from PySide6.QtCore import QRect
from PySide6.QtGui import QImage, QPainter

from sketchpad.core.color_utils import to_packed


class PixelBuffer:
    """
    A width x height raster of packed ``0xAARRGGBB`` colors.

    ``data`` is a ``(height, width)`` numpy ``uint32`` array indexed as
    ``data[y, x]``. The buffer is a plain value: reading it from a QImage
    copies the pixels, and nothing keeps a reference to the source image.
    """

    def __init__(self, data: np.ndarray):
        if not isinstance(data, np.ndarray) or data.ndim != 2:
            raise ValueError("PixelBuffer data must be a 2D numpy array.")
        if data.dtype != np.uint32:
            raise ValueError(f"PixelBuffer data must be uint32, got {data.dtype}.")
        self.data = data

    @classmethod
    def filled(cls, width: int, height: int, color=0) -> "PixelBuffer":
        if width < 0 or height < 0:
            raise ValueError("PixelBuffer dimensions must be non-negative.")
        return cls(np.full((height, width), to_packed(color), dtype=np.uint32))

    @classmethod
    def from_rows(cls, rows) -> "PixelBuffer":
        packed = [[to_packed(color) for color in row] for row in rows]
        if not packed:
            return cls(np.zeros((0, 0), dtype=np.uint32))
        return cls(np.array(packed, dtype=np.uint32))

    @classmethod
    def from_qimage(cls, image: QImage, rect: QRect | None = None) -> "PixelBuffer":
        """Reads *rect* (the whole image by default) as a packed-color buffer."""
        if rect is not None:
            image = image.copy(rect)
        if image.format() != QImage.Format_ARGB32:
            image = image.convertToFormat(QImage.Format_ARGB32)
        width = image.width()
        height = image.height()
        if width == 0 or height == 0:
            return cls(np.zeros((height, width), dtype=np.uint32))
        stride = image.bytesPerLine() // 4
        view = np.frombuffer(image.constBits(), dtype=np.uint32, count=stride * height)
        return cls(view.reshape(height, stride)[:, :width].copy())

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def pixel(self, x: int, y: int) -> int:
        return int(self.data[y, x])

    def set_pixel(self, x: int, y: int, color) -> None:
        self.data[y, x] = to_packed(color)

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.data.copy())

    def to_qimage(self) -> QImage:
        raw = np.ascontiguousarray(self.data).tobytes()
        image = QImage(
            raw,
            self.width,
            self.height,
            self.width * 4,
            QImage.Format_ARGB32,
        )
        # Own the pixels instead of referencing the temporary bytes.
        return image.copy()

    def write_to(self, image: QImage, x: int = 0, y: int = 0) -> None:
        """Writes the buffer back onto *image* with its top-left at (x, y)."""
        painter = QPainter(image)
        painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_Source)
        painter.drawImage(x, y, self.to_qimage())
        painter.end()

    def to_pil(self) -> Image.Image:
        argb = self.data
        rgba = np.empty((self.height, self.width, 4), dtype=np.uint8)
        rgba[..., 0] = (argb >> 16) & 0xFF
        rgba[..., 1] = (argb >> 8) & 0xFF
        rgba[..., 2] = argb & 0xFF
        rgba[..., 3] = (argb >> 24) & 0xFF
        return Image.fromarray(rgba, "RGBA")

    def __eq__(self, other):
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.data.shape == other.data.shape and bool(np.array_equal(self.data, other.data))

    def __repr__(self):
        return f"PixelBuffer({self.width}x{self.height})"
