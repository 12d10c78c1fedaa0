from __future__ import annotations

from dataclasses import dataclass
import logging

import numpy as np
from PIL import Image
from PySide6.QtCore import QObject, QPointF, QRectF, QSize, Qt, Signal
from PySide6.QtGui import QColor, QImage, QPainter, QPainterPath, QPen

from sketchpad.core.drawing_context import CIRCLE
from sketchpad.core.flood_fill import flood_fill
from sketchpad.core.pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Stroke:
    """A committed freehand line in document space."""

    points: tuple[QPointF, ...]
    color: QColor
    radius: float


@dataclass(frozen=True)
class Shape:
    """A committed rectangle or circle, stored by its two defining corners."""

    kind: str
    start: QPointF
    end: QPointF
    color: QColor
    line_width: float
    filled: bool = False

    @property
    def rect(self) -> QRectF:
        """Bounding rectangle of the outline in document space."""
        if self.kind == CIRCLE:
            radius = abs(self.end.x() - self.start.x())
            center = QPointF(self.start.x() + radius / 2, self.start.y() + radius / 2)
            return QRectF(center.x() - radius, center.y() - radius, radius * 2, radius * 2)
        return QRectF(self.start, self.end).normalized()

    def is_empty(self) -> bool:
        if self.kind == CIRCLE:
            return self.end.x() == self.start.x()
        return self.end.x() == self.start.x() or self.end.y() == self.start.y()


def draw_shape(painter: QPainter, shape: Shape):
    painter.setRenderHint(QPainter.Antialiasing)
    painter.setPen(QPen(shape.color, shape.line_width))
    painter.setBrush(shape.color if shape.filled else Qt.NoBrush)
    if shape.kind == CIRCLE:
        painter.drawEllipse(shape.rect)
    else:
        painter.drawRect(shape.rect)


def midpoint(p1: QPointF, p2: QPointF) -> QPointF:
    return QPointF(p1.x() + (p2.x() - p1.x()) / 2, p1.y() + (p2.y() - p1.y()) / 2)


def stroke_path(points) -> QPainterPath:
    """Quadratic curve through the midpoints of consecutive points."""
    path = QPainterPath()
    if not points:
        return path
    p1 = points[0]
    p2 = points[1] if len(points) > 1 else points[0]
    path.moveTo(p1)
    for i in range(1, len(points)):
        path.quadTo(p1, midpoint(p1, p2))
        p1 = points[i]
        p2 = points[i + 1] if i + 1 < len(points) else points[i]
    path.lineTo(p1)
    return path


def draw_points(painter: QPainter, points, color: QColor, radius: float):
    if not points:
        return
    painter.setRenderHint(QPainter.Antialiasing)
    if len(points) == 1:
        painter.setPen(Qt.NoPen)
        painter.setBrush(color)
        painter.drawEllipse(points[0], radius, radius)
        return
    pen = QPen(color, radius * 2)
    pen.setCapStyle(Qt.RoundCap)
    pen.setJoinStyle(Qt.RoundJoin)
    painter.setPen(pen)
    painter.setBrush(Qt.NoBrush)
    painter.drawPath(stroke_path(points))


class Document(QObject):
    """
    The drawing surface: a raster of committed paint, the stroke that is
    being drawn, and the history of committed strokes and shapes.
    """

    points_changed = Signal()
    stroke_committed = Signal(object)
    shape_committed = Signal(object)
    image_changed = Signal()
    changed = Signal()

    def __init__(self, width: int, height: int):
        super().__init__()
        self.width = int(width)
        self.height = int(height)
        self.image = self._blank_image(self.width, self.height)
        self.points: list[QPointF] = []
        self.lines: list[Stroke] = []
        self.erased_lines: list[list[Stroke]] = []
        self.shapes: list[Shape] = []
        self.preview_shape: Shape | None = None

    @staticmethod
    def _blank_image(width: int, height: int) -> QImage:
        image = QImage(max(0, width), max(0, height), QImage.Format_ARGB32)
        image.fill(Qt.transparent)
        return image

    @property
    def size(self) -> QSize:
        return QSize(self.width, self.height)

    def clamp_point(self, point: QPointF) -> QPointF:
        return QPointF(
            max(min(point.x(), self.width), 0),
            max(min(point.y(), self.height), 0),
        )

    def add_point(self, point: QPointF) -> bool:
        """Appends *point* to the stroke in progress unless it repeats the last one."""
        if self.points and self.points[-1] == point:
            return False
        self.points.append(QPointF(point))
        self.points_changed.emit()
        return True

    def commit_stroke(self, color: QColor, radius: float) -> Stroke | None:
        """
        Finalizes the stroke in progress and paints it onto the raster.

        Strokes with fewer than 2 points are discarded.
        """
        if len(self.points) < 2:
            logger.debug("Discarding stroke with %d point(s)", len(self.points))
            self.points.clear()
            self.points_changed.emit()
            return None

        stroke = Stroke(tuple(self.points), QColor(color), float(radius))
        self.points.clear()
        self.paint_stroke(stroke)
        self.lines.append(stroke)
        self.points_changed.emit()
        self.stroke_committed.emit(stroke)
        self.changed.emit()
        return stroke

    def set_preview_shape(self, shape: Shape | None):
        self.preview_shape = shape
        self.points_changed.emit()

    def commit_shape(self, shape: Shape) -> Shape | None:
        """Paints *shape* onto the raster. Shapes with no extent are discarded."""
        self.preview_shape = None
        if shape.is_empty():
            logger.debug("Discarding empty %s", shape.kind)
            self.points_changed.emit()
            return None
        painter = QPainter(self.image)
        draw_shape(painter, shape)
        painter.end()
        self.shapes.append(shape)
        self.points_changed.emit()
        self.image_changed.emit()
        self.shape_committed.emit(shape)
        self.changed.emit()
        return shape

    def paint_stroke(self, stroke: Stroke):
        painter = QPainter(self.image)
        draw_points(painter, stroke.points, stroke.color, stroke.radius)
        painter.end()
        self.image_changed.emit()

    def read_buffer(self) -> PixelBuffer:
        return PixelBuffer.from_qimage(self.image)

    def write_buffer(self, buffer: PixelBuffer):
        buffer.write_to(self.image)
        self.image_changed.emit()

    def fill(self, x: int, y: int, color, tolerance: float = 0) -> int:
        """Flood fills the raster at pixel (x, y); see :func:`flood_fill`."""
        buffer = self.read_buffer()
        painted = flood_fill(buffer, x, y, color, tolerance)
        if painted:
            self.write_buffer(buffer)
            self.changed.emit()
        return painted

    def clear(self):
        self.erased_lines = []
        self._clear_except_erased_lines()

    def erase_all(self):
        self.erased_lines.append(list(self.lines))
        self._clear_except_erased_lines()
        self.changed.emit()

    def _clear_except_erased_lines(self):
        self.lines = []
        self.shapes = []
        self.preview_shape = None
        self.points.clear()
        self.image.fill(Qt.transparent)
        self.points_changed.emit()
        self.image_changed.emit()

    def resize(self, width: int, height: int):
        """Resizes the raster, keeping existing paint anchored at the top-left."""
        width = int(width)
        height = int(height)
        if (width, height) == (self.width, self.height):
            return
        resized = self._blank_image(width, height)
        painter = QPainter(resized)
        painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_Source)
        painter.drawImage(0, 0, self.image)
        painter.end()
        self.image = resized
        self.width = width
        self.height = height
        self.image_changed.emit()

    def to_pil_image(self, transparent_white: bool = False, background: QColor | None = None) -> Image.Image:
        """Exports the raster, optionally keying out white and adding a backdrop."""
        image = self.read_buffer().to_pil()
        if transparent_white:
            pixels = np.array(image)
            white = (pixels[..., 0] == 255) & (pixels[..., 1] == 255) & (pixels[..., 2] == 255)
            pixels[white, 3] = 0
            image = Image.fromarray(pixels, "RGBA")
        if background is not None:
            backdrop = Image.new("RGBA", image.size, background.getRgb())
            image = Image.alpha_composite(backdrop, image)
        return image
