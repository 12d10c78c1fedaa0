from __future__ import annotations

import math

from PySide6.QtCore import QPointF


class LazyBrush:
    """
    Pointer smoothing filter.

    The brush trails the pointer on an imaginary string of length ``radius``:
    it only moves once the pointer pulls the string taut, and then just far
    enough to keep the string at that length. With a radius of 0 the brush
    follows the pointer exactly.
    """

    def __init__(self, radius: float = 0.0, enabled: bool = True, initial_point: QPointF | None = None):
        self.radius = float(radius)
        self._enabled = enabled
        start = QPointF(initial_point) if initial_point is not None else QPointF(0, 0)
        self.pointer = QPointF(start)
        self.brush = QPointF(start)
        self._has_moved = False

    def is_enabled(self) -> bool:
        return self._enabled

    def enable(self):
        self._enabled = True

    def disable(self):
        self._enabled = False

    def set_radius(self, radius: float):
        self.radius = float(radius)

    def get_pointer_coordinates(self) -> QPointF:
        return QPointF(self.pointer)

    def get_brush_coordinates(self) -> QPointF:
        return QPointF(self.brush)

    def brush_has_moved(self) -> bool:
        return self._has_moved

    def update(self, point: QPointF, both: bool = False) -> bool:
        """
        Moves the pointer to *point* and drags the brush along.

        ``both`` pins the brush to the pointer. Returns whether the brush
        moved.
        """
        self._has_moved = False
        if self.pointer == point and not both:
            return False
        self.pointer = QPointF(point)

        if both or not self._enabled:
            self._has_moved = self.brush != self.pointer
            self.brush = QPointF(self.pointer)
            return self._has_moved

        dx = self.pointer.x() - self.brush.x()
        dy = self.pointer.y() - self.brush.y()
        distance = math.hypot(dx, dy)
        if distance > self.radius:
            ratio = (distance - self.radius) / distance
            self.brush = QPointF(self.brush.x() + dx * ratio, self.brush.y() + dy * ratio)
            self._has_moved = True
        return self._has_moved
