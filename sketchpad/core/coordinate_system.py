from __future__ import annotations

from dataclasses import dataclass, replace

from PySide6.QtCore import QObject, QPointF, QSizeF, Signal
from PySide6.QtGui import QTransform


@dataclass(frozen=True)
class ViewState:
    """Pan offset (client units) and uniform zoom factor."""

    x: float = 0.0
    y: float = 0.0
    scale: float = 1.0


@dataclass(frozen=True)
class ScaleExtents:
    min: float = 0.33
    max: float = 3.0

    def __post_init__(self):
        if self.min <= 0:
            raise ValueError("Minimum scale must be positive.")
        if self.min > self.max:
            raise ValueError("Minimum scale must not exceed maximum scale.")

    def clamp(self, scale: float) -> float:
        return max(self.min, min(scale, self.max))


@dataclass(frozen=True)
class CanvasBounds:
    canvas_width: float
    canvas_height: float
    view_min: QPointF
    view_max: QPointF


IDENTITY = ViewState()


class CoordinateSystem(QObject):
    """
    Maps points between client space and document space.

    Client space is the host widget's pixel space; document space is the
    pan/zoom independent drawing space. The mapping is
    ``client = document * scale + (x, y)``.

    Every mutating call emits ``view_changed`` exactly once, even when the
    resulting view equals the previous one.
    """

    view_changed = Signal(object)

    def __init__(
        self,
        scale_extents: ScaleExtents | None = None,
        canvas_size: QSizeF | None = None,
        parent=None,
    ):
        super().__init__(parent)
        self._scale_extents = scale_extents or ScaleExtents()
        self._view = IDENTITY
        self.canvas_size = QSizeF(canvas_size) if canvas_size is not None else QSizeF(0, 0)

    @property
    def scale_extents(self) -> ScaleExtents:
        return self._scale_extents

    @scale_extents.setter
    def scale_extents(self, extents: ScaleExtents):
        self._scale_extents = extents

    @property
    def view(self) -> ViewState:
        return self._view

    @property
    def x(self) -> float:
        return self._view.x

    @property
    def y(self) -> float:
        return self._view.y

    @property
    def scale(self) -> float:
        return self._view.scale

    def clamp_scale(self, scale: float) -> float:
        return self._scale_extents.clamp(scale)

    @property
    def transform_matrix(self) -> QTransform:
        view = self._view
        return QTransform(view.scale, 0.0, 0.0, view.scale, view.x, view.y)

    @property
    def inverse_transform_matrix(self) -> QTransform:
        inverted, invertible = self.transform_matrix.inverted()
        if not invertible:
            raise ValueError("View transform is not invertible.")
        return inverted

    def reset_view(self) -> ViewState:
        return self.set_view(IDENTITY)

    def set_view(self, view: ViewState | None = None, **changes) -> ViewState:
        """
        Replaces the view, keeping any component that is not given.

        ``scale`` is clamped to the scale extents; the pan offset is taken as
        is. Accepts either a :class:`ViewState` or ``x``/``y``/``scale``
        keywords.
        """
        base = view if view is not None else self._view
        updated = replace(base, **{k: v for k, v in changes.items() if v is not None})
        self._view = replace(
            updated,
            x=float(updated.x),
            y=float(updated.y),
            scale=self.clamp_scale(float(updated.scale)),
        )
        self.view_changed.emit(self._view)
        return self._view

    def scale_at_client_point(self, delta_scale: float, client_point: QPointF) -> ViewState:
        """
        Changes the scale by *delta_scale* while keeping the document point
        under *client_point* fixed on screen.
        """
        anchor = self.client_point_to_view_point(client_point)
        new_scale = self.clamp_scale(self._view.scale + delta_scale)
        # Translate the anchor to the origin, scale, then translate back.
        new_x = client_point.x() - anchor.x() * new_scale
        new_y = client_point.y() - anchor.y() * new_scale
        if new_scale == self._view.scale:
            new_x = self._view.x
            new_y = self._view.y
        return self.set_view(ViewState(new_x, new_y, new_scale))

    def client_point_to_view_point(self, client_point: QPointF) -> QPointF:
        return self.inverse_transform_matrix.map(QPointF(client_point))

    def view_point_to_client_point(self, view_point: QPointF) -> QPointF:
        return self.transform_matrix.map(QPointF(view_point))

    @property
    def canvas_bounds(self) -> CanvasBounds:
        """The document-space rectangle currently visible on the canvas."""
        width = self.canvas_size.width()
        height = self.canvas_size.height()
        inverse = self.inverse_transform_matrix
        return CanvasBounds(
            canvas_width=width,
            canvas_height=height,
            view_min=inverse.map(QPointF(0, 0)),
            view_max=inverse.map(QPointF(width, height)),
        )
