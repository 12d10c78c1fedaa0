import math
import logging

from PySide6.QtWidgets import QWidget
from PySide6.QtGui import QColor, QImage, QPainter, QPen
from PySide6.QtCore import QEvent, QPointF, QSize, QSizeF, Qt, Signal, Slot
from PIL import Image, ImageQt

from sketchpad.commands.canvas_input_handler import CanvasInputHandler
from sketchpad.commands.interaction import CanvasContext
from sketchpad.core.coordinate_system import CoordinateSystem
from sketchpad.core.document import Document, draw_points, draw_shape
from sketchpad.core.lazy_brush import LazyBrush

logger = logging.getLogger(__name__)

CROSSHAIR_SIZE = 15
GRID_BASE_SIZE = 25


class Canvas(QWidget):
    cursor_pos_changed = Signal(QPointF)
    zoom_changed = Signal(float)
    canvas_updated = Signal()

    def __init__(self, drawing_context, settings, parent=None):
        super().__init__(parent)
        self.drawing_context = drawing_context
        self.settings = settings

        width = settings.canvas_width
        height = settings.canvas_height
        self.document = Document(width, height)
        self.coord_system = CoordinateSystem(
            drawing_context.zoom_extents, QSizeF(width, height), parent=self
        )
        self.lazy = LazyBrush(
            radius=drawing_context.lazy_radius,
            initial_point=QPointF(width / 2, height / 2),
        )
        self.canvas_context = CanvasContext(
            coord_system=self.coord_system,
            drawing_context=self.drawing_context,
            document=self.document,
            lazy=self.lazy,
        )
        self.input_handler = CanvasInputHandler(self)
        self.background_image = None

        self.setAttribute(Qt.WA_AcceptTouchEvents)
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.StrongFocus)
        self.resize(width, height)

        self.coord_system.view_changed.connect(self.on_view_changed)
        self.document.points_changed.connect(self.update)
        self.document.image_changed.connect(self.update)
        self.document.changed.connect(self.canvas_updated)
        self.drawing_context.enable_pan_and_zoom_changed.connect(self.on_enable_pan_and_zoom_changed)
        self.drawing_context.zoom_extents_changed.connect(self.on_zoom_extents_changed)
        self.drawing_context.lazy_radius_changed.connect(self.lazy.set_radius)
        self.drawing_context.brush_color_changed.connect(self.update)
        self.drawing_context.brush_radius_changed.connect(self.update)

    def sizeHint(self):
        return QSize(self.settings.canvas_width, self.settings.canvas_height)

    # ------------------------------------------------------------------
    # View
    # ------------------------------------------------------------------
    def reset_view(self):
        return self.coord_system.reset_view()

    def set_view(self, view=None, **changes):
        return self.coord_system.set_view(view, **changes)

    @Slot(object)
    def on_view_changed(self, view):
        self.update()
        self.zoom_changed.emit(view.scale)

    @Slot(bool)
    def on_enable_pan_and_zoom_changed(self, enabled):
        if not enabled:
            self.coord_system.reset_view()

    @Slot(object)
    def on_zoom_extents_changed(self, extents):
        self.coord_system.scale_extents = extents
        # Re-clamp the current scale against the new extents.
        self.coord_system.set_view()

    def get_doc_coords(self, canvas_pos):
        return self.coord_system.client_point_to_view_point(QPointF(canvas_pos))

    def get_canvas_coords(self, doc_pos):
        return self.coord_system.view_point_to_client_point(QPointF(doc_pos))

    # ------------------------------------------------------------------
    # Document
    # ------------------------------------------------------------------
    def clear(self):
        self.document.clear()
        self.reset_view()

    def erase_all(self):
        self.document.erase_all()

    def set_background_image(self, path):
        """Shows the image at *path* under the drawing; ``None`` removes it."""
        if path is None:
            self.background_image = None
            self.update()
            return
        try:
            with Image.open(path) as pil_image:
                self.background_image = QImage(ImageQt.ImageQt(pil_image.convert("RGBA")))
        except OSError as e:
            logger.warning("Could not load background image %s: %s", path, e)
            self.background_image = None
        self.update()

    # ------------------------------------------------------------------
    # Painting
    # ------------------------------------------------------------------
    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), self.settings.background_color)
        painter.setTransform(self.coord_system.transform_matrix)

        if self.background_image is not None:
            painter.drawImage(QPointF(0, 0), self.background_image)
        if not self.settings.hide_grid:
            self._draw_grid(painter)
        painter.drawImage(QPointF(0, 0), self.document.image)
        draw_points(
            painter,
            self.document.points,
            self.drawing_context.stroke_color,
            self.drawing_context.brush_radius,
        )
        if self.document.preview_shape is not None:
            draw_shape(painter, self.document.preview_shape)
        if not self.settings.hide_interface:
            self._draw_interface(painter)
        painter.end()

    def _draw_grid(self, painter):
        bounds = self.coord_system.canvas_bounds
        min_x = math.floor(bounds.view_min.x() / GRID_BASE_SIZE - 1) * GRID_BASE_SIZE
        min_y = math.floor(bounds.view_min.y() / GRID_BASE_SIZE - 1) * GRID_BASE_SIZE
        max_x = bounds.view_max.x() + GRID_BASE_SIZE
        max_y = bounds.view_max.y() + GRID_BASE_SIZE

        pen = QPen(self.settings.grid_color, self.settings.grid_line_width)
        painter.setPen(pen)
        painter.setRenderHint(QPainter.Antialiasing, False)

        if not self.settings.hide_grid_x:
            x = min_x
            while x < max_x:
                x += self.settings.grid_size_x
                painter.drawLine(QPointF(x, min_y), QPointF(x, max_y))

        if not self.settings.hide_grid_y:
            y = min_y
            while y < max_y:
                y += self.settings.grid_size_y
                painter.drawLine(QPointF(min_x, y), QPointF(max_x, y))

    def _draw_interface(self, painter):
        pointer = self.lazy.get_pointer_coordinates()
        painter.setRenderHint(QPainter.Antialiasing)
        painter.setPen(QPen(QColor(self.settings.catenary_color), 2))
        painter.drawLine(
            QPointF(pointer.x() - CROSSHAIR_SIZE, pointer.y()),
            QPointF(pointer.x() + CROSSHAIR_SIZE, pointer.y()),
        )
        painter.drawLine(
            QPointF(pointer.x(), pointer.y() - CROSSHAIR_SIZE),
            QPointF(pointer.x(), pointer.y() + CROSSHAIR_SIZE),
        )

    # ------------------------------------------------------------------
    # Qt events
    # ------------------------------------------------------------------
    def resizeEvent(self, event):
        size = event.size()
        self.coord_system.canvas_size = QSizeF(size)
        self.document.resize(size.width(), size.height())
        super().resizeEvent(event)

    def event(self, event):
        if event.type() in (
            QEvent.TouchBegin,
            QEvent.TouchUpdate,
            QEvent.TouchEnd,
            QEvent.TouchCancel,
        ):
            if self.input_handler.touchEvent(event):
                return True
        return super().event(event)

    def mousePressEvent(self, event):
        self.input_handler.mousePressEvent(event)

    def mouseMoveEvent(self, event):
        self.input_handler.mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        self.input_handler.mouseReleaseEvent(event)

    def wheelEvent(self, event):
        self.input_handler.wheelEvent(event)

    def enterEvent(self, event):
        self.setFocus()
        self.input_handler.enterEvent(event)

    def leaveEvent(self, event):
        self.input_handler.leaveEvent(event)
