from PySide6.QtCore import QObject, Signal, Slot
from PySide6.QtGui import QColor

from sketchpad.core.coordinate_system import ScaleExtents


PENCIL = "Pencil"
ERASER = "Eraser"
FLOOD_FILL = "FloodFill"
RECTANGLE = "Rectangle"
CIRCLE = "Circle"
SHAPE_TOOLS = (RECTANGLE, CIRCLE)
TOOLS = (PENCIL, ERASER, FLOOD_FILL) + SHAPE_TOOLS


class DrawingContext(QObject):
    tool_changed = Signal(str)
    brush_color_changed = Signal(QColor)
    brush_radius_changed = Signal(float)
    lazy_radius_changed = Signal(float)
    disabled_changed = Signal(bool)
    enable_pan_and_zoom_changed = Signal(bool)
    zoom_extents_changed = Signal(object)
    fill_tolerance_changed = Signal(float)
    fill_shape_changed = Signal(bool)

    def __init__(self):
        super().__init__()
        self.tool = PENCIL
        self.brush_color = QColor("#db2727")
        self.brush_radius = 10.0
        self.lazy_radius = 0.0
        self.background_color = QColor("white")
        self.disabled = False
        self.enable_pan_and_zoom = False
        self.mouse_zoom_factor = 0.01
        self.zoom_extents = ScaleExtents(0.33, 3.0)
        self.clamp_lines_to_document = False
        self.fill_tolerance = 0.0
        self.fill_shape = False

    @property
    def stroke_color(self) -> QColor:
        """Color the current tool paints strokes with."""
        if self.tool == ERASER:
            return QColor(self.background_color)
        return QColor(self.brush_color)

    @Slot(str)
    def set_tool(self, tool):
        if tool not in TOOLS:
            raise ValueError(f"Unknown tool: {tool}")
        self.tool = tool
        self.tool_changed.emit(self.tool)

    @Slot(QColor)
    def set_brush_color(self, color):
        # This slot can accept a string or a QColor
        self.brush_color = QColor(color)
        self.brush_color_changed.emit(self.brush_color)

    @Slot(float)
    def set_brush_radius(self, radius):
        self.brush_radius = max(0.0, float(radius))
        self.brush_radius_changed.emit(self.brush_radius)

    @Slot(float)
    def set_lazy_radius(self, radius):
        self.lazy_radius = max(0.0, float(radius))
        self.lazy_radius_changed.emit(self.lazy_radius)

    @Slot(bool)
    def set_disabled(self, disabled):
        self.disabled = bool(disabled)
        self.disabled_changed.emit(self.disabled)

    @Slot(bool)
    def set_enable_pan_and_zoom(self, enabled):
        self.enable_pan_and_zoom = bool(enabled)
        self.enable_pan_and_zoom_changed.emit(self.enable_pan_and_zoom)

    def set_zoom_extents(self, minimum: float, maximum: float):
        self.zoom_extents = ScaleExtents(minimum, maximum)
        self.zoom_extents_changed.emit(self.zoom_extents)

    @Slot(float)
    def set_fill_tolerance(self, tolerance):
        self.fill_tolerance = max(0.0, float(tolerance))
        self.fill_tolerance_changed.emit(self.fill_tolerance)

    @Slot(bool)
    def set_fill_shape(self, fill_shape):
        self.fill_shape = bool(fill_shape)
        self.fill_shape_changed.emit(self.fill_shape)
