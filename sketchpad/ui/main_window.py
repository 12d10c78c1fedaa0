from PySide6.QtGui import QAction, QActionGroup, QColor
from PySide6.QtWidgets import QColorDialog, QFileDialog, QLabel, QMainWindow, QToolBar

from sketchpad.core.drawing_context import TOOLS
from sketchpad.ui.canvas import Canvas


class MainWindow(QMainWindow):
    def __init__(self, drawing_context, settings):
        super().__init__()
        self.setWindowTitle("Sketchpad")
        self.drawing_context = drawing_context
        self.settings = settings

        self.canvas = Canvas(drawing_context, settings, self)
        self.setCentralWidget(self.canvas)

        self.zoom_label = QLabel("100%")
        self.statusBar().addPermanentWidget(self.zoom_label)
        self.canvas.zoom_changed.connect(self.update_zoom_label)

        self._build_tool_bar()

    def _build_tool_bar(self):
        tool_bar = QToolBar("Tools", self)
        self.addToolBar(tool_bar)

        group = QActionGroup(self)
        group.setExclusive(True)
        self.tool_actions = {}
        for tool in TOOLS:
            action = QAction(tool, self, checkable=True)
            action.setChecked(tool == self.drawing_context.tool)
            action.triggered.connect(lambda checked, name=tool: self.drawing_context.set_tool(name))
            group.addAction(action)
            tool_bar.addAction(action)
            self.tool_actions[tool] = action
        self.drawing_context.tool_changed.connect(self.on_tool_changed)

        tool_bar.addSeparator()
        color_action = QAction("Color...", self)
        color_action.triggered.connect(self.choose_color)
        tool_bar.addAction(color_action)

        fill_shape_action = QAction("Fill Shapes", self, checkable=True)
        fill_shape_action.setChecked(self.drawing_context.fill_shape)
        fill_shape_action.toggled.connect(self.drawing_context.set_fill_shape)
        tool_bar.addAction(fill_shape_action)

        pan_zoom_action = QAction("Pan && Zoom", self, checkable=True)
        pan_zoom_action.setChecked(self.drawing_context.enable_pan_and_zoom)
        pan_zoom_action.toggled.connect(self.drawing_context.set_enable_pan_and_zoom)
        tool_bar.addAction(pan_zoom_action)

        reset_view_action = QAction("Reset View", self)
        reset_view_action.triggered.connect(self.canvas.reset_view)
        tool_bar.addAction(reset_view_action)

        clear_action = QAction("Clear", self)
        clear_action.triggered.connect(self.canvas.clear)
        tool_bar.addAction(clear_action)

        background_action = QAction("Background...", self)
        background_action.triggered.connect(self.choose_background)
        tool_bar.addAction(background_action)

    def on_tool_changed(self, tool):
        action = self.tool_actions.get(tool)
        if action is not None:
            action.setChecked(True)

    def update_zoom_label(self, scale):
        self.zoom_label.setText(f"{round(scale * 100)}%")

    def choose_color(self):
        color = QColorDialog.getColor(QColor(self.drawing_context.brush_color), self)
        if color.isValid():
            self.drawing_context.set_brush_color(color)

    def choose_background(self):
        path, _ = QFileDialog.getOpenFileName(
            self, "Open Background Image", "", "Images (*.png *.jpg *.jpeg *.bmp)"
        )
        if path:
            self.canvas.set_background_image(path)

    def closeEvent(self, event):
        self.settings.brush_color = QColor(self.drawing_context.brush_color)
        self.settings.brush_radius = self.drawing_context.brush_radius
        self.settings.enable_pan_and_zoom = self.drawing_context.enable_pan_and_zoom
        self.settings.fill_shape = self.drawing_context.fill_shape
        self.settings.save_settings()
        super().closeEvent(event)
