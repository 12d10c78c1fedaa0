from PySide6.QtCore import QObject
from PySide6.QtGui import QColor
import configparser
import logging

logger = logging.getLogger(__name__)


class SettingsController(QObject):
    """Manages canvas settings persistence."""

    SECTION = 'Canvas'

    DEFAULT_CANVAS_SETTINGS = {
        "brush_radius": 10.0,
        "brush_color": "#db2727",
        "lazy_radius": 0.0,
        "catenary_color": "#0a0302",
        "grid_color": "#26969696",
        "background_color": "#ffffff",
        "hide_grid": False,
        "grid_size_x": 25,
        "grid_size_y": 25,
        "grid_line_width": 0.5,
        "hide_grid_x": False,
        "hide_grid_y": False,
        "hide_interface": False,
        "enable_pan_and_zoom": False,
        "mouse_zoom_factor": 0.01,
        "zoom_min": 0.33,
        "zoom_max": 3.0,
        "clamp_lines_to_document": False,
        "fill_tolerance": 0.0,
        "fill_shape": False,
        "canvas_width": 400,
        "canvas_height": 400,
    }

    def __init__(self, path='settings.ini'):
        super().__init__()
        self.path = path
        self.config = configparser.ConfigParser()
        try:
            self.config.read(self.path)
        except configparser.Error as e:
            logger.warning("Could not parse %s: %s", self.path, e)
        if not self.config.has_section(self.SECTION):
            self.config.add_section(self.SECTION)

        defaults = self.DEFAULT_CANVAS_SETTINGS
        self.brush_radius = max(0.0, self._get_float('brush_radius'))
        self.brush_color = self._get_color('brush_color')
        self.lazy_radius = max(0.0, self._get_float('lazy_radius'))
        self.catenary_color = self._get_color('catenary_color')
        self.grid_color = self._get_color('grid_color')
        self.background_color = self._get_color('background_color')
        self.hide_grid = self._get_bool('hide_grid')
        self.grid_size_x = max(1, self._get_int('grid_size_x'))
        self.grid_size_y = max(1, self._get_int('grid_size_y'))
        self.grid_line_width = max(0.0, self._get_float('grid_line_width'))
        self.hide_grid_x = self._get_bool('hide_grid_x')
        self.hide_grid_y = self._get_bool('hide_grid_y')
        self.hide_interface = self._get_bool('hide_interface')
        self.enable_pan_and_zoom = self._get_bool('enable_pan_and_zoom')
        self.mouse_zoom_factor = self._get_float('mouse_zoom_factor')
        zoom_min = self._get_float('zoom_min')
        zoom_max = self._get_float('zoom_max')
        if zoom_min <= 0 or zoom_max <= 0:
            zoom_min, zoom_max = defaults['zoom_min'], defaults['zoom_max']
        if zoom_min > zoom_max:
            zoom_min, zoom_max = zoom_max, zoom_min
        self.zoom_min = zoom_min
        self.zoom_max = zoom_max
        self.clamp_lines_to_document = self._get_bool('clamp_lines_to_document')
        self.fill_tolerance = max(0.0, self._get_float('fill_tolerance'))
        self.fill_shape = self._get_bool('fill_shape')
        self.canvas_width = max(1, self._get_int('canvas_width'))
        self.canvas_height = max(1, self._get_int('canvas_height'))
        self._sync_canvas_settings_to_config()

    def _get_bool(self, option):
        try:
            return self.config.getboolean(self.SECTION, option)
        except (configparser.NoOptionError, ValueError):
            return bool(self.DEFAULT_CANVAS_SETTINGS[option])

    def _get_int(self, option):
        try:
            return self.config.getint(self.SECTION, option)
        except (configparser.NoOptionError, ValueError):
            return int(self.DEFAULT_CANVAS_SETTINGS[option])

    def _get_float(self, option):
        try:
            return self.config.getfloat(self.SECTION, option)
        except (configparser.NoOptionError, ValueError):
            return float(self.DEFAULT_CANVAS_SETTINGS[option])

    def _get_color(self, option):
        value = self.config.get(
            self.SECTION, option, fallback=self.DEFAULT_CANVAS_SETTINGS[option]
        )
        color = QColor(value)
        if not color.isValid():
            color = QColor(self.DEFAULT_CANVAS_SETTINGS[option])
        return color

    def _sync_canvas_settings_to_config(self):
        for option in self.DEFAULT_CANVAS_SETTINGS:
            value = getattr(self, option)
            if isinstance(value, QColor):
                value = value.name(QColor.HexArgb)
            elif isinstance(value, bool):
                value = 'true' if value else 'false'
            self.config.set(self.SECTION, option, str(value))

    def apply_to(self, drawing_context):
        """Push the loaded values into a live :class:`DrawingContext`."""
        drawing_context.set_brush_color(self.brush_color)
        drawing_context.set_brush_radius(self.brush_radius)
        drawing_context.set_lazy_radius(self.lazy_radius)
        drawing_context.background_color = QColor(self.background_color)
        drawing_context.mouse_zoom_factor = self.mouse_zoom_factor
        drawing_context.clamp_lines_to_document = self.clamp_lines_to_document
        drawing_context.set_zoom_extents(self.zoom_min, self.zoom_max)
        drawing_context.set_fill_tolerance(self.fill_tolerance)
        drawing_context.set_fill_shape(self.fill_shape)
        drawing_context.set_enable_pan_and_zoom(self.enable_pan_and_zoom)

    def save_settings(self):
        """Persist settings to disk."""
        try:
            self._sync_canvas_settings_to_config()
            with open(self.path, 'w') as configfile:
                self.config.write(configfile)
        except OSError as e:
            logger.error("Could not write to %s: %s", self.path, e)
