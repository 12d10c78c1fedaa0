import logging
import sys

from PySide6.QtWidgets import QApplication

from sketchpad.core.drawing_context import DrawingContext
from sketchpad.core.settings_controller import SettingsController
from sketchpad.ui.main_window import MainWindow


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    q_app = QApplication(sys.argv)
    settings = SettingsController()
    drawing_context = DrawingContext()
    settings.apply_to(drawing_context)
    window = MainWindow(drawing_context, settings)
    window.show()
    return q_app.exec()


if __name__ == "__main__":
    sys.exit(main())
