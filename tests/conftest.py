import sys
import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
from PySide6.QtWidgets import QApplication


@pytest.fixture
def qapp():
    """
    Creates a QApplication for the test function if none exists yet.
    """
    # Use sys.argv to avoid issues on some platforms.
    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv)
    yield app
