"""
Application themes.

Highlight faces carry their own colors, so a theme only changes the
window chrome and the editor background behind them.
"""

from __future__ import annotations

import logging
from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QColor, QPalette
from PyQt6.QtWidgets import QApplication, QStyleFactory

from hilock.services.settings import Theme


def setup_theme(app: QApplication, theme: Optional[Theme] = None) -> None:
    """
    Apply a theme to the application.

    Args:
        app: QApplication instance
        theme: Theme to apply, SYSTEM when None
    """
    logging.info(f"Setting up theme: {theme}")
    app.setStyleSheet("")
    app.setStyle(QStyleFactory.create("Fusion"))

    if theme == Theme.DARK:
        app.setPalette(dark_palette())
    elif theme == Theme.LIGHT:
        app.setPalette(light_palette())
    else:
        app.setPalette(app.style().standardPalette())


def dark_palette() -> QPalette:
    palette = QPalette()

    window = QColor(45, 45, 45)
    base = QColor(35, 35, 35)
    text = QColor(212, 212, 212)
    highlight = QColor(42, 130, 218)
    disabled = QColor(127, 127, 127)

    palette.setColor(QPalette.ColorRole.Window, window)
    palette.setColor(QPalette.ColorRole.WindowText, text)
    palette.setColor(QPalette.ColorRole.Base, base)
    palette.setColor(QPalette.ColorRole.AlternateBase, window)
    palette.setColor(QPalette.ColorRole.ToolTipBase, window)
    palette.setColor(QPalette.ColorRole.ToolTipText, text)
    palette.setColor(QPalette.ColorRole.Text, text)
    palette.setColor(QPalette.ColorRole.Button, window)
    palette.setColor(QPalette.ColorRole.ButtonText, text)
    palette.setColor(QPalette.ColorRole.BrightText, Qt.GlobalColor.red)
    palette.setColor(QPalette.ColorRole.Highlight, highlight)
    palette.setColor(QPalette.ColorRole.HighlightedText, Qt.GlobalColor.black)

    palette.setColor(QPalette.ColorGroup.Disabled, QPalette.ColorRole.WindowText, disabled)
    palette.setColor(QPalette.ColorGroup.Disabled, QPalette.ColorRole.Text, disabled)
    return palette


def light_palette() -> QPalette:
    palette = QPalette()

    window = QColor(240, 240, 240)
    text = QColor(30, 30, 30)

    palette.setColor(QPalette.ColorRole.Window, window)
    palette.setColor(QPalette.ColorRole.WindowText, text)
    palette.setColor(QPalette.ColorRole.Base, Qt.GlobalColor.white)
    palette.setColor(QPalette.ColorRole.AlternateBase, window)
    palette.setColor(QPalette.ColorRole.Text, text)
    palette.setColor(QPalette.ColorRole.Button, window)
    palette.setColor(QPalette.ColorRole.ButtonText, text)
    palette.setColor(QPalette.ColorRole.Highlight, QColor(42, 130, 218))
    palette.setColor(QPalette.ColorRole.HighlightedText, Qt.GlobalColor.white)
    return palette
