"""
Main application window.

A read-mostly text viewer with the highlighting session attached, either
through the incremental QSyntaxHighlighter host or through static
overlays.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QCloseEvent, QFont, QKeySequence
from PyQt6.QtWidgets import (
    QApplication, QFileDialog, QMainWindow, QPlainTextEdit, QMessageBox,
    QInputDialog, QWidget
)

from hilock.core.file_patterns import Descriptor
from hilock.core.highlighter import Highlighter
from hilock.core.host import HostAdapter
from hilock.core.models import InvalidPatternError, RegistrationResult
from hilock.services.file_io import BinaryFileError, DocumentReader
from hilock.services.settings import ApplicationSettings, SettingsManager
from hilock.ui.theme import setup_theme
from hilock.ui.widgets.overlay_host import QtOverlayHost
from hilock.ui.widgets.rule_highlighter import QtIncrementalHost


class MainWindow(QMainWindow):
    """Text viewer with interactive pattern highlighting."""

    def __init__(
        self,
        settings_manager: SettingsManager,
        static: bool = False,
        parent: Optional[QWidget] = None
    ):
        super().__init__(parent)

        self._settings_manager = settings_manager
        self._settings = settings_manager.settings
        self._reader = DocumentReader()
        self.session = Highlighter(self._settings.highlight.to_options())
        self.path: Optional[Path] = None

        self.editor = QPlainTextEdit(self)
        self.editor.setFont(QFont(self._settings.ui.font_family, self._settings.ui.font_size))
        self.editor.setLineWrapMode(QPlainTextEdit.LineWrapMode.NoWrap)
        self.setCentralWidget(self.editor)

        self.host: HostAdapter
        if static:
            self.host = QtOverlayHost.install(self.editor, self.session)
        else:
            self.host = QtIncrementalHost.install(self.editor.document(), self.session)

        self._settings_manager.add_observer(self._on_settings_changed)

        self._setup_menus()
        self._load_settings()
        self._update_title()

    @property
    def settings(self) -> ApplicationSettings:
        return self._settings

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------

    def _setup_menus(self) -> None:
        file_menu = self.menuBar().addMenu("&File")

        open_action = QAction("&Open...", self)
        open_action.setShortcut(QKeySequence.StandardKey.Open)
        open_action.triggered.connect(self._prompt_open)
        file_menu.addAction(open_action)

        self._recent_menu = file_menu.addMenu("&Recent")
        self._update_recent_menu()

        file_menu.addSeparator()
        quit_action = QAction("&Quit", self)
        quit_action.setShortcut(QKeySequence.StandardKey.Quit)
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)

        menu = self.menuBar().addMenu("&Highlight")

        regexp_action = QAction("Highlight &Regexp...", self)
        regexp_action.setShortcut(QKeySequence("Ctrl+H"))
        regexp_action.triggered.connect(self._prompt_regexp)
        menu.addAction(regexp_action)

        unhighlight_action = QAction("&Unhighlight All", self)
        unhighlight_action.triggered.connect(lambda: self.session.remove_all())
        menu.addAction(unhighlight_action)

        refresh_action = QAction("Re&fresh", self)
        refresh_action.setShortcut(QKeySequence("F5"))
        refresh_action.triggered.connect(lambda: self.session.refresh(self.anchor()))
        menu.addAction(refresh_action)

    def _load_settings(self) -> None:
        """Apply window geometry from settings."""
        self.resize(self._settings.ui.window_width, self._settings.ui.window_height)
        if self._settings.ui.window_maximized:
            self.setWindowState(self.windowState() | Qt.WindowState.WindowMaximized)

    def _save_settings(self) -> None:
        """Store window geometry."""
        self._settings.ui.window_maximized = self.isMaximized()
        if not self.isMaximized():
            self._settings.ui.window_width = self.width()
            self._settings.ui.window_height = self.height()
        self._settings_manager.save(self._settings)

    def _on_settings_changed(self, new_settings: ApplicationSettings) -> None:
        self._settings = new_settings
        self._update_recent_menu()

        app = QApplication.instance()
        if app is not None:
            setup_theme(app, self._settings.ui.theme)

    def closeEvent(self, event: QCloseEvent) -> None:
        self._settings_manager.remove_observer(self._on_settings_changed)
        self._save_settings()
        super().closeEvent(event)

    def _update_title(self) -> None:
        name = self.path.name if self.path else "untitled"
        self.setWindowTitle(f"{name} - Hi-Lock")

    def _update_recent_menu(self) -> None:
        self._recent_menu.clear()

        recent = self._settings.recent_files[:self._settings.ui.recent_files_limit]
        if not recent:
            empty = self._recent_menu.addAction("No recent files")
            empty.setEnabled(False)
            return

        for path in recent:
            action = self._recent_menu.addAction(path)
            action.triggered.connect(lambda checked, p=path: self.open_file(p))

    # -------------------------------------------------------------------------
    # Documents
    # -------------------------------------------------------------------------

    def anchor(self) -> int:
        """Cursor offset used to centre static overlays."""
        return self.editor.textCursor().position()

    def _prompt_open(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Open", self._settings.last_directory)
        if path:
            self.open_file(path)

    def open_file(self, path: Path | str) -> bool:
        """Read a file, show it and remember it as recent."""
        path = Path(path)
        try:
            document = self._reader.read(path)
        except (OSError, BinaryFileError) as e:
            logging.error(f"MainWindow - Cannot open {path}: {e}")
            QMessageBox.warning(self, "Hi-Lock", f"Cannot open {path}:\n{e}")
            return False

        self.load_text(document.text, path)

        self._settings.last_directory = str(path.parent)
        self._settings_manager.add_recent_file(str(path))
        return True

    def load_text(self, text: str, path: Optional[Path] = None) -> None:
        """Show a document and read its header patterns."""
        self.path = path
        self.editor.setPlainText(text)
        self._update_title()

        if path is None or self._settings.highlight.reads_file_patterns(str(path)):
            report = self.session.import_file_patterns(ask=self._ask_file_patterns)
            if report.accepted:
                logging.info(f"MainWindow - Added {len(report.rules)} file patterns")

    def _ask_file_patterns(self, descriptors: list[Descriptor]) -> bool:
        patterns = "\n".join(d['pattern'] for d in descriptors)
        answer = QMessageBox.question(
            self,
            "Hi-Lock",
            f"Add patterns from this buffer to hi-lock?\n\n{patterns}"
        )
        return answer == QMessageBox.StandardButton.Yes

    # -------------------------------------------------------------------------
    # Highlighting
    # -------------------------------------------------------------------------

    def _prompt_regexp(self) -> None:
        pattern, ok = QInputDialog.getText(self, "Hi-Lock", "Regexp to highlight:")
        if not ok or not pattern:
            return
        self.highlight_regexp(pattern)

    def highlight_regexp(self, pattern: str, face: Optional[str] = None) -> Optional[RegistrationResult]:
        try:
            result = self.session.highlight_regexp(pattern, face, anchor=self.anchor())
        except InvalidPatternError as e:
            QMessageBox.warning(self, "Hi-Lock", str(e))
            return None

        if result.warning is not None:
            self.statusBar().showMessage(str(result.warning), 5000)
        return result
