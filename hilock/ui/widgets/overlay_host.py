"""
Static overlay host for QPlainTextEdit.

Highlights are painted as extra selections computed once over a window
of the document. They do not follow edits; call ``Highlighter.refresh``
to recompute them.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from PyQt6.QtGui import QTextCursor
from PyQt6.QtWidgets import QPlainTextEdit, QTextEdit

from hilock.core.highlighter import Highlighter
from hilock.core.host import HostAdapter, StyleChooser
from hilock.core.models import MatchSpan, TextRange
from hilock.core.styles import DEFAULT_FACES, FacePreset
from hilock.ui.widgets.rule_highlighter import appearance_to_format


class QtOverlayHost(HostAdapter):
    """Host adapter painting static overlays on a QPlainTextEdit."""

    def __init__(
        self,
        editor: QPlainTextEdit,
        faces: Optional[Mapping[str, FacePreset]] = None,
        style_chooser: Optional[StyleChooser] = None
    ):
        self._editor = editor
        self._faces = faces if faces is not None else DEFAULT_FACES
        self._style_chooser = style_chooser
        self._overlays: list[tuple[str, QTextEdit.ExtraSelection]] = []

    @classmethod
    def install(
        cls,
        editor: QPlainTextEdit,
        session: Highlighter,
        faces: Optional[Mapping[str, FacePreset]] = None
    ) -> 'QtOverlayHost':
        """Create a host for ``editor`` and attach ``session`` to it."""
        host = cls(editor, faces)
        session.attach(host)
        return host

    @property
    def editor(self) -> QPlainTextEdit:
        return self._editor

    @property
    def overlay_count(self) -> int:
        return len(self._overlays)

    def cursor_position(self) -> int:
        """Anchor for the scan window."""
        return self._editor.textCursor().position()

    def get_document_text(self, text_range: Optional[TextRange] = None) -> str:
        text = self._editor.toPlainText()
        if text_range is None:
            return text
        return text[text_range.start:text_range.end]

    def document_length(self) -> int:
        return len(self._editor.toPlainText())

    def supports_incremental_render(self) -> bool:
        return False

    def notify_render_invalidated(self, text_range: TextRange) -> None:
        self._editor.viewport().update()

    def request_style_name(self, default_candidates: list[str]) -> str:
        if self._style_chooser is not None:
            return self._style_chooser(default_candidates)
        return super().request_style_name(default_candidates)

    def render_overlays(self, spans: Sequence[MatchSpan]) -> None:
        """Paint spans on top of the existing overlays."""
        document = self._editor.document()
        point_size = document.defaultFont().pointSizeF()
        if point_size <= 0:
            point_size = 10.0

        for span in spans:
            try:
                fmt = appearance_to_format(span.appearance, self._faces, point_size)
            except (ValueError, TypeError) as e:
                logging.error(f"QtOverlayHost - Cannot render {span.pattern!r}: {e}")
                continue

            selection = QTextEdit.ExtraSelection()
            cursor = QTextCursor(document)
            cursor.setPosition(span.start)
            cursor.setPosition(span.end, QTextCursor.MoveMode.KeepAnchor)
            selection.cursor = cursor
            selection.format = fmt
            self._overlays.append((span.pattern, selection))

        self._apply()

    def clear_overlays(self, pattern: Optional[str] = None) -> None:
        if pattern is None:
            self._overlays = []
        else:
            self._overlays = [(p, s) for p, s in self._overlays if p != pattern]
        self._apply()

    def _apply(self) -> None:
        self._editor.setExtraSelections([s for _, s in self._overlays])
