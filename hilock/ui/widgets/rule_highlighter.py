"""
Incremental rule highlighting for Qt text documents.

Provides:
- Conversion of resolved appearances to QTextCharFormat
- A QSyntaxHighlighter that re-scans blocks as Qt re-renders them
- The incremental host adapter built on it

Qt highlights one block (line) at a time, so a pattern can only match
within a single line on this host.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from PyQt6.QtGui import (
    QSyntaxHighlighter, QTextDocument, QTextCharFormat,
    QFont, QColor
)

from hilock.core.highlighter import Highlighter
from hilock.core.host import HostAdapter, StyleChooser
from hilock.core.models import Appearance, TextRange
from hilock.core.styles import DEFAULT_FACES, FacePreset


# =============================================================================
# Formats
# =============================================================================

def _color(value: Any) -> QColor:
    color = QColor(value)
    if not color.isValid():
        raise ValueError(f"Invalid color: {value!r}")
    return color


def _apply_preset(fmt: QTextCharFormat, preset: FacePreset, base_point_size: float) -> None:
    if preset.foreground:
        fmt.setForeground(_color(preset.foreground))
    if preset.background:
        fmt.setBackground(_color(preset.background))
    if preset.bold:
        fmt.setFontWeight(QFont.Weight.Bold)
    if preset.italic:
        fmt.setFontItalic(True)
    if preset.underline:
        fmt.setFontUnderline(True)
    if preset.size_scale != 1.0:
        fmt.setFontPointSize(base_point_size * preset.size_scale)


def _resolve_face(face: Any, faces: Mapping[str, FacePreset]) -> list[FacePreset]:
    """Presets making up a face, highest priority first."""
    if isinstance(face, str):
        if face not in faces:
            raise ValueError(f"Unknown face: {face!r}")
        return [faces[face]]
    if isinstance(face, Mapping):
        return [FacePreset(name='', **face)]
    if isinstance(face, (list, tuple)):
        presets: list[FacePreset] = []
        for item in face:
            presets.extend(_resolve_face(item, faces))
        return presets
    raise TypeError(f"Unsupported face: {face!r}")


def appearance_to_format(
    appearance: Appearance,
    faces: Optional[Mapping[str, FacePreset]] = None,
    base_point_size: float = 10.0
) -> QTextCharFormat:
    """
    Build a character format from a resolved appearance.

    The ``face`` entry may be a preset name, a list of faces (earlier
    entries win) or an inline mapping of FacePreset fields. Other keys
    (foreground, background, bold, italic, underline) override the face.

    Raises:
        ValueError: unknown face or invalid color
        TypeError: appearance of the wrong shape
    """
    if not isinstance(appearance, Mapping):
        raise TypeError(f"Appearance is not a mapping: {appearance!r}")
    if 'face' not in appearance:
        raise ValueError("Appearance has no face")

    faces = faces if faces is not None else DEFAULT_FACES
    fmt = QTextCharFormat()

    for preset in reversed(_resolve_face(appearance['face'], faces)):
        _apply_preset(fmt, preset, base_point_size)

    if 'foreground' in appearance:
        fmt.setForeground(_color(appearance['foreground']))
    if 'background' in appearance:
        fmt.setBackground(_color(appearance['background']))
    if 'bold' in appearance:
        fmt.setFontWeight(QFont.Weight.Bold if appearance['bold'] else QFont.Weight.Normal)
    if 'italic' in appearance:
        fmt.setFontItalic(bool(appearance['italic']))
    if 'underline' in appearance:
        fmt.setFontUnderline(bool(appearance['underline']))

    return fmt


# =============================================================================
# Highlighter
# =============================================================================

class RuleSyntaxHighlighter(QSyntaxHighlighter):
    """
    Syntax highlighter driven by a highlighting session's rules.

    Rules are painted oldest first so the most recently added rule wins
    where spans overlap.
    """

    def __init__(
        self,
        document: QTextDocument,
        session: Highlighter,
        faces: Optional[Mapping[str, FacePreset]] = None
    ):
        super().__init__(document)
        self._session = session
        self._faces = faces if faces is not None else DEFAULT_FACES
        self._enabled = True

    def set_enabled(self, enabled: bool) -> None:
        """Enable or disable highlighting."""
        self._enabled = enabled
        self.rehighlight()

    def highlightBlock(self, text: str) -> None:
        """Highlight a block of text."""
        if not self._enabled:
            return

        rules = list(reversed(self._session.rules()))
        if not rules:
            return

        point_size = self.document().defaultFont().pointSizeF()
        if point_size <= 0:
            point_size = 10.0

        for span in self._session.engine.scan(text, None, rules):
            try:
                fmt = appearance_to_format(span.appearance, self._faces, point_size)
            except (ValueError, TypeError) as e:
                # Transform output is only checked here
                logging.error(f"RuleSyntaxHighlighter - Cannot render {span.pattern!r}: {e}")
                continue
            self.setFormat(span.start, span.length, fmt)


# =============================================================================
# Host
# =============================================================================

class QtIncrementalHost(HostAdapter):
    """
    Host adapter for a QTextDocument that Qt re-highlights on every edit.
    """

    def __init__(
        self,
        document: QTextDocument,
        session: Highlighter,
        faces: Optional[Mapping[str, FacePreset]] = None,
        style_chooser: Optional[StyleChooser] = None
    ):
        self._document = document
        self._style_chooser = style_chooser
        self.syntax_highlighter = RuleSyntaxHighlighter(document, session, faces)

    @classmethod
    def install(
        cls,
        document: QTextDocument,
        session: Highlighter,
        faces: Optional[Mapping[str, FacePreset]] = None
    ) -> 'QtIncrementalHost':
        """Create a host for ``document`` and attach ``session`` to it."""
        host = cls(document, session, faces)
        session.attach(host)
        return host

    @property
    def document(self) -> QTextDocument:
        return self._document

    def get_document_text(self, text_range: Optional[TextRange] = None) -> str:
        text = self._document.toPlainText()
        if text_range is None:
            return text
        return text[text_range.start:text_range.end]

    def document_length(self) -> int:
        return len(self._document.toPlainText())

    def supports_incremental_render(self) -> bool:
        return True

    def notify_render_invalidated(self, text_range: TextRange) -> None:
        self.syntax_highlighter.rehighlight()

    def request_style_name(self, default_candidates: list[str]) -> str:
        if self._style_chooser is not None:
            return self._style_chooser(default_candidates)
        return super().request_style_name(default_candidates)
