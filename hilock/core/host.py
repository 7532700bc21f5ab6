"""
Host capability interface.

The core never talks to an editor directly. A host adapter supplies the
document text, says whether it re-renders incrementally, picks style names
and is told when rendered spans go stale. Concrete adapters:
- PlainTextHost: in-memory text, either mode (headless use and tests)
- QtIncrementalHost / QtOverlayHost in hilock.ui.widgets
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence

from hilock.core.models import MatchSpan, TextRange


StyleChooser = Callable[[list[str]], str]


class HostAdapter(ABC):
    """Capabilities the highlighting core consumes from its host."""

    @abstractmethod
    def get_document_text(self, text_range: Optional[TextRange] = None) -> str:
        """Read-only slice of the document, or all of it."""

    @abstractmethod
    def document_length(self) -> int:
        pass

    @abstractmethod
    def supports_incremental_render(self) -> bool:
        """True when the host re-derives highlights itself as text changes."""

    @abstractmethod
    def notify_render_invalidated(self, text_range: TextRange) -> None:
        """Rendered spans in ``text_range`` are stale."""

    def request_style_name(self, default_candidates: list[str]) -> str:
        """Pick a style when the caller did not supply one."""
        return default_candidates[0]

    def render_overlays(self, spans: Sequence[MatchSpan]) -> None:
        """Place static overlays (static overlay mode only)."""

    def clear_overlays(self, pattern: Optional[str] = None) -> None:
        """Remove static overlays of one pattern, or all of them."""

    def full_range(self) -> TextRange:
        return TextRange(0, self.document_length())


class PlainTextHost(HostAdapter):
    """
    In-memory host over a string.

    Records invalidations and overlays so callers can inspect what a real
    editor would have been asked to do.
    """

    def __init__(
        self,
        text: str = "",
        incremental: bool = True,
        style_chooser: Optional[StyleChooser] = None
    ):
        self._text = text
        self._incremental = incremental
        self._style_chooser = style_chooser
        self.invalidated: list[TextRange] = []
        self.overlays: list[MatchSpan] = []

    @property
    def text(self) -> str:
        return self._text

    def set_text(self, text: str) -> None:
        self._text = text
        self.notify_render_invalidated(self.full_range())

    def get_document_text(self, text_range: Optional[TextRange] = None) -> str:
        if text_range is None:
            return self._text
        return self._text[text_range.start:text_range.end]

    def document_length(self) -> int:
        return len(self._text)

    def supports_incremental_render(self) -> bool:
        return self._incremental

    def notify_render_invalidated(self, text_range: TextRange) -> None:
        self.invalidated.append(text_range)

    def request_style_name(self, default_candidates: list[str]) -> str:
        if self._style_chooser is not None:
            return self._style_chooser(default_candidates)
        return super().request_style_name(default_candidates)

    def render_overlays(self, spans: Sequence[MatchSpan]) -> None:
        self.overlays.extend(spans)

    def clear_overlays(self, pattern: Optional[str] = None) -> None:
        if pattern is None:
            self.overlays.clear()
        else:
            self.overlays = [s for s in self.overlays if s.pattern != pattern]
