"""
Qt host adapters for the highlighting core.

Provides:
- Incremental highlighting through QSyntaxHighlighter
- Static overlays through QPlainTextEdit extra selections
- Appearance to QTextCharFormat conversion
"""

from hilock.ui.widgets.rule_highlighter import (
    RuleSyntaxHighlighter,
    QtIncrementalHost,
    appearance_to_format,
)
from hilock.ui.widgets.overlay_host import (
    QtOverlayHost,
)

__all__ = [
    # Incremental
    'RuleSyntaxHighlighter',
    'QtIncrementalHost',
    'appearance_to_format',
    # Static
    'QtOverlayHost',
]
