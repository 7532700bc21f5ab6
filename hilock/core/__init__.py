"""
Core highlighting library.

Provides the UI-agnostic pieces:
- Rule storage with unique patterns and style rotation
- Match scanning and appearance resolution
- Host capability interface
- Header pattern import/export
"""

from hilock.core.models import (
    Rule,
    RuleOrigin,
    MatchSpan,
    TextRange,
    RegistrationResult,
    RegistrationStatus,
    HighlightError,
    InvalidPatternError,
    MalformedImportExpression,
    HighlightWarning,
    DuplicatePatternWarning,
    EmptyMatchRollback,
)
from hilock.core.patterns import (
    PatternTable,
    intern_pattern,
    phrase_to_pattern,
    line_pattern,
    symbol_pattern,
)
from hilock.core.styles import (
    FacePreset,
    StyleAllocator,
    DEFAULT_FACES,
)
from hilock.core.store import PatternStore
from hilock.core.appearance import AppearanceResolver
from hilock.core.engine import MatchEngine, scan_window
from hilock.core.host import HostAdapter, PlainTextHost
from hilock.core.file_patterns import FilePatternsPolicy
from hilock.core.highlighter import (
    Highlighter,
    HighlightOptions,
    ImportReport,
)

__all__ = [
    # Models
    'Rule',
    'RuleOrigin',
    'MatchSpan',
    'TextRange',
    'RegistrationResult',
    'RegistrationStatus',
    # Errors
    'HighlightError',
    'InvalidPatternError',
    'MalformedImportExpression',
    'HighlightWarning',
    'DuplicatePatternWarning',
    'EmptyMatchRollback',
    # Patterns
    'PatternTable',
    'intern_pattern',
    'phrase_to_pattern',
    'line_pattern',
    'symbol_pattern',
    # Styles
    'FacePreset',
    'StyleAllocator',
    'DEFAULT_FACES',
    # Components
    'PatternStore',
    'AppearanceResolver',
    'MatchEngine',
    'scan_window',
    'HostAdapter',
    'PlainTextHost',
    'FilePatternsPolicy',
    'Highlighter',
    'HighlightOptions',
    'ImportReport',
]
