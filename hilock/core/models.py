"""
Core data models for the highlighting library.

This module defines the data structures shared by the store, the match
engine and the host adapters:
- Highlight rules and their registration outcome
- Match spans and text ranges
- Error and warning taxonomy

All models are UI-agnostic; the Qt layer only consumes them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Optional


Appearance = dict[str, Any]
AppearanceTransform = Callable[[Appearance], Appearance]


# =============================================================================
# Enumerations
# =============================================================================

class RuleOrigin(Enum):
    """Where a rule came from."""
    INTERACTIVE = auto()  # Registered by a caller
    FILE = auto()         # Imported from a document's pattern header


class RegistrationStatus(Enum):
    """Outcome of a register call."""
    ADDED = auto()        # New rule prepended to the rule set
    DUPLICATE = auto()    # Pattern already active, nothing added
    ROLLED_BACK = auto()  # Added, then retracted because nothing matched


# =============================================================================
# Errors
# =============================================================================

class HighlightError(Exception):
    """Base class for highlighting errors."""


class InvalidPatternError(HighlightError, ValueError):
    """Pattern is unset, does not compile or matches the empty string."""

    def __init__(self, pattern: Optional[str], reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid pattern {pattern!r}: {reason}")


class MalformedImportExpression(HighlightError, ValueError):
    """A persisted pattern entry could not be parsed."""

    def __init__(self, text: str, reason: str, line_number: int = 0):
        self.text = text
        self.reason = reason
        self.line_number = line_number
        super().__init__(f"Line {line_number}: {reason}: {text!r}")


class HighlightWarning(UserWarning):
    """Base class for absorbed, non-fatal registration outcomes."""


class DuplicatePatternWarning(HighlightWarning):
    """Pattern was already active; the registration was absorbed."""


class EmptyMatchRollback(HighlightWarning):
    """Pattern matched nothing in the scanned window and was retracted."""


# =============================================================================
# Ranges and Spans
# =============================================================================

@dataclass(frozen=True)
class TextRange:
    """Half-open character range [start, end)."""
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid range [{self.start}, {self.end})")

    @property
    def length(self) -> int:
        return self.end - self.start

    def clamp(self, length: int) -> 'TextRange':
        """Clamp the range to a document of the given length."""
        start = min(self.start, length)
        return TextRange(start, max(start, min(self.end, length)))

    def contains(self, offset: int) -> bool:
        return self.start <= offset < self.end


@dataclass(frozen=True)
class MatchSpan:
    """
    One match of a rule in scanned text.

    Spans are produced fresh by every scan and are never stored.
    """
    start: int              # Start offset (inclusive)
    end: int                # End offset (exclusive)
    rule_id: int
    pattern: str
    appearance: Appearance = field(compare=False, hash=False)

    @property
    def length(self) -> int:
        return self.end - self.start


# =============================================================================
# Rules
# =============================================================================

@dataclass(eq=False)
class Rule:
    """A registered highlighting rule."""
    rule_id: int
    pattern: str
    appearance: Appearance
    compiled: re.Pattern = field(repr=False)
    transform: Optional[AppearanceTransform] = field(default=None, repr=False)
    subexp: int = 0         # Regexp group to highlight, 0 is the whole match
    case_fold: bool = False
    origin: RuleOrigin = RuleOrigin.INTERACTIVE
    lighter: str = ""

    def __post_init__(self) -> None:
        if not self.lighter:
            self.lighter = self.pattern

    @property
    def face(self) -> Any:
        """The face entry of the base appearance."""
        return self.appearance.get('face')

    @property
    def has_simple_face(self) -> bool:
        """True when the face is a single named preset, not a composite."""
        return isinstance(self.face, str)

    def to_descriptor(self) -> dict[str, Any]:
        """Serializable description used by the file pattern format."""
        descriptor: dict[str, Any] = {
            'pattern': self.pattern,
            'appearance': dict(self.appearance),
        }
        if self.subexp:
            descriptor['subexp'] = self.subexp
        if self.case_fold:
            descriptor['case_fold'] = True
        return descriptor


@dataclass
class RegistrationResult:
    """Result of registering a pattern."""
    status: RegistrationStatus
    rule: Optional[Rule] = None
    warning: Optional[HighlightWarning] = None
    match_count: int = 0    # Matches placed in static overlay mode

    @property
    def added(self) -> bool:
        return self.status == RegistrationStatus.ADDED

    @property
    def rule_id(self) -> Optional[int]:
        return self.rule.rule_id if self.rule else None
