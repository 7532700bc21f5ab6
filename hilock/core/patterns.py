"""
Pattern helpers.

Provides:
- Pattern validation (non-empty, compilable, never matching "")
- The process-wide pattern interning table
- Phrase, whole-line and symbol pattern construction
- Upper-case detection for the case-folding default
"""

from __future__ import annotations

import re
import threading
from typing import Optional

from hilock.core.models import InvalidPatternError


BASE_FLAGS = re.MULTILINE

_PHRASE_INITIAL = re.compile(r'(^|\s)([a-z])')
_WHITESPACE_RUN = re.compile(r'\s+')


def compile_flags(case_fold: bool = False) -> int:
    """Regexp flags used for a rule."""
    flags = BASE_FLAGS
    if case_fold:
        flags |= re.IGNORECASE
    return flags


class PatternTable:
    """
    Process-wide table of compiled patterns.

    Entries are inserted once and never updated or removed, so equal
    pattern strings share one compiled instance across documents. The
    table grows for the lifetime of the process.
    """

    def __init__(self):
        self._entries: dict[tuple[str, int], re.Pattern] = {}
        self._lock = threading.Lock()

    def intern(self, pattern: str, flags: int = BASE_FLAGS) -> re.Pattern:
        """Return the shared compiled pattern, compiling it on first use."""
        key = (pattern, flags)
        compiled = self._entries.get(key)
        if compiled is not None:
            return compiled

        # Compile outside the lock, insert if still absent
        candidate = re.compile(pattern, flags)
        with self._lock:
            return self._entries.setdefault(key, candidate)

    def __contains__(self, key: tuple[str, int]) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


_default_table = PatternTable()


def default_table() -> PatternTable:
    return _default_table


def intern_pattern(pattern: str, flags: int = BASE_FLAGS) -> re.Pattern:
    """Intern a pattern in the shared table."""
    return _default_table.intern(pattern, flags)


def matches_empty(compiled: re.Pattern) -> bool:
    """Check whether a compiled pattern matches the empty string."""
    return compiled.search('') is not None


def validate_pattern(
    pattern: Optional[str],
    case_fold: bool = False,
    table: Optional[PatternTable] = None
) -> re.Pattern:
    """
    Validate a pattern and return its interned compiled form.

    Raises:
        InvalidPatternError: pattern is unset, empty, does not compile
            or matches the empty string
    """
    if pattern is None:
        raise InvalidPatternError(pattern, "pattern is unset")
    if not isinstance(pattern, str):
        raise InvalidPatternError(pattern, "pattern must be a string")
    if not pattern:
        raise InvalidPatternError(pattern, "pattern is empty")

    table = table or _default_table
    try:
        compiled = table.intern(pattern, compile_flags(case_fold))
    except re.error as e:
        raise InvalidPatternError(pattern, f"does not compile ({e})") from e

    if matches_empty(compiled):
        raise InvalidPatternError(pattern, "matches the empty string")

    return compiled


def phrase_to_pattern(phrase: str) -> str:
    """
    Convert a phrase into a pattern.

    Lower-case initial letters become ``[Xx]`` classes, then each run of
    whitespace matches any run of whitespace including newlines. The
    whitespace substitution must come second.
    """
    folded = _PHRASE_INITIAL.sub(
        lambda m: f"{m.group(1)}[{m.group(2).upper()}{m.group(2)}]",
        phrase
    )
    return _WHITESPACE_RUN.sub(lambda m: r'\s+', folded)


def line_pattern(pattern: str) -> str:
    """Pattern matching every whole line that contains ``pattern``."""
    return rf'^.*(?:{pattern}).*(?:$)\n?'


def symbol_pattern(symbol: str) -> str:
    """Pattern matching ``symbol`` with identifier boundaries."""
    return rf'(?<![\w]){re.escape(symbol)}(?![\w])'


def has_no_upper_case(pattern: str) -> bool:
    """
    True when the pattern contains no upper-case letter.

    Characters following a backslash are escapes (``\\W``, ``\\S``) and
    are not counted.
    """
    escaped = False
    for char in pattern:
        if escaped:
            escaped = False
            continue
        if char == '\\':
            escaped = True
        elif char.isupper():
            return False
    return True
