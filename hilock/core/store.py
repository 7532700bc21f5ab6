"""
Per-document store of active highlight rules.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Iterator, Optional

from hilock.core.models import (
    Appearance,
    AppearanceTransform,
    DuplicatePatternWarning,
    InvalidPatternError,
    RegistrationResult,
    RegistrationStatus,
    Rule,
    RuleOrigin,
)
from hilock.core.patterns import PatternTable, validate_pattern
from hilock.core.host import StyleChooser
from hilock.core.styles import StyleAllocator


class PatternStore:
    """
    Ordered set of rules for one document, most recently added first.

    At most one rule exists per pattern string. Register, remove and list
    are serialised by a per-store re-entrant lock; callers that chain
    several operations (register then scan) can hold ``store.lock``.
    """

    def __init__(
        self,
        allocator: Optional[StyleAllocator] = None,
        default_face: str = 'hi-yellow',
        style_chooser: Optional[StyleChooser] = None,
        auto_select_face: bool = True,
        table: Optional[PatternTable] = None
    ):
        self.allocator = allocator or StyleAllocator()
        self.default_face = default_face
        self.style_chooser = style_chooser
        self.auto_select_face = auto_select_face
        self._table = table
        self._rules: list[Rule] = []
        self._index: dict[str, Rule] = {}
        self._ids = itertools.count(1)
        self.lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def register(
        self,
        pattern: Optional[str],
        appearance: Optional[Appearance] = None,
        transform: Optional[AppearanceTransform] = None,
        *,
        subexp: int = 0,
        case_fold: bool = False,
        origin: RuleOrigin = RuleOrigin.INTERACTIVE,
        lighter: Optional[str] = None
    ) -> RegistrationResult:
        """
        Register a pattern.

        Args:
            pattern: Regular expression, must not match the empty string
            appearance: Base property mapping; a face is allocated when None
            transform: Optional mapping -> mapping applied at resolve time
            subexp: Group whose span is highlighted
            case_fold: Match case-insensitively
            origin: Interactive or imported from a file header
            lighter: Short display label, defaults to the pattern

        Returns:
            RegistrationResult, ADDED or DUPLICATE

        Raises:
            InvalidPatternError: Pattern rejected, nothing changed
        """
        compiled = validate_pattern(pattern, case_fold, self._table)

        if subexp < 0 or subexp > compiled.groups:
            raise InvalidPatternError(pattern, f"has no group {subexp}")

        with self.lock:
            acquired: Optional[str] = None
            if appearance is None:
                acquired = self._acquire_face()
                base = {'face': acquired}
            elif 'face' not in appearance:
                base = {'face': self.default_face, **appearance}
            else:
                base = dict(appearance)

            existing = self._index.get(pattern)
            if existing is not None:
                if acquired is not None:
                    self.allocator.release(acquired)
                logging.debug(f"PatternStore - Pattern already active: {pattern!r}")
                return RegistrationResult(
                    status=RegistrationStatus.DUPLICATE,
                    rule=existing,
                    warning=DuplicatePatternWarning(
                        f"Pattern {pattern!r} is already highlighted"
                    )
                )

            rule = Rule(
                rule_id=next(self._ids),
                pattern=pattern,
                appearance=base,
                compiled=compiled,
                transform=transform,
                subexp=subexp,
                case_fold=case_fold,
                origin=origin,
                lighter=lighter or "",
            )
            self._rules.insert(0, rule)
            self._index[pattern] = rule

        return RegistrationResult(status=RegistrationStatus.ADDED, rule=rule)

    def _acquire_face(self) -> str:
        """Take the next style from the allocator."""
        candidates = self.allocator.candidates()
        if self.auto_select_face or self.style_chooser is None:
            name = candidates[0]
        else:
            name = self.style_chooser(candidates)
        self.allocator.claim(name)
        return name

    # -------------------------------------------------------------------------
    # Removal
    # -------------------------------------------------------------------------

    def remove(self, pattern: str) -> bool:
        """
        Remove the rule for ``pattern``.

        Returns:
            True if a rule was removed
        """
        with self.lock:
            rule = self._index.pop(pattern, None)
            if rule is None:
                return False
            self._rules.remove(rule)
            self._free_face(rule)
        return True

    def remove_all(self) -> list[Rule]:
        """Remove every rule, returning them most recent first."""
        with self.lock:
            removed = self._rules
            self._rules = []
            self._index.clear()
            for rule in removed:
                self._free_face(rule)
        return removed

    def remove_origin(self, origin: RuleOrigin) -> list[Rule]:
        """Remove every rule of one origin."""
        with self.lock:
            removed = [r for r in self._rules if r.origin == origin]
            for rule in removed:
                self._rules.remove(rule)
                del self._index[rule.pattern]
                self._free_face(rule)
        return removed

    def _free_face(self, rule: Rule) -> None:
        # Composite appearances are not presets
        if rule.has_simple_face:
            self.allocator.release(rule.face)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list(self) -> list[Rule]:
        """Active rules, most recently added first."""
        with self.lock:
            return list(self._rules)

    def get(self, pattern: str) -> Optional[Rule]:
        return self._index.get(pattern)

    def patterns(self) -> list[str]:
        return [rule.pattern for rule in self.list()]

    def __contains__(self, pattern: object) -> bool:
        return pattern in self._index

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.list())

    def __len__(self) -> int:
        return len(self._rules)
