"""
Per-document highlighting session.

Ties a PatternStore, the MatchEngine and a host adapter together:
- Register/remove rules and tell the host what went stale
- Place static overlays when the host cannot re-render incrementally,
  retracting rules that match nothing in the scanned window
- Phrase, whole-line and symbol commands
- Reading and writing patterns stored in the document header
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from hilock.core.engine import DEFAULT_WINDOW_SIZE, MatchEngine
from hilock.core.file_patterns import (
    DEFAULT_PREFIX,
    DEFAULT_SEARCH_RANGE,
    Descriptor,
    FilePatternsPolicy,
    PatternPredicate,
    PolicyLike,
    accept_patterns,
    find_file_patterns,
    format_patterns,
)
from hilock.core.host import HostAdapter
from hilock.core.models import (
    Appearance,
    AppearanceTransform,
    EmptyMatchRollback,
    InvalidPatternError,
    MalformedImportExpression,
    MatchSpan,
    RegistrationResult,
    RegistrationStatus,
    Rule,
    RuleOrigin,
    TextRange,
)
from hilock.core.patterns import (
    PatternTable,
    has_no_upper_case,
    line_pattern,
    phrase_to_pattern,
    symbol_pattern,
)
from hilock.core.store import PatternStore
from hilock.core.styles import DEFAULT_FACE_ORDER, StyleAllocator


@dataclass
class HighlightOptions:
    """Options for a highlighting session."""
    default_face: str = 'hi-yellow'
    faces: list[str] = field(default_factory=lambda: list(DEFAULT_FACE_ORDER))
    auto_select_face: bool = True
    highlight_range: int = DEFAULT_WINDOW_SIZE
    file_patterns_range: int = DEFAULT_SEARCH_RANGE
    file_patterns_prefix: str = DEFAULT_PREFIX
    file_patterns_policy: FilePatternsPolicy = FilePatternsPolicy.ASK
    search_upper_case: bool = True

    def case_fold_for(self, pattern: Optional[str]) -> bool:
        """Fold case for patterns written entirely in lower case."""
        if not self.search_upper_case or not isinstance(pattern, str):
            return False
        return has_no_upper_case(pattern)


@dataclass
class ImportReport:
    """Outcome of reading header patterns."""
    descriptors: list[Descriptor] = field(default_factory=list)
    diagnostics: list[MalformedImportExpression] = field(default_factory=list)
    errors: list[InvalidPatternError] = field(default_factory=list)
    accepted: bool = False
    results: list[RegistrationResult] = field(default_factory=list)

    @property
    def rules(self) -> list[Rule]:
        return [r.rule for r in self.results if r.added and r.rule]


class Highlighter:
    """
    Highlighting session for one document.

    Usage:
        highlighter = Highlighter()
        highlighter.attach(PlainTextHost(text))
        highlighter.highlight_regexp(r'TODO')
        spans = list(highlighter.scan())
    """

    def __init__(
        self,
        options: Optional[HighlightOptions] = None,
        engine: Optional[MatchEngine] = None,
        table: Optional[PatternTable] = None
    ):
        self.options = options or HighlightOptions()
        self.engine = engine or MatchEngine(window_size=self.options.highlight_range)
        self.store = PatternStore(
            allocator=StyleAllocator(self.options.faces),
            default_face=self.options.default_face,
            auto_select_face=self.options.auto_select_face,
            table=table,
        )
        self._host: Optional[HostAdapter] = None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def host(self) -> Optional[HostAdapter]:
        return self._host

    @property
    def is_attached(self) -> bool:
        return self._host is not None

    def attach(self, host: HostAdapter) -> None:
        """Attach to a document; the rule set starts empty."""
        if self._host is not None:
            self.detach()
        self._host = host
        self.store.style_chooser = host.request_style_name
        self.store.remove_all()
        self.store.allocator.reset()

    def detach(self) -> None:
        """Drop every rule and overlay and forget the host."""
        host = self._host
        self.store.remove_all()
        self.store.style_chooser = None
        if host is not None:
            host.clear_overlays()
            host.notify_render_invalidated(host.full_range())
        self._host = None

    # -------------------------------------------------------------------------
    # Rules
    # -------------------------------------------------------------------------

    def register(
        self,
        pattern: Optional[str],
        appearance: Optional[Appearance] = None,
        transform: Optional[AppearanceTransform] = None,
        *,
        subexp: int = 0,
        case_fold: Optional[bool] = None,
        origin: RuleOrigin = RuleOrigin.INTERACTIVE,
        lighter: Optional[str] = None,
        anchor: int = 0
    ) -> RegistrationResult:
        """
        Register a pattern and render it.

        In static overlay mode the rule is scanned at once over the window
        around ``anchor``; when nothing matches the rule is retracted and
        the result is ROLLED_BACK.

        Raises:
            InvalidPatternError: Pattern rejected, nothing changed
        """
        if case_fold is None:
            case_fold = self.options.case_fold_for(pattern)

        with self.store.lock:
            result = self.store.register(
                pattern, appearance, transform,
                subexp=subexp,
                case_fold=case_fold,
                origin=origin,
                lighter=lighter,
            )

            if result.added and self._host is not None:
                self._render_new_rule(result, anchor)

        if result.warning is not None:
            logging.info(f"Highlighter - {result.warning}")
        return result

    def _render_new_rule(self, result: RegistrationResult, anchor: int) -> None:
        host = self._host
        rule = result.rule

        if host.supports_incremental_render():
            host.notify_render_invalidated(host.full_range())
            return

        text = host.get_document_text()
        text_range = self.engine.range_for(host, anchor)
        spans = self.engine.scan_rule(text, text_range, rule)

        if not spans:
            self.store.remove(rule.pattern)
            result.status = RegistrationStatus.ROLLED_BACK
            result.warning = EmptyMatchRollback(
                f"Pattern {rule.pattern!r} not found in "
                f"[{text_range.start}, {text_range.end})"
            )
            return

        host.render_overlays(spans)
        result.match_count = len(spans)

    def remove(self, pattern: str) -> bool:
        """Remove a rule; False when the pattern is not active."""
        removed = self.store.remove(pattern)
        if removed and self._host is not None:
            self._host.clear_overlays(pattern)
            self._host.notify_render_invalidated(self._host.full_range())
        return removed

    def remove_all(self) -> list[Rule]:
        removed = self.store.remove_all()
        if removed and self._host is not None:
            self._host.clear_overlays()
            self._host.notify_render_invalidated(self._host.full_range())
        return removed

    def rules(self) -> list[Rule]:
        return self.store.list()

    # -------------------------------------------------------------------------
    # Scanning
    # -------------------------------------------------------------------------

    def scan(
        self,
        text: Optional[str] = None,
        text_range: Optional[TextRange] = None,
        anchor: int = 0
    ) -> Iterator[MatchSpan]:
        """
        Scan text (the host document by default) with the active rules.

        Rules are visited most recent first. Scanning the document of a
        static host without a range covers the window around ``anchor``.
        """
        if text is None:
            if self._host is None:
                raise RuntimeError("No text given and no host attached")
            text = self._host.get_document_text()
            if text_range is None:
                text_range = self.engine.range_for(self._host, anchor)
        return self.engine.scan(text, text_range, self.store.list())

    def refresh(self, anchor: int = 0) -> int:
        """
        Re-render the active rules.

        Static hosts get their overlays recomputed around ``anchor``;
        incremental hosts are told the whole document is stale.

        Returns:
            Number of overlays placed (0 for incremental hosts)
        """
        host = self._host
        if host is None:
            return 0

        if host.supports_incremental_render():
            host.notify_render_invalidated(host.full_range())
            return 0

        host.clear_overlays()
        text = host.get_document_text()
        text_range = self.engine.range_for(host, anchor)
        # Oldest first so the most recent rule ends up on top
        spans = list(self.engine.scan(text, text_range, reversed(self.store.list())))
        host.render_overlays(spans)
        return len(spans)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def highlight_regexp(
        self,
        pattern: str,
        face: Optional[str] = None,
        subexp: int = 0,
        anchor: int = 0
    ) -> RegistrationResult:
        appearance = {'face': face} if face else None
        return self.register(pattern, appearance, subexp=subexp, anchor=anchor)

    def highlight_phrase(
        self,
        phrase: str,
        face: Optional[str] = None,
        anchor: int = 0
    ) -> RegistrationResult:
        """Highlight a phrase, tolerant of capitalised initials and line breaks."""
        appearance = {'face': face} if face else None
        return self.register(
            phrase_to_pattern(phrase), appearance,
            case_fold=self.options.case_fold_for(phrase),
            lighter=phrase,
            anchor=anchor,
        )

    def highlight_lines(
        self,
        pattern: str,
        face: Optional[str] = None,
        anchor: int = 0
    ) -> RegistrationResult:
        """Highlight every whole line matching ``pattern``."""
        appearance = {'face': face} if face else None
        return self.register(
            line_pattern(pattern), appearance,
            case_fold=self.options.case_fold_for(pattern),
            lighter=pattern,
            anchor=anchor,
        )

    def highlight_symbol(
        self,
        symbol: str,
        face: Optional[str] = None,
        anchor: int = 0
    ) -> RegistrationResult:
        appearance = {'face': face} if face else None
        return self.register(
            symbol_pattern(symbol), appearance,
            case_fold=False,
            lighter=symbol,
            anchor=anchor,
        )

    def unhighlight(self, pattern: Optional[str] = None) -> bool:
        """Remove one pattern, or every pattern when None."""
        if pattern is None:
            return bool(self.remove_all())
        return self.remove(pattern)

    # -------------------------------------------------------------------------
    # Header patterns
    # -------------------------------------------------------------------------

    def import_file_patterns(
        self,
        text: Optional[str] = None,
        policy: Optional[PolicyLike] = None,
        ask: Optional[PatternPredicate] = None
    ) -> ImportReport:
        """
        Read patterns stored at the top of the document.

        Accepted patterns replace those read earlier and are registered
        with origin FILE. Malformed entries and invalid patterns are
        reported, not raised.
        """
        if text is None:
            if self._host is None:
                raise RuntimeError("No text given and no host attached")
            text = self._host.get_document_text()

        found = find_file_patterns(
            text,
            self.options.file_patterns_prefix,
            self.options.file_patterns_range,
        )
        report = ImportReport(descriptors=found.descriptors, diagnostics=found.diagnostics)

        if policy is None:
            policy = self.options.file_patterns_policy
        report.accepted = accept_patterns(found.descriptors, policy, ask)
        if not report.accepted:
            return report

        replaced = self.store.remove_origin(RuleOrigin.FILE)
        if replaced and self._host is not None:
            for rule in replaced:
                self._host.clear_overlays(rule.pattern)
            self._host.notify_render_invalidated(self._host.full_range())

        for descriptor in found.descriptors:
            try:
                report.results.append(self.register(
                    descriptor['pattern'],
                    descriptor.get('appearance'),
                    subexp=descriptor.get('subexp', 0),
                    case_fold=descriptor.get('case_fold', False),
                    origin=RuleOrigin.FILE,
                ))
            except InvalidPatternError as e:
                logging.warning(f"Highlighter - Ignoring file pattern: {e}")
                report.errors.append(e)

        return report

    def export_patterns(
        self,
        comment_start: str = "",
        comment_end: str = "",
        origins: Optional[Iterable[RuleOrigin]] = None
    ) -> str:
        """
        Marker block for the active rules.

        Every rule is written unless ``origins`` restricts the block to
        rules of those origins.
        """
        rules = self.store.list()
        if origins is not None:
            wanted = set(origins)
            rules = [r for r in rules if r.origin in wanted]
        return format_patterns(
            rules,
            self.options.file_patterns_prefix,
            comment_start,
            comment_end,
            self.options.file_patterns_range,
        )
