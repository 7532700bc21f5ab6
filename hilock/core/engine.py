"""
Match engine.

Provides:
- Lazy scanning of rules over a text range
- Non-overlapping forward matching per rule
- Static overlay window computation
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from hilock.core.appearance import AppearanceResolver
from hilock.core.host import HostAdapter
from hilock.core.models import MatchSpan, Rule, TextRange


DEFAULT_WINDOW_SIZE = 200000


def scan_window(
    document_length: int,
    anchor: int,
    window_size: int = DEFAULT_WINDOW_SIZE
) -> TextRange:
    """
    Window of text scanned when the host cannot re-render incrementally.

    The window holds ``min(document_length, window_size)`` characters
    centred on ``anchor``. When one side runs into a document edge the
    shortfall is moved to the other side.

    Example:
        scan_window(1000, 950, 200) == TextRange(800, 1000)
    """
    if window_size < 0:
        raise ValueError(f"Invalid window size: {window_size}")

    size = min(document_length, window_size)
    anchor = max(0, min(anchor, document_length))

    start = max(0, anchor - size // 2)
    end = min(document_length, start + size)
    start = max(0, end - size)

    return TextRange(start, end)


class MatchEngine:
    """
    Scans text for rule matches.

    Rules are scanned independently, in the order given, so spans of
    different rules may overlap. The store lists rules most recent first
    and the most recent rule is painted on top: renderers that paint in
    order should scan ``reversed(rules)``.
    """

    def __init__(
        self,
        resolver: Optional[AppearanceResolver] = None,
        window_size: int = DEFAULT_WINDOW_SIZE
    ):
        self.resolver = resolver or AppearanceResolver()
        self.window_size = window_size

    def scan(
        self,
        text: str,
        text_range: Optional[TextRange] = None,
        rules: Iterable[Rule] = ()
    ) -> Iterator[MatchSpan]:
        """
        Yield match spans for each rule.

        Args:
            text: Text to scan; offsets are relative to it
            text_range: Range to search, the whole text when None
            rules: Rules to apply

        Yields:
            MatchSpan per match, in scan order per rule
        """
        if text_range is None:
            text_range = TextRange(0, len(text))
        else:
            text_range = text_range.clamp(len(text))

        for rule in rules:
            yield from self._scan_rule(text, text_range, rule)

    def scan_rule(
        self,
        text: str,
        text_range: Optional[TextRange],
        rule: Rule
    ) -> list[MatchSpan]:
        """Eagerly scan a single rule."""
        return list(self.scan(text, text_range, (rule,)))

    def _scan_rule(
        self,
        text: str,
        text_range: TextRange,
        rule: Rule
    ) -> Iterator[MatchSpan]:
        for match in rule.compiled.finditer(text, text_range.start, text_range.end):
            start, end = match.span(rule.subexp)

            # Group did not take part, or matched nothing
            if start < 0 or start == end:
                continue

            yield MatchSpan(
                start=start,
                end=end,
                rule_id=rule.rule_id,
                pattern=rule.pattern,
                appearance=self.resolver.resolve(rule.appearance, rule.transform),
            )

    def range_for(self, host: HostAdapter, anchor: int = 0) -> TextRange:
        """
        Range eligible for scanning on a host.

        Incremental hosts re-scan the whole document themselves; static
        hosts get a bounded window around ``anchor``.
        """
        length = host.document_length()
        if host.supports_incremental_render():
            return TextRange(0, length)
        return scan_window(length, anchor, self.window_size)
