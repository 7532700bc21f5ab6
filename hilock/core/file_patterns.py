"""
Patterns persisted in a document header.

A document may carry highlight rules near its top, one marker line per
entry, usually inside comments::

    # Hi-lock: ({"pattern": "TODO", "appearance": {"face": "hi-pink"}})
    # Hi-lock: ("FIXME", {"pattern": "XXX+", "subexp": 0})
    # Hi-lock: end

The parenthesised body is a comma separated sequence of JSON descriptors.
A bare string stands for a pattern with the default face. Only the first
``search_range`` characters are searched, and a ``<prefix>: end`` line
stops the search. Malformed entries are skipped with a diagnostic.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Union

from hilock.core.models import MalformedImportExpression, Rule


DEFAULT_PREFIX = "Hi-lock"
DEFAULT_SEARCH_RANGE = 10000

_END_MARKER = re.compile(r'end\b')
_DECODER = json.JSONDecoder()


class FilePatternsPolicy(Enum):
    """What to do with patterns found in a document header."""
    ASK = "ask"          # Ask a callback
    ALWAYS = "always"    # Accept without asking
    NEVER = "never"      # Always reject

    @classmethod
    def from_string(cls, value: str) -> 'FilePatternsPolicy':
        """Create from string value."""
        try:
            for policy in cls:
                if policy.value == value.lower():
                    return policy
            return cls[value.upper()]
        except (KeyError, AttributeError):
            return cls.ASK


Descriptor = dict[str, Any]
PatternPredicate = Callable[[list[Descriptor]], bool]
PolicyLike = Union[FilePatternsPolicy, PatternPredicate]


@dataclass
class FilePatternScan:
    """Descriptors and diagnostics found in a header."""
    descriptors: list[Descriptor] = field(default_factory=list)
    diagnostics: list[MalformedImportExpression] = field(default_factory=list)
    end_line: Optional[int] = None      # Line of the end marker, if any


def _marker_regex(prefix: str) -> re.Pattern:
    return re.compile(rf'^.*?{re.escape(prefix)}:[ \t]*(?P<body>.*?)\s*$')


def parse_descriptor(
    value: Any,
    raw: str = "",
    line_number: int = 0
) -> Descriptor:
    """
    Normalise one decoded entry.

    Raises:
        MalformedImportExpression: entry has the wrong shape
    """
    if isinstance(value, str):
        return {'pattern': value}

    if not isinstance(value, dict):
        raise MalformedImportExpression(raw, "entry is not a string or object", line_number)

    pattern = value.get('pattern')
    if not isinstance(pattern, str):
        raise MalformedImportExpression(raw, "entry has no pattern string", line_number)

    descriptor: Descriptor = {'pattern': pattern}

    appearance = value.get('appearance')
    if appearance is None and 'face' in value:
        appearance = {'face': value['face']}
    if appearance is not None:
        if not isinstance(appearance, dict):
            raise MalformedImportExpression(raw, "appearance is not an object", line_number)
        descriptor['appearance'] = appearance

    subexp = value.get('subexp', 0)
    if not isinstance(subexp, int) or isinstance(subexp, bool) or subexp < 0:
        raise MalformedImportExpression(raw, "subexp is not a group number", line_number)
    descriptor['subexp'] = subexp

    case_fold = value.get('case_fold', False)
    if not isinstance(case_fold, bool):
        raise MalformedImportExpression(raw, "case_fold is not a boolean", line_number)
    descriptor['case_fold'] = case_fold

    return descriptor


def find_file_patterns(
    text: str,
    prefix: str = DEFAULT_PREFIX,
    search_range: int = DEFAULT_SEARCH_RANGE
) -> FilePatternScan:
    """
    Collect pattern descriptors from the top of a document.

    Args:
        text: Document text
        prefix: Marker prefix
        search_range: Only marker lines starting before this offset count

    Returns:
        FilePatternScan with well-formed descriptors and one diagnostic per
        malformed entry
    """
    result = FilePatternScan()
    marker = _marker_regex(prefix)

    offset = 0
    for line_number, line in enumerate(text.splitlines(keepends=True), start=1):
        if offset >= search_range:
            break
        offset += len(line)

        match = marker.match(line.rstrip('\r\n'))
        if not match:
            continue

        body = match.group('body')
        if _END_MARKER.match(body):
            result.end_line = line_number
            break

        for item in _decode_body(body, line_number):
            if isinstance(item, MalformedImportExpression):
                logging.warning(f"Skipping malformed {prefix} entry: {item}")
                result.diagnostics.append(item)
            else:
                result.descriptors.append(item)

    return result


def _decode_body(body: str, line_number: int) -> list[Union[Descriptor, MalformedImportExpression]]:
    """
    Decode the parenthesised body of one marker line.

    Text after the closing parenthesis, such as a comment terminator, is
    ignored.
    """
    if not body.startswith('('):
        return [MalformedImportExpression(body, "expected a parenthesised list", line_number)]

    try:
        values = _decode_values(body)
    except json.JSONDecodeError as e:
        return [MalformedImportExpression(body, f"invalid expression ({e.msg})", line_number)]
    except ValueError as e:
        return [MalformedImportExpression(body, str(e), line_number)]

    items: list[Union[Descriptor, MalformedImportExpression]] = []
    for value in values:
        try:
            items.append(parse_descriptor(value, json.dumps(value), line_number))
        except MalformedImportExpression as e:
            items.append(e)
    return items


def _decode_values(body: str) -> list[Any]:
    """JSON values separated by commas inside the parentheses of ``body``."""
    values: list[Any] = []
    pos = _skip_space(body, 1)
    if body.startswith(')', pos):
        return values

    while True:
        value, pos = _DECODER.raw_decode(body, pos)
        values.append(value)
        pos = _skip_space(body, pos)
        if body.startswith(')', pos):
            return values
        if not body.startswith(',', pos):
            raise ValueError("expected a parenthesised list")
        pos = _skip_space(body, pos + 1)


def _skip_space(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def accept_patterns(
    descriptors: list[Descriptor],
    policy: PolicyLike,
    ask: Optional[PatternPredicate] = None
) -> bool:
    """
    Apply an accept/reject policy to a set of descriptors.

    A callable policy is used as the predicate. ASK defers to ``ask`` and
    rejects when there is nobody to ask.
    """
    if not descriptors:
        return False
    if callable(policy) and not isinstance(policy, FilePatternsPolicy):
        return bool(policy(descriptors))
    if policy == FilePatternsPolicy.ALWAYS:
        return True
    if policy == FilePatternsPolicy.NEVER:
        return False
    if ask is None:
        logging.info("File patterns found but no one to ask; ignoring them")
        return False
    return bool(ask(descriptors))


def format_patterns(
    rules: Iterable[Rule],
    prefix: str = DEFAULT_PREFIX,
    comment_start: str = "",
    comment_end: str = "",
    search_range: int = DEFAULT_SEARCH_RANGE
) -> str:
    """
    Write rules as a block of marker lines.

    Rules are given most recent first, as the store lists them; lines are
    written oldest first so that reading them back restores the order.
    """
    lines = []
    for rule in reversed(list(rules)):
        descriptor = json.dumps(rule.to_descriptor(), ensure_ascii=False)
        lines.append(f"{comment_start}{prefix}: ({descriptor}){comment_end}\n")

    block = ''.join(lines)
    if len(block) > search_range:
        logging.warning(
            f"{prefix} block is {len(block)} characters, longer than the "
            f"{search_range} searched when the document is read back"
        )
    return block
