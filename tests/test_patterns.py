import re
import threading

import pytest

from hilock.core.models import InvalidPatternError
from hilock.core.patterns import (
    BASE_FLAGS,
    PatternTable,
    compile_flags,
    has_no_upper_case,
    line_pattern,
    matches_empty,
    phrase_to_pattern,
    symbol_pattern,
    validate_pattern,
)


class TestValidatePattern:

    @pytest.mark.parametrize("pattern", [None, "", "a*", "x?", "^", "$", "(?:)", "a|"])
    def test_rejects_unset_or_empty_matching(self, pattern, table):
        with pytest.raises(InvalidPatternError):
            validate_pattern(pattern, table=table)

    def test_rejects_bad_syntax(self, table):
        with pytest.raises(InvalidPatternError) as info:
            validate_pattern("(unclosed", table=table)
        assert "does not compile" in info.value.reason

    def test_rejects_non_string(self, table):
        with pytest.raises(InvalidPatternError):
            validate_pattern(42, table=table)

    def test_accepts_and_interns(self, table):
        compiled = validate_pattern("foo+", table=table)
        assert compiled.flags & re.MULTILINE
        assert ("foo+", BASE_FLAGS) in table

    def test_case_fold_flag(self, table):
        compiled = validate_pattern("foo", case_fold=True, table=table)
        assert compiled.search("FOO")

    def test_invalid_pattern_error_is_value_error(self):
        assert issubclass(InvalidPatternError, ValueError)


class TestPatternTable:

    def test_same_instance_for_equal_patterns(self, table):
        first = table.intern("abc")
        second = table.intern("abc")
        assert first is second
        assert len(table) == 1

    def test_flags_are_part_of_key(self, table):
        plain = table.intern("abc", compile_flags(False))
        folded = table.intern("abc", compile_flags(True))
        assert plain is not folded
        assert len(table) == 2

    def test_concurrent_insert_keeps_one_entry(self, table):
        seen = []

        def worker():
            seen.append(table.intern("shared"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(table) == 1
        assert all(compiled is seen[0] for compiled in seen)


class TestPhraseToPattern:

    def test_conversion(self):
        assert phrase_to_pattern("hello world") == r"[Hh]ello\s+[Ww]orld"

    def test_matches_variants(self):
        pattern = phrase_to_pattern("hello world")
        assert re.search(pattern, "Hello World")
        assert re.search(pattern, "hello\nworld")
        assert re.search(pattern, "HELLO   WORLD", re.IGNORECASE)

    def test_rejects_non_matches(self):
        pattern = phrase_to_pattern("hello world")
        assert not re.search(pattern, "helloworld")
        assert not re.search(pattern, "Xello World")
        assert not re.search(pattern, "helloworld", re.IGNORECASE)
        assert not re.search(pattern, "Xello World", re.IGNORECASE)

    def test_upper_case_initials_kept(self):
        assert phrase_to_pattern("Hello  there") == r"Hello\s+[Tt]here"

    def test_whitespace_runs_collapse(self):
        assert phrase_to_pattern("a \t\n b") == r"[Aa]\s+[Bb]"


class TestOtherBuilders:

    def test_line_pattern_highlights_whole_line(self):
        compiled = re.compile(line_pattern("TODO"), re.MULTILINE)
        match = compiled.search("first\nsay TODO here\nlast\n")
        assert match.group() == "say TODO here\n"

    def test_line_pattern_last_line_without_newline(self):
        compiled = re.compile(line_pattern("end"), re.MULTILINE)
        assert compiled.search("a\nthe end").group() == "the end"

    def test_symbol_pattern(self):
        compiled = re.compile(symbol_pattern("foo"))
        assert [m.start() for m in compiled.finditer("foo foobar _foo (foo)")] == [0, 17]

    def test_symbol_pattern_escapes(self):
        assert re.search(symbol_pattern("a.b"), "a.b")
        assert not re.search(symbol_pattern("a.b"), "axb")

    @pytest.mark.parametrize("pattern,expected", [
        ("hello", True),
        (r"\W+foo", True),
        (r"\Sx", True),
        ("Hello", False),
        ("[A-Z]", False),
    ])
    def test_has_no_upper_case(self, pattern, expected):
        assert has_no_upper_case(pattern) is expected

    def test_matches_empty(self):
        assert matches_empty(re.compile("a*"))
        assert not matches_empty(re.compile("a+"))
