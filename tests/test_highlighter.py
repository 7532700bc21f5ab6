import pytest

from hilock.core.file_patterns import FilePatternsPolicy
from hilock.core.highlighter import Highlighter, HighlightOptions
from hilock.core.host import PlainTextHost
from hilock.core.models import (
    DuplicatePatternWarning,
    EmptyMatchRollback,
    InvalidPatternError,
    RegistrationStatus,
    RuleOrigin,
    TextRange,
)


class TestIncrementalHost:

    def test_register_invalidates_document(self, session, incremental_host):
        result = session.highlight_regexp('TODO')
        assert result.added
        assert incremental_host.invalidated[-1] == TextRange(0, len(incremental_host.text))
        assert incremental_host.overlays == []

    def test_no_rollback_without_matches(self, session):
        result = session.highlight_regexp('absent')
        assert result.status == RegistrationStatus.ADDED
        assert 'absent' in session.store

    def test_scan_host_text(self, session):
        session.highlight_regexp('TODO')
        spans = list(session.scan())
        assert [s.start for s in spans] == [8, 68]

    def test_scan_visits_most_recent_first(self, session):
        session.highlight_regexp('TODO')
        session.highlight_regexp('parser')
        patterns = [s.pattern for s in session.scan()]
        assert patterns[0] == 'parser'
        assert patterns[-1] == 'TODO'

    def test_edits_are_picked_up(self, session, incremental_host):
        session.highlight_regexp('tokens')
        incremental_host.set_text("no match here")
        assert list(session.scan()) == []
        incremental_host.set_text("tokens")
        assert len(list(session.scan())) == 1

    def test_remove_invalidates(self, session, incremental_host):
        session.highlight_regexp('TODO')
        before = len(incremental_host.invalidated)
        assert session.remove('TODO')
        assert len(incremental_host.invalidated) == before + 1

    def test_remove_missing_changes_nothing(self, session, incremental_host):
        session.highlight_regexp('TODO')
        free = session.store.allocator.free
        before = len(incremental_host.invalidated)
        assert not session.remove('nothing')
        assert session.store.allocator.free == free
        assert len(incremental_host.invalidated) == before


class TestStaticHost:

    def test_overlays_placed(self, static_session, static_host):
        result = static_session.highlight_regexp('TODO')
        assert result.match_count == 2
        assert [(s.start, s.end) for s in static_host.overlays] == [(8, 12), (68, 72)]

    def test_rollback_when_nothing_matches(self, static_session, static_host):
        result = static_session.highlight_regexp('absent')
        assert result.status == RegistrationStatus.ROLLED_BACK
        assert isinstance(result.warning, EmptyMatchRollback)
        assert 'absent' not in static_session.store
        assert static_host.overlays == []

    def test_rollback_frees_face(self, static_session):
        static_session.highlight_regexp('absent')
        assert static_session.store.allocator.free[0] == 'hi-yellow'
        assert static_session.highlight_regexp('TODO').rule.face == 'hi-yellow'

    def test_rollback_outside_window(self, options, table):
        options.highlight_range = 10
        text = "needle" + "." * 100
        host = PlainTextHost(text, incremental=False)
        session = Highlighter(options, table=table)
        session.attach(host)

        far = session.highlight_regexp('needle', anchor=90)
        assert far.status == RegistrationStatus.ROLLED_BACK

        near = session.highlight_regexp('needle', anchor=0)
        assert near.added
        assert near.match_count == 1

    def test_scan_limited_to_window(self, options, table):
        options.highlight_range = 20
        text = "needle" + "." * 100 + "needle"
        host = PlainTextHost(text, incremental=False)
        session = Highlighter(options, table=table)
        session.attach(host)
        session.highlight_regexp('needle', anchor=0)

        assert [s.start for s in session.scan()] == [0]
        assert [s.start for s in session.scan(anchor=len(text))] == [106]
        assert len(list(session.scan(text_range=host.full_range()))) == 2
        assert len(list(session.scan(text))) == 2

    def test_remove_clears_overlays(self, static_session, static_host):
        static_session.highlight_regexp('TODO')
        static_session.highlight_regexp('parser')
        static_session.remove('TODO')
        assert {s.pattern for s in static_host.overlays} == {'parser'}

    def test_refresh_paints_oldest_first(self, static_session, static_host):
        static_session.highlight_regexp('TODO')
        static_session.highlight_regexp('parser')
        count = static_session.refresh()
        assert count == 4
        assert static_host.overlays[0].pattern == 'TODO'
        assert static_host.overlays[-1].pattern == 'parser'


class TestRegistration:

    def test_duplicate_warning(self, session):
        session.highlight_regexp('TODO')
        result = session.highlight_regexp('TODO', 'hi-pink')
        assert result.status == RegistrationStatus.DUPLICATE
        assert isinstance(result.warning, DuplicatePatternWarning)
        assert session.store.get('TODO').face == 'hi-yellow'

    def test_invalid_pattern_raises(self, session):
        with pytest.raises(InvalidPatternError):
            session.highlight_regexp('x*')
        assert session.rules() == []

    def test_explicit_face(self, session):
        assert session.highlight_regexp('TODO', 'hi-green').rule.face == 'hi-green'

    def test_case_fold_for_lower_case(self, incremental_host, table):
        session = Highlighter(HighlightOptions(search_upper_case=True), table=table)
        session.attach(incremental_host)
        session.highlight_regexp('todo')
        assert session.store.get('todo').case_fold
        assert len(list(session.scan())) == 2

    def test_upper_case_matches_exactly(self, incremental_host, table):
        session = Highlighter(HighlightOptions(search_upper_case=True), table=table)
        session.attach(incremental_host)
        session.highlight_regexp('Todo')
        assert not session.store.get('Todo').case_fold
        assert list(session.scan()) == []

    def test_attach_starts_empty(self, session):
        session.highlight_regexp('TODO')
        session.attach(PlainTextHost("other"))
        assert session.rules() == []
        assert session.store.allocator.free[0] == 'hi-yellow'

    def test_detach(self, static_session, static_host):
        static_session.highlight_regexp('TODO')
        static_session.detach()
        assert not static_session.is_attached
        assert static_host.overlays == []
        assert static_session.rules() == []

    def test_scan_without_host(self, options, table):
        session = Highlighter(options, table=table)
        with pytest.raises(RuntimeError):
            list(session.scan())

    def test_scan_explicit_text_without_host(self, options, table):
        session = Highlighter(options, table=table)
        session.highlight_regexp('ab')
        assert len(list(session.scan("ab ab"))) == 2


class TestCommands:

    def test_highlight_phrase(self, session):
        result = session.highlight_phrase('the parser')
        assert result.rule.pattern == r'[Tt]he\s+[Pp]arser'
        assert result.rule.lighter == 'the parser'
        assert len(list(session.scan())) == 2

    def test_highlight_lines(self, session):
        session.highlight_lines('FIXME')
        spans = list(session.scan())
        assert [(s.start, s.end) for s in spans] == [(55, 77)]

    def test_highlight_symbol(self, session, incremental_host):
        incremental_host.set_text("parse parser parse_all parse")
        session.highlight_symbol('parse')
        assert [s.start for s in session.scan()] == [0, 23]

    def test_unhighlight_one(self, session):
        session.highlight_regexp('TODO')
        session.highlight_regexp('parser')
        assert session.unhighlight('TODO')
        assert [r.pattern for r in session.rules()] == ['parser']

    def test_unhighlight_all(self, session):
        session.highlight_regexp('TODO')
        session.highlight_regexp('parser')
        assert session.unhighlight()
        assert session.rules() == []
        assert not session.unhighlight()


class TestFilePatterns:

    HEADER = (
        '# Hi-lock: ({"pattern": "TODO", "face": "hi-pink"})\n'
        '# Hi-lock: ("parser")\n'
        '# Hi-lock: end\n'
        'TODO: write the parser\n'
    )

    def test_import_accepted(self, session):
        report = session.import_file_patterns(self.HEADER, policy=FilePatternsPolicy.ALWAYS)
        assert report.accepted
        assert [r.pattern for r in report.rules] == ['TODO', 'parser']
        assert session.store.get('TODO').face == 'hi-pink'
        assert session.store.get('TODO').origin == RuleOrigin.FILE

    def test_import_rejected(self, session):
        report = session.import_file_patterns(self.HEADER, policy=FilePatternsPolicy.NEVER)
        assert not report.accepted
        assert len(report.descriptors) == 2
        assert session.rules() == []

    def test_ask_callback(self, session):
        asked = []

        def ask(descriptors):
            asked.append(descriptors)
            return False

        report = session.import_file_patterns(self.HEADER, ask=ask)
        assert len(asked) == 1
        assert not report.accepted

    def test_reimport_replaces_file_rules(self, session):
        session.highlight_regexp('typed')
        session.import_file_patterns(self.HEADER, policy=FilePatternsPolicy.ALWAYS)
        session.import_file_patterns(
            '# Hi-lock: ("tokens")\n', policy=FilePatternsPolicy.ALWAYS
        )
        assert sorted(r.pattern for r in session.rules()) == ['tokens', 'typed']

    def test_invalid_imported_pattern_reported(self, session):
        text = '# Hi-lock: ("x*", "TODO")\n'
        report = session.import_file_patterns(text, policy=FilePatternsPolicy.ALWAYS)
        assert len(report.errors) == 1
        assert [r.pattern for r in report.rules] == ['TODO']

    def test_import_reads_host_text(self, options, table):
        host = PlainTextHost(self.HEADER)
        session = Highlighter(options, table=table)
        session.attach(host)
        report = session.import_file_patterns(policy=FilePatternsPolicy.ALWAYS)
        assert len(report.rules) == 2

    def test_export_round_trip(self, session, options, table):
        session.highlight_regexp('TODO', 'hi-pink')
        session.highlight_regexp(r'(\w+)er', subexp=1)
        session.import_file_patterns('# Hi-lock: ("tokens")\n', policy=FilePatternsPolicy.ALWAYS)

        block = session.export_patterns('# ')
        assert len(block.splitlines()) == 3

        other = Highlighter(options, table=table)
        other.attach(PlainTextHost(block))
        other.import_file_patterns(policy=FilePatternsPolicy.ALWAYS)

        restored = [(r.pattern, r.face, r.subexp) for r in other.rules()]
        assert restored == [
            ('tokens', 'hi-pink', 0),
            (r'(\w+)er', 'hi-yellow', 1),
            ('TODO', 'hi-pink', 0),
        ]

    def test_export_restricted_to_origins(self, session):
        session.highlight_regexp('TODO')
        session.import_file_patterns('# Hi-lock: ("tokens")\n', policy=FilePatternsPolicy.ALWAYS)

        block = session.export_patterns(origins=[RuleOrigin.INTERACTIVE])
        assert 'TODO' in block
        assert 'tokens' not in block

    def test_reimport_with_nothing_valid_invalidates(self, session, incremental_host):
        session.import_file_patterns('# Hi-lock: ("TODO")\n', policy=FilePatternsPolicy.ALWAYS)
        before = len(incremental_host.invalidated)

        report = session.import_file_patterns('# Hi-lock: ("x*")\n', policy=FilePatternsPolicy.ALWAYS)

        assert report.accepted
        assert report.rules == []
        assert session.rules() == []
        assert len(incremental_host.invalidated) == before + 1

    def test_reimport_clears_static_overlays(self, static_session, static_host):
        static_session.import_file_patterns('# Hi-lock: ("parser")\n', policy=FilePatternsPolicy.ALWAYS)
        assert static_host.overlays

        static_session.import_file_patterns('# Hi-lock: ("absent")\n', policy=FilePatternsPolicy.ALWAYS)
        assert static_host.overlays == []
