import os

import pytest

from hilock.core.highlighter import Highlighter, HighlightOptions
from hilock.core.host import PlainTextHost
from hilock.core.patterns import PatternTable

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


SAMPLE_TEXT = (
    "# Notes\n"
    "TODO: write the parser\n"
    "the parser reads tokens\n"
    "FIXME later, TODO now\n"
)


@pytest.fixture
def sample_text():
    return SAMPLE_TEXT


@pytest.fixture
def table():
    return PatternTable()


@pytest.fixture
def options():
    # Exact-case matching keeps expectations simple
    return HighlightOptions(search_upper_case=False)


@pytest.fixture
def incremental_host(sample_text):
    return PlainTextHost(sample_text, incremental=True)


@pytest.fixture
def static_host(sample_text):
    return PlainTextHost(sample_text, incremental=False)


@pytest.fixture
def session(options, table, incremental_host):
    highlighter = Highlighter(options, table=table)
    highlighter.attach(incremental_host)
    return highlighter


@pytest.fixture
def static_session(options, table, static_host):
    highlighter = Highlighter(options, table=table)
    highlighter.attach(static_host)
    return highlighter


@pytest.fixture(scope="session")
def qapp():
    QtWidgets = pytest.importorskip("PyQt6.QtWidgets")
    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication([])
    yield app
