import json

from hilock.core.file_patterns import FilePatternsPolicy
from hilock.services.settings import (
    ApplicationSettings,
    HighlightSettings,
    SettingsManager,
    Theme,
)


def test_defaults_when_missing(tmp_path):
    manager = SettingsManager(tmp_path / "settings.json")
    settings = manager.settings
    assert settings.highlight.default_face == "hi-yellow"
    assert settings.highlight.file_patterns_policy == FilePatternsPolicy.ASK


def test_save_and_load(tmp_path):
    path = tmp_path / "nested" / "settings.json"
    manager = SettingsManager(path)
    settings = ApplicationSettings()
    settings.highlight.file_patterns_policy = FilePatternsPolicy.ALWAYS
    settings.highlight.highlight_range = 500
    settings.ui.theme = Theme.DARK
    assert manager.save(settings)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["highlight"]["file_patterns_policy"] == "always"
    assert data["ui"]["theme"] == "dark"

    loaded = SettingsManager(path).load()
    assert loaded.highlight.file_patterns_policy == FilePatternsPolicy.ALWAYS
    assert loaded.highlight.highlight_range == 500
    assert loaded.ui.theme == Theme.DARK


def test_corrupt_file_falls_back(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    assert SettingsManager(path).load() == ApplicationSettings()


def test_partial_file_keeps_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"highlight": {"default_face": "hi-pink"}}), encoding="utf-8")
    settings = SettingsManager(path).load()
    assert settings.highlight.default_face == "hi-pink"
    assert settings.highlight.file_patterns_range == HighlightSettings().file_patterns_range


def test_observers_notified(tmp_path):
    manager = SettingsManager(tmp_path / "settings.json")
    seen = []
    manager.add_observer(seen.append)
    manager.reset()
    assert len(seen) == 1


def test_recent_files(tmp_path):
    manager = SettingsManager(tmp_path / "settings.json")
    manager.settings.ui.recent_files_limit = 2
    for path in ("a.txt", "b.txt", "a.txt", "c.txt"):
        manager.add_recent_file(path)
    assert manager.settings.recent_files == ["c.txt", "a.txt"]


def test_to_options():
    settings = HighlightSettings(search_upper_case=False, highlight_range=42)
    options = settings.to_options()
    assert options.highlight_range == 42
    assert not options.search_upper_case
    assert options.faces == settings.faces
    assert options.faces is not settings.faces


def test_reads_file_patterns():
    settings = HighlightSettings(exclude_extensions=[".LOG"])
    assert not settings.reads_file_patterns("/tmp/build.log")
    assert settings.reads_file_patterns("/tmp/notes.txt")


def test_theme_from_string():
    assert Theme.from_string("Dark") == Theme.DARK
    assert Theme.from_string("unknown") == Theme.SYSTEM
