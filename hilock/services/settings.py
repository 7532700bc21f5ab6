"""
Application settings management.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Callable, Optional
from enum import Enum

from hilock.core.file_patterns import (
    DEFAULT_PREFIX,
    DEFAULT_SEARCH_RANGE,
    FilePatternsPolicy,
)
from hilock.core.engine import DEFAULT_WINDOW_SIZE
from hilock.core.highlighter import HighlightOptions
from hilock.core.styles import DEFAULT_FACE_ORDER


class Theme(Enum):
    """UI theme options."""
    SYSTEM = "system"
    LIGHT = "light"
    DARK = "dark"

    @classmethod
    def from_string(cls, value: str) -> 'Theme':
        """Create from string value."""
        try:
            # Try to match by value
            for theme in cls:
                if theme.value == value.lower():
                    return theme
            # Try to match by name
            return cls[value.upper()]
        except (KeyError, AttributeError):
            return cls.SYSTEM


@dataclass
class HighlightSettings:
    """Settings for pattern highlighting."""
    default_face: str = "hi-yellow"
    faces: list[str] = field(default_factory=lambda: list(DEFAULT_FACE_ORDER))
    auto_select_face: bool = True
    search_upper_case: bool = True

    # Static overlay window, in characters
    highlight_range: int = DEFAULT_WINDOW_SIZE

    # Header patterns
    file_patterns_range: int = DEFAULT_SEARCH_RANGE
    file_patterns_prefix: str = DEFAULT_PREFIX
    file_patterns_policy: FilePatternsPolicy = FilePatternsPolicy.ASK
    exclude_extensions: list[str] = field(default_factory=list)

    def to_options(self) -> HighlightOptions:
        """Options for a highlighting session."""
        return HighlightOptions(
            default_face=self.default_face,
            faces=list(self.faces),
            auto_select_face=self.auto_select_face,
            highlight_range=self.highlight_range,
            file_patterns_range=self.file_patterns_range,
            file_patterns_prefix=self.file_patterns_prefix,
            file_patterns_policy=self.file_patterns_policy,
            search_upper_case=self.search_upper_case,
        )

    def reads_file_patterns(self, path: str) -> bool:
        """Whether header patterns of ``path`` may be read at all."""
        suffix = Path(path).suffix.lower()
        return suffix not in {ext.lower() for ext in self.exclude_extensions}


@dataclass
class UISettings:
    """User interface settings."""
    theme: Theme = Theme.LIGHT
    font_family: str = "Consolas"
    font_size: int = 10
    window_width: int = 1000
    window_height: int = 700
    window_maximized: bool = False
    recent_files_limit: int = 10


@dataclass
class ApplicationSettings:
    """Main application settings container."""
    highlight: HighlightSettings = field(default_factory=HighlightSettings)
    ui: UISettings = field(default_factory=UISettings)

    recent_files: list[str] = field(default_factory=list)
    last_directory: str = ""


class SettingsManager:
    """Manager for loading/saving application settings."""

    def __init__(self, settings_path: Optional[Path] = None):
        self.settings_path = settings_path or self._get_default_path()
        self._settings: Optional[ApplicationSettings] = None
        self._observers: list[Callable[[ApplicationSettings], None]] = []

    @staticmethod
    def _get_default_path() -> Path:
        """Get the default settings file path."""
        if os.name == 'nt':
            # Windows
            app_data = os.environ.get('APPDATA', os.path.expanduser('~'))
            return Path(app_data) / 'HiLock' / 'settings.json'
        else:
            # Linux/Mac
            config_home = os.environ.get('XDG_CONFIG_HOME',
                                         os.path.expanduser('~/.config'))
            return Path(config_home) / 'hilock' / 'settings.json'

    @property
    def settings(self) -> ApplicationSettings:
        """Get current settings, loading from disk if needed."""
        if self._settings is None:
            self._settings = self.load()
        return self._settings

    def load(self) -> ApplicationSettings:
        """Load settings from disk."""
        if not self.settings_path.exists():
            return ApplicationSettings()

        try:
            with open(self.settings_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return self._from_dict(data)
        except (OSError, ValueError) as e:
            logging.warning(f"SettingsManager - Failed to load {self.settings_path}: {e}")
            return ApplicationSettings()

    def save(self, settings: Optional[ApplicationSettings] = None) -> bool:
        """Save settings to disk."""
        settings = settings or self._settings
        if settings is None:
            return False

        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)

            data = self._to_dict(settings)

            with open(self.settings_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)

            self._settings = settings
            self._notify_observers()
            return True

        except OSError as e:
            logging.error(f"SettingsManager - Failed to save {self.settings_path}: {e}")
            return False

    def reset(self) -> ApplicationSettings:
        """Reset to default settings."""
        self._settings = ApplicationSettings()
        self.save()
        return self._settings

    def add_observer(self, callback: Callable[[ApplicationSettings], None]) -> None:
        """Add a callback to be notified of settings changes."""
        self._observers.append(callback)

    def remove_observer(self, callback: Callable[[ApplicationSettings], None]) -> None:
        """Remove a settings change observer."""
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify_observers(self) -> None:
        """Notify all observers of settings change."""
        for callback in self._observers:
            try:
                callback(self._settings)
            except Exception as e:
                logging.error(f"SettingsManager - Observer failed: {e}")

    def add_recent_file(self, path: str) -> None:
        """Add a path to the recent files list."""
        settings = self.settings
        recent = settings.recent_files

        # Remove if already exists
        if path in recent:
            recent.remove(path)

        # Add to front
        recent.insert(0, path)

        # Trim to limit
        settings.recent_files = recent[:settings.ui.recent_files_limit]

        self.save()

    def _to_dict(self, settings: ApplicationSettings) -> dict:
        """Convert settings to dictionary for JSON serialization."""
        def convert(obj: Any) -> Any:
            if isinstance(obj, Enum):
                return obj.value
            elif hasattr(obj, '__dataclass_fields__'):
                return {k: convert(getattr(obj, k)) for k in asdict(obj)}
            elif isinstance(obj, list):
                return [convert(item) for item in obj]
            elif isinstance(obj, dict):
                return {k: convert(v) for k, v in obj.items()}
            else:
                return obj

        return convert(settings)

    def _from_dict(self, data: dict) -> ApplicationSettings:
        """Convert dictionary back to settings objects."""
        defaults = HighlightSettings()
        highlight_data = data.get('highlight', {})
        highlight = HighlightSettings(
            default_face=highlight_data.get('default_face', defaults.default_face),
            faces=highlight_data.get('faces', defaults.faces),
            auto_select_face=highlight_data.get('auto_select_face', defaults.auto_select_face),
            search_upper_case=highlight_data.get('search_upper_case', defaults.search_upper_case),
            highlight_range=highlight_data.get('highlight_range', defaults.highlight_range),
            file_patterns_range=highlight_data.get('file_patterns_range', defaults.file_patterns_range),
            file_patterns_prefix=highlight_data.get('file_patterns_prefix', defaults.file_patterns_prefix),
            file_patterns_policy=FilePatternsPolicy.from_string(
                highlight_data.get('file_patterns_policy', defaults.file_patterns_policy.value)),
            exclude_extensions=highlight_data.get('exclude_extensions', defaults.exclude_extensions),
        )

        ui_data = data.get('ui', {})
        ui = UISettings(
            theme=Theme.from_string(ui_data.get('theme', 'light')),
            font_family=ui_data.get('font_family', 'Consolas'),
            font_size=ui_data.get('font_size', 10),
            window_width=ui_data.get('window_width', 1000),
            window_height=ui_data.get('window_height', 700),
            window_maximized=ui_data.get('window_maximized', False),
            recent_files_limit=ui_data.get('recent_files_limit', 10),
        )

        return ApplicationSettings(
            highlight=highlight,
            ui=ui,
            recent_files=data.get('recent_files', []),
            last_directory=data.get('last_directory', ''),
        )
