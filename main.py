"""
Main entry point for the Hi-Lock highlighting tool.

This module handles:
- Command line argument parsing
- Logging configuration
- Headless listing and export of highlights
- Main window creation
- Exception handling
"""

from __future__ import annotations

import argparse
import bisect
import faulthandler
import logging
import sys
import traceback
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional, List

from hilock.core.file_patterns import FilePatternsPolicy
from hilock.core.highlighter import Highlighter
from hilock.core.host import PlainTextHost
from hilock.core.models import InvalidPatternError, MatchSpan, RegistrationResult
from hilock.services.file_io import BinaryFileError, DocumentReader
from hilock.services.settings import ApplicationSettings, SettingsManager


# =============================================================================
# Constants
# =============================================================================

APP_NAME = "hilock"
APP_DISPLAY_NAME = "Hi-Lock"
APP_VERSION = "1.0.0"

APP_DIR = Path(__file__).parent
LOGS_DIR = APP_DIR / "logs"


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class CommandLineArgs:
    """Parsed command line arguments."""
    path: Optional[str] = None
    regexps: List[str] = field(default_factory=list)
    phrases: List[str] = field(default_factory=list)
    lines: List[str] = field(default_factory=list)
    symbols: List[str] = field(default_factory=list)
    face: Optional[str] = None
    static: bool = False
    file_patterns_policy: Optional[FilePatternsPolicy] = None
    list_spans: bool = False
    export: bool = False
    comment_start: str = ""
    config_file: Optional[str] = None
    reset_settings: bool = False
    log_level: str = "INFO"
    debug: bool = False

    @property
    def headless(self) -> bool:
        return self.list_spans or self.export


# =============================================================================
# Logging Setup
# =============================================================================

class LogFormatter(logging.Formatter):
    """Custom log formatter with colors for console."""

    COLORS = {
        logging.INFO: '\033[32m',      # Green
        logging.WARNING: '\033[33m',   # Yellow
        logging.ERROR: '\033[31m',     # Red
        logging.CRITICAL: '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)

        if self.use_colors:
            color = self.COLORS.get(record.levelno, '')
            return f"{color}{formatted}{self.RESET}"

        return formatted


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configure application logging.

    Console output goes to stderr so that listings on stdout stay clean.

    Args:
        level: Log level string
        log_file: Optional file path for logging

    Returns:
        Root logger instance
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(LogFormatter(use_colors=True))
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(LogFormatter(use_colors=False))
        root_logger.addHandler(file_handler)

    return root_logger


# =============================================================================
# Exception Handling
# =============================================================================

class ExceptionHandler:
    """
    Global exception handler for unhandled exceptions.

    Logs the exception and, when a window is up, shows it.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self._gui = False

    def set_gui(self, enabled: bool) -> None:
        self._gui = enabled

    def handle_exception(
        self,
        exc_type: type,
        exc_value: BaseException,
        exc_tb
    ) -> None:
        """Handle an unhandled exception."""
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return

        self.logger.critical(
            "Unhandled exception",
            exc_info=(exc_type, exc_value, exc_tb)
        )

        if self._gui:
            self._show_error_dialog(exc_type, exc_value, traceback.format_exception(exc_type, exc_value, exc_tb))

    def _show_error_dialog(
        self,
        exc_type: type,
        exc_value: BaseException,
        tb_lines: List[str]
    ) -> None:
        from PyQt6.QtWidgets import QApplication, QMessageBox

        if not QApplication.instance():
            return

        dialog = QMessageBox()
        dialog.setIcon(QMessageBox.Icon.Critical)
        dialog.setWindowTitle("Application Error")
        dialog.setText(f"An unexpected error occurred:\n\n{exc_type.__name__}: {exc_value}")
        dialog.setDetailedText(''.join(tb_lines))
        dialog.exec()


# =============================================================================
# Command Line Parsing
# =============================================================================

def parse_arguments(args: Optional[List[str]] = None) -> CommandLineArgs:
    """
    Parse command line arguments.

    Args:
        args: Arguments to parse (defaults to sys.argv)

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Interactive regular-expression highlighting",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s notes.txt -e 'TODO|FIXME'         Open with a highlighted regexp
  %(prog)s notes.txt -p 'hello world' --list List phrase matches
  %(prog)s notes.txt -e foo --export -C '# ' Print a pattern header block
        """
    )

    parser.add_argument(
        'path',
        nargs='?',
        help='Text file to open (stdin when listing without a file)'
    )

    # Highlight commands
    parser.add_argument(
        '-e', '--regexp',
        action='append', default=[],
        help='Highlight a regular expression (repeatable)'
    )
    parser.add_argument(
        '-p', '--phrase',
        action='append', default=[],
        help='Highlight a phrase (repeatable)'
    )
    parser.add_argument(
        '-l', '--lines',
        action='append', default=[],
        help='Highlight lines matching a regexp (repeatable)'
    )
    parser.add_argument(
        '-s', '--symbol',
        action='append', default=[],
        help='Highlight a symbol (repeatable)'
    )
    parser.add_argument(
        '--face',
        help='Face for the patterns given on the command line'
    )
    parser.add_argument(
        '--static',
        action='store_true',
        help='Use static overlays instead of incremental highlighting'
    )

    # Header patterns
    policy_group = parser.add_mutually_exclusive_group()
    policy_group.add_argument(
        '--accept-file-patterns',
        action='store_true',
        help='Read patterns from the file header without asking'
    )
    policy_group.add_argument(
        '--ignore-file-patterns',
        action='store_true',
        help='Never read patterns from the file header'
    )

    # Output
    parser.add_argument(
        '--list',
        action='store_true',
        help='Print matches instead of opening a window'
    )
    parser.add_argument(
        '--export',
        action='store_true',
        help='Print the pattern header block instead of opening a window'
    )
    parser.add_argument(
        '-C', '--comment-start',
        default='',
        help='Prefix for exported header lines'
    )

    # Configuration
    parser.add_argument(
        '-c', '--config',
        help='Configuration file path'
    )
    parser.add_argument(
        '--reset-settings',
        action='store_true',
        help='Reset all settings to defaults'
    )

    # Logging
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug mode'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default='WARNING',
        help='Log level'
    )

    parsed = parser.parse_args(args)

    policy = None
    if parsed.accept_file_patterns:
        policy = FilePatternsPolicy.ALWAYS
    elif parsed.ignore_file_patterns:
        policy = FilePatternsPolicy.NEVER

    log_level = parsed.log_level
    if parsed.debug:
        log_level = 'DEBUG'
    elif parsed.verbose:
        log_level = 'INFO'

    return CommandLineArgs(
        path=parsed.path,
        regexps=parsed.regexp,
        phrases=parsed.phrase,
        lines=parsed.lines,
        symbols=parsed.symbol,
        face=parsed.face,
        static=parsed.static,
        file_patterns_policy=policy,
        list_spans=parsed.list,
        export=parsed.export,
        comment_start=parsed.comment_start,
        config_file=parsed.config,
        reset_settings=parsed.reset_settings,
        log_level=log_level,
        debug=parsed.debug,
    )


# =============================================================================
# Setup
# =============================================================================

def setup_settings(args: CommandLineArgs) -> SettingsManager:
    """Load settings, honouring --config and --reset-settings."""
    manager = SettingsManager(Path(args.config_file) if args.config_file else None)
    if args.reset_settings:
        manager.reset()
    return manager


def apply_commands(
    session: Highlighter,
    args: CommandLineArgs,
    anchor: int = 0
) -> List[RegistrationResult]:
    """
    Register the patterns given on the command line.

    Raises:
        InvalidPatternError: a pattern was rejected
    """
    results = []
    for pattern in args.regexps:
        results.append(session.highlight_regexp(pattern, args.face, anchor=anchor))
    for phrase in args.phrases:
        results.append(session.highlight_phrase(phrase, args.face, anchor=anchor))
    for pattern in args.lines:
        results.append(session.highlight_lines(pattern, args.face, anchor=anchor))
    for symbol in args.symbols:
        results.append(session.highlight_symbol(symbol, args.face, anchor=anchor))

    for result in results:
        if result.warning is not None:
            logging.warning(str(result.warning))
    return results


def format_span(line_starts: List[int], span: MatchSpan) -> str:
    """One listing line: ``line:col-col<TAB>pattern<TAB>face``."""
    line = bisect.bisect_right(line_starts, span.start)
    column = span.start - line_starts[line - 1] + 1
    face = span.appearance.get('face') if isinstance(span.appearance, dict) else span.appearance
    return f"{line}:{column}-{column + span.length}\t{span.pattern}\t{face}"


def line_starts_of(text: str) -> List[int]:
    starts = [0]
    for index, char in enumerate(text):
        if char == '\n':
            starts.append(index + 1)
    return starts


def run_headless(args: CommandLineArgs, settings: ApplicationSettings) -> int:
    """List matches or export the header block without a window."""
    if args.path:
        text = DocumentReader().read(args.path).text
    else:
        text = sys.stdin.read()

    host = PlainTextHost(text, incremental=not args.static)
    session = Highlighter(settings.highlight.to_options())
    session.attach(host)

    if args.path is None or settings.highlight.reads_file_patterns(args.path):
        report = session.import_file_patterns(policy=args.file_patterns_policy)
        for diagnostic in report.diagnostics:
            print(f"warning: {diagnostic}", file=sys.stderr)

    try:
        apply_commands(session, args)
    except InvalidPatternError as e:
        logging.error(str(e))
        print(f"error: {e}", file=sys.stderr)
        return 2

    if args.export:
        sys.stdout.write(session.export_patterns(args.comment_start))

    if args.list_spans:
        if host.supports_incremental_render():
            spans = list(session.scan())
        else:
            spans = list(host.overlays)
        line_starts = line_starts_of(text)
        for span in sorted(spans, key=lambda s: (s.start, s.end)):
            print(format_span(line_starts, span))

    return 0


def run_gui(args: CommandLineArgs, settings_manager: SettingsManager, handler: ExceptionHandler) -> int:
    """Open the main window."""
    from PyQt6.QtWidgets import QApplication, QMessageBox
    from hilock.ui.main_window import MainWindow
    from hilock.ui.theme import setup_theme

    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setApplicationDisplayName(APP_DISPLAY_NAME)
    app.setApplicationVersion(APP_VERSION)
    handler.set_gui(True)
    setup_theme(app, settings_manager.settings.ui.theme)

    window = MainWindow(settings_manager, static=args.static)
    if args.path:
        window.open_file(args.path)

    try:
        apply_commands(window.session, args, window.anchor())
    except InvalidPatternError as e:
        QMessageBox.warning(window, APP_DISPLAY_NAME, str(e))

    window.show()
    return app.exec()


# =============================================================================
# Main Function
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    Application main entry point.

    Returns:
        Exit code (0 for success)
    """
    faulthandler.enable()

    args = parse_arguments(argv)

    log_file = LOGS_DIR / f"{APP_NAME}_{datetime.now():%Y%m%d}.log" if args.debug else None
    logger = setup_logging(args.log_level, log_file)
    logger.info(f"Starting {APP_NAME} v{APP_VERSION}")

    exception_handler = ExceptionHandler(logger)
    sys.excepthook = exception_handler.handle_exception

    settings_manager = setup_settings(args)

    try:
        if args.headless:
            return run_headless(args, settings_manager.settings)
        return run_gui(args, settings_manager, exception_handler)
    except (OSError, BinaryFileError) as e:
        logger.error(f"Cannot open {args.path}: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 1


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == '__main__':
    sys.exit(main())
