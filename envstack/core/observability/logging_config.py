"""
Logging configuration — central setup for the CLI entrypoint.

Called once at startup by main.py.  Every module that does
``logger = logging.getLogger(__name__)`` inherits this config.

The console level comes from the CLI flags, then ENVSTACK_LOG_LEVEL,
then WARNING:

    --debug     DEBUG     file:line diagnostics
    --verbose   INFO      per-package progress with timestamps
    (env var)   SUCCESS   run results, fallbacks and failures
    (default)   WARNING   fallbacks and failures
    --quiet     ERROR     failures only

ENVSTACK_LOG_FILE or --log-file adds a process-wide log file. Per-run
log files are handled separately by RunLog.
"""

from __future__ import annotations

import logging
import sys

# Between INFO and WARNING: a run or package finished cleanly
SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

# File output — always full detail
FMT_FILE = "%(asctime)s %(levelname)-7s %(name)s — %(message)s"
DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

# Console tiers: (highest level served, format, datefmt), lowest first
_CONSOLE_TIERS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-7s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s %(message)s", "%H:%M:%S"),
    (logging.WARNING, "%(message)s", None),
)
_FMT_QUIET = "%(levelname)s: %(message)s"


class _ConsoleFormatter(logging.Formatter):
    """Plain messages, with a marker on warnings and errors."""

    _MARKERS = {logging.WARNING: "⚠️  ", logging.ERROR: "❌ ", logging.CRITICAL: "❌ "}

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        return self._MARKERS.get(record.levelno, "") + text


def console_level(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    default: str | None = None,
) -> str:
    """Resolve the console level name from CLI flags."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return default or "WARNING"


def console_formatter(numeric_level: int) -> logging.Formatter:
    """Formatter for the console handler at a given level."""
    for ceiling, fmt, datefmt in _CONSOLE_TIERS:
        if numeric_level <= ceiling:
            if ceiling == logging.WARNING:
                return _ConsoleFormatter(fmt, datefmt=datefmt)
            return logging.Formatter(fmt, datefmt=datefmt)
    return logging.Formatter(_FMT_QUIET)


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure Python logging for the entire process.

    Args:
        level: Console level name (DEBUG, INFO, SUCCESS, WARNING, ERROR).
        log_file: Optional path to a process-wide log file.
        log_file_level: Level for the log file. Defaults to INFO so the
            file keeps per-package progress even when the console is quiet.
    """
    numeric_level = parse_level(level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(console_formatter(numeric_level))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    effective_level = numeric_level

    if log_file:
        file_level = parse_level(log_file_level or "INFO")
        effective_level = min(effective_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(FMT_FILE, datefmt=DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(effective_level)

    # Don't propagate exceptions from logging itself
    logging.raiseExceptions = False


def parse_level(level: str | None) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return logging.WARNING
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
