"""
Run log — the structured event sink for one provisioning run.

A RunLog is created per run and passed explicitly to every component
call (loader, validator, dispatcher, aggregator). It owns an optional
per-run log file that is opened at start and closed at the end:

    with RunLog(log_file=path) as log:
        summary = run_all(declarations, options, registry, log)

Events go to the ``envstack.run`` logger (so console output follows
setup_logging) and are kept in ``events`` for the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from envstack.core.observability.logging_config import DATEFMT_FILE, FMT_FILE, SUCCESS

RUN_LOGGER_NAME = "envstack.run"


@dataclass(frozen=True)
class LogEvent:
    """One structured log event."""

    level: str                 # info, success, warning, error, package
    message: str
    package: str | None = None
    status: str | None = None


class RunLog:
    """Explicit logging handle for one run.

    Args:
        log_file: Optional path of a per-run log file.
        logger: Logger to emit to (default: ``envstack.run``).
    """

    def __init__(
        self,
        log_file: Path | None = None,
        logger: logging.Logger | None = None,
    ):
        self._log_file = log_file
        self._logger = logger or logging.getLogger(RUN_LOGGER_NAME)
        self._handler: logging.FileHandler | None = None
        self._saved_level: int | None = None
        self._events: list[LogEvent] = []

    # ── Lifecycle ───────────────────────────────────────────────

    @property
    def is_open(self) -> bool:
        return self._handler is not None

    @property
    def log_file(self) -> Path | None:
        return self._log_file

    def open(self) -> RunLog:
        """Attach the per-run file handler. Idempotent."""
        if self._log_file is None or self._handler is not None:
            return self
        self._log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(self._log_file, encoding="utf-8")
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(FMT_FILE, datefmt=DATEFMT_FILE))
        self._logger.addHandler(handler)
        self._saved_level = self._logger.level
        if self._logger.level == logging.NOTSET or self._logger.level > logging.INFO:
            self._logger.setLevel(logging.INFO)
        self._handler = handler
        return self

    def close(self) -> None:
        """Detach and close the per-run file handler, restoring the logger level."""
        if self._handler is None:
            return
        self._logger.removeHandler(self._handler)
        self._handler.close()
        self._handler = None
        if self._saved_level is not None:
            self._logger.setLevel(self._saved_level)
            self._saved_level = None

    def __enter__(self) -> RunLog:
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ── Events ──────────────────────────────────────────────────

    @property
    def events(self) -> list[LogEvent]:
        """All events emitted so far, oldest first."""
        return list(self._events)

    def events_at(self, level: str) -> list[LogEvent]:
        return [e for e in self._events if e.level == level]

    def info(self, message: str) -> None:
        self._emit("info", logging.INFO, message)

    def success(self, message: str) -> None:
        self._emit("success", SUCCESS, message)

    def warning(self, message: str) -> None:
        self._emit("warning", logging.WARNING, message)

    def error(self, message: str) -> None:
        self._emit("error", logging.ERROR, message)

    def package_status(self, package: str, status: str, detail: str = "") -> None:
        """Record the status of one package."""
        message = f"[{status}] {package}"
        if detail:
            message = f"{message}: {detail}"
        level = logging.ERROR if status == "failed" else logging.INFO
        self._emit("package", level, message, package=package, status=status)

    def _emit(
        self,
        kind: str,
        level: int,
        message: str,
        package: str | None = None,
        status: str | None = None,
    ) -> None:
        self._events.append(LogEvent(level=kind, message=message, package=package, status=status))
        self._logger.log(level, message)
