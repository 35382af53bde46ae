"""
Run history — append-only ledger of provisioning runs.

Every completed run writes one entry to an NDJSON (newline-delimited
JSON) file under the state directory. Entries are never modified or
deleted. A run interrupted before it finishes writes nothing.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field

from envstack.core.models.outcome import RunSummary

logger = logging.getLogger(__name__)


class HistoryEntry(BaseModel):
    """A single ledger entry."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    run_id: str = ""
    stacks: list[str] = Field(default_factory=list)

    # Options
    dry_run: bool = False
    force: bool = False
    force_latest: bool = False

    # Results
    status: str = ""               # ok, partial, failed
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    failed_packages: list[str] = Field(default_factory=list)

    @classmethod
    def from_summary(
        cls,
        summary: RunSummary,
        run_id: str = "",
        stacks: list[str] | None = None,
        force: bool = False,
        force_latest: bool = False,
    ) -> HistoryEntry:
        return cls(
            run_id=run_id,
            stacks=stacks or [],
            dry_run=summary.dry_run,
            force=force,
            force_latest=force_latest,
            status=summary.status,
            total=summary.total,
            succeeded=summary.succeeded,
            failed=summary.failed,
            skipped=summary.skipped,
            failed_packages=[o.package_name for o in summary.outcomes if o.failed],
        )


class HistoryWriter:
    """Append-only ledger writer.

    Each call to write() appends a single JSON line. The file and its
    directory are created on first write.
    """

    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: HistoryEntry) -> None:
        line = json.dumps(entry.model_dump(mode="json"), ensure_ascii=False) + "\n"
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
            logger.debug("History entry written: %s", entry.run_id)
        except OSError as e:
            logger.error("Failed to write history entry: %s", e)

    def read_all(self) -> list[HistoryEntry]:
        """All entries, oldest first. Corrupt lines are skipped."""
        if not self._path.is_file():
            return []

        entries = []
        try:
            with self._path.open("r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entries.append(HistoryEntry.model_validate(json.loads(line)))
                    except ValueError as e:
                        logger.warning("Skipping corrupt history entry at line %d: %s", line_num, e)
        except OSError as e:
            logger.error("Failed to read history: %s", e)

        return entries

    def read_recent(self, n: int = 10) -> list[HistoryEntry]:
        return self.read_all()[-n:]
