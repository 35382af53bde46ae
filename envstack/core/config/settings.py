"""
Tool settings — where envstack finds stacks and keeps its state.

Resolved from environment variables, with CLI options layered on top
by main.py:

    ENVSTACK_STACKS_DIR   stack directory (default: ./stacks)
    ENVSTACK_STATE_DIR    history ledger + run logs (default: ~/.envstack)
    ENVSTACK_LOG_FILE     process-wide log file (optional)
    ENVSTACK_LOG_LEVEL    console log level (default: WARNING)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel

DEFAULT_STACKS_DIR = "stacks"
DEFAULT_STATE_DIR = "~/.envstack"
HISTORY_FILE = "history.ndjson"
RUN_LOG_DIR = "logs"


class ToolSettings(BaseModel):
    """Resolved tool configuration."""

    stacks_dir: Path = Path(DEFAULT_STACKS_DIR)
    state_dir: Path = Path(DEFAULT_STATE_DIR).expanduser()
    log_file: Path | None = None
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ToolSettings:
        env = os.environ if environ is None else environ
        log_file = env.get("ENVSTACK_LOG_FILE")
        return cls(
            stacks_dir=Path(env.get("ENVSTACK_STACKS_DIR", DEFAULT_STACKS_DIR)).expanduser(),
            state_dir=Path(env.get("ENVSTACK_STATE_DIR", DEFAULT_STATE_DIR)).expanduser(),
            log_file=Path(log_file).expanduser() if log_file else None,
            log_level=env.get("ENVSTACK_LOG_LEVEL", "WARNING"),
        )

    @property
    def history_path(self) -> Path:
        return self.state_dir / HISTORY_FILE

    def run_log_path(self, run_id: str) -> Path:
        """Per-run log file under the state directory."""
        return self.state_dir / RUN_LOG_DIR / f"{run_id}.log"


def generate_run_id() -> str:
    """Timestamped run identifier, e.g. ``run-20260101-120000``."""
    return datetime.now(UTC).strftime("run-%Y%m%d-%H%M%S-%f")
