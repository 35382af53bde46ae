"""
Command runner — the single place package-manager processes are spawned.

Every backend builds an argv list and hands it to a CommandRunner. The
runner never raises: a missing executable or an OS error comes back as
a CommandResult with a non-zero return code.

No timeout is applied: a hung package manager blocks the run until
it exits or the process is killed.
"""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Exit code reported when the executable cannot be started
EXIT_NOT_FOUND = 127

# Keep diagnostics readable in logs
_OUTPUT_TAIL = 2000


@dataclass(frozen=True)
class CommandResult:
    """Captured result of one process."""

    command: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout and stderr joined, for marker matching."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)

    def diagnostic(self) -> str:
        """Short failure description suitable for a log line."""
        text = (self.stderr or self.stdout).strip()
        if text:
            return text[-_OUTPUT_TAIL:]
        return f"Command exited with code {self.returncode}"


def format_command(cmd: list[str] | tuple[str, ...]) -> str:
    """Render an argv list as a copy-pasteable command line."""
    return shlex.join(cmd)


class CommandRunner:
    """Run commands with ``subprocess.run`` and capture output."""

    def run(self, cmd: list[str]) -> CommandResult:
        # Resolve through PATH so Windows .cmd shims (code.cmd) work
        executable = shutil.which(cmd[0]) or cmd[0]
        argv = [executable, *cmd[1:]]

        logger.debug("Executing: %s", format_command(cmd))
        start = time.monotonic()
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError:
            return CommandResult(
                command=tuple(cmd),
                returncode=EXIT_NOT_FOUND,
                stderr=f"Command not found: {cmd[0]}",
            )
        except OSError as e:
            return CommandResult(
                command=tuple(cmd),
                returncode=EXIT_NOT_FOUND,
                stderr=f"Command execution error: {e}",
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.debug("Exit %d after %dms: %s", result.returncode, elapsed_ms, cmd[0])
        return CommandResult(
            command=tuple(cmd),
            returncode=result.returncode,
            stdout=(result.stdout or "").strip(),
            stderr=(result.stderr or "").strip(),
            duration_ms=elapsed_ms,
        )
