"""
Chocolatey backend — the secondary manager and winget fallback.

When choco is missing, the backend bootstraps it once per run using the
official install script. Bootstrapping needs an elevated session; a
failed bootstrap is not retried: later packages fail with the same reason.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from envstack.adapters.base import BackendUnavailable, InstallBackend
from envstack.core.models.outcome import InstallOutcome, InstallRequest
from envstack.core.models.package import LATEST, Backend

logger = logging.getLogger(__name__)

BOOTSTRAP_SCRIPT = (
    "Set-ExecutionPolicy Bypass -Scope Process -Force; "
    "[System.Net.ServicePointManager]::SecurityProtocol = "
    "[System.Net.ServicePointManager]::SecurityProtocol -bor 3072; "
    "iex ((New-Object System.Net.WebClient).DownloadString("
    "'https://community.chocolatey.org/install.ps1'))"
)

DEFAULT_INSTALL_DIR = r"C:\ProgramData\chocolatey"


class ChocolateyBackend(InstallBackend):
    """Install packages with choco, bootstrapping choco if needed."""

    executable = "choco"
    satisfied_markers = ("already installed",)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._resolved: str | None = None
        self._bootstrap_attempted = False
        self._bootstrap_error: str | None = None

    @property
    def kind(self) -> Backend:
        return Backend.SECONDARY_MANAGER

    @property
    def bootstrap_attempted(self) -> bool:
        return self._bootstrap_attempted

    def build_command(self, request: InstallRequest) -> list[str]:
        cmd = [self._resolved or self.executable, "install", request.name, "-y", "--no-progress"]
        if request.version != LATEST:
            cmd += ["--version", request.version]
        if request.force:
            cmd.append("--force")
        return cmd

    def _install(self, request: InstallRequest) -> InstallOutcome:
        self._ensure_runtime()
        result = self.runner.run(self.build_command(request))
        return self.outcome_from_result(request, result)

    # ── Runtime bootstrap ───────────────────────────────────────

    def _ensure_runtime(self) -> None:
        if self._resolved or self.is_available():
            return

        if self._bootstrap_attempted:
            # Later packages report the first failure
            raise BackendUnavailable(self._bootstrap_error or "Chocolatey is not available")
        self._bootstrap_attempted = True

        try:
            self._bootstrap()
        except BackendUnavailable as e:
            self._bootstrap_error = str(e)
            raise

    def _bootstrap(self) -> None:
        if not self.probe.is_privileged_session():
            raise BackendUnavailable(
                "Chocolatey is not installed and installing it requires an "
                "elevated (administrator) session"
            )

        shell = "powershell" if self.probe.is_command_available("powershell") else "pwsh"
        logger.info("Bootstrapping Chocolatey via %s", shell)
        result = self.runner.run([shell, "-NoProfile", "-ExecutionPolicy", "Bypass", "-Command", BOOTSTRAP_SCRIPT])
        if not result.ok:
            raise BackendUnavailable(f"Chocolatey bootstrap failed: {result.diagnostic()}")

        if self.is_available():
            return

        # The new install dir is not on this process's PATH yet
        candidate = Path(os.environ.get("ChocolateyInstall", DEFAULT_INSTALL_DIR)) / "bin" / "choco.exe"
        if candidate.is_file():
            self._resolved = str(candidate)
            return
        raise BackendUnavailable("Chocolatey bootstrap finished but choco was not found; restart the shell")
