"""
winget backend — the primary Windows package manager.

winget reports "already installed" and "no applicable update" with a
non-zero exit code; both count as already satisfied, not failure.
"""

from __future__ import annotations

from envstack.adapters.base import BackendUnavailable, InstallBackend
from envstack.core.models.outcome import InstallOutcome, InstallRequest
from envstack.core.models.package import LATEST, Backend


class WingetBackend(InstallBackend):
    """Install packages by winget ID."""

    executable = "winget"
    satisfied_markers = (
        "already installed",
        "no applicable update",
        "no newer package versions",
        "no available upgrade",
    )

    @property
    def kind(self) -> Backend:
        return Backend.PRIMARY_MANAGER

    def build_command(self, request: InstallRequest) -> list[str]:
        cmd = [
            self.executable, "install",
            "--id", request.name,
            "--exact",
            "--silent",
            "--accept-package-agreements",
            "--accept-source-agreements",
        ]
        if request.version != LATEST:
            cmd += ["--version", request.version]
        if request.force:
            cmd.append("--force")
        return cmd

    def _install(self, request: InstallRequest) -> InstallOutcome:
        if not self.is_available():
            raise BackendUnavailable("winget is not installed (install 'App Installer' from the Microsoft Store)")
        result = self.runner.run(self.build_command(request))
        return self.outcome_from_result(request, result)
