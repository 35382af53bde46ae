"""
apt backend — Linux packages, installed from inside WSL/Linux.

Run from Windows, apt declarations are skipped with a hint to re-run
envstack inside the Linux host. That is a no-op, not an error.
"""

from __future__ import annotations

from envstack.adapters.base import BackendUnavailable, InstallBackend
from envstack.core.models.outcome import InstallOutcome, InstallRequest
from envstack.core.models.package import LATEST, Backend

SKIP_HINT = "apt packages install inside WSL/Linux; re-run 'envstack install' from that shell"


class AptBackend(InstallBackend):
    """Install Debian/Ubuntu packages with apt-get."""

    executable = "apt-get"
    satisfied_markers = ("is already the newest version",)

    @property
    def kind(self) -> Backend:
        return Backend.LINUX_PACKAGE_MANAGER

    def build_command(self, request: InstallRequest) -> list[str]:
        target = request.name if request.version == LATEST else f"{request.name}={request.version}"
        cmd = [self.executable, "install", "-y", target]
        if request.force:
            cmd.insert(2, "--reinstall")
        if self.probe.is_linux_host() and not self.probe.is_privileged_session():
            cmd.insert(0, "sudo")
        return cmd

    def _install(self, request: InstallRequest) -> InstallOutcome:
        if not self.probe.is_linux_host():
            return InstallOutcome.skip(request.name, self.kind, SKIP_HINT)
        if not self.is_available():
            raise BackendUnavailable("apt-get not found; this Linux host is not Debian-based")
        result = self.runner.run(self.build_command(request))
        return self.outcome_from_result(request, result)
