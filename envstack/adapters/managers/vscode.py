"""
VS Code extension backend.

Needs the ``code`` command-line entry point. Versions are ignored: the
newest extension build is always installed.
"""

from __future__ import annotations

from envstack.adapters.base import InstallBackend
from envstack.core.models.outcome import InstallOutcome, InstallRequest
from envstack.core.models.package import Backend


class VSCodeExtensionBackend(InstallBackend):
    """Install editor extensions with ``code --install-extension``."""

    executable = "code"
    satisfied_markers = ("is already installed",)

    @property
    def kind(self) -> Backend:
        return Backend.EDITOR_EXTENSION

    def build_command(self, request: InstallRequest) -> list[str]:
        cmd = [self.executable, "--install-extension", request.name]
        if request.force:
            cmd.append("--force")
        return cmd

    def _install(self, request: InstallRequest) -> InstallOutcome:
        if not self.is_available():
            return InstallOutcome.failure(
                request.name,
                self.kind,
                "VS Code command-line entry point 'code' not found on PATH",
            )
        result = self.runner.run(self.build_command(request))
        return self.outcome_from_result(request, result)
