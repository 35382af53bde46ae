"""
PowerShell Gallery backend — PowerShell modules.

Unlike the other backends, this one checks for an installed module
before running the installer. A present module (at the requested
version, when one is pinned) is already satisfied unless forced.
"""

from __future__ import annotations

from envstack.adapters.base import BackendUnavailable, InstallBackend
from envstack.core.models.outcome import InstallOutcome, InstallRequest
from envstack.core.models.package import LATEST, Backend


def _ps_quote(value: str) -> str:
    """Single-quote a value for a PowerShell command string."""
    return "'" + value.replace("'", "''") + "'"


class PowerShellGalleryBackend(InstallBackend):
    """Install modules with Install-Module from PSGallery."""

    executable = "pwsh"

    @property
    def kind(self) -> Backend:
        return Backend.MODULE_GALLERY

    @property
    def shell(self) -> str:
        """pwsh when present, Windows PowerShell otherwise."""
        if self.probe.is_command_available("pwsh"):
            return "pwsh"
        return "powershell"

    def is_available(self) -> bool:
        return self.probe.is_command_available("pwsh") or self.probe.is_command_available("powershell")

    def build_command(self, request: InstallRequest) -> list[str]:
        script = (
            f"Install-Module -Name {_ps_quote(request.name)} -Repository PSGallery "
            "-Scope CurrentUser -Force -AllowClobber"
        )
        if request.version != LATEST:
            script += f" -RequiredVersion {_ps_quote(request.version)}"
        return [self.shell, "-NoProfile", "-NonInteractive", "-Command", script]

    def query_command(self, name: str) -> list[str]:
        script = (
            f"Get-Module -ListAvailable -Name {_ps_quote(name)} | "
            "Sort-Object Version -Descending | "
            "ForEach-Object { $_.Version.ToString() }"
        )
        return [self.shell, "-NoProfile", "-NonInteractive", "-Command", script]

    def installed_versions(self, name: str) -> list[str]:
        """Versions of the module already on this machine."""
        result = self.runner.run(self.query_command(name))
        if not result.ok:
            return []
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def _install(self, request: InstallRequest) -> InstallOutcome:
        if not self.is_available():
            raise BackendUnavailable("PowerShell (pwsh or powershell) is not installed")

        if not request.force:
            versions = self.installed_versions(request.name)
            wanted = request.version
            if versions and (wanted == LATEST or wanted in versions):
                shown = wanted if wanted != LATEST else versions[0]
                return InstallOutcome.satisfied(
                    request.name, self.kind, f"Module {request.name} {shown} already installed"
                )

        result = self.runner.run(self.build_command(request))
        return self.outcome_from_result(request, result)
