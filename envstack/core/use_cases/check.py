"""
Check use case — are the host prerequisites met?

Runs the capability probes that matter on the current host and
reports each as required or advisory. Only required failures make
the report fail.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from envstack.adapters.registry import BackendRegistry
from envstack.core.services.capability_probe import CapabilityProbe


@dataclass
class PrerequisiteCheck:
    name: str
    passed: bool
    required: bool = True
    message: str = ""

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "passed": self.passed,
            "required": self.required,
            "message": self.message,
        }


@dataclass
class PrerequisiteReport:
    host: str = ""
    checks: list[PrerequisiteCheck] = field(default_factory=list)
    backends: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return all(c.passed for c in self.checks if c.required)

    @property
    def failures(self) -> list[PrerequisiteCheck]:
        return [c for c in self.checks if c.required and not c.passed]

    @property
    def warnings(self) -> list[PrerequisiteCheck]:
        return [c for c in self.checks if not c.required and not c.passed]

    def to_dict(self) -> dict:
        return {
            "host": self.host,
            "ok": self.ok,
            "checks": [c.to_dict() for c in self.checks],
            "backends": self.backends,
        }


def check_prerequisites(
    probe: CapabilityProbe | None = None,
    registry: BackendRegistry | None = None,
) -> PrerequisiteReport:
    """Evaluate host prerequisites.

    Windows hosts need a supported OS build and an acceptable execution
    policy. Linux hosts (WSL) only install apt packages, so apt-get is
    what matters there.

    When a registry is given, the availability of each package manager
    is reported too. It never affects ``ok``.
    """
    probe = probe or CapabilityProbe()
    report = _host_checks(probe)
    if registry is not None:
        report.backends = registry.backend_status()
    return report


def _host_checks(probe: CapabilityProbe) -> PrerequisiteReport:
    if probe.is_linux_host():
        report = PrerequisiteReport(host="linux")
        report.checks.append(PrerequisiteCheck(
            name="apt",
            passed=probe.is_command_available("apt-get"),
            message="apt-get is needed for apt packages",
        ))
        report.checks.append(PrerequisiteCheck(
            name="privileges",
            passed=probe.is_privileged_session() or probe.is_command_available("sudo"),
            required=False,
            message="root or sudo is needed to install apt packages",
        ))
        return report

    report = PrerequisiteReport(host="windows" if probe.is_windows else "unsupported")
    report.checks.append(PrerequisiteCheck(
        name="os",
        passed=probe.is_os_supported(),
        message="Windows 10 2004 (build 19041) or later is required",
    ))
    report.checks.append(PrerequisiteCheck(
        name="execution-policy",
        passed=probe.is_policy_acceptable(),
        message="PowerShell execution policy must be RemoteSigned, Unrestricted or Bypass",
    ))
    report.checks.append(PrerequisiteCheck(
        name="admin",
        passed=probe.is_privileged_session(),
        required=False,
        message="an elevated session is needed to bootstrap Chocolatey",
    ))
    report.checks.append(PrerequisiteCheck(
        name="winget",
        passed=probe.is_command_available("winget"),
        required=False,
        message="winget packages fall back to Chocolatey without it",
    ))
    report.checks.append(PrerequisiteCheck(
        name="wsl",
        passed=probe.is_wsl_installed(),
        required=False,
        message="WSL is needed for apt packages",
    ))
    return report
