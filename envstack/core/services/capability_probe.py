"""
Capability probe — read-only environment facts.

Every probe answers a single yes/no question about the host and never
raises: a query error degrades to ``False`` ("requirement not met").
Nothing here is cached; each call evaluates once.
"""

from __future__ import annotations

import logging
import os
import platform
import re
import shutil
import subprocess
import sys

logger = logging.getLogger(__name__)

# Windows 10 2004 (build 19041) or later, Windows 11 included
MIN_OS_MAJOR = 10
MIN_OS_BUILD = 19041

ACCEPTABLE_POLICIES = frozenset({"remotesigned", "unrestricted", "bypass"})

_WINDOWS_VERSION_RE = re.compile(r"^\s*(\d+)\.(\d+)\.(\d+)")


def parse_windows_version(version: str) -> tuple[int, int] | None:
    """Parse ``"10.0.19045"`` into ``(major, build)``. None if unparsable."""
    m = _WINDOWS_VERSION_RE.match(version or "")
    if not m:
        return None
    return int(m.group(1)), int(m.group(3))


def version_meets_minimum(version: str) -> bool:
    parsed = parse_windows_version(version)
    if parsed is None:
        return False
    major, build = parsed
    return major >= MIN_OS_MAJOR and build >= MIN_OS_BUILD


class CapabilityProbe:
    """Answers environment facts for the dispatcher and prerequisite check.

    Args:
        platform_name: Override of ``sys.platform`` (used by tests).
    """

    def __init__(self, platform_name: str | None = None):
        self._platform = platform_name or sys.platform

    @property
    def is_windows(self) -> bool:
        return self._platform.startswith("win")

    def is_command_available(self, name: str) -> bool:
        """True iff an executable called ``name`` is on PATH."""
        try:
            found = shutil.which(name) is not None
        except Exception as e:
            logger.debug("PATH lookup for %s failed: %s", name, e)
            return False
        logger.debug("Command %s available: %s", name, found)
        return found

    def is_privileged_session(self) -> bool:
        """True iff the process holds administrator-equivalent rights."""
        try:
            if self.is_windows:
                import ctypes

                return bool(ctypes.windll.shell32.IsUserAnAdmin())  # type: ignore[attr-defined]
            return os.geteuid() == 0
        except Exception as e:
            logger.debug("Privilege query failed: %s", e)
            return False

    def is_policy_acceptable(self) -> bool:
        """True iff the PowerShell execution policy is in the allow-list.

        Hosts without an execution policy have nothing to restrict.
        """
        if not self.is_windows:
            return True
        policy = self.execution_policy()
        if policy is None:
            return False
        return policy.lower() in ACCEPTABLE_POLICIES

    def execution_policy(self) -> str | None:
        """Current PowerShell execution policy, or None if unknown."""
        shell = shutil.which("pwsh") or shutil.which("powershell")
        if shell is None:
            return None
        try:
            r = subprocess.run(
                [shell, "-NoProfile", "-NonInteractive", "-Command", "Get-ExecutionPolicy"],
                capture_output=True,
                text=True,
            )
        except Exception as e:
            logger.debug("Execution policy query failed: %s", e)
            return None
        if r.returncode != 0:
            return None
        return r.stdout.strip() or None

    def is_os_supported(self) -> bool:
        """True iff the host is Windows 10 2004 (build 19041) or later."""
        if not self.is_windows:
            return False
        try:
            return version_meets_minimum(platform.version())
        except Exception as e:
            logger.debug("OS version query failed: %s", e)
            return False

    def is_linux_host(self) -> bool:
        """True iff running inside a Linux host (WSL included)."""
        return self._platform.startswith("linux")

    def is_wsl_installed(self) -> bool:
        return self.is_command_available("wsl")
