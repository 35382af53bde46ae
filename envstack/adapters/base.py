"""
Backend base — the contract between the dispatcher and package managers.

The dispatcher only talks to package managers through this interface.
A backend turns an InstallRequest into an argv list (``build_command``)
and, when asked to install, runs it and returns an InstallOutcome.

Backends NEVER raise out of ``install``: BackendUnavailable and any
unexpected error are captured as a failed outcome.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from envstack.adapters.shell.command import CommandResult, CommandRunner, format_command
from envstack.core.models.outcome import InstallOutcome, InstallRequest
from envstack.core.models.package import Backend
from envstack.core.services.capability_probe import CapabilityProbe

logger = logging.getLogger(__name__)


class BackendUnavailable(Exception):
    """The backend's package-manager runtime cannot be used."""


class InstallBackend(ABC):
    """Abstract base class for all package-manager backends.

    To create a new backend:
        1. Add a member to ``Backend``
        2. Subclass InstallBackend, implement kind, build_command, _install
        3. Register it in ``default_registry``
    """

    #: Manager executable looked up on PATH
    executable: str = ""

    #: Substrings (lower-case) meaning "nothing to do" in manager output
    satisfied_markers: tuple[str, ...] = ()

    def __init__(
        self,
        runner: CommandRunner | None = None,
        probe: CapabilityProbe | None = None,
    ):
        self.runner = runner or CommandRunner()
        self.probe = probe or CapabilityProbe()

    @property
    @abstractmethod
    def kind(self) -> Backend:
        """The backend this class implements."""

    @abstractmethod
    def build_command(self, request: InstallRequest) -> list[str]:
        """The install command line for a request. Must be side-effect free."""

    @abstractmethod
    def _install(self, request: InstallRequest) -> InstallOutcome:
        """Perform the installation. May raise BackendUnavailable."""

    def is_available(self) -> bool:
        """Whether the manager's executable is on PATH."""
        return self.probe.is_command_available(self.executable)

    def describe(self, request: InstallRequest) -> str:
        """Exact command that ``install`` would run, for dry runs."""
        return format_command(self.build_command(request))

    def install(self, request: InstallRequest) -> InstallOutcome:
        """Install one package. Never raises."""
        try:
            return self._install(request)
        except BackendUnavailable as e:
            return InstallOutcome.failure(request.name, self.kind, str(e))
        except Exception as e:
            logger.error("Backend %s raised while installing %s: %s", self.kind.value, request.name, e)
            return InstallOutcome.failure(request.name, self.kind, f"Unexpected error: {e}")

    # ── Helpers for subclasses ──────────────────────────────────

    def is_satisfied_output(self, result: CommandResult) -> bool:
        text = result.output.lower()
        return any(marker in text for marker in self.satisfied_markers)

    def outcome_from_result(self, request: InstallRequest, result: CommandResult) -> InstallOutcome:
        """Map a finished install process onto an outcome.

        "Already satisfied" output wins over the exit code: managers
        often exit non-zero when there is nothing to install.
        """
        logger.debug(
            "%s finished %s in %dms (exit %d)", self.kind.value, request.name, result.duration_ms, result.returncode
        )
        if self.is_satisfied_output(result):
            return InstallOutcome.satisfied(request.name, self.kind, _last_line(result.output))
        if result.ok:
            return InstallOutcome.installed(request.name, self.kind, _last_line(result.output))
        return InstallOutcome.failure(request.name, self.kind, result.diagnostic())

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} kind={self.kind.value!r}>"


def _last_line(text: str) -> str:
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return lines[-1] if lines else ""
