"""
Mock backend — test double for any Backend.

Returns success for everything by default. Can be configured with a
custom status per package name, and records every request it gets.
"""

from __future__ import annotations

from envstack.adapters.base import InstallBackend
from envstack.core.models.outcome import InstallOutcome, InstallRequest, InstallStatus
from envstack.core.models.package import Backend


class MockBackend(InstallBackend):
    """Universal mock backend for testing."""

    def __init__(
        self,
        kind: Backend,
        available: bool = True,
        default_status: InstallStatus = InstallStatus.INSTALLED,
    ):
        super().__init__()
        self._kind = kind
        self._available = available
        self._default_status = default_status
        self._responses: dict[str, tuple[InstallStatus, str]] = {}
        self._call_log: list[InstallRequest] = []

    @property
    def kind(self) -> Backend:
        return self._kind

    @property
    def call_log(self) -> list[InstallRequest]:
        """All requests this mock has been asked to install."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def is_available(self) -> bool:
        return self._available

    def set_response(self, name: str, status: InstallStatus, detail: str = "") -> None:
        self._responses[name] = (status, detail)

    def set_failure(self, name: str, detail: str = "Mock failure") -> None:
        self.set_response(name, InstallStatus.FAILED, detail)

    def build_command(self, request: InstallRequest) -> list[str]:
        return ["mock", self._kind.value, "install", request.name, request.version]

    def _install(self, request: InstallRequest) -> InstallOutcome:
        self._call_log.append(request)
        status, detail = self._responses.get(request.name, (self._default_status, "[mock] executed"))
        return InstallOutcome(
            package_name=request.name,
            backend_used=self._kind,
            status=status,
            detail=detail,
        )

    def reset(self) -> None:
        self._call_log.clear()
        self._responses.clear()
