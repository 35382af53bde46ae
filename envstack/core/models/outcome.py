"""
Outcome models — the dispatch contract.

Backends return an InstallOutcome for every request. They never raise:
failures are captured in the outcome with status ``failed``. The run
aggregator folds outcomes into a RunSummary.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from envstack.core.models.package import Backend


class InstallStatus(StrEnum):
    """Terminal status of one dispatch call."""

    INSTALLED = "installed"
    ALREADY_SATISFIED = "already_satisfied"
    FAILED = "failed"
    SKIPPED = "skipped"
    WOULD_INSTALL = "would_install"


SUCCESS_STATUSES = frozenset({
    InstallStatus.INSTALLED,
    InstallStatus.ALREADY_SATISFIED,
    InstallStatus.WOULD_INSTALL,
})


class DispatchOptions(BaseModel):
    """Run-wide switches applied to every dispatch call."""

    model_config = ConfigDict(frozen=True)

    force: bool = False
    dry_run: bool = False
    force_latest: bool = False


class InstallRequest(BaseModel):
    """What a backend is asked to do for one package."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str = "latest"
    force: bool = False


class InstallOutcome(BaseModel):
    """Result of attempting one declaration. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    package_name: str
    backend_used: Backend
    status: InstallStatus
    detail: str = ""
    declared_backend: Backend | None = None
    fallback_used: bool = False

    @property
    def succeeded(self) -> bool:
        return self.status in SUCCESS_STATUSES

    @property
    def failed(self) -> bool:
        return self.status == InstallStatus.FAILED

    @classmethod
    def installed(cls, name: str, backend: Backend, detail: str = "", **kwargs: Any) -> InstallOutcome:
        return cls(package_name=name, backend_used=backend, status=InstallStatus.INSTALLED, detail=detail, **kwargs)

    @classmethod
    def satisfied(cls, name: str, backend: Backend, detail: str = "", **kwargs: Any) -> InstallOutcome:
        return cls(
            package_name=name,
            backend_used=backend,
            status=InstallStatus.ALREADY_SATISFIED,
            detail=detail,
            **kwargs,
        )

    @classmethod
    def failure(cls, name: str, backend: Backend, detail: str, **kwargs: Any) -> InstallOutcome:
        return cls(package_name=name, backend_used=backend, status=InstallStatus.FAILED, detail=detail, **kwargs)

    @classmethod
    def skip(cls, name: str, backend: Backend, reason: str = "", **kwargs: Any) -> InstallOutcome:
        return cls(package_name=name, backend_used=backend, status=InstallStatus.SKIPPED, detail=reason, **kwargs)

    @classmethod
    def preview(cls, name: str, backend: Backend, command: str, **kwargs: Any) -> InstallOutcome:
        return cls(
            package_name=name,
            backend_used=backend,
            status=InstallStatus.WOULD_INSTALL,
            detail=command,
            **kwargs,
        )


class RunSummary(BaseModel):
    """Aggregate over one invocation.

    Built exclusively by the RunAggregator. ``total`` always equals
    ``succeeded + failed + skipped``.
    """

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    dry_run: bool = False
    outcomes: list[InstallOutcome] = Field(default_factory=list)

    @property
    def all_ok(self) -> bool:
        return self.failed == 0

    @property
    def status(self) -> str:
        if self.failed == 0:
            return "ok"
        if self.succeeded > 0:
            return "partial"
        return "failed"

    @property
    def exit_code(self) -> int:
        """0 on success or dry run, 1 if anything failed."""
        if self.dry_run:
            return 0
        return 0 if self.failed == 0 else 1

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "dry_run": self.dry_run,
            "outcomes": [o.model_dump(mode="json") for o in self.outcomes],
        }
