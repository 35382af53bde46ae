"""
Domain models — Pydantic types for envstack.

All models are re-exported here for convenient access:

    from envstack.core.models import PackageDeclaration, InstallOutcome, RunSummary
"""

from envstack.core.models.outcome import (
    DispatchOptions,
    InstallOutcome,
    InstallRequest,
    InstallStatus,
    RunSummary,
)
from envstack.core.models.package import LATEST, Backend, PackageDeclaration

__all__ = [
    "LATEST",
    # package.py
    "Backend",
    # outcome.py
    "DispatchOptions",
    "InstallOutcome",
    "InstallRequest",
    "InstallStatus",
    "PackageDeclaration",
    "RunSummary",
]
