"""
Backend registry — one backend per Backend member, no gaps.

The registry refuses to build unless every member of ``Backend`` has
an implementation, so adding a backend to the enum without wiring it
fails at startup rather than mid-run.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from envstack.adapters.base import InstallBackend
from envstack.adapters.managers.apt import AptBackend
from envstack.adapters.managers.chocolatey import ChocolateyBackend
from envstack.adapters.managers.psgallery import PowerShellGalleryBackend
from envstack.adapters.managers.vscode import VSCodeExtensionBackend
from envstack.adapters.managers.winget import WingetBackend
from envstack.adapters.shell.command import CommandRunner
from envstack.core.models.package import Backend
from envstack.core.services.capability_probe import CapabilityProbe

logger = logging.getLogger(__name__)


class RegistryError(Exception):
    """Raised when the registry is missing or duplicating a backend."""


class BackendRegistry:
    """Lookup from Backend to its implementation."""

    def __init__(self, backends: Iterable[InstallBackend]):
        self._backends: dict[Backend, InstallBackend] = {}
        for backend in backends:
            if backend.kind in self._backends:
                raise RegistryError(f"Duplicate backend for '{backend.kind.value}'")
            self._backends[backend.kind] = backend
            logger.debug("Registered backend: %s", backend.kind.value)

        missing = [b.value for b in Backend if b not in self._backends]
        if missing:
            raise RegistryError(f"No backend registered for: {', '.join(missing)}")

    def get(self, kind: Backend) -> InstallBackend:
        return self._backends[kind]

    def backend_status(self) -> dict[str, dict[str, Any]]:
        """Availability of every registered backend."""
        status = {}
        for kind, backend in self._backends.items():
            try:
                available = backend.is_available()
            except Exception:
                available = False
            status[kind.value] = {
                "name": kind.value,
                "available": available,
                "type": backend.__class__.__name__,
            }
        return status


def default_registry(
    probe: CapabilityProbe | None = None,
    runner: CommandRunner | None = None,
) -> BackendRegistry:
    """Registry wired to the real package managers."""
    probe = probe or CapabilityProbe()
    runner = runner or CommandRunner()
    return BackendRegistry([
        WingetBackend(runner, probe),
        ChocolateyBackend(runner, probe),
        PowerShellGalleryBackend(runner, probe),
        VSCodeExtensionBackend(runner, probe),
        AptBackend(runner, probe),
    ])
