"""Adapters — package-manager backends.

Public re-exports for convenient access.
"""

from envstack.adapters.base import BackendUnavailable, InstallBackend
from envstack.adapters.mock import MockBackend
from envstack.adapters.registry import BackendRegistry, RegistryError, default_registry

__all__ = [
    "BackendRegistry",
    "BackendUnavailable",
    "InstallBackend",
    "MockBackend",
    "RegistryError",
    "default_registry",
]
