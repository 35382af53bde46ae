"""
Package model — one desired unit of software.

Declarations are read from stack YAML files. The YAML field names are
kept as aliases (``install``, ``pkgmgr``, ``choco_name``) so the model
validates stack documents directly, while the code works with the
clearer Python names.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator

LATEST = "latest"


class Backend(StrEnum):
    """Package-manager backends. Values are the ``pkgmgr`` YAML tokens."""

    PRIMARY_MANAGER = "winget"
    SECONDARY_MANAGER = "choco"
    MODULE_GALLERY = "pwsh"
    EDITOR_EXTENSION = "vscode"
    LINUX_PACKAGE_MANAGER = "apt"


class PackageDeclaration(BaseModel):
    """A validated package declaration.

    Only fully valid declarations exist as instances: the validator
    drops anything else before it reaches the dispatcher.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1)
    enabled: StrictBool = Field(alias="install")
    backend: Backend = Field(alias="pkgmgr")
    version: str | None = None
    fallback_name: str | None = Field(default=None, alias="choco_name")
    description: str = ""
    source: str = ""  # stack the declaration came from

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, value: object) -> object:
        # YAML reads `version: 1.2` as a float
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("fallback_name", mode="before")
    @classmethod
    def _blank_fallback(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value: object) -> object:
        return "" if value is None else value

    def effective_version(self, force_latest: bool = False) -> str:
        """Version to request from the backend."""
        if force_latest:
            return LATEST
        return self.version or LATEST

    @property
    def fallback_target(self) -> str:
        """Identifier used when falling back to the secondary manager."""
        return self.fallback_name or self.name
