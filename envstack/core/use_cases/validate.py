"""
Validate use case — check stack files without installing anything.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from envstack.core.config.settings import ToolSettings
from envstack.core.config.source_loader import (
    NoSourcesLoaded,
    SourceError,
    load_declarations,
    merge_sources,
)
from envstack.core.config.validator import ValidationReport, validate_all
from envstack.core.observability.run_log import RunLog
from envstack.core.use_cases.install import available_sources


@dataclass
class StackInfo:
    name: str
    path: Path
    packages: int = 0
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "path": str(self.path),
            "packages": self.packages,
            "error": self.error,
        }


@dataclass
class ValidateResult:
    report: ValidationReport | None = None
    warnings: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def valid(self) -> bool:
        return self.error is None and not self.warnings and self.report is not None and self.report.valid

    def to_dict(self) -> dict:
        result: dict = {"valid": self.valid, "warnings": self.warnings}
        if self.error:
            result["error"] = self.error
        if self.report is not None:
            result.update(self.report.to_dict())
            result["valid"] = self.valid
        return result


def list_stacks(settings: ToolSettings, config_path: Path | None = None) -> list[StackInfo]:
    """Every available stack with its package count or load error."""
    infos = []
    for name, path in available_sources(settings, config_path).items():
        info = StackInfo(name=name, path=path)
        try:
            info.packages = len(load_declarations(path))
        except SourceError as e:
            info.error = str(e)
        infos.append(info)
    return infos


def run_validate(
    settings: ToolSettings,
    stacks: list[str] | None = None,
    config_path: Path | None = None,
) -> ValidateResult:
    """Merge and validate the selected stacks."""
    result = ValidateResult()
    sources = available_sources(settings, config_path)
    log = RunLog()
    try:
        records = merge_sources(sources, stacks, log)
    except NoSourcesLoaded as e:
        result.error = str(e)
        return result

    result.report = validate_all(records, log)
    result.warnings = [e.message for e in log.events_at("warning") if e.message.startswith("Skipping stack")]
    return result
