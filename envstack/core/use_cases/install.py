"""
Install use case — provision the selected stacks.

The full vertical slice: resolve stack sources, check prerequisites,
merge, validate, keep enabled packages, dispatch them one by one, and
record the run in the history ledger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from envstack.adapters.registry import BackendRegistry, default_registry
from envstack.core.config.settings import ToolSettings, generate_run_id
from envstack.core.config.source_loader import (
    NoSourcesLoaded,
    discover_sources,
    merge_sources,
    resolve_sources,
)
from envstack.core.config.validator import filter_enabled, validate_all
from envstack.core.engine.aggregator import run_all
from envstack.core.models.outcome import DispatchOptions, RunSummary
from envstack.core.observability.run_log import RunLog
from envstack.core.persistence.history import HistoryEntry, HistoryWriter
from envstack.core.services.capability_probe import CapabilityProbe
from envstack.core.use_cases.check import PrerequisiteReport, check_prerequisites

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """Result of one install run."""

    run_id: str = ""
    summary: RunSummary | None = None
    stacks: list[str] = field(default_factory=list)
    declarations_rejected: int = 0
    declarations_disabled: int = 0
    prerequisites: PrerequisiteReport | None = None
    log_file: Path | None = None
    error: str | None = None

    @property
    def exit_code(self) -> int:
        if self.error or self.summary is None:
            return 1
        return self.summary.exit_code

    def to_dict(self) -> dict:
        result: dict = {"run_id": self.run_id}
        if self.error:
            result["error"] = self.error
        if self.prerequisites is not None:
            result["prerequisites"] = self.prerequisites.to_dict()
        result["stacks"] = self.stacks
        result["rejected"] = self.declarations_rejected
        result["disabled"] = self.declarations_disabled
        if self.summary is not None:
            result["summary"] = self.summary.to_dict()
        return result


def available_sources(settings: ToolSettings, config_path: Path | None = None) -> dict[str, Path]:
    """Stack sources from a custom path or the configured stacks dir."""
    if config_path is not None:
        return resolve_sources(config_path)
    return discover_sources(settings.stacks_dir)


def run_install(
    stacks: list[str] | None = None,
    config_path: Path | None = None,
    options: DispatchOptions | None = None,
    settings: ToolSettings | None = None,
    registry: BackendRegistry | None = None,
    probe: CapabilityProbe | None = None,
    skip_checks: bool = False,
    record_history: bool = True,
) -> InstallResult:
    """Provision the selected stacks.

    Args:
        stacks: Stack names to install. None = every available stack.
        config_path: Custom stack file or directory.
        options: force / dry_run / force_latest.
        settings: Tool settings (default: from environment).
        registry: Pre-configured backend registry.
        probe: Capability probe.
        skip_checks: Don't abort on failed prerequisites.
        record_history: Append the run to the history ledger.

    Returns:
        InstallResult. ``exit_code`` is the process exit status.
    """
    options = options or DispatchOptions()
    settings = settings or ToolSettings.from_env()
    probe = probe or CapabilityProbe()
    result = InstallResult(run_id=generate_run_id())

    # ── Prerequisites ────────────────────────────────────────────
    if not skip_checks and not options.dry_run:
        report = check_prerequisites(probe)
        result.prerequisites = report
        if not report.ok:
            names = ", ".join(c.name for c in report.failures)
            result.error = f"Prerequisites not met: {names} (use --skip-checks to override)"
            return result

    # ── Sources ──────────────────────────────────────────────────
    sources = available_sources(settings, config_path)
    if not sources:
        where = config_path or settings.stacks_dir
        result.error = f"No stack files found in {where}"
        return result

    result.log_file = settings.run_log_path(result.run_id)
    with RunLog(log_file=result.log_file) as log:
        mode = " [dry-run]" if options.dry_run else ""
        log.info(f"Run {result.run_id}{mode} started")

        try:
            records = merge_sources(sources, stacks, log)
        except NoSourcesLoaded as e:
            log.error(str(e))
            result.error = str(e)
            return result

        result.stacks = list(dict.fromkeys(r.source for r in records))

        # ── Validate + filter ────────────────────────────────────
        validation = validate_all(records, log)
        result.declarations_rejected = len(validation.rejected)
        enabled = filter_enabled(validation.accepted, log)
        result.declarations_disabled = len(validation.accepted) - len(enabled)

        # ── Dispatch ─────────────────────────────────────────────
        if registry is None:
            registry = default_registry(probe=probe)
        result.summary = run_all(enabled, options, registry, log)

    # ── History ──────────────────────────────────────────────────
    if record_history:
        writer = HistoryWriter(settings.history_path)
        writer.write(HistoryEntry.from_summary(
            result.summary,
            run_id=result.run_id,
            stacks=result.stacks,
            force=options.force,
            force_latest=options.force_latest,
        ))

    return result
