"""
Run aggregator — dispatch every declaration and count the outcomes.

Declarations run strictly in input order, one at a time. One outcome is
recorded per declaration, no matter what happens inside the dispatch:
the loop never stops early.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from envstack.adapters.registry import BackendRegistry
from envstack.core.engine.dispatcher import dispatch
from envstack.core.models.outcome import (
    DispatchOptions,
    InstallOutcome,
    InstallStatus,
    RunSummary,
)
from envstack.core.models.package import PackageDeclaration
from envstack.core.observability.run_log import RunLog

logger = logging.getLogger(__name__)


class RunAggregator:
    """Accumulates outcomes into running totals. The only RunSummary writer."""

    def __init__(self, dry_run: bool = False):
        self._dry_run = dry_run
        self._outcomes: list[InstallOutcome] = []
        self._succeeded = 0
        self._failed = 0
        self._skipped = 0

    def record(self, outcome: InstallOutcome) -> None:
        self._outcomes.append(outcome)
        if outcome.status == InstallStatus.FAILED:
            self._failed += 1
        elif outcome.status == InstallStatus.SKIPPED:
            self._skipped += 1
        else:
            self._succeeded += 1

    @property
    def total(self) -> int:
        return len(self._outcomes)

    def summary(self) -> RunSummary:
        return RunSummary(
            total=self.total,
            succeeded=self._succeeded,
            failed=self._failed,
            skipped=self._skipped,
            dry_run=self._dry_run,
            outcomes=list(self._outcomes),
        )


def run_all(
    declarations: Sequence[PackageDeclaration],
    options: DispatchOptions,
    registry: BackendRegistry,
    log: RunLog | None = None,
) -> RunSummary:
    """Dispatch each declaration in order and summarize.

    Args:
        declarations: Validated, enabled declarations in merge order.
        options: Run-wide switches.
        registry: Backend lookup.
        log: Run log sink.

    Returns:
        RunSummary with ``total == len(declarations)``.
    """
    log = log or RunLog()
    aggregator = RunAggregator(dry_run=options.dry_run)
    count = len(declarations)

    for index, declaration in enumerate(declarations, start=1):
        log.info(f"[{index}/{count}] {declaration.name} via {declaration.backend.value}")
        try:
            outcome = dispatch(declaration, options, registry, log)
        except Exception as e:
            logger.exception("Dispatch of %s raised", declaration.name)
            outcome = InstallOutcome.failure(
                declaration.name,
                declaration.backend,
                f"Unexpected error: {e}",
                declared_backend=declaration.backend,
            )

        aggregator.record(outcome)
        _log_outcome(log, outcome)

    summary = aggregator.summary()
    message = (
        f"{summary.succeeded}/{summary.total} succeeded, "
        f"{summary.failed} failed, {summary.skipped} skipped"
    )
    if summary.failed:
        log.error(message)
    else:
        log.success(message)
    return summary


def _log_outcome(log: RunLog, outcome: InstallOutcome) -> None:
    detail = outcome.detail
    if outcome.fallback_used:
        detail = f"(via {outcome.backend_used.value}) {detail}".strip()
    log.package_status(outcome.package_name, outcome.status.value, detail)
