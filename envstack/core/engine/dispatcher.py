"""
Dispatcher — resolve, install, and fall back for one declaration.

Per call:

    Pending → DryRunPreview                       → WouldInstall
            → BackendAttempt → (failed, winget)  → FallbackAttempt (choco)
                                                  → Installed | AlreadySatisfied
                                                    | Failed | Skipped

There is exactly one fallback hop, and only from the primary manager.
A dry run never reaches a backend's ``install``.
"""

from __future__ import annotations

import logging

from envstack.adapters.registry import BackendRegistry
from envstack.core.models.outcome import (
    DispatchOptions,
    InstallOutcome,
    InstallRequest,
    InstallStatus,
)
from envstack.core.models.package import Backend, PackageDeclaration
from envstack.core.observability.run_log import RunLog

logger = logging.getLogger(__name__)

FALLBACK_FROM = Backend.PRIMARY_MANAGER
FALLBACK_TO = Backend.SECONDARY_MANAGER


def build_request(declaration: PackageDeclaration, options: DispatchOptions) -> InstallRequest:
    """The request for the declaration's own backend."""
    return InstallRequest(
        name=declaration.name,
        version=declaration.effective_version(options.force_latest),
        force=options.force,
    )


def dispatch(
    declaration: PackageDeclaration,
    options: DispatchOptions,
    registry: BackendRegistry,
    log: RunLog | None = None,
) -> InstallOutcome:
    """Install one declaration and return its outcome.

    Args:
        declaration: A validated, enabled declaration.
        options: Run-wide switches (force, dry_run, force_latest).
        registry: Backend lookup.
        log: Run log sink.

    Returns:
        InstallOutcome. ``backend_used`` is the backend that produced
        the final result (the fallback backend if a hop happened).
    """
    log = log or RunLog()
    request = build_request(declaration, options)
    backend = registry.get(declaration.backend)

    if options.dry_run:
        command = backend.describe(request)
        logger.debug("Dry run for %s: %s", declaration.name, command)
        return InstallOutcome.preview(
            declaration.name,
            declaration.backend,
            command,
            declared_backend=declaration.backend,
        )

    outcome = backend.install(request)
    outcome = outcome.model_copy(update={"declared_backend": declaration.backend})

    if outcome.status != InstallStatus.FAILED or declaration.backend != FALLBACK_FROM:
        return outcome

    return _fallback(declaration, request, outcome, registry, log)


def _fallback(
    declaration: PackageDeclaration,
    primary_request: InstallRequest,
    primary_outcome: InstallOutcome,
    registry: BackendRegistry,
    log: RunLog,
) -> InstallOutcome:
    """Retry a failed primary install once on the secondary manager."""
    target = declaration.fallback_target
    log.warning(
        f"{FALLBACK_FROM.value} failed for '{declaration.name}'; "
        f"falling back to {FALLBACK_TO.value} as '{target}'"
    )
    logger.debug("Primary failure detail for %s: %s", declaration.name, primary_outcome.detail)

    request = primary_request.model_copy(update={"name": target})
    outcome = registry.get(FALLBACK_TO).install(request)

    detail = outcome.detail
    if outcome.status == InstallStatus.FAILED:
        detail = (
            f"{FALLBACK_FROM.value}: {primary_outcome.detail} | "
            f"{FALLBACK_TO.value}: {outcome.detail}"
        )

    # Report under the declared name, whichever identifier was used
    return outcome.model_copy(update={
        "package_name": declaration.name,
        "detail": detail,
        "declared_backend": declaration.backend,
        "fallback_used": True,
    })
