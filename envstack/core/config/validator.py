"""
Declaration validator — turns raw records into PackageDeclarations.

A record is either fully valid or rejected. Rejections never abort the
batch: they are logged with the offending field and the next record is
processed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from pydantic import ValidationError

from envstack.core.config.source_loader import RawRecord
from envstack.core.models.package import Backend, PackageDeclaration
from envstack.core.observability.run_log import RunLog

logger = logging.getLogger(__name__)

# YAML keys, in the order they are checked
REQUIRED_FIELDS = ("name", "install", "pkgmgr")

_BACKEND_VALUES = frozenset(b.value for b in Backend)


class ValidationRejected(Exception):
    """A declaration failed validation."""

    def __init__(self, field_name: str, reason: str, origin: str = ""):
        self.field = field_name
        self.reason = reason
        self.origin = origin
        where = f"{origin}: " if origin else ""
        super().__init__(f"{where}{field_name}: {reason}")


@dataclass
class ValidationReport:
    """Accepted declarations and rejections of one batch."""

    accepted: list[PackageDeclaration] = field(default_factory=list)
    rejected: list[ValidationRejected] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.rejected

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "accepted": [d.model_dump(mode="json") for d in self.accepted],
            "rejected": [
                {"origin": r.origin, "field": r.field, "reason": r.reason}
                for r in self.rejected
            ],
        }


def validate_declaration(record: RawRecord | dict) -> PackageDeclaration:
    """Validate one raw record.

    Checks, in order: required fields present, ``pkgmgr`` is a known
    backend, ``install`` is a genuine boolean, then the remaining fields.

    Raises:
        ValidationRejected: Naming the first field that failed.
    """
    if isinstance(record, RawRecord):
        data, origin, source = record.data, record.origin, record.source
    else:
        data, origin, source = record, "", ""

    if not isinstance(data, dict):
        raise ValidationRejected("<entry>", f"expected a mapping, got {type(data).__name__}", origin)

    for key in REQUIRED_FIELDS:
        if data.get(key) is None:
            raise ValidationRejected(key, "missing required field", origin)

    backend = data["pkgmgr"]
    if not isinstance(backend, str) or backend not in _BACKEND_VALUES:
        raise ValidationRejected(
            "pkgmgr",
            f"unknown package manager {backend!r} (expected one of {', '.join(sorted(_BACKEND_VALUES))})",
            origin,
        )

    # bool is the only accepted type; "true" or 1 are rejected
    if not isinstance(data["install"], bool):
        raise ValidationRejected(
            "install", f"must be true or false, got {data['install']!r}", origin
        )

    try:
        return PackageDeclaration.model_validate({**data, "source": source})
    except ValidationError as e:
        first = e.errors()[0]
        loc = ".".join(str(p) for p in first.get("loc", ())) or "<entry>"
        raise ValidationRejected(loc, first.get("msg", "invalid value"), origin) from e


def validate_all(
    records: Iterable[RawRecord | dict],
    log: RunLog | None = None,
) -> ValidationReport:
    """Validate a batch, collecting accepted declarations and rejections."""
    log = log or RunLog()
    report = ValidationReport()
    for record in records:
        try:
            report.accepted.append(validate_declaration(record))
        except ValidationRejected as e:
            report.rejected.append(e)
            log.warning(f"Invalid declaration skipped — {e}")
    logger.debug(
        "Validated %d declarations (%d rejected)",
        len(report.accepted) + len(report.rejected),
        len(report.rejected),
    )
    return report


def filter_enabled(
    declarations: Iterable[PackageDeclaration],
    log: RunLog | None = None,
) -> list[PackageDeclaration]:
    """Keep only declarations with ``install: true``."""
    log = log or RunLog()
    enabled: list[PackageDeclaration] = []
    for decl in declarations:
        if decl.enabled:
            enabled.append(decl)
        else:
            log.info(f"Skipping disabled package '{decl.name}' ({decl.backend.value})")
    return enabled
