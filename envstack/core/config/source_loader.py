"""
Source loader — loads package declarations from stack YAML files.

Stacks live in stacks/<name>.yaml. Each document carries a top-level
``packages`` list:

    packages:
      - name: Git.Git
        install: true
        pkgmgr: winget
      - name: posh-git
        install: true
        pkgmgr: pwsh

Loading one source either succeeds or raises a SourceError. Merging
many sources tolerates per-source failures: the bad source is logged
and skipped, the rest still load.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from envstack.core.observability.run_log import RunLog

logger = logging.getLogger(__name__)

STACK_SUFFIXES = (".yaml", ".yml")


class SourceError(Exception):
    """Base class for declaration source failures."""

    def __init__(self, source: str, message: str):
        super().__init__(message)
        self.source = source


class SourceNotFound(SourceError):
    """The source cannot be located."""


class SourceEmpty(SourceError):
    """The source parsed, but has no packages."""


class SourceMalformed(SourceError):
    """The source could not be parsed into the expected structure."""


class NoSourcesLoaded(SourceError):
    """None of the selected sources could be loaded."""


@dataclass(frozen=True)
class RawRecord:
    """One unvalidated declaration with its origin."""

    source: str        # stack name
    position: int      # 1-based index within the source
    data: Any

    @property
    def origin(self) -> str:
        return f"{self.source}#{self.position}"


def stack_name(path: Path) -> str:
    """Stack name for a source path (the file stem)."""
    return path.stem


def load_declarations(source: Path) -> list[RawRecord]:
    """Load the raw declarations of one stack file.

    Args:
        source: Path to a stack YAML file.

    Returns:
        Ordered raw records.

    Raises:
        SourceNotFound: If the file does not exist.
        SourceMalformed: If the YAML is invalid or has the wrong shape.
        SourceEmpty: If ``packages`` is missing or empty.
    """
    name = stack_name(source)
    if not source.is_file():
        raise SourceNotFound(name, f"Stack file not found: {source}")

    try:
        raw = source.read_text(encoding="utf-8")
    except OSError as e:
        raise SourceNotFound(name, f"Cannot read {source}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise SourceMalformed(name, f"Invalid YAML in {source}: {e}") from e

    if data is None:
        raise SourceEmpty(name, f"Stack file is empty: {source}")
    if not isinstance(data, dict):
        raise SourceMalformed(
            name, f"Expected a YAML mapping in {source}, got {type(data).__name__}"
        )

    packages = data.get("packages")
    if packages is None:
        raise SourceEmpty(name, f"No 'packages' collection in {source}")
    if not isinstance(packages, list):
        raise SourceMalformed(
            name, f"'packages' in {source} must be a list, got {type(packages).__name__}"
        )
    if not packages:
        raise SourceEmpty(name, f"'packages' is empty in {source}")

    records = [RawRecord(source=name, position=i, data=entry) for i, entry in enumerate(packages, start=1)]
    logger.debug("Loaded %d declarations from %s", len(records), source)
    return records


def discover_sources(stacks_dir: Path) -> dict[str, Path]:
    """Find every stack file in a directory, keyed by stack name.

    Enumeration order is sorted by file name, which is also the merge
    order. When both ``x.yaml`` and ``x.yml`` exist, ``x.yaml`` wins.
    """
    sources: dict[str, Path] = {}
    if not stacks_dir.is_dir():
        logger.debug("Stacks directory not found: %s", stacks_dir)
        return sources

    for child in sorted(stacks_dir.iterdir()):
        if not child.is_file() or child.suffix.lower() not in STACK_SUFFIXES:
            continue
        name = stack_name(child)
        if name in sources and sources[name].suffix.lower() == ".yaml":
            continue
        sources[name] = child

    logger.debug("Discovered %d stacks in %s: %s", len(sources), stacks_dir, list(sources))
    return sources


def resolve_sources(path: Path) -> dict[str, Path]:
    """Resolve a custom source path: a single stack file or a directory."""
    if path.is_dir():
        return discover_sources(path)
    return {stack_name(path): path}


def merge_sources(
    sources: Mapping[str, Path],
    selector: Iterable[str] | None = None,
    log: RunLog | None = None,
) -> list[RawRecord]:
    """Load and concatenate the selected sources in enumeration order.

    Args:
        sources: Available stacks, name → path, in enumeration order.
        selector: Stack names to load. None or empty loads all.
        log: Run log for warnings about skipped sources.

    Returns:
        Raw records of every source that loaded.

    Raises:
        NoSourcesLoaded: If not a single selected source loaded.
    """
    log = log or RunLog()
    selected = list(dict.fromkeys(selector or []))

    if selected:
        targets: list[tuple[str, Path | None]] = [(n, sources.get(n)) for n in sources if n in selected]
        # Unknown names keep the caller's order after the known ones
        targets += [(n, None) for n in selected if n not in sources]
    else:
        targets = list(sources.items())

    records: list[RawRecord] = []
    loaded = 0
    for name, path in targets:
        try:
            if path is None:
                raise SourceNotFound(name, f"Unknown stack '{name}'")
            batch = load_declarations(path)
        except SourceError as e:
            log.warning(f"Skipping stack '{e.source}': {e}")
            continue
        records.extend(batch)
        loaded += 1
        log.info(f"Loaded stack '{name}' ({len(batch)} packages)")

    if loaded == 0:
        wanted = ", ".join(selected) if selected else "any"
        raise NoSourcesLoaded(wanted, f"No stacks could be loaded (selected: {wanted})")

    return records
