"""
envstack — CLI entrypoint.

Usage:
    envstack --help
    envstack install --stack core --stack python
    envstack install --dry-run
    envstack stacks
    envstack check
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from envstack import __version__
from envstack.core.config.settings import ToolSettings
from envstack.core.observability.logging_config import console_level, setup_logging

_STATUS_STYLE = {
    "installed": ("✓", "green"),
    "already_satisfied": ("✓", "green"),
    "would_install": ("→", "cyan"),
    "skipped": ("⊘", "yellow"),
    "failed": ("✗", "red"),
}


@click.group()
@click.version_option(version=__version__, prog_name="envstack")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Only show errors and the final result.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--stacks-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory of stack files (default: $ENVSTACK_STACKS_DIR or ./stacks).",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write all log output to this file.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    stacks_dir: Path | None,
    log_file: Path | None,
) -> None:
    """envstack — declarative development environment provisioning."""
    settings = ToolSettings.from_env()
    if stacks_dir is not None:
        settings.stacks_dir = stacks_dir
    if log_file is not None:
        settings.log_file = log_file

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["settings"] = settings

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=console_level(debug, verbose, quiet, default=settings.log_level),
        log_file=str(settings.log_file) if settings.log_file else None,
    )


# ── Install ─────────────────────────────────────────────────────


@cli.command()
@click.option("--stack", "-s", "stacks", multiple=True, help="Stack to install (repeatable; default: all).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Custom stack file or directory.",
)
@click.option("--force", is_flag=True, help="Reinstall even if already present.")
@click.option("--latest-everything", is_flag=True, help="Ignore pinned versions, install latest.")
@click.option("--dry-run", is_flag=True, help="Show what would be installed without changing anything.")
@click.option("--skip-checks", is_flag=True, help="Don't abort on failed prerequisites.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    stacks: tuple[str, ...],
    config_path: Path | None,
    force: bool,
    latest_everything: bool,
    dry_run: bool,
    skip_checks: bool,
    as_json: bool,
) -> None:
    """Install the packages declared by the selected stacks.

    Examples:

        envstack install

        envstack install -s core -s python --dry-run

        envstack install --config ./my-stack.yaml --latest-everything
    """
    from envstack.core.models.outcome import DispatchOptions
    from envstack.core.use_cases.install import run_install

    options = DispatchOptions(force=force, dry_run=dry_run, force_latest=latest_everything)
    result = run_install(
        stacks=list(stacks) or None,
        config_path=config_path,
        options=options,
        settings=ctx.obj["settings"],
        skip_checks=skip_checks,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        if result.prerequisites is not None:
            for check in result.prerequisites.failures:
                click.secho(f"   ✗ {check.name}: {check.message}", fg="red")
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    summary = result.summary
    assert summary is not None
    quiet = ctx.obj.get("quiet", False)

    if not quiet:
        mode_label = "[dry-run] " if dry_run else ""
        click.secho(f"\n📦 {mode_label}{', '.join(result.stacks)}", fg="cyan", bold=True)
        if result.declarations_rejected:
            click.secho(f"   ⚠️  {result.declarations_rejected} invalid declaration(s) skipped", fg="yellow")
        click.echo()

        for outcome in summary.outcomes:
            icon, color = _STATUS_STYLE.get(outcome.status.value, ("?", "white"))
            via = f" via {outcome.backend_used.value}" if outcome.fallback_used else ""
            click.secho(f"   {icon} {outcome.package_name}", fg=color, nl=False)
            click.echo(f" [{outcome.status.value}{via}]")
            if outcome.detail and (outcome.failed or dry_run or ctx.obj.get("verbose")):
                for line in outcome.detail.split("\n")[:5]:
                    click.echo(f"     │ {line}")

    # Summary
    click.echo()
    status_color = {"ok": "green", "partial": "yellow", "failed": "red"}.get(summary.status, "white")
    click.secho(
        f"   Result: {summary.succeeded}/{summary.total} succeeded, "
        f"{summary.failed} failed, {summary.skipped} skipped",
        fg=status_color,
        bold=True,
    )
    if result.log_file and not quiet:
        click.echo(f"   Log: {result.log_file}")
    click.echo()

    sys.exit(result.exit_code)


# ── Stacks ──────────────────────────────────────────────────────


@cli.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Custom stack file or directory.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def stacks(ctx: click.Context, config_path: Path | None, as_json: bool) -> None:
    """List available stacks."""
    from envstack.core.use_cases.validate import list_stacks

    infos = list_stacks(ctx.obj["settings"], config_path)

    if as_json:
        click.echo(json.dumps([i.to_dict() for i in infos], indent=2))
        return

    if not infos:
        click.secho("⚠️  No stacks found", fg="yellow")
        return

    click.secho("📚 Stacks:", fg="cyan", bold=True)
    for info in infos:
        if info.error:
            click.secho(f"   ✗ {info.name}", fg="red", nl=False)
            click.echo(f"  ({info.error})")
        else:
            click.echo(f"   • {info.name:<20} {info.packages} packages")
    click.echo()


# ── Validate ────────────────────────────────────────────────────


@cli.command()
@click.option("--stack", "-s", "stack_names", multiple=True, help="Stack to validate (default: all).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Custom stack file or directory.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def validate(
    ctx: click.Context,
    stack_names: tuple[str, ...],
    config_path: Path | None,
    as_json: bool,
) -> None:
    """Validate stack files without installing anything."""
    from envstack.core.use_cases.validate import run_validate

    result = run_validate(ctx.obj["settings"], list(stack_names) or None, config_path)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    report = result.report
    assert report is not None

    for warning in result.warnings:
        click.secho(f"   ⚠️  {warning}", fg="yellow")

    if result.valid:
        click.secho("✅ All declarations are valid", fg="green", bold=True)
    else:
        click.secho("❌ Invalid declarations:", fg="red", bold=True)
        for rejected in report.rejected:
            click.echo(f"   • {rejected}")
    click.echo(f"   Accepted: {len(report.accepted)}")
    click.echo()

    if not result.valid:
        sys.exit(1)


# ── Check ───────────────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def check(as_json: bool) -> None:
    """Check host prerequisites."""
    from envstack.adapters.registry import default_registry
    from envstack.core.services.capability_probe import CapabilityProbe
    from envstack.core.use_cases.check import check_prerequisites

    probe = CapabilityProbe()
    report = check_prerequisites(probe, registry=default_registry(probe=probe))

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        sys.exit(0 if report.ok else 1)

    click.secho(f"🔍 Prerequisites ({report.host}):", fg="cyan", bold=True)
    for c in report.checks:
        if c.passed:
            click.secho(f"   ✓ {c.name}", fg="green")
        elif c.required:
            click.secho(f"   ✗ {c.name}", fg="red", nl=False)
            click.echo(f"  — {c.message}")
        else:
            click.secho(f"   ⚠️  {c.name}", fg="yellow", nl=False)
            click.echo(f"  — {c.message}")

    click.secho("📦 Package managers:", fg="cyan", bold=True)
    for name, info in report.backends.items():
        if info["available"]:
            click.secho(f"   ✓ {name}", fg="green")
        else:
            click.secho(f"   ⊘ {name}", fg="yellow", nl=False)
            click.echo("  (not found)")
    click.echo()

    if not report.ok:
        sys.exit(1)


# ── History ─────────────────────────────────────────────────────


@cli.command()
@click.option("--limit", "-n", default=10, show_default=True, help="Number of runs to show.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def history(ctx: click.Context, limit: int, as_json: bool) -> None:
    """Show recent install runs."""
    from envstack.core.persistence.history import HistoryWriter

    settings: ToolSettings = ctx.obj["settings"]
    entries = HistoryWriter(settings.history_path).read_recent(limit)

    if as_json:
        click.echo(json.dumps([e.model_dump(mode="json") for e in entries], indent=2))
        return

    if not entries:
        click.echo("No runs recorded yet.")
        return

    for entry in entries:
        color = {"ok": "green", "partial": "yellow", "failed": "red"}.get(entry.status, "white")
        mode = " [dry-run]" if entry.dry_run else ""
        click.echo(f"   {entry.timestamp[:19]}  {entry.run_id}{mode}  ", nl=False)
        click.secho(f"{entry.succeeded}/{entry.total}", fg=color, nl=False)
        click.echo(f"  {', '.join(entry.stacks)}")
        if entry.failed_packages:
            click.echo(f"     failed: {', '.join(entry.failed_packages)}")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
