"""
Tests for the dispatcher — version resolution, dry run, fallback hop.
"""

import pytest

from envstack.adapters.registry import default_registry
from envstack.core.engine.dispatcher import build_request, dispatch
from envstack.core.models.outcome import DispatchOptions, InstallStatus
from envstack.core.models.package import Backend, PackageDeclaration


def _decl(name="Git.Git", backend=Backend.PRIMARY_MANAGER, **kwargs) -> PackageDeclaration:
    return PackageDeclaration(name=name, enabled=True, backend=backend, **kwargs)


# ── Request building ─────────────────────────────────────────────────


class TestBuildRequest:
    def test_pinned_version(self):
        request = build_request(_decl(version="1.2.3"), DispatchOptions())
        assert request.version == "1.2.3"

    def test_absent_version_is_latest(self):
        assert build_request(_decl(), DispatchOptions()).version == "latest"

    def test_force_latest_overrides_pin(self):
        request = build_request(_decl(version="1.2.3"), DispatchOptions(force_latest=True))
        assert request.version == "latest"

    def test_force_passed_through(self):
        assert build_request(_decl(), DispatchOptions(force=True)).force


# ── Dispatch ─────────────────────────────────────────────────────────


class TestDispatch:
    def test_uses_declared_backend(self, mock_registry, mock_backends, run_log):
        outcome = dispatch(_decl(backend=Backend.MODULE_GALLERY), DispatchOptions(), mock_registry, run_log)
        assert outcome.status == InstallStatus.INSTALLED
        assert outcome.backend_used == Backend.MODULE_GALLERY
        assert outcome.declared_backend == Backend.MODULE_GALLERY
        assert mock_backends[Backend.MODULE_GALLERY].call_count == 1

    def test_dry_run_never_installs(self, mock_registry, mock_backends, run_log):
        options = DispatchOptions(dry_run=True)
        for kind in Backend:
            outcome = dispatch(_decl(name=f"pkg-{kind.value}", backend=kind), options, mock_registry, run_log)
            assert outcome.status == InstallStatus.WOULD_INSTALL
            assert f"pkg-{kind.value}" in outcome.detail
        assert all(b.call_count == 0 for b in mock_backends.values())

    def test_dry_run_is_repeatable(self, fake_runner, make_probe, run_log):
        probe = make_probe(commands={"winget"})
        registry = default_registry(probe, fake_runner)
        decl = _decl(version="2.45.0")
        options = DispatchOptions(dry_run=True)

        first = dispatch(decl, options, registry, run_log)
        second = dispatch(decl, options, registry, run_log)

        assert first == second
        assert first.detail.startswith("winget install --id Git.Git")
        assert "--version 2.45.0" in first.detail
        assert fake_runner.commands == []
        assert probe.commands == {"winget"}

    def test_no_fallback_on_success(self, mock_registry, mock_backends, run_log):
        outcome = dispatch(_decl(), DispatchOptions(), mock_registry, run_log)
        assert not outcome.fallback_used
        assert mock_backends[Backend.SECONDARY_MANAGER].call_count == 0


# ── Fallback ─────────────────────────────────────────────────────────


class TestFallback:
    def test_primary_failure_falls_back(self, mock_registry, mock_backends, run_log):
        mock_backends[Backend.PRIMARY_MANAGER].set_failure("Git.Git", "winget exploded")
        outcome = dispatch(_decl(fallback_name="git"), DispatchOptions(), mock_registry, run_log)

        assert outcome.status == InstallStatus.INSTALLED
        assert outcome.backend_used == Backend.SECONDARY_MANAGER
        assert outcome.fallback_used
        assert outcome.package_name == "Git.Git"
        assert mock_backends[Backend.SECONDARY_MANAGER].call_log[0].name == "git"
        assert any("falling back" in e.message for e in run_log.events_at("warning"))

    def test_fallback_reuses_name_without_alias(self, mock_registry, mock_backends, run_log):
        mock_backends[Backend.PRIMARY_MANAGER].set_failure("Git.Git")
        dispatch(_decl(), DispatchOptions(), mock_registry, run_log)
        assert mock_backends[Backend.SECONDARY_MANAGER].call_log[0].name == "Git.Git"

    def test_fallback_keeps_version_and_force(self, mock_registry, mock_backends, run_log):
        mock_backends[Backend.PRIMARY_MANAGER].set_failure("Git.Git")
        dispatch(_decl(version="2.45.0"), DispatchOptions(force=True), mock_registry, run_log)
        request = mock_backends[Backend.SECONDARY_MANAGER].call_log[0]
        assert request.version == "2.45.0"
        assert request.force

    def test_both_fail(self, mock_registry, mock_backends, run_log):
        mock_backends[Backend.PRIMARY_MANAGER].set_failure("Git.Git", "primary broke")
        mock_backends[Backend.SECONDARY_MANAGER].set_failure("git", "secondary broke")
        outcome = dispatch(_decl(fallback_name="git"), DispatchOptions(), mock_registry, run_log)

        assert outcome.failed
        assert outcome.backend_used == Backend.SECONDARY_MANAGER
        assert "primary broke" in outcome.detail
        assert "secondary broke" in outcome.detail

    def test_already_satisfied_does_not_fall_back(self, mock_registry, mock_backends, run_log):
        mock_backends[Backend.PRIMARY_MANAGER].set_response("Git.Git", InstallStatus.ALREADY_SATISFIED)
        outcome = dispatch(_decl(), DispatchOptions(), mock_registry, run_log)
        assert outcome.status == InstallStatus.ALREADY_SATISFIED
        assert mock_backends[Backend.SECONDARY_MANAGER].call_count == 0

    @pytest.mark.parametrize("kind", [k for k in Backend if k != Backend.PRIMARY_MANAGER])
    def test_only_primary_falls_back(self, mock_registry, mock_backends, run_log, kind):
        mock_backends[kind].set_failure("pkg")
        outcome = dispatch(_decl(name="pkg", backend=kind), DispatchOptions(), mock_registry, run_log)

        assert outcome.failed
        assert outcome.backend_used == kind
        assert not outcome.fallback_used
        assert mock_backends[Backend.SECONDARY_MANAGER].call_count == (1 if kind == Backend.SECONDARY_MANAGER else 0)

    def test_real_backends_winget_to_choco(self, fake_runner, make_probe, run_log):
        fake_runner.respond("winget install", returncode=1, stderr="No package found")
        registry = default_registry(make_probe(commands={"winget", "choco"}), fake_runner)

        outcome = dispatch(_decl(fallback_name="git"), DispatchOptions(), registry, run_log)

        assert outcome.status == InstallStatus.INSTALLED
        assert outcome.backend_used == Backend.SECONDARY_MANAGER
        assert fake_runner.commands[1][:3] == ["choco", "install", "git"]

    def test_apt_outside_linux_skipped(self, fake_runner, make_probe, run_log):
        registry = default_registry(make_probe(commands={"apt-get"}), fake_runner)
        outcome = dispatch(_decl(name="jq", backend=Backend.LINUX_PACKAGE_MANAGER), DispatchOptions(), registry, run_log)
        assert outcome.status == InstallStatus.SKIPPED
        assert fake_runner.commands == []

    def test_every_fallback_reports_missing_privilege(self, fake_runner, make_probe, run_log):
        fake_runner.respond("winget install", returncode=1, stderr="No package found")
        registry = default_registry(make_probe(commands={"winget"}), fake_runner)

        outcomes = [
            dispatch(_decl(name=name), DispatchOptions(), registry, run_log)
            for name in ("Git.Git", "7zip.7zip")
        ]

        for outcome in outcomes:
            assert outcome.failed
            assert outcome.fallback_used
            assert "administrator" in outcome.detail
