"""
Tests for domain models — declarations, outcomes, summaries.
"""

import pytest
from pydantic import ValidationError

from envstack.core.models import (
    Backend,
    DispatchOptions,
    InstallOutcome,
    InstallStatus,
    PackageDeclaration,
    RunSummary,
)

# ── PackageDeclaration ───────────────────────────────────────────────


class TestPackageDeclaration:
    def test_yaml_aliases(self):
        decl = PackageDeclaration.model_validate({
            "name": "Git.Git",
            "install": True,
            "pkgmgr": "winget",
            "choco_name": "git",
        })
        assert decl.enabled is True
        assert decl.backend == Backend.PRIMARY_MANAGER
        assert decl.fallback_name == "git"

    def test_python_names(self):
        decl = PackageDeclaration(name="jq", enabled=True, backend=Backend.LINUX_PACKAGE_MANAGER)
        assert decl.backend == Backend.LINUX_PACKAGE_MANAGER

    def test_numeric_version_is_string(self):
        decl = PackageDeclaration.model_validate({
            "name": "x", "install": True, "pkgmgr": "choco", "version": 1.2,
        })
        assert decl.version == "1.2"

    def test_blank_version_is_latest(self):
        decl = PackageDeclaration.model_validate({
            "name": "x", "install": True, "pkgmgr": "choco", "version": "",
        })
        assert decl.version is None
        assert decl.effective_version() == "latest"

    def test_effective_version(self):
        decl = PackageDeclaration(name="x", enabled=True, backend=Backend.PRIMARY_MANAGER, version="1.2.3")
        assert decl.effective_version() == "1.2.3"
        assert decl.effective_version(force_latest=True) == "latest"

    def test_fallback_target(self):
        plain = PackageDeclaration(name="Git.Git", enabled=True, backend=Backend.PRIMARY_MANAGER)
        assert plain.fallback_target == "Git.Git"
        aliased = plain.model_copy(update={"fallback_name": "git"})
        assert aliased.fallback_target == "git"

    def test_string_enabled_rejected(self):
        with pytest.raises(ValidationError):
            PackageDeclaration.model_validate({"name": "x", "install": "true", "pkgmgr": "winget"})

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            PackageDeclaration.model_validate({"name": "  ", "install": True, "pkgmgr": "winget"})

    def test_frozen(self):
        decl = PackageDeclaration(name="x", enabled=True, backend=Backend.PRIMARY_MANAGER)
        with pytest.raises(ValidationError):
            decl.name = "y"


# ── InstallOutcome ───────────────────────────────────────────────────


class TestInstallOutcome:
    @pytest.mark.parametrize("status,succeeded", [
        (InstallStatus.INSTALLED, True),
        (InstallStatus.ALREADY_SATISFIED, True),
        (InstallStatus.WOULD_INSTALL, True),
        (InstallStatus.SKIPPED, False),
        (InstallStatus.FAILED, False),
    ])
    def test_succeeded(self, status, succeeded):
        outcome = InstallOutcome(package_name="x", backend_used=Backend.PRIMARY_MANAGER, status=status)
        assert outcome.succeeded is succeeded

    def test_factories(self):
        assert InstallOutcome.failure("x", Backend.SECONDARY_MANAGER, "boom").failed
        assert InstallOutcome.skip("x", Backend.LINUX_PACKAGE_MANAGER).status == InstallStatus.SKIPPED
        preview = InstallOutcome.preview("x", Backend.EDITOR_EXTENSION, "code --install-extension x")
        assert preview.status == InstallStatus.WOULD_INSTALL
        assert preview.detail == "code --install-extension x"


# ── RunSummary / DispatchOptions ─────────────────────────────────────


class TestRunSummary:
    def test_exit_code_ok(self):
        assert RunSummary(total=2, succeeded=2).exit_code == 0

    def test_exit_code_failed(self):
        summary = RunSummary(total=2, succeeded=1, failed=1)
        assert summary.exit_code == 1
        assert summary.status == "partial"

    def test_exit_code_dry_run(self):
        assert RunSummary(total=1, failed=1, dry_run=True).exit_code == 0

    def test_all_failed_status(self):
        assert RunSummary(total=1, failed=1).status == "failed"

    def test_to_dict(self):
        d = RunSummary(total=1, skipped=1).to_dict()
        assert d["skipped"] == 1
        assert d["outcomes"] == []


def test_dispatch_options_defaults():
    options = DispatchOptions()
    assert not options.force and not options.dry_run and not options.force_latest
