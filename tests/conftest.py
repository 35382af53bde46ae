"""
Shared test fixtures and configuration.
"""

import textwrap
from pathlib import Path

import pytest

from envstack.adapters.mock import MockBackend
from envstack.adapters.registry import BackendRegistry
from envstack.adapters.shell.command import CommandResult, CommandRunner
from envstack.core.config.settings import ToolSettings
from envstack.core.models.package import Backend
from envstack.core.observability.run_log import RunLog
from envstack.core.services.capability_probe import CapabilityProbe


class FakeRunner(CommandRunner):
    """Records commands and answers with scripted results.

    Rules are matched by substring against the joined command line;
    the most recently added matching rule wins. Unmatched commands
    succeed with empty output.
    """

    def __init__(self):
        self.commands: list[list[str]] = []
        self._rules: list[tuple[str, int, str, str]] = []

    def respond(self, contains: str, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self._rules.append((contains, returncode, stdout, stderr))

    def run(self, cmd: list[str]) -> CommandResult:
        self.commands.append(list(cmd))
        line = " ".join(cmd)
        for needle, returncode, stdout, stderr in reversed(self._rules):
            if needle in line:
                return CommandResult(command=tuple(cmd), returncode=returncode, stdout=stdout, stderr=stderr)
        return CommandResult(command=tuple(cmd), returncode=0)

    def ran(self, contains: str) -> bool:
        return any(contains in " ".join(c) for c in self.commands)


class StubProbe(CapabilityProbe):
    """Capability probe with fixed answers."""

    def __init__(
        self,
        commands: set[str] | None = None,
        privileged: bool = False,
        linux: bool = False,
        policy_ok: bool = True,
        os_ok: bool = True,
    ):
        super().__init__(platform_name="linux" if linux else "win32")
        self.commands = set(commands or ())
        self.privileged = privileged
        self.linux = linux
        self.policy_ok = policy_ok
        self.os_ok = os_ok

    def is_command_available(self, name: str) -> bool:
        return name in self.commands

    def is_privileged_session(self) -> bool:
        return self.privileged

    def is_policy_acceptable(self) -> bool:
        return self.policy_ok

    def is_os_supported(self) -> bool:
        return self.os_ok

    def is_linux_host(self) -> bool:
        return self.linux


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def make_probe():
    """Factory for StubProbe instances."""
    return StubProbe


@pytest.fixture
def mock_backends() -> dict[Backend, MockBackend]:
    """One MockBackend per Backend member."""
    return {kind: MockBackend(kind) for kind in Backend}


@pytest.fixture
def mock_registry(mock_backends) -> BackendRegistry:
    return BackendRegistry(mock_backends.values())


@pytest.fixture
def run_log() -> RunLog:
    return RunLog()


@pytest.fixture
def stacks_dir(tmp_path: Path) -> Path:
    """A stacks directory with two valid stacks."""
    d = tmp_path / "stacks"
    d.mkdir()
    (d / "core.yaml").write_text(textwrap.dedent("""\
        packages:
          - name: Git.Git
            install: true
            pkgmgr: winget
            choco_name: git
          - name: posh-git
            install: true
            pkgmgr: pwsh
          - name: Terminal-Icons
            install: false
            pkgmgr: pwsh
    """))
    (d / "python.yaml").write_text(textwrap.dedent("""\
        packages:
          - name: Python.Python.3.12
            install: true
            version: "3.12.4"
            pkgmgr: winget
          - name: ms-python.python
            install: true
            pkgmgr: vscode
    """))
    return d


@pytest.fixture
def settings(tmp_path: Path, stacks_dir: Path) -> ToolSettings:
    return ToolSettings(stacks_dir=stacks_dir, state_dir=tmp_path / "state")
