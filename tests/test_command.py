"""
Tests for the command runner.
"""

import sys

from envstack.adapters.shell.command import EXIT_NOT_FOUND, CommandResult, CommandRunner, format_command


class TestCommandRunner:
    def test_captures_output(self):
        result = CommandRunner().run([sys.executable, "-c", "print('hello')"])
        assert result.ok
        assert result.stdout == "hello"
        assert result.command[1:] == ("-c", "print('hello')")

    def test_nonzero_exit(self):
        result = CommandRunner().run([sys.executable, "-c", "import sys; sys.exit(3)"])
        assert not result.ok
        assert result.returncode == 3
        assert result.diagnostic() == "Command exited with code 3"

    def test_missing_executable(self):
        result = CommandRunner().run(["envstack-no-such-tool", "--help"])
        assert result.returncode == EXIT_NOT_FOUND
        assert "not found" in result.stderr


class TestCommandResult:
    def test_output_joins_streams(self):
        result = CommandResult(command=("x",), returncode=0, stdout="out", stderr="err")
        assert result.output == "out\nerr"

    def test_diagnostic_prefers_stderr(self):
        result = CommandResult(command=("x",), returncode=1, stdout="out", stderr="boom")
        assert result.diagnostic() == "boom"

    def test_format_command_quotes(self):
        assert format_command(["choco", "install", "my pkg"]) == "choco install 'my pkg'"
