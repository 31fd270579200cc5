"""Tests for the git command runner and git helpers (subprocess mocked)."""

import subprocess
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from gitpm.errors import CommandError
from gitpm.services.git import (
    CommandResult,
    GitCommandRunner,
    build_commit_command,
    commit,
    get_current_branch,
    get_status,
    push_branch,
    run_checked,
    stage_all,
)


def _completed(returncode: int = 0, stdout: str = "", stderr: str = "") -> Mock:
    proc = Mock()
    proc.returncode = returncode
    proc.stdout = stdout
    proc.stderr = stderr
    return proc


class TestGitCommandRunner:
    """GitCommandRunner wraps subprocess.run and never raises."""

    def test_success_returns_output(self) -> None:
        """Zero exit code gives success with stdout."""
        runner = GitCommandRunner()
        with patch("gitpm.services.git._run.subprocess.run", return_value=_completed(stdout="main\n")) as run:
            result = runner.execute("git branch --show-current", "/tmp/repo")
        assert result.success is True
        assert result.output == "main\n"
        args, kwargs = run.call_args
        assert args[0] == ["git", "branch", "--show-current"]
        assert kwargs["cwd"] == "/tmp/repo"
        assert kwargs["env"]["GIT_TERMINAL_PROMPT"] == "0"

    def test_failure_keeps_stderr(self) -> None:
        """Non-zero exit code gives a failed result with stderr."""
        runner = GitCommandRunner()
        proc = _completed(returncode=1, stderr="fatal: not a git repository")
        with patch("gitpm.services.git._run.subprocess.run", return_value=proc):
            result = runner.execute("git status --short", "/tmp")
        assert result.success is False
        assert result.error_text == "fatal: not a git repository"

    def test_token_exported(self) -> None:
        """Token is passed to git as GITHUB_TOKEN."""
        runner = GitCommandRunner()
        with patch("gitpm.services.git._run.subprocess.run", return_value=_completed()) as run:
            runner.execute("git push origin main", "/tmp/repo", token="secret")
        assert run.call_args[1]["env"]["GITHUB_TOKEN"] == "secret"

    def test_custom_binary(self) -> None:
        """Configured binary replaces the leading git."""
        runner = GitCommandRunner(binary="/usr/local/bin/git")
        with patch("gitpm.services.git._run.subprocess.run", return_value=_completed()) as run:
            runner.execute("git add .", "/tmp/repo")
        assert run.call_args[0][0] == ["/usr/local/bin/git", "add", "."]

    def test_missing_binary_is_failure(self) -> None:
        """FileNotFoundError becomes a failed result."""
        runner = GitCommandRunner()
        with patch("gitpm.services.git._run.subprocess.run", side_effect=FileNotFoundError(2, "nope", "git")):
            result = runner.execute("git status --short", "/tmp/repo")
        assert result.success is False
        assert "not found" in result.error

    def test_permission_error_is_failure(self) -> None:
        """Other OSErrors (non-executable binary) become a failed result."""
        runner = GitCommandRunner(binary="/opt/git")
        with patch(
            "gitpm.services.git._run.subprocess.run",
            side_effect=PermissionError(13, "Permission denied"),
        ):
            result = runner.execute("git status --short", "/tmp/repo")
        assert result.success is False
        assert "Permission denied" in result.error

    def test_non_executable_binary(self, tmp_path: Path) -> None:
        """A real non-executable git binary is reported, not raised."""
        fake = tmp_path / "git"
        fake.write_text("#!/bin/sh\n", encoding="utf-8")
        fake.chmod(0o644)
        result = GitCommandRunner(binary=str(fake)).execute("git status --short", tmp_path)
        assert result.success is False
        assert result.error

    def test_timeout_is_failure(self) -> None:
        """TimeoutExpired becomes a failed result."""
        runner = GitCommandRunner(timeout=5)
        with patch(
            "gitpm.services.git._run.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="git", timeout=5),
        ):
            result = runner.execute("git push origin main", "/tmp/repo")
        assert result.success is False
        assert "timed out" in result.error

    def test_unbalanced_quotes_is_failure(self) -> None:
        """A command shlex cannot split is reported, not raised."""
        result = GitCommandRunner().execute("git commit -m 'oops", "/tmp/repo")
        assert result.success is False


class TestGitHelpers:
    """Helpers build commands and raise CommandError on failure."""

    def test_commit_message_is_quoted(self, tmp_path: Path) -> None:
        """Quotes and shell metacharacters survive as one argument."""
        message = "fix: handle \"quoted\" $HOME and `ticks`"
        runner = GitCommandRunner()
        with patch("gitpm.services.git._run.subprocess.run", return_value=_completed()) as run:
            runner.execute(build_commit_command(message), tmp_path)
        assert run.call_args[0][0] == ["git", "commit", "-m", message]

    def test_run_checked_raises_command_error(self) -> None:
        """Failed result raises CommandError carrying the command and stderr."""
        runner = Mock()
        runner.execute.return_value = CommandResult(success=False, stderr="rejected")
        with pytest.raises(CommandError) as exc_info:
            run_checked(runner, "git push origin main", "/tmp/repo")
        assert exc_info.value.command == "git push origin main"
        assert "rejected" in str(exc_info.value)

    def test_stage_commit_push_commands(self) -> None:
        """stage_all, commit and push_branch send the expected commands."""
        runner = Mock()
        runner.execute.return_value = CommandResult(success=True, output="")
        stage_all(runner, "/r")
        commit(runner, "feat: x", "/r")
        push_branch(runner, "feature/a", "/r", token="t")
        commands = [c.args[0] for c in runner.execute.call_args_list]
        assert commands == ["git add .", "git commit -m 'feat: x'", "git push origin feature/a"]
        assert runner.execute.call_args_list[2].args[2] == "t"

    def test_current_branch_detached_head(self) -> None:
        """Empty branch output raises CommandError."""
        runner = Mock()
        runner.execute.return_value = CommandResult(success=True, output="\n")
        with pytest.raises(CommandError, match="detached"):
            get_current_branch(runner, "/r")

    def test_get_status_parses_output(self) -> None:
        """get_status returns parsed changes."""
        runner = Mock()
        runner.execute.return_value = CommandResult(success=True, output="?? a.txt\n M b.txt\n")
        changes = get_status(runner, "/r")
        assert [c.path for c in changes] == ["a.txt", "b.txt"]
        runner.execute.assert_called_once_with("git status --short", "/r", None)
