"""Command runner: execute git command strings in a working directory."""

import logging
import os
import shlex
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel

from gitpm.errors import CommandError

LOG = logging.getLogger("gitpm.services.git")


class CommandResult(BaseModel):
    """Outcome of one command. Runners report failures here instead of raising."""

    success: bool
    output: str | None = None
    stderr: str | None = None
    error: str | None = None

    @property
    def error_text(self) -> str:
        return (self.stderr or "").strip() or (self.error or "").strip() or (self.output or "").strip()


class CommandRunner(ABC):
    """Executes a command string (e.g. "git status --short") in a directory."""

    @abstractmethod
    def execute(self, command: str, working_dir: str | Path, token: str | None = None) -> CommandResult:
        """Run the command; never raises for command failures."""
        ...


class GitCommandRunner(CommandRunner):
    """Runs commands with subprocess, without a shell.

    The command string is split with shlex, so arguments built with
    shlex.quote (commit messages) survive intact. The token, when given, is
    exported as GITHUB_TOKEN for credential helpers; interactive prompts are
    disabled.
    """

    def __init__(self, timeout: int = 120, binary: str = "git") -> None:
        self.timeout = timeout
        self.binary = binary

    def execute(self, command: str, working_dir: str | Path, token: str | None = None) -> CommandResult:
        try:
            args = shlex.split(command)
        except ValueError as e:
            return CommandResult(success=False, error=f"invalid command: {e}")
        if not args:
            return CommandResult(success=False, error="empty command")
        if args[0] == "git":
            args[0] = self.binary

        env = os.environ.copy()
        env["GIT_TERMINAL_PROMPT"] = "0"
        if token:
            env["GITHUB_TOKEN"] = token

        try:
            proc = subprocess.run(
                args,
                cwd=working_dir,
                env=env,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            # Either the binary or the working directory is missing
            return CommandResult(success=False, error=f"not found: {e.filename or e}")
        except NotADirectoryError:
            return CommandResult(success=False, error=f"not a directory: {working_dir}")
        except subprocess.TimeoutExpired:
            return CommandResult(success=False, error=f"timed out after {self.timeout}s")
        except OSError as e:
            # Binary not executable, cwd unreadable, bad exec format
            LOG.debug("Cannot start %s in %s: %s", args[0], working_dir, e)
            return CommandResult(success=False, error=str(e))

        if proc.returncode != 0:
            LOG.debug("Command failed (%s) in %s: %s", proc.returncode, working_dir, command)
            return CommandResult(
                success=False,
                output=proc.stdout,
                stderr=proc.stderr,
                error=f"exit code {proc.returncode}",
            )
        return CommandResult(success=True, output=proc.stdout, stderr=proc.stderr)


def run_checked(
    runner: CommandRunner,
    command: str,
    cwd: str | Path,
    token: str | None = None,
    log: logging.Logger | None = None,
) -> str:
    """Run command; return stdout, raise CommandError on failure."""
    result = runner.execute(command, cwd, token)
    if not result.success:
        if log:
            log.warning("%s failed: %s", command, result.error_text)
        raise CommandError(command, result.error_text)
    return result.output or ""
