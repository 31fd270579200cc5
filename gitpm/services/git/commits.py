"""Stage and commit changes."""

import logging
import shlex
from pathlib import Path

from gitpm.services.git._run import CommandRunner, run_checked


def stage_all(
    runner: CommandRunner,
    repo_dir: str | Path,
    log: logging.Logger | None = None,
) -> None:
    """Stage everything in the working tree (git add .)."""
    run_checked(runner, "git add .", repo_dir, log=log)


def build_commit_command(commit_message: str) -> str:
    """Build `git commit -m <message>` with the message shell-quoted.

    Quotes, $ and backticks in the message reach git unchanged.
    """
    return f"git commit -m {shlex.quote(commit_message)}"


def commit(
    runner: CommandRunner,
    commit_message: str,
    repo_dir: str | Path,
    log: logging.Logger | None = None,
) -> str:
    """Commit staged changes. Raises CommandError (including "nothing to commit")."""
    out = run_checked(runner, build_commit_command(commit_message), repo_dir, log=log)
    if log:
        log.info("Committed in %s", repo_dir)
    return out
