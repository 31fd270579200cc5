"""Branch and working tree inspection (current branch, status)."""

import logging
from pathlib import Path
from typing import List

from gitpm.errors import CommandError
from gitpm.models import FileChange
from gitpm.parsers import parse_status
from gitpm.services.git._run import CommandRunner, run_checked

CURRENT_BRANCH_COMMAND = "git branch --show-current"
STATUS_COMMAND = "git status --short"


def get_current_branch(
    runner: CommandRunner,
    repo_dir: str | Path,
    log: logging.Logger | None = None,
) -> str:
    """Return the checked-out branch name.

    Raises:
        CommandError: If git fails or HEAD is detached (empty output).
    """
    branch = run_checked(runner, CURRENT_BRANCH_COMMAND, repo_dir, log=log).strip()
    if not branch:
        raise CommandError(CURRENT_BRANCH_COMMAND, "no branch checked out (detached HEAD)")
    return branch


def get_status(
    runner: CommandRunner,
    repo_dir: str | Path,
    log: logging.Logger | None = None,
) -> List[FileChange]:
    """Return working tree changes; empty list means a clean tree."""
    return parse_status(run_checked(runner, STATUS_COMMAND, repo_dir, log=log))
