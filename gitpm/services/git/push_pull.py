"""Push to remote (origin)."""

import logging
import shlex
from pathlib import Path

from gitpm.services.git._run import CommandRunner, run_checked


def push_branch(
    runner: CommandRunner,
    branch_name: str,
    repo_dir: str | Path,
    token: str | None = None,
    log: logging.Logger | None = None,
) -> None:
    """Push the given branch to origin, authenticating with token."""
    run_checked(runner, f"git push origin {shlex.quote(branch_name)}", repo_dir, token=token, log=log)
    if log:
        log.info("Pushed branch %s to origin", branch_name)
