"""Git operations: command runner, status, commits, push."""

from gitpm.services.git._run import CommandResult, CommandRunner, GitCommandRunner, run_checked
from gitpm.services.git.branches import get_current_branch, get_status
from gitpm.services.git.commits import build_commit_command, commit, stage_all
from gitpm.services.git.push_pull import push_branch

__all__ = [
    "CommandResult",
    "CommandRunner",
    "GitCommandRunner",
    "build_commit_command",
    "commit",
    "get_current_branch",
    "get_status",
    "push_branch",
    "run_checked",
    "stage_all",
]
