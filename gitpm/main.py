"""gitpm entry point.

Manage local git repositories linked to GitHub: register, inspect status,
publish changes (commit, push, PR), sync PR records and write weekly reports.
Usage: gitpm repo add PATH | gitpm publish REPO_ID -d "..." | gitpm report ...
"""

import argparse
import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Dict

from gitpm.adapters import GitHubAdapter
from gitpm.agents import GitAssistant, make_text_generator
from gitpm.config import AppConfig, load_config
from gitpm.errors import GitPMError, ValidationError
from gitpm.logging import GitPMLogging
from gitpm.models import CommitAndPRParams, GitRepository, PipelineRun, PRRecord, WeeklyReportRequest
from gitpm.services.git import GitCommandRunner, get_status
from gitpm.services.pipeline import PublishPipeline
from gitpm.services.pr_sync import PRSyncService
from gitpm.services.report import WeeklyReportAggregator
from gitpm.services.resolver import RemoteResolver, RepositoryService
from gitpm.services.store import open_stores
from gitpm.utils import ensure_utc, parse_iso, utc_now

LOG = logging.getLogger("gitpm.main")

REPORT_DAYS = 7


def _iso(value: str) -> datetime:
    try:
        return parse_iso(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not an ISO 8601 timestamp: {value}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitpm",
        description="Git workflow automation: repositories, publish pipeline, PR records, weekly reports",
    )
    parser.add_argument("--config", "-c", type=Path, default=Path("config.yaml"), help="Path to YAML config file")
    parser.add_argument("--check", action="store_true", help="Only load and validate config, then exit")
    sub = parser.add_subparsers(dest="command")

    repo = sub.add_parser("repo", help="Manage registered repositories")
    repo_sub = repo.add_subparsers(dest="repo_command", required=True)
    add = repo_sub.add_parser("add", help="Register a local git repository")
    add.add_argument("path")
    add.add_argument("--name")
    add.add_argument("--owner", help="GitHub owner (overrides the detected remote)")
    add.add_argument("--repo", help="GitHub repository name (overrides the detected remote)")
    add.add_argument("--branch", help="Default branch (overrides detection)")
    add.add_argument("--remote", help="Remote URL to take owner/repo from (overrides the detected remote)")
    repo_sub.add_parser("list", help="List registered repositories")
    show = repo_sub.add_parser("show", help="Show one repository")
    show.add_argument("repo_id")
    rename = repo_sub.add_parser("rename", help="Change the display name")
    rename.add_argument("repo_id")
    rename.add_argument("name")
    set_branch = repo_sub.add_parser("set-branch", help="Change the default branch")
    set_branch.add_argument("repo_id")
    set_branch.add_argument("branch")
    remove = repo_sub.add_parser("remove", help="Unregister a repository and drop its PR records")
    remove.add_argument("repo_id")

    status = sub.add_parser("status", help="Show working tree changes")
    status.add_argument("repo_id")

    branches = sub.add_parser("branches", help="List remote branches on GitHub")
    branches.add_argument("repo_id")

    message = sub.add_parser("commit-message", help="Generate a commit message from a change description")
    message.add_argument("description")
    message.add_argument("--provider")

    publish = sub.add_parser("publish", help="Stage, commit, push and open a PR")
    publish.add_argument("repo_id")
    publish.add_argument("--description", "-d", required=True, help="Change description (PR body)")
    publish.add_argument("--message", "-m", help="Commit message; generated from the description if omitted")
    publish.add_argument("--branch", "-b", help="PR target branch; repository default branch if omitted")
    publish.add_argument("--title", help="PR title; commit message if omitted")
    publish.add_argument(
        "--draft-title", action="store_true", help="Draft the PR title from the description when --title is omitted"
    )
    publish.add_argument("--body", help="PR body; change description if omitted")
    publish.add_argument("--provider")

    prs = sub.add_parser("prs", help="Cached pull request records")
    prs_sub = prs.add_subparsers(dest="prs_command", required=True)
    sync = prs_sub.add_parser("sync", help="Fetch PRs from GitHub into the cache")
    sync.add_argument("repo_id")
    prs_list = prs_sub.add_parser("list", help="List cached PRs of a repository")
    prs_list.add_argument("repo_id")
    prs_range = prs_sub.add_parser("range", help="Cached PRs created in a time range")
    _add_range_args(prs_range)
    prs_delete = prs_sub.add_parser("delete", help="Delete one cached PR record")
    prs_delete.add_argument("repo_id")
    prs_delete.add_argument("pr_id", type=int)

    report = sub.add_parser("report", help="Generate a weekly report from cached PRs")
    _add_range_args(report)
    report.add_argument("--pr", dest="pr_ids", type=int, action="append", default=[], help="Selected PR id")
    report.add_argument("--all", action="store_true", help="Select every PR in range")
    report.add_argument("--provider")
    report.add_argument("--output", "-o", type=Path, help="Write the report to a file")
    return parser


def _add_range_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--repo", dest="repo_ids", action="append", required=True, help="Repository id")
    parser.add_argument("--since", type=_iso, help=f"Start (ISO 8601); default {REPORT_DAYS} days ago")
    parser.add_argument("--until", type=_iso, help="End (ISO 8601); default now")


def _time_range(args: argparse.Namespace) -> tuple[datetime, datetime]:
    end = ensure_utc(args.until) if args.until else utc_now()
    start = ensure_utc(args.since) if args.since else end - timedelta(days=REPORT_DAYS)
    if start > end:
        raise ValidationError("--since must not be after --until")
    return start, end


class App:
    """Wires config into stores, runner, GitHub adapter and services."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self.registry, self.pr_store = open_stores(config.storage.path)
        self.runner = GitCommandRunner(timeout=config.git.timeout, binary=config.git.binary)
        self.token = config.github_token_resolved
        self._host: GitHubAdapter | None = None

    @property
    def host(self) -> GitHubAdapter:
        if self._host is None:
            gh = self.config.github
            self._host = GitHubAdapter(
                self.token or "",
                api_url=gh.api_url,
                per_page=gh.per_page,
                max_pages=gh.max_pages,
                timeout=gh.timeout,
            )
        return self._host

    def require_token(self) -> None:
        if not self.token:
            raise ValidationError("GitHub token is not configured (github.token, GITHUB_TOKEN or GITHUB_TOKEN_FILE)")

    def pr_sync(self) -> PRSyncService:
        return PRSyncService(self.registry, self.pr_store, self.host)

    def assistant(self, provider: str | None) -> GitAssistant:
        return GitAssistant(make_text_generator(self.config), provider)


def _print_repo(repo: GitRepository) -> None:
    print(f"{repo.id}  {repo.name}")
    print(f"  path:    {repo.local_path}")
    print(f"  github:  {repo.full_name or '-'}")
    print(f"  branch:  {repo.default_branch}")
    print(f"  updated: {repo.updated_at.isoformat()}")


def _print_pr(pr: PRRecord) -> None:
    print(f"{pr.id}  #{pr.number} [{pr.state.value}] {pr.title} ({pr.author}, {pr.created_at.isoformat()})")


def cmd_repo(app: App, args: argparse.Namespace) -> int:
    if args.repo_command == "add":
        service = RepositoryService(app.registry, RemoteResolver(app.runner))
        repo, resolved = service.register(
            args.path,
            name=args.name,
            owner=args.owner,
            repo=args.repo,
            default_branch=args.branch,
            remote_url=args.remote,
        )
        _print_repo(repo)
        if resolved.warning:
            print(f"Warning: {resolved.warning}", file=sys.stderr)
    elif args.repo_command == "list":
        for repo in app.registry.list():
            print(f"{repo.id}  {repo.name}  {repo.full_name or '-'}  {repo.local_path}")
    elif args.repo_command == "show":
        _print_repo(app.registry.get(args.repo_id))
    elif args.repo_command == "rename":
        _print_repo(app.registry.update(args.repo_id, name=args.name))
    elif args.repo_command == "set-branch":
        _print_repo(app.registry.update(args.repo_id, default_branch=args.branch))
    elif args.repo_command == "remove":
        app.registry.delete(args.repo_id)
        print(f"Removed {args.repo_id}")
    return 0


def cmd_status(app: App, args: argparse.Namespace) -> int:
    repo = app.registry.get(args.repo_id)
    changes = get_status(app.runner, repo.local_path, log=LOG)
    if not changes:
        print("Working tree clean")
    for change in changes:
        suffix = f" (from {change.old_path})" if change.old_path else ""
        print(f"{change.status.value:<9} {change.path}{suffix}")
    return 0


def cmd_branches(app: App, args: argparse.Namespace) -> int:
    app.require_token()
    repo = app.registry.get(args.repo_id)
    if not repo.full_name:
        raise ValidationError(f"Repository {repo.name} has no GitHub owner/repo configured")
    for branch in app.host.list_branches(repo.github_owner, repo.github_repo):
        marker = "*" if branch == repo.default_branch else " "
        print(f"{marker} {branch}")
    return 0


def cmd_commit_message(app: App, args: argparse.Namespace) -> int:
    print(app.assistant(args.provider).generate_commit_message(args.description))
    return 0


def _print_step(run: PipelineRun) -> None:
    print(f"[{run.current_step.value}]", file=sys.stderr)


def cmd_publish(app: App, args: argparse.Namespace) -> int:
    repo = app.registry.get(args.repo_id)
    message = args.message
    title = args.title
    if args.description.strip():
        if not message:
            message = app.assistant(args.provider).generate_commit_message(args.description)
        if not title and args.draft_title:
            title = app.assistant(args.provider).generate_pr_title(args.description)
    params = CommitAndPRParams(
        repository_id=repo.id,
        change_description=args.description,
        commit_message=message or "",
        target_branch=args.branch or repo.default_branch,
        pr_title=title,
        pr_body=args.body,
    )
    pipeline = PublishPipeline(app.registry, app.pr_sync(), app.runner, app.host, app.token, on_step=_print_step)
    run = pipeline.run(params)
    if run.failed:
        print(f"Publish failed at {run.failed_step.value}: {run.error}", file=sys.stderr)
        return 1
    pr = run.pull_request
    verb = "Updated" if run.pr_reused else "Opened"
    print(f"{verb} PR #{pr.number}: {pr.html_url}")
    print(f"Synced {run.synced_count} PR records")
    return 0


def cmd_prs(app: App, args: argparse.Namespace) -> int:
    if args.prs_command == "sync":
        app.require_token()
        result = app.pr_sync().sync(args.repo_id)
        print(f"Synced {result.count} PR records")
    elif args.prs_command == "list":
        app.registry.get(args.repo_id)
        for pr in app.pr_store.get_by_repository(args.repo_id):
            _print_pr(pr)
    elif args.prs_command == "range":
        start, end = _time_range(args)
        for pr in app.pr_store.get_by_time_range(args.repo_ids, start, end):
            _print_pr(pr)
    elif args.prs_command == "delete":
        app.pr_store.delete(args.repo_id, args.pr_id)
        print(f"Deleted PR record {args.pr_id}")
    return 0


def cmd_report(app: App, args: argparse.Namespace) -> int:
    start, end = _time_range(args)
    selected = set(args.pr_ids)
    if args.all:
        selected = {pr.id for pr in app.pr_store.get_by_time_range(args.repo_ids, start, end)}
    request = WeeklyReportRequest(
        repository_ids=set(args.repo_ids),
        start_time=start,
        end_time=end,
        selected_pr_ids=selected,
        provider=args.provider,
    )
    result = WeeklyReportAggregator(app.pr_store).generate(request, make_text_generator(app.config))
    if args.output:
        args.output.write_text(result.report, encoding="utf-8")
        print(f"Report ({result.pr_count} PRs, {result.provider}) written to {args.output}")
    else:
        print(result.report)
    return 0


COMMANDS: Dict[str, Callable[[App, argparse.Namespace], int]] = {
    "repo": cmd_repo,
    "status": cmd_status,
    "branches": cmd_branches,
    "commit-message": cmd_commit_message,
    "publish": cmd_publish,
    "prs": cmd_prs,
    "report": cmd_report,
}


def main(argv: list[str] | None = None) -> int:
    """Entry point: parse args, load config, dispatch the subcommand."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config_path = args.config
    if not config_path.is_file() and config_path == Path("config.yaml"):
        if Path("config.example.yaml").is_file():
            config_path = Path("config.example.yaml")
            logging.basicConfig(level=logging.INFO)
            LOG.warning("config.yaml not found, using config.example.yaml")

    config = load_config(config_path)
    GitPMLogging(config.logging).setup()

    if args.check:
        print("Config OK:", config.storage.path, config.llm.backend)
        return 0
    if not args.command:
        parser.print_help()
        return 1

    try:
        return COMMANDS[args.command](App(config), args)
    except KeyboardInterrupt:
        return 1
    except GitPMError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
