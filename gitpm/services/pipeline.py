"""
Publish pipeline: stage, commit, push, open (or update) a PR, sync PR records.

Steps run strictly in order. The first failing step ends the run in Failed;
nothing already done is reverted (a failed push leaves the local commit in
place for the user to resolve).
"""

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Set

from gitpm.adapters.base import SourceHostAdapter
from gitpm.errors import GitPMError, PreconditionFailedError, RepositoryBusyError
from gitpm.models import PIPELINE_STEPS, CommitAndPRParams, GitRepository, PipelineRun, PipelineStep
from gitpm.services.git import CommandRunner, commit, get_current_branch, push_branch, stage_all
from gitpm.services.pr_sync import PRSyncService
from gitpm.services.store import RepositoryRegistry

LOG = logging.getLogger("gitpm.services.pipeline")

PR_BODY_SEPARATOR = "\n\n---\n\n"

StepCallback = Callable[[PipelineRun], None]


class RepositoryLocks:
    """Non-blocking per-repository exclusion.

    Only repositories with a run in progress are tracked.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._held: Set[str] = set()

    @contextmanager
    def hold(self, repository_id: str) -> Iterator[None]:
        with self._guard:
            if repository_id in self._held:
                raise RepositoryBusyError(f"A publish pipeline is already running for repository {repository_id}")
            self._held.add(repository_id)
        try:
            yield
        finally:
            with self._guard:
                self._held.discard(repository_id)


def check_preconditions(params: CommitAndPRParams, token: str | None) -> None:
    """Raise PreconditionFailedError naming every missing input."""
    missing = []
    if not params.change_description.strip():
        missing.append("change description")
    if not params.commit_message.strip():
        missing.append("commit message")
    if not params.target_branch.strip():
        missing.append("target branch")
    if not token:
        missing.append("GitHub token")
    if missing:
        raise PreconditionFailedError(f"Cannot publish, missing: {', '.join(missing)}")


class PublishPipeline:
    """Runs one commit -> push -> PR -> sync flow per call.

    Collaborators are injected; the same instance may serve many
    repositories concurrently, but never two runs for the same repository.
    """

    def __init__(
        self,
        registry: RepositoryRegistry,
        pr_sync: PRSyncService,
        runner: CommandRunner,
        host: SourceHostAdapter,
        token: str | None,
        locks: RepositoryLocks | None = None,
        on_step: StepCallback | None = None,
    ) -> None:
        self._registry = registry
        self._pr_sync = pr_sync
        self._runner = runner
        self._host = host
        self._token = token
        self._locks = locks or RepositoryLocks()
        self._on_step = on_step

    def run(self, params: CommitAndPRParams) -> PipelineRun:
        """Execute all steps; return the run in Done or Failed.

        Raises (before any step, run never leaves Idle):
            PreconditionFailedError: Missing description, message, branch, token
                or remote identity.
            NotFoundError: Unknown repository id.
            RepositoryBusyError: Another run holds this repository.
        """
        check_preconditions(params, self._token)
        repo = self._registry.get(params.repository_id)
        if not repo.full_name:
            raise PreconditionFailedError(f"Cannot publish, repository {repo.name} has no GitHub owner/repo")
        run = PipelineRun.from_params(params)
        with self._locks.hold(repo.id):
            LOG.info("Publishing %s: %s -> %s", repo.name, params.commit_message.splitlines()[0], params.target_branch)
            actions = {
                PipelineStep.STAGING: lambda: self._stage(repo),
                PipelineStep.COMMITTING: lambda: self._commit(repo, run),
                PipelineStep.PUSHING: lambda: self._push(repo, run),
                PipelineStep.CREATING_PR: lambda: self._create_pr(repo, run, params),
                PipelineStep.SYNCING_RECORDS: lambda: self._sync(repo, run),
            }
            for step in PIPELINE_STEPS:
                self._enter(run, step)
                try:
                    actions[step]()
                except GitPMError as e:
                    self._fail(run, step, e)
                    return run
                run.completed_steps.append(step)
            run.current_step = PipelineStep.DONE
            self._notify(run)
        LOG.info("Published %s: PR %s", repo.name, run.pull_request.html_url if run.pull_request else "-")
        return run

    def _enter(self, run: PipelineRun, step: PipelineStep) -> None:
        run.current_step = step
        LOG.info("Repository %s: %s", run.repository_id, step.value)
        self._notify(run)

    def _fail(self, run: PipelineRun, step: PipelineStep, error: GitPMError) -> None:
        run.current_step = PipelineStep.FAILED
        run.failed_step = step
        run.error = str(error)
        run.cause = error
        LOG.warning("Repository %s: %s failed: %s", run.repository_id, step.value, error)
        self._notify(run)

    def _notify(self, run: PipelineRun) -> None:
        if self._on_step is not None:
            self._on_step(run)

    def _stage(self, repo: GitRepository) -> None:
        stage_all(self._runner, repo.local_path, log=LOG)

    def _commit(self, repo: GitRepository, run: PipelineRun) -> None:
        commit(self._runner, run.commit_message, repo.local_path, log=LOG)

    def _push(self, repo: GitRepository, run: PipelineRun) -> None:
        # The checked-out branch is pushed, not the PR target
        run.current_branch = get_current_branch(self._runner, repo.local_path, log=LOG)
        push_branch(self._runner, run.current_branch, repo.local_path, token=self._token, log=LOG)

    def _create_pr(self, repo: GitRepository, run: PipelineRun, params: CommitAndPRParams) -> None:
        head = run.current_branch or ""
        existing = self._host.find_open_pull_request(repo.github_owner, repo.github_repo, head, run.target_branch)
        if existing is not None:
            body = (
                f"{existing.body}{PR_BODY_SEPARATOR}{run.change_description}"
                if existing.body
                else run.change_description
            )
            run.pull_request = self._host.update_pull_request(
                repo.github_owner, repo.github_repo, existing.number, existing.title, body
            )
            run.pr_reused = True
            LOG.info("Appended change description to open PR #%s", existing.number)
            return
        run.pull_request = self._host.create_pull_request(
            repo.github_owner,
            repo.github_repo,
            head,
            run.target_branch,
            run.pr_title,
            (params.pr_body or "").strip() or run.change_description,
        )

    def _sync(self, repo: GitRepository, run: PipelineRun) -> None:
        run.synced_count = self._pr_sync.sync(repo.id).count
