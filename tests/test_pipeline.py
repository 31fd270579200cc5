"""Tests for the publish pipeline (scripted runner, mocked host)."""

import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Dict, List
from unittest.mock import Mock, patch

import pytest

from gitpm.adapters.base import SourceHostAdapter
from gitpm.adapters.github import GitHubAdapter
from gitpm.errors import HostApiError, NotFoundError, PreconditionFailedError, RepositoryBusyError
from gitpm.models import CommitAndPRParams, HostPullRequest, NewRepository, PipelineRun, PipelineStep
from gitpm.services.git import CommandResult, CommandRunner
from gitpm.services.pipeline import PR_BODY_SEPARATOR, PublishPipeline, RepositoryLocks
from gitpm.services.pr_sync import PRSyncService
from gitpm.services.store import open_stores

CREATED = datetime(2024, 3, 5, 12, 0, tzinfo=UTC)


def _pr(number: int = 7, body: str = "", title: str = "feat: add login") -> HostPullRequest:
    return HostPullRequest(
        id=1000 + number,
        number=number,
        title=title,
        body=body,
        state="open",
        html_url=f"https://github.com/o/r/pull/{number}",
        created_at=CREATED,
        author="octocat",
        head_branch="feature",
        base_branch="main",
    )


class ScriptedRunner(CommandRunner):
    """Succeeds for every command unless a prefix is listed in failures."""

    def __init__(self, failures: Dict[str, str] | None = None, branch: str = "feature") -> None:
        self.failures = failures or {}
        self.branch = branch
        self.commands: List[str] = []
        self.tokens: List[str | None] = []

    def execute(self, command: str, working_dir: str | Path, token: str | None = None) -> CommandResult:
        self.commands.append(command)
        self.tokens.append(token)
        for prefix, stderr in self.failures.items():
            if command.startswith(prefix):
                return CommandResult(success=False, stderr=stderr, error="exit code 1")
        if command == "git branch --show-current":
            return CommandResult(success=True, output=f"{self.branch}\n")
        return CommandResult(success=True, output="")


@pytest.fixture
def env(tmp_path: Path):
    registry, pr_store = open_stores(tmp_path / "data")
    repo = registry.add(
        NewRepository(name="r", local_path=str(tmp_path), github_owner="o", github_repo="r")
    )
    host = Mock(spec=SourceHostAdapter)
    host.find_open_pull_request.return_value = None
    host.create_pull_request.return_value = _pr()
    host.list_pull_requests.return_value = [_pr()]
    return registry, pr_store, repo, host


def _params(repository_id: str, **overrides) -> CommitAndPRParams:
    data = {
        "repository_id": repository_id,
        "change_description": "Add a login form",
        "commit_message": "feat: add login",
        "target_branch": "main",
    }
    data.update(overrides)
    return CommitAndPRParams(**data)


def _pipeline(env, runner: CommandRunner, token: str | None = "tok", **kwargs) -> PublishPipeline:
    registry, pr_store, _, host = env
    return PublishPipeline(registry, PRSyncService(registry, pr_store, host), runner, host, token, **kwargs)


class TestPublishPipeline:
    """Step order, failure isolation and PR reuse."""

    def test_success_runs_all_steps_in_order(self, env) -> None:
        """All steps succeed: Done, SyncingRecords last after CreatingPR."""
        _, pr_store, repo, host = env
        seen: List[PipelineStep] = []
        runner = ScriptedRunner()

        run = _pipeline(env, runner, on_step=lambda r: seen.append(r.current_step)).run(_params(repo.id))

        assert run.current_step == PipelineStep.DONE
        assert run.succeeded
        assert run.failed_step is None
        assert run.completed_steps == [
            PipelineStep.STAGING,
            PipelineStep.COMMITTING,
            PipelineStep.PUSHING,
            PipelineStep.CREATING_PR,
            PipelineStep.SYNCING_RECORDS,
        ]
        assert seen[-2:] == [PipelineStep.SYNCING_RECORDS, PipelineStep.DONE]
        assert seen.index(PipelineStep.CREATING_PR) < seen.index(PipelineStep.SYNCING_RECORDS)
        assert runner.commands == [
            "git add .",
            "git commit -m 'feat: add login'",
            "git branch --show-current",
            "git push origin feature",
        ]
        assert runner.tokens[-1] == "tok"
        host.create_pull_request.assert_called_once_with("o", "r", "feature", "main", "feat: add login", "Add a login form")
        assert run.pull_request.number == 7
        assert run.synced_count == 1
        assert [r.number for r in pr_store.get_by_repository(repo.id)] == [7]

    def test_push_failure_stops_before_pr(self, env) -> None:
        """Failing push ends in Failed/Pushing and never creates a PR."""
        _, _, repo, host = env
        runner = ScriptedRunner(failures={"git push": "rejected: non-fast-forward"})

        run = _pipeline(env, runner).run(_params(repo.id))

        assert run.current_step == PipelineStep.FAILED
        assert run.failed_step == PipelineStep.PUSHING
        assert "non-fast-forward" in run.error
        assert run.completed_steps == [PipelineStep.STAGING, PipelineStep.COMMITTING]
        host.create_pull_request.assert_not_called()
        host.list_pull_requests.assert_not_called()
        # no rollback of the local commit
        assert not any(c.startswith("git reset") for c in runner.commands)

    def test_commit_failure(self, env) -> None:
        """Nothing to commit fails at Committing."""
        _, _, repo, _ = env
        runner = ScriptedRunner(failures={"git commit": "nothing to commit, working tree clean"})
        run = _pipeline(env, runner).run(_params(repo.id))
        assert run.failed_step == PipelineStep.COMMITTING
        assert "git push origin feature" not in runner.commands

    def test_host_failure_on_create_pr(self, env) -> None:
        """Host errors are reported at CreatingPR and sync is skipped."""
        _, _, repo, host = env
        host.create_pull_request.side_effect = HostApiError("Validation Failed", status_code=422)
        run = _pipeline(env, ScriptedRunner()).run(_params(repo.id))
        assert run.failed_step == PipelineStep.CREATING_PR
        assert "422" in run.error
        assert isinstance(run.cause, HostApiError)
        host.list_pull_requests.assert_not_called()

    def test_unreadable_create_pr_response_fails_run(self, env) -> None:
        """A non-JSON PR response after a successful push is Failed/CreatingPR."""
        registry, pr_store, repo, _ = env
        adapter = GitHubAdapter("tok")
        empty = Mock(status_code=200, text="[]")
        empty.json.return_value = []
        broken = Mock(status_code=201, text="<html>")
        broken.json.side_effect = ValueError("Expecting value")
        pipeline = PublishPipeline(
            registry, PRSyncService(registry, pr_store, adapter), ScriptedRunner(), adapter, "tok"
        )
        with patch.object(adapter._session, "request", side_effect=[empty, broken]):
            run = pipeline.run(_params(repo.id))
        assert run.failed_step == PipelineStep.CREATING_PR
        assert PipelineStep.PUSHING in run.completed_steps
        assert isinstance(run.cause, HostApiError)

    def test_sync_failure_after_pr_created(self, env) -> None:
        """A failed sync leaves the created PR on the run."""
        _, _, repo, host = env
        host.list_pull_requests.side_effect = HostApiError("rate limited", status_code=403)
        run = _pipeline(env, ScriptedRunner()).run(_params(repo.id))
        assert run.failed_step == PipelineStep.SYNCING_RECORDS
        assert run.pull_request is not None

    def test_existing_open_pr_reused(self, env) -> None:
        """Open PR for the same head/base gets the description appended."""
        _, _, repo, host = env
        host.find_open_pull_request.return_value = _pr(number=3, body="First change", title="Old title")
        host.update_pull_request.return_value = _pr(number=3, title="Old title")

        run = _pipeline(env, ScriptedRunner()).run(_params(repo.id))

        assert run.succeeded
        assert run.pr_reused is True
        host.create_pull_request.assert_not_called()
        host.update_pull_request.assert_called_once_with(
            "o", "r", 3, "Old title", f"First change{PR_BODY_SEPARATOR}Add a login form"
        )

    def test_pr_title_and_body_overrides(self, env) -> None:
        """Explicit PR title and body are used instead of message/description."""
        _, _, repo, host = env
        _pipeline(env, ScriptedRunner()).run(_params(repo.id, pr_title="Login page", pr_body="Body"))
        host.create_pull_request.assert_called_once_with("o", "r", "feature", "main", "Login page", "Body")


class TestPreconditions:
    """run() refuses to start and the run never leaves Idle."""

    @pytest.mark.parametrize(
        "overrides, missing",
        [
            ({"change_description": "  "}, "change description"),
            ({"commit_message": ""}, "commit message"),
            ({"target_branch": ""}, "target branch"),
        ],
    )
    def test_missing_inputs(self, env, overrides: dict, missing: str) -> None:
        """Blank required inputs raise PreconditionFailedError."""
        _, _, repo, _ = env
        runner = ScriptedRunner()
        with pytest.raises(PreconditionFailedError, match=missing):
            _pipeline(env, runner).run(_params(repo.id, **overrides))
        assert runner.commands == []

    def test_missing_token(self, env) -> None:
        """No GitHub token raises before any git command."""
        _, _, repo, _ = env
        runner = ScriptedRunner()
        with pytest.raises(PreconditionFailedError, match="GitHub token"):
            _pipeline(env, runner, token=None).run(_params(repo.id))
        assert runner.commands == []

    def test_missing_remote_identity(self, env, tmp_path: Path) -> None:
        """Repository without owner/repo cannot publish."""
        registry = env[0]
        other = tmp_path / "other"
        other.mkdir()
        repo = registry.add(NewRepository(name="x", local_path=str(other)))
        with pytest.raises(PreconditionFailedError, match="owner/repo"):
            _pipeline(env, ScriptedRunner()).run(_params(repo.id))

    def test_unknown_repository(self, env) -> None:
        """Unknown repository id raises NotFoundError."""
        with pytest.raises(NotFoundError):
            _pipeline(env, ScriptedRunner()).run(_params("missing"))


class TestRepositoryLocks:
    """One run per repository at a time."""

    def test_second_hold_raises_busy(self) -> None:
        """Nested hold on the same id raises RepositoryBusyError."""
        locks = RepositoryLocks()
        with locks.hold("a"):
            with pytest.raises(RepositoryBusyError):
                with locks.hold("a"):
                    pass
            with locks.hold("b"):
                pass
        with locks.hold("a"):
            pass

    def test_released_ids_are_forgotten(self) -> None:
        """Nothing is kept for repositories without a run in progress."""
        locks = RepositoryLocks()
        for i in range(100):
            with locks.hold(f"repo-{i}"):
                assert locks._held == {f"repo-{i}"}
        assert locks._held == set()
        with pytest.raises(RepositoryBusyError):
            with locks.hold("x"):
                with locks.hold("x"):
                    pass
        assert locks._held == set()

    def test_concurrent_run_same_repository_rejected(self, env) -> None:
        """A run started while another holds the repository is rejected."""
        _, _, repo, _ = env
        locks = RepositoryLocks()
        entered = threading.Event()
        release = threading.Event()
        results: List[PipelineRun] = []

        class BlockingRunner(ScriptedRunner):
            def execute(self, command: str, working_dir: str | Path, token: str | None = None) -> CommandResult:
                if command == "git add .":
                    entered.set()
                    release.wait(timeout=5)
                return super().execute(command, working_dir, token)

        first = _pipeline(env, BlockingRunner(), locks=locks)
        worker = threading.Thread(target=lambda: results.append(first.run(_params(repo.id))))
        worker.start()
        assert entered.wait(timeout=5)
        try:
            with pytest.raises(RepositoryBusyError):
                _pipeline(env, ScriptedRunner(), locks=locks).run(_params(repo.id))
        finally:
            release.set()
            worker.join(timeout=5)
        assert results[0].succeeded
