"""Sync pull requests from the source host into the local PR record cache."""

import logging

from pydantic import BaseModel

from gitpm.adapters.base import SourceHostAdapter
from gitpm.errors import ValidationError
from gitpm.models import HostPullRequest, PRRecord, PRState
from gitpm.services.store import PRRecordStore, RepositoryRegistry

LOG = logging.getLogger("gitpm.services.pr_sync")


class SyncResult(BaseModel):
    repository_id: str
    count: int


def record_from_host(pr: HostPullRequest, repository_id: str) -> PRRecord:
    """Host PR -> cached record. A merged PR is closed on GitHub with merged_at set."""
    if pr.merged_at is not None:
        state = PRState.MERGED
    elif pr.state == "open":
        state = PRState.OPEN
    else:
        state = PRState.CLOSED
    return PRRecord(
        id=pr.id,
        repository_id=repository_id,
        title=pr.title,
        number=pr.number,
        state=state,
        html_url=pr.html_url,
        created_at=pr.created_at,
        closed_at=pr.closed_at,
        merged_at=pr.merged_at,
        author=pr.author or "unknown",
        base_branch=pr.base_branch,
        head_branch=pr.head_branch,
    )


class PRSyncService:
    """Fetch all PRs of a registered repository and upsert them by id.

    Records no longer returned upstream are kept.
    """

    def __init__(self, registry: RepositoryRegistry, store: PRRecordStore, host: SourceHostAdapter) -> None:
        self._registry = registry
        self._store = store
        self._host = host

    def sync(self, repository_id: str) -> SyncResult:
        """Raises NotFoundError (unknown id), ValidationError (no owner/repo) or HostApiError."""
        repo = self._registry.get(repository_id)
        if not repo.full_name:
            raise ValidationError(f"Repository {repo.name} has no GitHub owner/repo configured")
        prs = self._host.list_pull_requests(repo.github_owner, repo.github_repo, state="all")
        count = self._store.upsert_many(record_from_host(pr, repository_id) for pr in prs)
        LOG.info("Synced %s PR records for %s", count, repo.full_name)
        return SyncResult(repository_id=repository_id, count=count)
