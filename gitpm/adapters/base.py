"""Abstract base for source host adapters."""

from abc import ABC, abstractmethod
from typing import List

from gitpm.models import HostPullRequest, HostRepo


class SourceHostAdapter(ABC):
    """Interface for the hosting platform the repositories live on (GitHub).

    Implementations raise HostApiError on any API failure.
    """

    @abstractmethod
    def list_repos(self) -> List[HostRepo]:
        """Repositories owned by the authenticated user."""
        ...

    @abstractmethod
    def list_branches(self, owner: str, repo: str) -> List[str]:
        """Branch names of a repository."""
        ...

    @abstractmethod
    def create_pull_request(
        self,
        owner: str,
        repo: str,
        head: str,
        base: str,
        title: str,
        body: str,
    ) -> HostPullRequest:
        """Open a pull request from head into base."""
        ...

    @abstractmethod
    def list_pull_requests(self, owner: str, repo: str, state: str = "all") -> List[HostPullRequest]:
        """Pull requests of a repository (state: open, closed or all)."""
        ...

    def find_open_pull_request(self, owner: str, repo: str, head: str, base: str) -> HostPullRequest | None:
        """Open PR for head -> base, if any. Override if needed."""
        return None

    def update_pull_request(
        self,
        owner: str,
        repo: str,
        number: int,
        title: str,
        body: str,
    ) -> HostPullRequest:
        """Edit title/body of an existing PR. Override if needed."""
        raise NotImplementedError("update_pull_request")
