"""Source host (GitHub) repository and pull request models."""

from datetime import datetime

from pydantic import BaseModel


class HostRepo(BaseModel):
    """Repository owned by the authenticated user on the source host."""

    id: int
    name: str
    full_name: str
    owner: str
    private: bool = False
    html_url: str = ""
    description: str | None = None
    default_branch: str = "main"
    created_at: datetime | None = None
    updated_at: datetime | None = None
    pushed_at: datetime | None = None
    stargazers_count: int = 0
    forks_count: int = 0


class HostPullRequest(BaseModel):
    """Pull request as returned by the source host."""

    id: int
    number: int
    title: str
    body: str = ""
    state: str
    html_url: str = ""
    created_at: datetime
    closed_at: datetime | None = None
    merged_at: datetime | None = None
    author: str | None = None
    head_branch: str = ""
    base_branch: str = ""
