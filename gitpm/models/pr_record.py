"""Cached pull request record."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class PRState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    MERGED = "merged"


class PRRecord(BaseModel):
    """Pull request cached from the source host.

    (repository_id, id) identifies a record. The host is authoritative;
    local copies may be stale until the next sync.
    """

    id: int = Field(..., description="Host-assigned PR id (not the number)")
    repository_id: str = Field(..., description="Owning GitRepository id")
    title: str = ""
    number: int
    state: PRState
    html_url: str = ""
    created_at: datetime
    closed_at: datetime | None = None
    merged_at: datetime | None = None
    author: str = "unknown"
    base_branch: str = ""
    head_branch: str = ""

    model_config = {"extra": "forbid"}
