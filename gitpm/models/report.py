"""Weekly report request, result and PR activity projection."""

from datetime import datetime
from typing import Set

from pydantic import BaseModel, Field


class PRActivity(BaseModel):
    """Minimal view of a PR handed to the text generator."""

    id: int
    title: str
    url: str
    author: str
    created_at: datetime
    closed_at: datetime | None = None


class WeeklyReportRequest(BaseModel):
    """Which PRs, from which repositories and time range, go into a report."""

    repository_ids: Set[str] = Field(default_factory=set)
    start_time: datetime
    end_time: datetime
    selected_pr_ids: Set[int] = Field(default_factory=set)
    provider: str | None = None


class WeeklyReportResult(BaseModel):
    """Generated report text (verbatim from the generator) and provider used."""

    report: str
    provider: str
    pr_count: int = 0
