"""Data models for repositories, file changes, PR records, pipeline runs and reports (Pydantic)."""

from gitpm.models.file_change import FileChange, FileStatus
from gitpm.models.host import HostPullRequest, HostRepo
from gitpm.models.pipeline import PIPELINE_STEPS, CommitAndPRParams, PipelineRun, PipelineStep
from gitpm.models.pr_record import PRRecord, PRState
from gitpm.models.report import PRActivity, WeeklyReportRequest, WeeklyReportResult
from gitpm.models.repository import GitRepository, NewRepository

__all__ = [
    "PIPELINE_STEPS",
    "CommitAndPRParams",
    "FileChange",
    "FileStatus",
    "GitRepository",
    "HostPullRequest",
    "HostRepo",
    "NewRepository",
    "PRActivity",
    "PRRecord",
    "PRState",
    "PipelineRun",
    "PipelineStep",
    "WeeklyReportRequest",
    "WeeklyReportResult",
]
