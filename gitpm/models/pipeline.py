"""Publish pipeline parameters and run state."""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field

from gitpm.models.host import HostPullRequest


class PipelineStep(str, Enum):
    IDLE = "Idle"
    STAGING = "Staging"
    COMMITTING = "Committing"
    PUSHING = "Pushing"
    CREATING_PR = "CreatingPR"
    SYNCING_RECORDS = "SyncingRecords"
    DONE = "Done"
    FAILED = "Failed"


# Execution order; Idle, Done and Failed are terminal/initial markers only.
PIPELINE_STEPS = (
    PipelineStep.STAGING,
    PipelineStep.COMMITTING,
    PipelineStep.PUSHING,
    PipelineStep.CREATING_PR,
    PipelineStep.SYNCING_RECORDS,
)


class CommitAndPRParams(BaseModel):
    """What the caller asks the pipeline to publish."""

    repository_id: str
    change_description: str
    commit_message: str
    target_branch: str
    pr_title: str | None = None
    pr_body: str | None = None


class PipelineRun(BaseModel):
    """Transient state of one publish pipeline execution.

    failed_step is set iff current_step is Failed. Nothing done by earlier
    steps is rolled back on failure.
    """

    repository_id: str
    change_description: str
    commit_message: str
    pr_title: str
    target_branch: str
    current_step: PipelineStep = PipelineStep.IDLE
    failed_step: PipelineStep | None = None
    error: str | None = None
    current_branch: str | None = None
    completed_steps: List[PipelineStep] = Field(default_factory=list)
    pull_request: HostPullRequest | None = None
    pr_reused: bool = False
    synced_count: int | None = None
    cause: Exception | None = Field(default=None, exclude=True)

    model_config = {"arbitrary_types_allowed": True}

    @classmethod
    def from_params(cls, params: CommitAndPRParams) -> "PipelineRun":
        return cls(
            repository_id=params.repository_id,
            change_description=params.change_description,
            commit_message=params.commit_message,
            pr_title=(params.pr_title or "").strip() or params.commit_message,
            target_branch=params.target_branch,
        )

    @property
    def succeeded(self) -> bool:
        return self.current_step == PipelineStep.DONE

    @property
    def failed(self) -> bool:
        return self.current_step == PipelineStep.FAILED
