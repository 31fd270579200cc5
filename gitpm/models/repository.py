"""Locally registered git repository."""

from datetime import datetime

from pydantic import BaseModel, Field


class GitRepository(BaseModel):
    """One locally tracked project, as stored in repositories/{id}.yaml."""

    id: str = Field(..., description="Opaque unique id (uuid4 hex)")
    name: str = Field(..., description="Display name")
    local_path: str = Field(..., description="Absolute path of the working tree")
    github_owner: str = Field(default="", description="Owner login on the source host")
    github_repo: str = Field(default="", description="Repository name on the source host")
    default_branch: str = Field(default="main", description="Remote default branch")
    created_at: datetime
    updated_at: datetime

    model_config = {"extra": "forbid"}

    @property
    def full_name(self) -> str:
        """owner/repo, or empty when the remote identity is unknown."""
        if not self.github_owner or not self.github_repo:
            return ""
        return f"{self.github_owner}/{self.github_repo}"


class NewRepository(BaseModel):
    """Input for RepositoryRegistry.add."""

    name: str
    local_path: str
    github_owner: str = ""
    github_repo: str = ""
    default_branch: str = "main"
