"""Working tree change as reported by git status."""

from enum import Enum

from pydantic import BaseModel


class FileStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


class FileChange(BaseModel):
    """One working-tree delta. Recomputed on demand, never persisted."""

    path: str
    status: FileStatus
    old_path: str | None = None
