"""Source host adapters."""

from gitpm.adapters.base import SourceHostAdapter
from gitpm.adapters.github import GitHubAdapter

__all__ = ["GitHubAdapter", "SourceHostAdapter"]
