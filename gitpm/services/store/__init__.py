"""Persistent storage for registered repositories and cached PR records (<data_dir>/)."""

from pathlib import Path

from gitpm.services.store.pr_store import PRRecordStore
from gitpm.services.store.repo_store import RepositoryRegistry, normalize_path


def open_stores(data_dir: Path) -> tuple[RepositoryRegistry, PRRecordStore]:
    """Build the registry and PR store sharing one data directory."""
    pr_store = PRRecordStore(data_dir)
    return RepositoryRegistry(data_dir, pr_store), pr_store


__all__ = ["PRRecordStore", "RepositoryRegistry", "normalize_path", "open_stores"]
