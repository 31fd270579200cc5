"""Repository registry in <data_dir>/repositories/ as YAML files.

One file per repository: {id}.yaml. local_path is unique across the
registry. Deleting a repository also drops its cached PR records.
"""

import logging
import threading
import uuid
from pathlib import Path
from typing import List

import yaml
from pydantic import ValidationError as PydanticValidationError

from gitpm.errors import DuplicateError, NotFoundError, ValidationError
from gitpm.models import GitRepository, NewRepository
from gitpm.services.store._yaml import read_yaml, write_yaml_atomic
from gitpm.services.store.pr_store import PRRecordStore
from gitpm.utils import utc_now

REPOSITORIES_DIR = "repositories"

LOG = logging.getLogger("gitpm.services.store.repo_store")

_UPDATABLE_FIELDS = ("name", "default_branch", "github_owner", "github_repo")


def normalize_path(local_path: str) -> str:
    """Absolute, user-expanded, symlink-resolved form used for uniqueness."""
    return str(Path(local_path).expanduser().resolve())


class RepositoryRegistry:
    """CRUD over locally registered repositories."""

    def __init__(self, data_dir: Path, pr_store: PRRecordStore) -> None:
        self._dir = Path(data_dir) / REPOSITORIES_DIR
        self._pr_store = pr_store
        self._lock = threading.RLock()

    def _path(self, repository_id: str) -> Path:
        return self._dir / f"{repository_id}.yaml"

    def _load(self, path: Path) -> GitRepository | None:
        """Load one record; None if missing or invalid."""
        try:
            data = read_yaml(path)
            if not data:
                return None
            return GitRepository.model_validate(data)
        except (OSError, yaml.YAMLError, PydanticValidationError) as e:
            LOG.warning("Failed to load repository %s: %s", path, e)
            return None

    def _save(self, repo: GitRepository) -> None:
        write_yaml_atomic(self._path(repo.id), repo.model_dump(mode="json"))
        LOG.debug("Saved repository %s to %s", repo.id, self._path(repo.id))

    def _all(self) -> List[GitRepository]:
        if not self._dir.is_dir():
            return []
        out = []
        for f in self._dir.glob("*.yaml"):
            repo = self._load(f)
            if repo is not None:
                out.append(repo)
        return out

    def list(self) -> List[GitRepository]:
        """All repositories, most recently updated first."""
        with self._lock:
            repos = self._all()
        return sorted(repos, key=lambda r: r.updated_at, reverse=True)

    def get(self, repository_id: str) -> GitRepository:
        """Return repository by id. Raises NotFoundError if absent."""
        with self._lock:
            repo = self._load(self._path(repository_id)) if repository_id else None
        if repo is None:
            raise NotFoundError(f"Repository {repository_id!r} not found")
        return repo

    def find_by_path(self, local_path: str) -> GitRepository | None:
        target = normalize_path(local_path)
        with self._lock:
            for repo in self._all():
                if repo.local_path == target:
                    return repo
        return None

    def add(self, new: NewRepository) -> GitRepository:
        """Register a repository.

        Does not run git; the caller resolves the remote identity first.

        Raises:
            ValidationError: local_path is empty.
            DuplicateError: local_path is already registered.
        """
        if not new.local_path or not new.local_path.strip():
            raise ValidationError("local_path is required")
        local_path = normalize_path(new.local_path.strip())
        name = (new.name or "").strip() or Path(local_path).name
        with self._lock:
            if any(r.local_path == local_path for r in self._all()):
                raise DuplicateError(f"Repository at {local_path} is already registered")
            now = utc_now()
            repo = GitRepository(
                id=uuid.uuid4().hex,
                name=name,
                local_path=local_path,
                github_owner=new.github_owner.strip(),
                github_repo=new.github_repo.strip(),
                default_branch=new.default_branch.strip() or "main",
                created_at=now,
                updated_at=now,
            )
            self._save(repo)
        LOG.info("Registered repository %s (%s) at %s", repo.name, repo.id, repo.local_path)
        return repo

    def update(self, repository_id: str, **changes: str) -> GitRepository:
        """Rename or change branch/remote identity; bumps updated_at.

        Accepted keys: name, default_branch, github_owner, github_repo.
        """
        unknown = set(changes) - set(_UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        not_text = sorted(k for k, v in changes.items() if not isinstance(v, str))
        if not_text:
            raise ValidationError(f"Values must be strings: {', '.join(not_text)}")
        for key in ("name", "default_branch"):
            if key in changes and not changes[key].strip():
                raise ValidationError(f"{key} must not be empty")
        with self._lock:
            repo = self.get(repository_id)
            updated = repo.model_copy(
                update={**{k: v.strip() for k, v in changes.items()}, "updated_at": utc_now()}
            )
            self._save(updated)
        LOG.info("Updated repository %s: %s", repository_id, ", ".join(sorted(changes)) or "touch")
        return updated

    def delete(self, repository_id: str) -> None:
        """Remove repository and all its PR records. Raises NotFoundError if absent."""
        with self._lock:
            self.get(repository_id)
            # Cache before record: an interrupted delete never orphans PR records
            removed = self._pr_store.delete_by_repository(repository_id)
            self._path(repository_id).unlink()
        LOG.info("Deleted repository %s (%s PR records)", repository_id, removed)
