"""Detect a local repository's remote identity and default branch.

Every git call is independent and failures degrade into warnings, so a
repository can always be registered (possibly with manual owner/repo).
"""

import logging
import re
from pathlib import Path
from typing import List, Tuple

from pydantic import BaseModel, Field

from gitpm.errors import DuplicateError, RemoteParseError, ValidationError
from gitpm.models import GitRepository, NewRepository
from gitpm.parsers import parse_remote_url
from gitpm.services.git import CommandRunner
from gitpm.services.store import RepositoryRegistry, normalize_path

LOG = logging.getLogger("gitpm.services.resolver")

REMOTE_URL_COMMAND = "git config --get remote.origin.url"
SYMBOLIC_REF_COMMAND = "git symbolic-ref --short refs/remotes/origin/HEAD"
REMOTE_SHOW_COMMAND = "git remote show origin"
GIT_DIR_COMMAND = "git rev-parse --git-dir"

FALLBACK_BRANCH = "main"

WARN_REMOTE_NOT_FOUND = "remote not found"
WARN_UNSUPPORTED_HOST = "unsupported remote host"
WARN_NOT_GITHUB = "only GitHub fully supported"
WARN_BRANCH_FALLBACK = "default branch detection failed, falling back to main"

_HEAD_BRANCH_RE = re.compile(r"HEAD branch:\s*(\S+)")


class ResolvedRemote(BaseModel):
    """What auto-detection found; owner/repo are empty when unknown."""

    host: str | None = None
    owner: str = ""
    repo: str = ""
    remote_url: str | None = None
    default_branch: str = FALLBACK_BRANCH
    warnings: List[str] = Field(default_factory=list)

    @property
    def warning(self) -> str | None:
        return "; ".join(self.warnings) if self.warnings else None


def _branch_from_symbolic_ref(ref: str) -> str:
    """origin/main -> main; keeps slashes inside the branch name.

    Only the remote prefix is dropped: origin/release/1.x is release/1.x,
    not 1.x, so hierarchical default branches survive. Refs without the
    origin/ prefix keep their last segment.
    """
    ref = ref.strip()
    if ref.startswith("origin/"):
        return ref[len("origin/") :]
    return ref.rsplit("/", 1)[-1]


class RemoteResolver:
    """Runs git in a working tree to find owner, repo and default branch."""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    def ensure_git_repository(self, local_path: str) -> None:
        """Raise ValidationError unless local_path is a directory inside a git repository."""
        if not local_path or not local_path.strip():
            raise ValidationError("local_path is required")
        path = Path(local_path).expanduser()
        if not path.is_dir():
            raise ValidationError(f"{local_path} is not a directory")
        result = self._runner.execute(GIT_DIR_COMMAND, path)
        if not result.success:
            raise ValidationError(f"{local_path} is not a git repository: {result.error_text}")

    def detect_default_branch(self, local_path: str | Path) -> str | None:
        """symbolic-ref of origin/HEAD, then `git remote show origin`; None if both fail."""
        result = self._runner.execute(SYMBOLIC_REF_COMMAND, local_path)
        if result.success and (result.output or "").strip():
            branch = _branch_from_symbolic_ref(result.output or "")
            if branch:
                return branch
        LOG.debug("symbolic-ref failed in %s: %s", local_path, result.error_text)

        result = self._runner.execute(REMOTE_SHOW_COMMAND, local_path)
        if result.success:
            m = _HEAD_BRANCH_RE.search(result.output or "")
            if m and m.group(1) != "(unknown)":
                return m.group(1)
        LOG.debug("remote show origin gave no HEAD branch in %s", local_path)
        return None

    def resolve(self, local_path: str | Path) -> ResolvedRemote:
        """Detect remote identity and default branch; never raises on git failures."""
        resolved = ResolvedRemote()

        result = self._runner.execute(REMOTE_URL_COMMAND, local_path)
        url = (result.output or "").strip() if result.success else ""
        if not url:
            resolved.warnings.append(WARN_REMOTE_NOT_FOUND)
            LOG.warning("No origin remote in %s, manual entry required", local_path)
            return resolved
        resolved.remote_url = url

        descriptor = parse_remote_url(url)
        if descriptor is None:
            resolved.warnings.append(WARN_UNSUPPORTED_HOST)
            LOG.warning("Unsupported remote URL in %s: %s", local_path, url)
            return resolved
        resolved.host = descriptor.host
        resolved.owner = descriptor.owner
        resolved.repo = descriptor.repo
        if not descriptor.is_github:
            resolved.warnings.append(WARN_NOT_GITHUB)
            LOG.warning("Remote host %s is not GitHub; only GitHub is fully supported", descriptor.host)

        branch = self.detect_default_branch(local_path)
        if branch:
            resolved.default_branch = branch
        else:
            resolved.warnings.append(WARN_BRANCH_FALLBACK)
            LOG.warning("Default branch detection failed in %s, using %s", local_path, FALLBACK_BRANCH)
        return resolved


class RepositoryService:
    """Registration flow: validate path, auto-detect remote, apply manual overrides, add."""

    def __init__(self, registry: RepositoryRegistry, resolver: RemoteResolver) -> None:
        self._registry = registry
        self._resolver = resolver

    def register(
        self,
        local_path: str,
        name: str | None = None,
        owner: str | None = None,
        repo: str | None = None,
        default_branch: str | None = None,
        remote_url: str | None = None,
    ) -> Tuple[GitRepository, ResolvedRemote]:
        """Register local_path; explicit arguments override what was detected.

        remote_url gives owner/repo by hand when origin is missing or points
        elsewhere; owner and repo still win over it.

        Raises:
            ValidationError: Path empty, not a directory or not a git repository.
            RemoteParseError: remote_url is not a supported remote URL.
            DuplicateError: Path already registered.
        """
        manual = None
        if remote_url:
            manual = parse_remote_url(remote_url)
            if manual is None:
                raise RemoteParseError(f"Unrecognized remote URL: {remote_url}")
        if not local_path or not local_path.strip():
            raise ValidationError("local_path is required")
        # Expanded once so git runs in the same directory the registry stores
        local_path = normalize_path(local_path.strip())
        self._resolver.ensure_git_repository(local_path)
        existing = self._registry.find_by_path(local_path)
        if existing is not None:
            raise DuplicateError(f"Repository at {existing.local_path} is already registered")
        resolved = self._resolver.resolve(local_path)
        if manual is not None:
            owner = owner or manual.owner
            repo = repo or manual.repo
        repo_name = repo or resolved.repo
        new = NewRepository(
            name=name or repo_name or Path(local_path).name,
            local_path=local_path,
            github_owner=owner or resolved.owner,
            github_repo=repo_name,
            default_branch=default_branch or resolved.default_branch,
        )
        return self._registry.add(new), resolved
