"""Error taxonomy shared by registry, stores, resolver, pipeline and reports.

Parsers never raise; everything else fails with one of these.
"""


class GitPMError(Exception):
    """Base for all gitpm errors."""

    pass


class ValidationError(GitPMError):
    """Empty required field, bad path or otherwise invalid input."""

    pass


class PreconditionFailedError(ValidationError):
    """Publish pipeline refused to start (missing message, branch, token...)."""

    pass


class NoSelectionError(ValidationError):
    """Weekly report requested without any selected PR."""

    pass


class DuplicateError(GitPMError):
    """Local path is already registered."""

    pass


class NotFoundError(GitPMError):
    """Unknown repository or PR record id."""

    pass


class CommandError(GitPMError):
    """A git invocation failed (non-zero exit, missing binary, timeout)."""

    def __init__(self, command: str, stderr: str = "") -> None:
        self.command = command
        self.stderr = stderr
        detail = stderr.strip() or "command failed"
        super().__init__(f"{command}: {detail}")


class RemoteParseError(GitPMError):
    """Remote URL does not match any supported form."""

    pass


class StorageError(GitPMError):
    """A stored record file cannot be read or validated, so it is not rewritten."""

    pass


class HostApiError(GitPMError):
    """Source host (GitHub) API call failed: auth rejected, rate limited, ..."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(f"{status_code}: {message}" if status_code is not None else message)


class GenerationError(GitPMError):
    """Text generation backend failed or returned nothing."""

    pass


class RepositoryBusyError(GitPMError):
    """A publish pipeline is already running for this repository."""

    pass
