"""repokeeper exception hierarchy."""

from typing import Any


class RepoKeeperError(Exception):
    """Base exception for all repokeeper errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ConfigurationError(RepoKeeperError):
    """Error in repokeeper configuration."""

    pass


class ValidationError(RepoKeeperError):
    """Error in operation input validation."""

    def __init__(
        self, message: str, field: str | None = None, details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message, details)
        self.field = field


class MessageRequiredError(ValidationError):
    """Commit message missing and not amending."""

    def __init__(self, message: str = "A commit message is required unless amending") -> None:
        super().__init__(message, field="message")


class PreconditionFailedError(RepoKeeperError):
    """A preflight check failed before any mutation."""

    pass


class NotARepositoryError(PreconditionFailedError):
    """Path does not exist or is not inside a git work tree."""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message, {"path": path})
        self.path = path


class DirtyWorkingTreeError(PreconditionFailedError):
    """Working tree has uncommitted changes."""

    def __init__(self, message: str, entries: list[str] | None = None) -> None:
        super().__init__(message, {"entries": entries or []})
        self.entries = entries or []


class DestinationNotEmptyError(PreconditionFailedError):
    """Submodule destination directory already has content."""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message, {"path": path})
        self.path = path


class RemoteUnreachableError(PreconditionFailedError):
    """Remote could not be queried."""

    def __init__(self, message: str, url: str, stderr: str = "") -> None:
        super().__init__(message, {"url": url})
        self.url = url
        self.stderr = stderr


class BranchNotFoundError(PreconditionFailedError):
    """Requested branch does not exist on the remote."""

    def __init__(self, message: str, url: str, branch: str) -> None:
        super().__init__(message, {"url": url, "branch": branch})
        self.url = url
        self.branch = branch


class AlreadyConfiguredError(PreconditionFailedError):
    """A submodule is already registered at the requested path."""

    def __init__(self, message: str, path: str, name: str) -> None:
        super().__init__(message, {"path": path, "name": name})
        self.path = path
        self.name = name


class NothingToCommitError(RepoKeeperError):
    """No staged changes after staging and auto-staging."""

    pass


class DetachedHeadError(RepoKeeperError):
    """HEAD is not on a named branch, so there is nothing to push."""

    pass


class GitError(RepoKeeperError):
    """Error in git operations."""

    def __init__(
        self,
        message: str,
        command: str | None = None,
        exit_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.command = command
        self.exit_code = exit_code


class SubprocessFailedError(GitError):
    """A git invocation exited nonzero.

    Carries the complete capture so callers can surface git's own text.
    """

    def __init__(
        self,
        message: str,
        argv: list[str] | tuple[str, ...],
        exit_code: int,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        super().__init__(
            message,
            command=" ".join(argv),
            exit_code=exit_code,
            details={"argv": list(argv), "exit_code": exit_code},
        )
        self.argv = tuple(argv)
        self.stdout = stdout
        self.stderr = stderr


class CommandTimeoutError(SubprocessFailedError):
    """A git invocation exceeded its time budget."""

    def __init__(
        self,
        message: str,
        argv: list[str] | tuple[str, ...],
        timeout_seconds: float,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        super().__init__(message, argv, exit_code=-1, stdout=stdout, stderr=stderr)
        self.timeout_seconds = timeout_seconds
        self.details["timeout_seconds"] = timeout_seconds
