"""Shared data types for repokeeper git operations."""

from __future__ import annotations

from dataclasses import dataclass, field

from repokeeper.constants import PREVIEW_LIMIT, OutcomeStatus
from repokeeper.exceptions import MessageRequiredError


def preview_paths(paths: tuple[str, ...] | list[str], limit: int = PREVIEW_LIMIT) -> list[str]:
    """First ``limit`` paths, plus a ``+N more`` entry for the rest."""
    shown = list(paths[:limit])
    remaining = len(paths) - len(shown)
    if remaining > 0:
        shown.append(f"+{remaining} more")
    return shown


@dataclass(frozen=True)
class ChangeSet:
    """Pending changes derived from ``git status --porcelain``."""

    has_staged: bool = False
    has_unstaged: bool = False
    has_untracked: bool = False

    @property
    def is_clean(self) -> bool:
        return not (self.has_staged or self.has_unstaged or self.has_untracked)

    @classmethod
    def from_porcelain(cls, lines: tuple[str, ...] | list[str]) -> ChangeSet:
        """Parse porcelain v1 status lines (``XY path``)."""
        staged = unstaged = untracked = False
        for line in lines:
            if len(line) < 2:
                continue
            index_state, tree_state = line[0], line[1]
            if index_state == "?" and tree_state == "?":
                untracked = True
                continue
            if index_state == "!":
                continue
            if index_state not in (" ", "?"):
                staged = True
            if tree_state not in (" ", "?"):
                unstaged = True
        return cls(has_staged=staged, has_unstaged=unstaged, has_untracked=untracked)

    def assume_staged(self) -> ChangeSet:
        """Predict the state after staging everything; used under dry run."""
        return ChangeSet(
            has_staged=not self.is_clean,
            has_unstaged=False,
            has_untracked=False,
        )


@dataclass(frozen=True)
class EolPolicy:
    """End-of-line settings derived from the governing wildcard rule."""

    eol: str | None = None
    autocrlf: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.eol is None and self.autocrlf is None


@dataclass
class SubmoduleRecord:
    """A submodule identified by its path."""

    path: str
    url: str
    name: str | None = None
    branch: str | None = None

    @property
    def effective_name(self) -> str:
        return self.name or self.path


@dataclass(frozen=True)
class SubmoduleOptions:
    """Switches for the submodule operation.

    Attributes:
        recursive: Initialize and update nested submodules
        shallow: Clone and fetch with ``--depth 1``
        update: Repoint an existing registration instead of failing
        force: Skip the clean-tree check and pass ``--force`` to add
    """

    recursive: bool = False
    shallow: bool = False
    update: bool = False
    force: bool = False


@dataclass(frozen=True)
class PushTarget:
    """Where to push after committing; branch defaults to the current one."""

    remote: str | None = None
    branch: str | None = None
    set_upstream: bool = False


@dataclass
class CommitSpec:
    """Everything the commit operation needs.

    Attributes:
        paths: Paths staged with recursive add semantics
        message: Commit message; optional only when amending
        amend: Amend HEAD instead of creating a new commit
        signoff: Add a Signed-off-by trailer
        no_verify: Bypass pre-commit and commit-msg hooks
        gpg_sign: GPG-sign the commit
        only_if_changes: Treat an empty change set as success
        push: Optional push target
    """

    paths: list[str] = field(default_factory=list)
    message: str | None = None
    amend: bool = False
    signoff: bool = False
    no_verify: bool = False
    gpg_sign: bool = False
    only_if_changes: bool = False
    push: PushTarget | None = None

    def validate(self) -> None:
        """Reject a missing message unless amending with the previous one.

        Raises:
            MessageRequiredError: No message and amend is off
        """
        if not self.amend and not (self.message and self.message.strip()):
            raise MessageRequiredError()


@dataclass(frozen=True)
class EolResult:
    """Outcome of the EOL operation."""

    policy: EolPolicy
    safecrlf_written: bool
    renormalized: bool
    affected_files: tuple[str, ...] = ()
    commit_sha: str | None = None
    status: OutcomeStatus = OutcomeStatus.APPLIED

    @property
    def affected_count(self) -> int:
        return len(self.affected_files)

    def preview(self, limit: int = PREVIEW_LIMIT) -> list[str]:
        return preview_paths(self.affected_files, limit)


@dataclass(frozen=True)
class CommitResult:
    """Outcome of the commit operation."""

    status: OutcomeStatus
    commit_sha: str | None = None
    remote: str | None = None
    branch: str | None = None
    reason: str = ""

    @property
    def committed(self) -> bool:
        return self.status in (OutcomeStatus.COMMITTED, OutcomeStatus.PUSHED)


@dataclass(frozen=True)
class SubmoduleResult:
    """Outcome of the submodule operation."""

    record: SubmoduleRecord
    action: str
    commit_sha: str | None = None
    status: OutcomeStatus = OutcomeStatus.CONFIGURED
