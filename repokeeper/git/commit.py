"""Staging and commit orchestration.

State machine: Init -> Staged -> {Committed | NoOpSkipped} -> [Pushed].
Every terminal state is a success; the caller tells them apart by
``CommitResult.status``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from repokeeper.constants import OutcomeStatus
from repokeeper.exceptions import NothingToCommitError
from repokeeper.git.base import RepositoryOperation
from repokeeper.git.types import ChangeSet, CommitResult, CommitSpec, PushTarget
from repokeeper.logging import get_logger

if TYPE_CHECKING:
    from repokeeper.config import RepoKeeperConfig
    from repokeeper.git.context import RepositoryContext
    from repokeeper.git.executor import GitExecutor

logger = get_logger("git.commit")


class CommitOrchestrator(RepositoryOperation[CommitResult]):
    """Stage requested paths, commit when warranted, optionally push."""

    operation_name = "commit"

    def __init__(
        self,
        context: RepositoryContext,
        spec: CommitSpec,
        executor: GitExecutor | None = None,
        config: RepoKeeperConfig | None = None,
        dry_run: bool = False,
    ) -> None:
        super().__init__(context, executor=executor, config=config, dry_run=dry_run)
        self.spec = spec

    def run(self) -> CommitResult:
        """Validate the CommitSpec, then run the workflow in the repository scope.

        Raises:
            MessageRequiredError: Before any git command, if the message is missing
        """
        self.spec.validate()
        return super().run()

    def _execute(self) -> CommitResult:
        changes = self.stage(self.spec.paths)

        if self.spec.only_if_changes and changes.is_clean:
            return self._skipped("no staged or untracked changes")

        if not changes.has_staged and changes.has_untracked:
            logger.info("Nothing staged but untracked files exist; staging everything")
            self.executor.mutate("add", "-A")
            changes = self._requery()

        if not changes.has_staged:
            if self.spec.only_if_changes:
                return self._skipped("nothing staged after auto-staging")
            raise NothingToCommitError(
                "Nothing to commit: no staged changes",
                details={"paths": self.spec.paths},
            )

        sha = self.commit()
        if sha is None and not self.dry_run:
            return self._skipped("staged content identical to HEAD")

        if self.spec.push is None:
            return CommitResult(status=OutcomeStatus.COMMITTED, commit_sha=sha)

        remote, branch = self.push()
        return CommitResult(status=OutcomeStatus.PUSHED, commit_sha=sha, remote=remote, branch=branch)

    def stage(self, paths: list[str]) -> ChangeSet:
        """Stage each path with recursive add semantics and re-query state."""
        for path in paths:
            self.executor.mutate("add", "-A", "--", path)
        if paths:
            logger.info(f"Staged {', '.join(paths)}")
        return self._requery()

    def build_commit_args(self) -> list[str]:
        """Translate CommitSpec flags into ``git commit`` arguments."""
        args = ["commit"]
        if self.spec.amend:
            args.append("--amend")
        if self.spec.message and self.spec.message.strip():
            args.extend(["-m", self.spec.message])
        else:
            # Amend reusing the previous message
            args.append("--no-edit")
        if self.spec.signoff:
            args.append("--signoff")
        if self.spec.no_verify:
            args.append("--no-verify")
        if self.spec.gpg_sign:
            args.append("-S")
        return args

    def commit(self) -> str | None:
        """Run ``git commit``; None when git found nothing to record."""
        return self.run_commit(self.build_commit_args())

    def push(self) -> tuple[str, str]:
        """Push to the requested or default remote/branch.

        Raises:
            DetachedHeadError: No branch given and HEAD is detached
        """
        target = self.spec.push or PushTarget()
        branch = target.branch or self.current_branch()
        remote = target.remote or self.config.commit.default_remote

        args = ["push"]
        if target.set_upstream:
            args.append("--set-upstream")
        args.extend([remote, branch])
        self.executor.mutate(*args)
        logger.info(f"Pushed to {remote}/{branch}")
        return remote, branch

    def _requery(self) -> ChangeSet:
        changes = self.query_changes()
        if self.dry_run:
            return changes.assume_staged()
        return changes

    @staticmethod
    def _skipped(reason: str) -> CommitResult:
        logger.info(f"Skipping commit: {reason}")
        return CommitResult(status=OutcomeStatus.NOOP_SKIPPED, reason=reason)
