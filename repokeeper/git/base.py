"""RepositoryOperation base class -- scoped execution and shared queries."""

from __future__ import annotations

from typing import Generic, TypeVar

from repokeeper.config import RepoKeeperConfig
from repokeeper.constants import NOTHING_TO_COMMIT_MARKERS
from repokeeper.exceptions import DetachedHeadError
from repokeeper.git.context import RepositoryContext
from repokeeper.git.executor import CommandResult, GitExecutor
from repokeeper.git.types import ChangeSet
from repokeeper.logging import get_logger, operation_context

logger = get_logger("git.base")

ResultT = TypeVar("ResultT")


def is_nothing_to_commit(result: CommandResult) -> bool:
    """True when a failed ``git commit`` only reported an empty change."""
    return any(result.output_contains(marker) for marker in NOTHING_TO_COMMIT_MARKERS)


class RepositoryOperation(Generic[ResultT]):
    """Base for the three repository-mutating operations.

    Holds the resolved context, its executor, and read-only queries used by
    every operation (change detection, current branch, HEAD). Subclasses
    implement ``_execute``; ``run`` wraps it in the context scope so the
    caller's working directory survives any failure.
    """

    operation_name = "operation"

    def __init__(
        self,
        context: RepositoryContext,
        executor: GitExecutor | None = None,
        config: RepoKeeperConfig | None = None,
        dry_run: bool = False,
    ) -> None:
        self.context = context
        self.config = config or RepoKeeperConfig()
        self.executor = executor or context.executor(
            dry_run=dry_run, timeout=self.config.git.timeout_seconds
        )

    @property
    def dry_run(self) -> bool:
        return self.executor.dry_run

    def run(self) -> ResultT:
        """Execute the operation inside the repository scope.

        Log records carry the operation name and repository while it runs.
        """
        with operation_context(self.operation_name, self.context.path, dry_run=self.dry_run):
            with self.context.scope():
                return self._execute()

    def _execute(self) -> ResultT:
        raise NotImplementedError

    # --- Shared queries ---

    def porcelain_status(self) -> list[str]:
        """Raw ``git status --porcelain`` entries."""
        result = self.executor.run("status", "--porcelain")
        return [line for line in result.stdout_lines if line.strip()]

    def query_changes(self) -> ChangeSet:
        """Recompute the change set; never cached across mutations."""
        return ChangeSet.from_porcelain(self.porcelain_status())

    def current_branch(self) -> str:
        """Name of the checked-out branch.

        Raises:
            DetachedHeadError: HEAD does not point at a branch
        """
        result = self.executor.run("symbolic-ref", "--quiet", "--short", "HEAD", check=False)
        branch = result.stdout.strip()
        if not result.ok or not branch:
            raise DetachedHeadError(
                "HEAD is detached; no named branch to push",
                details={"repo": str(self.context.path)},
            )
        return branch

    def current_commit(self) -> str | None:
        """Full SHA of HEAD, or None before the first commit."""
        result = self.executor.run("rev-parse", "--verify", "--quiet", "HEAD", check=False)
        sha = result.stdout.strip()
        return sha if result.ok and sha else None

    def run_commit(self, args: list[str]) -> str | None:
        """Run a ``git commit`` invocation, treating "nothing to commit" as a no-op.

        Args:
            args: Full argument list starting with ``commit``

        Returns:
            New HEAD SHA, or None when git had nothing to record (or dry run)

        Raises:
            SubprocessFailedError: Any other commit failure
        """
        result = self.executor.mutate(*args, check=False)
        if result.simulated:
            return None
        if not result.ok:
            if is_nothing_to_commit(result):
                logger.info("Nothing to commit; index matches HEAD")
                return None
            raise self.executor.failure(result)
        sha = self.current_commit()
        logger.info(f"Created commit {sha[:8] if sha else '?'}")
        return sha

    def commit_staged(self, message: str) -> str | None:
        """Commit the index with ``message``; see :meth:`run_commit`."""
        return self.run_commit(["commit", "-m", message])
