"""RepositoryContext -- a validated work tree and its scoped execution."""

from __future__ import annotations

import contextlib
import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from repokeeper.constants import DEFAULT_GIT_BINARY, DEFAULT_TIMEOUT_SECONDS
from repokeeper.exceptions import NotARepositoryError, PreconditionFailedError, ValidationError
from repokeeper.git.executor import GitExecutor, git_available
from repokeeper.logging import get_logger

logger = get_logger("git.context")


@dataclass(frozen=True)
class RepositoryContext:
    """An absolute work-tree root that git recognizes.

    Build one with :meth:`resolve`; the value is read-only afterwards.
    """

    path: Path
    git_binary: str = DEFAULT_GIT_BINARY

    @classmethod
    def resolve(cls, path: str | Path = ".", git_binary: str = DEFAULT_GIT_BINARY) -> RepositoryContext:
        """Validate a path and return the context for its work tree.

        Args:
            path: Any directory inside the work tree
            git_binary: git executable name or path

        Returns:
            Context rooted at the work-tree top level

        Raises:
            PreconditionFailedError: git is not on PATH
            NotARepositoryError: Path is missing or not inside a work tree
        """
        if not git_available(git_binary):
            raise PreconditionFailedError(
                f"git executable not found on PATH: {git_binary}",
                details={"binary": git_binary},
            )

        candidate = Path(path).expanduser().resolve()
        if not candidate.is_dir():
            raise NotARepositoryError(f"Path does not exist or is not a directory: {candidate}", str(candidate))

        executor = GitExecutor(cwd=candidate, binary=git_binary)
        inside = executor.run("rev-parse", "--is-inside-work-tree", check=False)
        if not inside.ok or inside.stdout.strip() != "true":
            raise NotARepositoryError(f"Not a git work tree: {candidate}", str(candidate))

        toplevel = executor.run("rev-parse", "--show-toplevel")
        root = Path(toplevel.stdout.strip()).resolve()
        logger.debug(f"Resolved repository {root}")
        return cls(path=root, git_binary=git_binary)

    def executor(self, dry_run: bool = False, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> GitExecutor:
        """Create an executor whose commands run at this work tree."""
        return GitExecutor(cwd=self.path, binary=self.git_binary, timeout=timeout, dry_run=dry_run)

    @contextlib.contextmanager
    def scope(self) -> Iterator[RepositoryContext]:
        """Change into the work tree for the duration of an operation.

        The caller's working directory is restored exactly once on every
        exit path, including exceptions raised inside the block.
        """
        previous = os.getcwd()
        os.chdir(self.path)
        try:
            yield self
        finally:
            os.chdir(previous)

    def relative(self, path: str | Path) -> str:
        """Normalize a user-supplied path to a work-tree relative POSIX path."""
        candidate = Path(path)
        if candidate.is_absolute():
            try:
                candidate = candidate.resolve().relative_to(self.path)
            except ValueError as e:
                raise ValidationError(
                    f"Path is outside the work tree: {path}", field="path", details={"root": str(self.path)}
                ) from e
        normalized = candidate.as_posix().strip("/")
        while normalized.startswith("./"):
            normalized = normalized[2:]
        return normalized or "."
