"""repokeeper git package -- repository-mutating operations.

Re-exports core classes for convenient access:
    from repokeeper.git import RepositoryContext, CommitOrchestrator
"""

from repokeeper.git.base import RepositoryOperation
from repokeeper.git.commit import CommitOrchestrator
from repokeeper.git.context import RepositoryContext
from repokeeper.git.eol import EolConfigurator, parse_eol_policy
from repokeeper.git.executor import CommandResult, GitExecutor, classify_stderr_line
from repokeeper.git.submodule import SubmoduleProvisioner
from repokeeper.git.types import (
    ChangeSet,
    CommitResult,
    CommitSpec,
    EolPolicy,
    EolResult,
    PushTarget,
    SubmoduleOptions,
    SubmoduleRecord,
    SubmoduleResult,
)

__all__ = [
    "RepositoryContext",
    "RepositoryOperation",
    "GitExecutor",
    "CommandResult",
    "classify_stderr_line",
    "EolConfigurator",
    "parse_eol_policy",
    "CommitOrchestrator",
    "SubmoduleProvisioner",
    "ChangeSet",
    "CommitSpec",
    "CommitResult",
    "EolPolicy",
    "EolResult",
    "PushTarget",
    "SubmoduleOptions",
    "SubmoduleRecord",
    "SubmoduleResult",
]
