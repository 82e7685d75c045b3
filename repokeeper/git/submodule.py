"""Submodule provisioning: register a new submodule or repoint an existing one."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from repokeeper.constants import MODULES_FILE, OutcomeStatus
from repokeeper.exceptions import (
    AlreadyConfiguredError,
    BranchNotFoundError,
    DestinationNotEmptyError,
    DirtyWorkingTreeError,
    RemoteUnreachableError,
)
from repokeeper.git.base import RepositoryOperation
from repokeeper.git.types import SubmoduleOptions, SubmoduleRecord, SubmoduleResult
from repokeeper.logging import get_logger

if TYPE_CHECKING:
    from repokeeper.config import RepoKeeperConfig
    from repokeeper.git.context import RepositoryContext
    from repokeeper.git.executor import GitExecutor

logger = get_logger("git.submodule")

# `git config --unset` exit status when the key does not exist
_CONFIG_KEY_MISSING = 5

_SECTION_PREFIX = "submodule."
_PATH_SUFFIX = ".path"


class SubmoduleProvisioner(RepositoryOperation[SubmoduleResult]):
    """Add a submodule at a path, or repoint the one already registered there.

    Preflight checks are read-only and run before any mutation: clean tree
    (unless ``force`` or ``update``), empty destination for new
    registrations, remote branch existence, and registration lookup by
    path in ``.gitmodules``.

    The mutating steps are not transactional. If one fails, its error is
    raised and nothing is rolled back, so a failure after ``git submodule
    add`` but before the commit leaves a partially registered, uncommitted
    submodule that must be cleaned up by hand.
    """

    operation_name = "submodule"

    def __init__(
        self,
        context: RepositoryContext,
        record: SubmoduleRecord,
        options: SubmoduleOptions | None = None,
        executor: GitExecutor | None = None,
        config: RepoKeeperConfig | None = None,
        dry_run: bool = False,
    ) -> None:
        super().__init__(context, executor=executor, config=config, dry_run=dry_run)
        self.record = record
        self.options = options or SubmoduleOptions()

    def _execute(self) -> SubmoduleResult:
        record = replace(self.record, path=self.context.relative(self.record.path))

        if not (self.options.force or self.options.update):
            self.require_clean_tree()

        registered_name = self.find_registered(record.path)

        if registered_name is None:
            self.require_empty_destination(record.path)

        if record.branch:
            self.verify_remote_branch(record.url, record.branch)

        if registered_name is not None and not self.options.update:
            raise AlreadyConfiguredError(
                f"Submodule already configured at {record.path} (name: {registered_name})",
                path=record.path,
                name=registered_name,
            )

        if registered_name is None:
            return self._register(record)
        return self._repoint(replace(record, name=registered_name))

    # --- Preflight ---

    def require_clean_tree(self) -> None:
        """Raise DirtyWorkingTreeError when anything is pending."""
        entries = self.porcelain_status()
        if entries:
            raise DirtyWorkingTreeError(
                "Working tree has uncommitted changes; commit them or pass --force",
                entries=entries,
            )

    def require_empty_destination(self, path: str) -> None:
        destination = self.context.path / path
        if not destination.exists():
            return
        if destination.is_file() or any(destination.iterdir()):
            raise DestinationNotEmptyError(f"Destination exists and is not empty: {path}", path=path)

    def verify_remote_branch(self, url: str, branch: str) -> None:
        """Check that ``branch`` exists among the remote's heads.

        Raises:
            RemoteUnreachableError: ls-remote failed
            BranchNotFoundError: The remote has no such head
        """
        result = self.executor.run("ls-remote", "--heads", url, branch, check=False)
        if not result.ok:
            raise RemoteUnreachableError(f"Cannot reach remote {url}", url=url, stderr=result.stderr)
        ref = f"refs/heads/{branch}"
        if not any(line.split("\t", 1)[-1] == ref for line in result.stdout_lines):
            raise BranchNotFoundError(f"Branch '{branch}' not found on {url}", url=url, branch=branch)
        logger.debug(f"Remote branch {branch} exists on {url}")

    def registered_paths(self) -> dict[str, str]:
        """Map registered submodule path -> name, read from ``.gitmodules``."""
        if not (self.context.path / MODULES_FILE).is_file():
            return {}
        # -z: names default to the path and may contain spaces
        result = self.executor.run(
            "config", "-f", MODULES_FILE, "-z", "--get-regexp", r"^submodule\..*\.path$", check=False
        )
        if result.exit_code == 1:
            return {}
        if not result.ok:
            raise self.executor.failure(result)

        registered: dict[str, str] = {}
        for record in result.records():
            key, sep, value = record.partition("\n")
            if not sep or not value:
                continue
            name = key.removeprefix(_SECTION_PREFIX).removesuffix(_PATH_SUFFIX)
            registered[value.strip("/")] = name
        return registered

    def find_registered(self, path: str) -> str | None:
        """Name of the submodule registered at exactly ``path``, if any."""
        return self.registered_paths().get(path)

    # --- Mutation ---

    def _register(self, record: SubmoduleRecord) -> SubmoduleResult:
        name = record.effective_name
        logger.info(f"Adding submodule {name} at {record.path} from {record.url}")

        args = ["submodule", "add"]
        if record.name:
            args.extend(["--name", record.name])
        if record.branch:
            args.extend(["-b", record.branch])
        if self.options.shallow:
            args.extend(["--depth", "1"])
        if self.options.force:
            args.append("--force")
        args.extend(["--", record.url, record.path])

        # git will not clone into an existing directory, even an empty one
        destination = self.context.path / record.path
        if destination.is_dir() and not self.dry_run:
            destination.rmdir()
        self.executor.mutate(*args)

        # Some git versions omit the branch entry; write all three explicitly
        self._set_entry(name, "path", record.path)
        self._set_entry(name, "url", record.url)
        if record.branch:
            self._set_entry(name, "branch", record.branch)

        self._update_checkout(record.path, remote=bool(record.branch))
        self.executor.mutate("add", "--", MODULES_FILE, record.path)

        message = self.config.submodule.render(
            self.config.submodule.add_message, name, record.path, record.url, record.branch
        )
        sha = self.commit_staged(message)
        return SubmoduleResult(
            record=replace(record, name=name),
            action="added",
            commit_sha=sha,
            status=OutcomeStatus.CONFIGURED,
        )

    def _repoint(self, record: SubmoduleRecord) -> SubmoduleResult:
        name = record.effective_name
        logger.info(f"Repointing submodule {name} at {record.path} to {record.url}")

        self._set_entry(name, "url", record.url)
        if record.branch:
            self._set_entry(name, "branch", record.branch)
        else:
            self._unset_entry(name, "branch")

        sync_args = ["submodule", "sync"]
        if self.options.recursive:
            sync_args.append("--recursive")
        self.executor.mutate(*sync_args, "--", record.path)

        self._update_checkout(record.path, remote=True)
        self.executor.mutate("add", "--", MODULES_FILE, record.path)

        message = self.config.submodule.render(
            self.config.submodule.update_message, name, record.path, record.url, record.branch
        )
        sha = self.commit_staged(message)
        if sha is None and not self.dry_run:
            logger.info("Submodule already pointed at the requested url/branch")
        return SubmoduleResult(record=record, action="updated", commit_sha=sha, status=OutcomeStatus.CONFIGURED)

    def _update_checkout(self, path: str, remote: bool) -> None:
        args = ["submodule", "update", "--init"]
        if self.options.recursive:
            args.append("--recursive")
        if remote:
            args.append("--remote")
        if self.options.shallow:
            args.extend(["--depth", "1"])
        args.extend(["--", path])
        self.executor.mutate(*args)

    def _set_entry(self, name: str, key: str, value: str) -> None:
        self.executor.mutate("config", "-f", MODULES_FILE, f"submodule.{name}.{key}", value)

    def _unset_entry(self, name: str, key: str) -> None:
        result = self.executor.mutate(
            "config", "-f", MODULES_FILE, "--unset", f"submodule.{name}.{key}", check=False
        )
        if not result.ok and result.exit_code != _CONFIG_KEY_MISSING:
            raise self.executor.failure(result)
