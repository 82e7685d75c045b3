"""EOL policy configurator.

Derives core.eol / core.autocrlf from the governing wildcard rule of
``.gitattributes``, applies it through ``git config``, enables
core.safecrlf, and renormalizes tracked content so the index matches the
current attribute rules.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from repokeeper.constants import EOL_TO_AUTOCRLF, WILDCARD_PATTERN, OutcomeStatus
from repokeeper.exceptions import DirtyWorkingTreeError
from repokeeper.git.base import RepositoryOperation
from repokeeper.git.types import EolPolicy, EolResult, preview_paths
from repokeeper.logging import get_logger

if TYPE_CHECKING:
    from repokeeper.config import RepoKeeperConfig
    from repokeeper.git.context import RepositoryContext
    from repokeeper.git.executor import GitExecutor

logger = get_logger("git.eol")


def parse_eol_policy(text: str) -> EolPolicy:
    """Derive the EOL policy from ``.gitattributes`` content.

    Lines are scanned from the end so the last wildcard rule wins. Blank
    lines and ``#`` comments are skipped. The first ``*`` line found that
    carries at least one attribute governs; its ``eol=`` value (case
    insensitive) selects the policy. Anything else yields an empty policy.

    Args:
        text: Full attributes file content

    Returns:
        The derived EolPolicy
    """
    for raw in reversed(text.splitlines()):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        tokens = line.split()
        if tokens[0] != WILDCARD_PATTERN or len(tokens) < 2:
            continue
        for token in tokens[1:]:
            key, _, value = token.partition("=")
            value = value.lower()
            if key.lower() == "eol" and value in EOL_TO_AUTOCRLF:
                return EolPolicy(eol=value, autocrlf=EOL_TO_AUTOCRLF[value])
        return EolPolicy()
    return EolPolicy()


def _index_entries(records: tuple[str, ...]) -> dict[str, str]:
    """Map path -> ``mode sha stage`` from ``git ls-files --stage -z``."""
    entries: dict[str, str] = {}
    for record in records:
        meta, sep, path = record.partition("\t")
        if sep:
            entries[path] = meta
    return entries


class EolConfigurator(RepositoryOperation[EolResult]):
    """Apply the attributes-file EOL policy and renormalize the index.

    Safe to re-run: settings already equal to the policy are not rewritten,
    an existing core.safecrlf is kept, and affected files are measured as
    index entries that changed during this run, so a second run over
    renormalized content reports zero.

    Paths with staged or unstaged edits are left out of renormalization so
    work in progress is never staged or reported as affected. Committing
    refuses to run while anything is already staged.
    """

    operation_name = "eol"

    def __init__(
        self,
        context: RepositoryContext,
        executor: GitExecutor | None = None,
        config: RepoKeeperConfig | None = None,
        dry_run: bool = False,
        commit_message: str | None = None,
    ) -> None:
        super().__init__(context, executor=executor, config=config, dry_run=dry_run)
        self.commit_message = commit_message

    @property
    def attributes_path(self) -> Path:
        return self.context.path / self.config.eol.attributes_file

    def read_policy(self) -> EolPolicy:
        if not self.attributes_path.is_file():
            return EolPolicy()
        return parse_eol_policy(self.attributes_path.read_text(encoding="utf-8", errors="replace"))

    def _execute(self) -> EolResult:
        policy = self.read_policy()
        has_attributes = self.attributes_path.is_file()

        unstaged: set[str] = set()
        staged: set[str] = set()
        if has_attributes:
            unstaged, staged = self.pending_paths()
            if staged and self.commit_message:
                raise DirtyWorkingTreeError(
                    "Staged changes would be included in the line-ending commit; commit or unstage them first",
                    entries=sorted(staged),
                )

        if policy.is_empty:
            logger.info("No governing wildcard eol rule; leaving core.eol/core.autocrlf unchanged")
        else:
            self._set_config("core.eol", policy.eol)
            self._set_config("core.autocrlf", policy.autocrlf)

        safecrlf_written = self._ensure_safecrlf()

        affected: tuple[str, ...] = ()
        if has_attributes:
            affected = self._renormalize(exclude=unstaged | staged)

        if affected:
            preview = ", ".join(preview_paths(affected, self.config.eol.preview_limit))
            logger.info(f"Renormalized {len(affected)} file(s): {preview}")
        else:
            logger.info("Renormalization changed no files")

        commit_sha = None
        if affected and self.commit_message:
            commit_sha = self.commit_staged(self.commit_message)

        return EolResult(
            policy=policy,
            safecrlf_written=safecrlf_written,
            renormalized=has_attributes,
            affected_files=affected,
            commit_sha=commit_sha,
            status=OutcomeStatus.APPLIED,
        )

    def get_config(self, key: str) -> str | None:
        """Read a git config value; None when unset."""
        result = self.executor.run("config", "--get", key, check=False)
        if result.exit_code == 1:
            return None
        if not result.ok:
            raise self.executor.failure(result)
        return result.stdout.strip()

    def _set_config(self, key: str, value: str | None) -> bool:
        if value is None:
            return False
        current = self.get_config(key)
        if current is not None and current.lower() == value:
            logger.debug(f"{key} already {value}")
            return False
        self.executor.mutate("config", key, value)
        logger.info(f"Set {key}={value}")
        return True

    def _ensure_safecrlf(self) -> bool:
        if self.get_config("core.safecrlf") is not None:
            return False
        self.executor.mutate("config", "core.safecrlf", "true")
        logger.info("Set core.safecrlf=true")
        return True

    def pending_paths(self) -> tuple[set[str], set[str]]:
        """Tracked paths with unstaged edits, and paths with staged changes."""
        unstaged = self.executor.run("diff", "--name-only", "-z").records()
        staged = self.executor.run("diff", "--cached", "--name-only", "-z").records()
        return set(unstaged), set(staged)

    def index_entries(self) -> dict[str, str]:
        return _index_entries(self.executor.run("ls-files", "--stage", "-z").records())

    def _renormalize(self, exclude: set[str]) -> tuple[str, ...]:
        # --renormalize implies -u, which would stage pending edits too
        args = ["add", "--renormalize", "."]
        if exclude:
            logger.warning(
                f"Skipping {len(exclude)} file(s) with uncommitted changes; "
                "they are normalized when next staged"
            )
            args.extend(f":(exclude,literal){path}" for path in sorted(exclude))

        before = self.index_entries()
        self.executor.mutate(*args)
        after = self.index_entries()
        changed = {path for path in before.keys() | after.keys() if before.get(path) != after.get(path)}
        return tuple(sorted(changed))
