"""Read-only pre-flight checks for a target repository.

Reports whether the repository is ready for the mutating operations:
git availability, work-tree validity, branch state, clean state, and the
policy files the operations consume.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from repokeeper.constants import ATTRIBUTES_FILE, DEFAULT_GIT_BINARY, MODULES_FILE
from repokeeper.exceptions import DetachedHeadError, PreconditionFailedError
from repokeeper.git.base import RepositoryOperation
from repokeeper.git.context import RepositoryContext
from repokeeper.git.eol import parse_eol_policy
from repokeeper.git.executor import git_available
from repokeeper.logging import get_logger

logger = get_logger("preflight")


@dataclass
class CheckResult:
    """Result of a single pre-flight check."""

    name: str
    passed: bool
    message: str
    severity: str = "error"  # error | warning


@dataclass
class PreflightReport:
    """Aggregate results of all pre-flight checks."""

    checks: list[CheckResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        """All error-severity checks passed."""
        return all(c.passed for c in self.checks if c.severity == "error")

    @property
    def errors(self) -> list[CheckResult]:
        return [c for c in self.checks if not c.passed and c.severity == "error"]

    @property
    def warnings(self) -> list[CheckResult]:
        return [c for c in self.checks if not c.passed and c.severity == "warning"]

    def __str__(self) -> str:
        lines = []
        for c in self.checks:
            symbol = "PASS" if c.passed else "FAIL"
            lines.append(f"[{symbol}] {c.name}: {c.message}")
        return "\n".join(lines)


class PreflightChecker:
    """Run pre-flight checks against a repository path."""

    def __init__(self, repo_path: str | Path = ".", git_binary: str = DEFAULT_GIT_BINARY) -> None:
        self.repo_path = Path(repo_path)
        self.git_binary = git_binary

    def run_all(self) -> PreflightReport:
        """Run all applicable pre-flight checks.

        Checks after the work-tree check need a resolved repository and are
        skipped when resolution fails.
        """
        report = PreflightReport()

        report.checks.append(self.check_git_available())
        if not report.checks[-1].passed:
            return report

        context_check, context = self.check_work_tree()
        report.checks.append(context_check)
        if context is None:
            return report

        with context.scope():
            repo_ops = RepositoryOperation(context)
            report.checks.append(self.check_branch(repo_ops))
            report.checks.append(self.check_clean(repo_ops))
        report.checks.append(self.check_attributes(context))
        report.checks.append(self.check_submodules(context))
        return report

    def check_git_available(self) -> CheckResult:
        if git_available(self.git_binary):
            return CheckResult(name="git executable", passed=True, message=f"{self.git_binary} found on PATH")
        return CheckResult(name="git executable", passed=False, message=f"{self.git_binary} not found on PATH")

    def check_work_tree(self) -> tuple[CheckResult, RepositoryContext | None]:
        try:
            context = RepositoryContext.resolve(self.repo_path, git_binary=self.git_binary)
        except PreconditionFailedError as e:
            return CheckResult(name="Work tree", passed=False, message=e.message), None
        return CheckResult(name="Work tree", passed=True, message=str(context.path)), context

    def check_branch(self, repo_ops: RepositoryOperation) -> CheckResult:
        try:
            branch = repo_ops.current_branch()
        except DetachedHeadError:
            return CheckResult(
                name="Branch",
                passed=False,
                message="HEAD is detached; push is unavailable",
                severity="warning",
            )
        return CheckResult(name="Branch", passed=True, message=branch)

    def check_clean(self, repo_ops: RepositoryOperation) -> CheckResult:
        entries = repo_ops.porcelain_status()
        if not entries:
            return CheckResult(name="Clean tree", passed=True, message="No pending changes")
        return CheckResult(
            name="Clean tree",
            passed=False,
            message=f"{len(entries)} pending change(s); submodule add requires --force",
            severity="warning",
        )

    def check_attributes(self, context: RepositoryContext) -> CheckResult:
        attributes = context.path / ATTRIBUTES_FILE
        if not attributes.is_file():
            return CheckResult(
                name="EOL policy",
                passed=False,
                message=f"No {ATTRIBUTES_FILE}; eol leaves settings unchanged",
                severity="warning",
            )
        policy = parse_eol_policy(attributes.read_text(encoding="utf-8", errors="replace"))
        if policy.is_empty:
            return CheckResult(
                name="EOL policy",
                passed=False,
                message="No wildcard eol= rule",
                severity="warning",
            )
        return CheckResult(name="EOL policy", passed=True, message=f"eol={policy.eol} autocrlf={policy.autocrlf}")

    def check_submodules(self, context: RepositoryContext) -> CheckResult:
        present = (context.path / MODULES_FILE).is_file()
        message = f"{MODULES_FILE} present" if present else f"No {MODULES_FILE}"
        return CheckResult(name="Submodules", passed=True, message=message, severity="warning")
