"""Tests for repokeeper.git.commit."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from repokeeper.config import CommitConfig, RepoKeeperConfig
from repokeeper.constants import OutcomeStatus
from repokeeper.exceptions import (
    DetachedHeadError,
    MessageRequiredError,
    NothingToCommitError,
    SubprocessFailedError,
)
from repokeeper.git.commit import CommitOrchestrator
from repokeeper.git.context import RepositoryContext
from repokeeper.git.executor import CommandResult, GitExecutor, classify_stderr
from repokeeper.git.types import CommitSpec, PushTarget

HEAD_SHA = "a" * 40


def _result(*stdout: str, exit_code: int = 0, stderr: str = "", simulated: bool = False) -> CommandResult:
    return CommandResult(
        argv=("git",),
        stdout_lines=stdout,
        stderr_lines=classify_stderr(stderr),
        exit_code=exit_code,
        simulated=simulated,
    )


def _make_executor(
    statuses: list[list[str]],
    commit_result: CommandResult | None = None,
    branch: str | None = "main",
    dry_run: bool = False,
) -> MagicMock:
    """Mock executor answering status queries in order."""
    executor = MagicMock(spec=GitExecutor)
    executor.dry_run = dry_run
    executor.failure.side_effect = GitExecutor.failure
    remaining = iter(statuses)

    def _run(*args: str, **kwargs) -> CommandResult:
        if args[0] == "status":
            return _result(*next(remaining))
        if args[0] == "rev-parse":
            return _result(HEAD_SHA)
        if args[0] == "symbolic-ref":
            return _result(branch) if branch else _result(exit_code=1)
        return _result()

    def _mutate(*args: str, **kwargs) -> CommandResult:
        if dry_run:
            return _result(simulated=True)
        if args[0] == "commit" and commit_result is not None:
            return commit_result
        return _result()

    executor.run.side_effect = _run
    executor.mutate.side_effect = _mutate
    return executor


def _mutations(executor: MagicMock) -> list[tuple[str, ...]]:
    return [c.args for c in executor.mutate.call_args_list]


@pytest.fixture
def context(tmp_path: Path) -> RepositoryContext:
    return RepositoryContext(path=tmp_path)


class TestCommitFlow:
    """Mock-driven tests of the staging/commit state machine."""

    def test_only_if_changes_clean_is_noop(self, context: RepositoryContext) -> None:
        executor = _make_executor([[]])
        spec = CommitSpec(paths=["."], message="msg", only_if_changes=True)

        result = CommitOrchestrator(context, spec, executor=executor).run()

        assert result.status is OutcomeStatus.NOOP_SKIPPED
        assert result.commit_sha is None
        assert not any(args[0] == "commit" for args in _mutations(executor))

    def test_message_required_before_any_git_call(self, context: RepositoryContext) -> None:
        executor = _make_executor([["?? new.txt"]])

        with pytest.raises(MessageRequiredError):
            CommitOrchestrator(context, CommitSpec(paths=["."]), executor=executor).run()

        executor.run.assert_not_called()
        executor.mutate.assert_not_called()

    def test_stages_each_path(self, context: RepositoryContext) -> None:
        executor = _make_executor([["M  src/app.py"]])
        spec = CommitSpec(paths=["src", "docs"], message="feat: x")

        result = CommitOrchestrator(context, spec, executor=executor).run()

        assert result.status is OutcomeStatus.COMMITTED
        assert result.commit_sha == HEAD_SHA
        mutations = _mutations(executor)
        assert mutations[0] == ("add", "-A", "--", "src")
        assert mutations[1] == ("add", "-A", "--", "docs")
        assert mutations[2] == ("commit", "-m", "feat: x")

    def test_untracked_only_is_auto_staged(self, context: RepositoryContext) -> None:
        executor = _make_executor([["?? new.txt"], ["A  new.txt"]])
        spec = CommitSpec(paths=[], message="add new")

        result = CommitOrchestrator(context, spec, executor=executor).run()

        assert result.status is OutcomeStatus.COMMITTED
        assert ("add", "-A") in _mutations(executor)

    def test_nothing_staged_raises(self, context: RepositoryContext) -> None:
        executor = _make_executor([[" M tracked.txt"]])
        spec = CommitSpec(paths=[], message="msg")

        with pytest.raises(NothingToCommitError):
            CommitOrchestrator(context, spec, executor=executor).run()

    def test_nothing_staged_with_only_if_changes_skips(self, context: RepositoryContext) -> None:
        executor = _make_executor([[" M tracked.txt"]])
        spec = CommitSpec(paths=[], message="msg", only_if_changes=True)

        result = CommitOrchestrator(context, spec, executor=executor).run()

        assert result.status is OutcomeStatus.NOOP_SKIPPED

    def test_nothing_to_commit_race_is_skipped(self, context: RepositoryContext) -> None:
        executor = _make_executor(
            [["M  a.txt"]],
            commit_result=_result("On branch main", "nothing to commit, working tree clean", exit_code=1),
        )
        spec = CommitSpec(paths=["."], message="msg")

        result = CommitOrchestrator(context, spec, executor=executor).run()

        assert result.status is OutcomeStatus.NOOP_SKIPPED
        assert result.commit_sha is None

    def test_other_commit_failure_raises(self, context: RepositoryContext) -> None:
        executor = _make_executor(
            [["M  a.txt"]],
            commit_result=_result(exit_code=1, stderr="error: gpg failed to sign the data"),
        )
        spec = CommitSpec(paths=["."], message="msg", gpg_sign=True)

        with pytest.raises(SubprocessFailedError) as exc_info:
            CommitOrchestrator(context, spec, executor=executor).run()

        assert "gpg failed" in exc_info.value.stderr

    def test_push_defaults_to_config_remote_and_current_branch(self, context: RepositoryContext) -> None:
        executor = _make_executor([["M  a.txt"]], branch="feature/x")
        config = RepoKeeperConfig(commit=CommitConfig(default_remote="upstream"))
        spec = CommitSpec(paths=["."], message="msg", push=PushTarget())

        result = CommitOrchestrator(context, spec, executor=executor, config=config).run()

        assert result.status is OutcomeStatus.PUSHED
        assert (result.remote, result.branch) == ("upstream", "feature/x")
        assert _mutations(executor)[-1] == ("push", "upstream", "feature/x")

    def test_push_explicit_target_with_upstream(self, context: RepositoryContext) -> None:
        executor = _make_executor([["M  a.txt"]])
        spec = CommitSpec(
            paths=["."], message="msg", push=PushTarget(remote="fork", branch="release", set_upstream=True)
        )

        CommitOrchestrator(context, spec, executor=executor).run()

        assert _mutations(executor)[-1] == ("push", "--set-upstream", "fork", "release")

    def test_push_on_detached_head_raises(self, context: RepositoryContext) -> None:
        executor = _make_executor([["M  a.txt"]], branch=None)
        spec = CommitSpec(paths=["."], message="msg", push=PushTarget())

        with pytest.raises(DetachedHeadError):
            CommitOrchestrator(context, spec, executor=executor).run()

    def test_dry_run_predicts_commit(self, context: RepositoryContext) -> None:
        executor = _make_executor([["?? new.txt"]], dry_run=True)
        spec = CommitSpec(paths=["."], message="msg")

        result = CommitOrchestrator(context, spec, executor=executor).run()

        assert result.status is OutcomeStatus.COMMITTED
        assert result.commit_sha is None
        assert ("commit", "-m", "msg") in _mutations(executor)


class TestBuildCommitArgs:
    """Tests for flag translation."""

    def test_amend_without_message_reuses_previous(self, context: RepositoryContext) -> None:
        orchestrator = CommitOrchestrator(context, CommitSpec(amend=True), executor=_make_executor([]))

        assert orchestrator.build_commit_args() == ["commit", "--amend", "--no-edit"]

    def test_all_flags(self, context: RepositoryContext) -> None:
        spec = CommitSpec(message="msg", amend=True, signoff=True, no_verify=True, gpg_sign=True)
        orchestrator = CommitOrchestrator(context, spec, executor=_make_executor([]))

        assert orchestrator.build_commit_args() == [
            "commit",
            "--amend",
            "-m",
            "msg",
            "--signoff",
            "--no-verify",
            "-S",
        ]


class TestCommitIntegration:
    """End-to-end tests against real repositories."""

    def test_commits_new_file(self, tmp_repo: Path, git) -> None:
        (tmp_repo / "new.txt").write_text("hello\n")
        context = RepositoryContext.resolve(tmp_repo)

        result = CommitOrchestrator(context, CommitSpec(paths=["."], message="init")).run()

        assert result.status is OutcomeStatus.COMMITTED
        assert result.commit_sha == git(tmp_repo, "rev-parse", "HEAD")
        assert git(tmp_repo, "show", "--name-only", "--format=", "HEAD") == "new.txt"
        assert git(tmp_repo, "status", "--porcelain") == ""

    def test_untracked_staged_without_paths(self, tmp_repo: Path, git) -> None:
        (tmp_repo / "scratch.txt").write_text("draft\n")
        context = RepositoryContext.resolve(tmp_repo)

        result = CommitOrchestrator(context, CommitSpec(paths=[], message="add scratch")).run()

        assert result.committed
        assert "scratch.txt" in git(tmp_repo, "show", "--name-only", "--format=", "HEAD")

    def test_clean_repo_only_if_changes(self, tmp_repo: Path, git) -> None:
        head = git(tmp_repo, "rev-parse", "HEAD")
        context = RepositoryContext.resolve(tmp_repo)

        result = CommitOrchestrator(context, CommitSpec(paths=["."], message="x", only_if_changes=True)).run()

        assert result.status is OutcomeStatus.NOOP_SKIPPED
        assert git(tmp_repo, "rev-parse", "HEAD") == head

    def test_clean_repo_without_only_if_changes(self, tmp_repo: Path) -> None:
        context = RepositoryContext.resolve(tmp_repo)

        with pytest.raises(NothingToCommitError):
            CommitOrchestrator(context, CommitSpec(paths=["."], message="x")).run()

    def test_amend_reuses_message(self, tmp_repo: Path, git) -> None:
        (tmp_repo / "README.md").write_text("# Test Repo\n\nMore.\n")
        context = RepositoryContext.resolve(tmp_repo)

        result = CommitOrchestrator(context, CommitSpec(paths=["README.md"], amend=True)).run()

        assert result.committed
        assert git(tmp_repo, "rev-list", "--count", "HEAD") == "1"
        assert git(tmp_repo, "log", "-1", "--format=%s") == "Initial commit"

    def test_signoff_trailer(self, tmp_repo: Path, git) -> None:
        (tmp_repo / "a.txt").write_text("a\n")
        context = RepositoryContext.resolve(tmp_repo)

        CommitOrchestrator(context, CommitSpec(paths=["."], message="signed", signoff=True)).run()

        assert "Signed-off-by: Test <test@test.com>" in git(tmp_repo, "log", "-1", "--format=%B")

    def test_push_to_bare_remote(self, tmp_repo: Path, tmp_path: Path, git) -> None:
        remote = tmp_path / "remote.git"
        subprocess.run(["git", "init", "-q", "--bare", "-b", "main", str(remote)], check=True)
        git(tmp_repo, "remote", "add", "origin", str(remote))
        (tmp_repo / "a.txt").write_text("a\n")
        context = RepositoryContext.resolve(tmp_repo)

        result = CommitOrchestrator(
            context, CommitSpec(paths=["."], message="push me", push=PushTarget(set_upstream=True))
        ).run()

        assert result.status is OutcomeStatus.PUSHED
        assert (result.remote, result.branch) == ("origin", "main")
        assert git(remote, "rev-parse", "main") == result.commit_sha
        assert git(tmp_repo, "rev-parse", "--abbrev-ref", "main@{upstream}") == "origin/main"

    def test_push_failure_surfaces_git_output(self, tmp_repo: Path) -> None:
        (tmp_repo / "a.txt").write_text("a\n")
        context = RepositoryContext.resolve(tmp_repo)
        spec = CommitSpec(paths=["."], message="msg", push=PushTarget(remote="nowhere"))

        with pytest.raises(SubprocessFailedError) as exc_info:
            CommitOrchestrator(context, spec).run()

        assert exc_info.value.argv[:2] == ("git", "push")
        assert "nowhere" in exc_info.value.stderr

    def test_restores_cwd_after_failure(self, tmp_repo: Path, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        context = RepositoryContext.resolve(tmp_repo)

        with pytest.raises(NothingToCommitError):
            CommitOrchestrator(context, CommitSpec(paths=["."], message="x")).run()

        assert Path.cwd().resolve() == tmp_path.resolve()
