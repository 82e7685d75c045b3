"""Pytest configuration and fixtures for repokeeper tests."""

import subprocess
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from repokeeper.logging import set_operation_context, setup_logging


def _run_git(*args: str, cwd: Path | None = None) -> str:
    """Run git command safely without shell=True."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


@pytest.fixture(autouse=True)
def _isolated_git(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory, tmp_path: Path) -> None:
    """Keep the developer's git configuration out of every test.

    Also allows file:// transport so submodules can be cloned from local
    upstream repositories.
    """
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(home / ".gitconfig"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path.parent))
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@test.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@test.com")
    monkeypatch.setenv("GIT_CONFIG_COUNT", "1")
    monkeypatch.setenv("GIT_CONFIG_KEY_0", "protocol.file.allow")
    monkeypatch.setenv("GIT_CONFIG_VALUE_0", "always")


@pytest.fixture(autouse=True)
def _reset_logging() -> Generator[None, None, None]:
    """CLI tests reconfigure logging against CliRunner streams; undo that."""
    yield
    set_operation_context()
    setup_logging(level="warning", console_output=True, json_output=False)


@pytest.fixture
def git() -> Callable[..., str]:
    """Run git in a directory and return stripped stdout."""

    def _git(repo: Path, *args: str) -> str:
        return _run_git(*args, cwd=repo)

    return _git


@pytest.fixture
def tmp_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository with one commit.

    Returns:
        Resolved path to the repository
    """
    repo = tmp_path / "repo"
    repo.mkdir()

    _run_git("init", "-q", "-b", "main", cwd=repo)
    _run_git("config", "user.email", "test@test.com", cwd=repo)
    _run_git("config", "user.name", "Test", cwd=repo)

    (repo / "README.md").write_text("# Test Repo")
    _run_git("add", "-A", cwd=repo)
    _run_git("commit", "-q", "-m", "Initial commit", cwd=repo)

    return repo.resolve()


def make_upstream(path: Path, files: dict[str, str], branches: dict[str, dict[str, str]] | None = None) -> Path:
    """Create a repository usable as a submodule or push remote source.

    Args:
        path: Where to create it
        files: Files committed on main
        branches: Extra branch name -> files committed on top of main

    Returns:
        Resolved path to the repository
    """
    path.mkdir(parents=True)
    _run_git("init", "-q", "-b", "main", cwd=path)
    for name, content in files.items():
        (path / name).write_text(content)
    _run_git("add", "-A", cwd=path)
    _run_git("commit", "-q", "-m", "upstream main", cwd=path)

    for branch, branch_files in (branches or {}).items():
        _run_git("checkout", "-q", "-b", branch, cwd=path)
        for name, content in branch_files.items():
            (path / name).write_text(content)
        _run_git("add", "-A", cwd=path)
        _run_git("commit", "-q", "-m", f"upstream {branch}", cwd=path)
        _run_git("checkout", "-q", "main", cwd=path)

    return path.resolve()


@pytest.fixture
def upstream_repo(tmp_path: Path) -> Path:
    """Local upstream with ``main`` and ``develop`` branches."""
    return make_upstream(
        tmp_path / "upstream",
        {"lib.txt": "library v1\n"},
        {"develop": {"lib.txt": "library v2-dev\n"}},
    )


@pytest.fixture
def other_upstream_repo(tmp_path: Path) -> Path:
    """Second local upstream with ``main`` and ``release`` branches."""
    return make_upstream(
        tmp_path / "upstream-fork",
        {"fork.txt": "fork main\n"},
        {"release": {"fork.txt": "fork release\n"}},
    )
