"""Shared utilities for repokeeper CLI commands."""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from repokeeper.config import RepoKeeperConfig
from repokeeper.exceptions import RepoKeeperError, SubprocessFailedError
from repokeeper.git.context import RepositoryContext
from repokeeper.logging import setup_logging

console = Console()
err_console = Console(stderr=True)


def prepare(ctx: click.Context, repo: str) -> tuple[RepositoryContext, RepoKeeperConfig]:
    """Resolve the repository and load its configuration.

    The config file is ``--config`` when given, otherwise
    ``.repokeeper/config.yaml`` at the work-tree root. CLI logging flags
    override the file's logging section.
    """
    obj = ctx.ensure_object(dict)
    git_binary = obj.get("git_binary") or "git"

    config_path = obj.get("config_path")
    if config_path is not None:
        config = RepoKeeperConfig.load(config_path)
        git_binary = obj.get("git_binary") or config.git.binary

    context = RepositoryContext.resolve(repo, git_binary=git_binary)

    if config_path is None:
        config = RepoKeeperConfig.load(RepoKeeperConfig.default_path(context.path))
        if not obj.get("git_binary") and config.git.binary != context.git_binary:
            context = RepositoryContext.resolve(context.path, git_binary=config.git.binary)

    level = obj.get("log_level") or config.logging.level
    log_dir = obj.get("log_dir") or config.logging.directory
    setup_logging(
        level=level,
        log_dir=log_dir,
        json_output=config.logging.json_output or obj.get("log_dir") is not None,
    )
    return context, config


def report_error(error: RepoKeeperError) -> None:
    """Print an error, including git's own output verbatim when captured."""
    err_console.print(f"[red]Error:[/red] {escape(str(error))}")
    if isinstance(error, SubprocessFailedError):
        err_console.print(f"[dim]$ {escape(' '.join(error.argv))}  (exit {error.exit_code})[/dim]")
        if error.stdout:
            err_console.print(escape(error.stdout), highlight=False)
        if error.stderr:
            err_console.print(escape(error.stderr), highlight=False)


def short_sha(sha: str | None) -> str:
    return sha[:8] if sha else "-"


def display_path(path: Path) -> str:
    return escape(str(path))
