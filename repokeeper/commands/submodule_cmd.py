"""repokeeper submodule command - add or repoint a submodule."""

import click
from rich.markup import escape

from repokeeper.commands._utils import console, display_path, err_console, prepare, report_error, short_sha
from repokeeper.constants import ExitCode
from repokeeper.exceptions import RepoKeeperError
from repokeeper.git.submodule import SubmoduleProvisioner
from repokeeper.git.types import SubmoduleOptions, SubmoduleRecord
from repokeeper.logging import get_logger

logger = get_logger("commands.submodule")


@click.command("submodule")
@click.argument("repo", type=click.Path(file_okay=False))
@click.argument("path")
@click.argument("url")
@click.option("--name", "-n", help="Submodule name (default: the path)")
@click.option("--branch", "-b", help="Branch to track (default: remote default branch)")
@click.option("--recursive", "-r", is_flag=True, help="Initialize nested submodules")
@click.option("--shallow", is_flag=True, help="Clone and fetch with depth 1")
@click.option("--update", is_flag=True, help="Repoint an existing submodule's url/branch")
@click.option("--force", "-f", is_flag=True, help="Skip the clean-tree check and force the add")
@click.option("--dry-run", "dry_run", is_flag=True, help="Report mutating steps without running them")
@click.pass_context
def submodule_cmd(
    ctx: click.Context,
    repo: str,
    path: str,
    url: str,
    name: str | None,
    branch: str | None,
    recursive: bool,
    shallow: bool,
    update: bool,
    force: bool,
    dry_run: bool,
) -> None:
    """Register a submodule at PATH from URL, or repoint it with --update.

    REPO is the superproject work tree. A submodule already registered at
    PATH is an error unless --update is given.

    Examples:

        repokeeper submodule . external/fmt https://github.com/fmtlib/fmt.git -b master

        repokeeper submodule . external/fmt https://example.com/fmt.git --update

        repokeeper submodule . deps/lib ../lib.git --recursive --shallow --dry-run
    """
    try:
        context, config = prepare(ctx, repo)
        record = SubmoduleRecord(path=path, url=url, name=name, branch=branch)
        options = SubmoduleOptions(recursive=recursive, shallow=shallow, update=update, force=force)

        console.print(f"[bold cyan]Submodule[/bold cyan] {escape(path)} in {display_path(context.path)}")
        result = SubmoduleProvisioner(context, record, options, config=config, dry_run=dry_run).run()

        tracked = result.record.branch or "remote default branch"
        console.print(
            f"[green]✓[/green] Submodule {escape(result.record.effective_name)} {result.action}: "
            f"{escape(result.record.url)} ({escape(tracked)})"
        )
        if result.commit_sha:
            console.print(f"[green]✓[/green] Created commit: {short_sha(result.commit_sha)}")
        elif dry_run:
            console.print("[green]✓[/green] Dry run complete; no changes made")
        else:
            console.print("[dim]Nothing to commit; submodule already up to date[/dim]")

        raise SystemExit(ExitCode.SUCCESS)

    except KeyboardInterrupt:
        err_console.print("\n[yellow]Interrupted[/yellow]")
        raise SystemExit(ExitCode.INTERRUPTED) from None
    except SystemExit:
        raise
    except RepoKeeperError as e:
        report_error(e)
        raise SystemExit(ExitCode.FAILURE) from e
    except Exception as e:  # noqa: BLE001 — intentional: CLI top-level catch-all; logs and exits gracefully
        err_console.print(f"\n[red]Error:[/red] {e}")
        logger.exception("submodule command failed")
        raise SystemExit(ExitCode.FAILURE) from e
