"""repokeeper commit command - stage, commit and optionally push."""

import click
from rich.markup import escape

from repokeeper.commands._utils import console, display_path, err_console, prepare, report_error, short_sha
from repokeeper.constants import ExitCode, OutcomeStatus
from repokeeper.exceptions import RepoKeeperError
from repokeeper.git.commit import CommitOrchestrator
from repokeeper.git.types import CommitSpec, PushTarget
from repokeeper.logging import get_logger

logger = get_logger("commands.commit")


@click.command("commit")
@click.argument("repo", default=".", type=click.Path(file_okay=False))
@click.option("--add", "-a", "paths", multiple=True, help="Path to stage (repeatable; default from config, '.')")
@click.option("--message", "-m", help="Commit message (optional only with --amend)")
@click.option("--amend", is_flag=True, help="Amend HEAD; without -m the previous message is reused")
@click.option("--signoff", "-s", is_flag=True, help="Add a Signed-off-by trailer")
@click.option("--no-verify", "no_verify", is_flag=True, help="Skip pre-commit and commit-msg hooks")
@click.option("--gpg-sign", "-S", "gpg_sign", is_flag=True, help="GPG-sign the commit")
@click.option("--only-if-changes", "only_if_changes", is_flag=True, help="Succeed without committing when nothing changed")
@click.option("--push", "-p", is_flag=True, help="Push after committing")
@click.option("--remote", help="Remote to push to (default from config, 'origin')")
@click.option("--branch", "-b", help="Branch to push (default: current branch)")
@click.option("--set-upstream", "-u", "set_upstream", is_flag=True, help="Set upstream tracking when pushing")
@click.option("--dry-run", "dry_run", is_flag=True, help="Report mutating steps without running them")
@click.pass_context
def commit_cmd(
    ctx: click.Context,
    repo: str,
    paths: tuple[str, ...],
    message: str | None,
    amend: bool,
    signoff: bool,
    no_verify: bool,
    gpg_sign: bool,
    only_if_changes: bool,
    push: bool,
    remote: str | None,
    branch: str | None,
    set_upstream: bool,
    dry_run: bool,
) -> None:
    """Stage paths and commit them, treating "nothing to commit" as success.

    Untracked files are staged automatically when nothing else is staged.
    With --only-if-changes an empty change set exits 0 without committing.

    Examples:

        repokeeper commit -m "init"

        repokeeper commit --add src --add docs -m "feat: scaffold" --push

        repokeeper commit --amend --no-verify

        repokeeper commit -m "chore: add frameworks" --only-if-changes
    """
    try:
        spec = CommitSpec(
            paths=list(paths),
            message=message,
            amend=amend,
            signoff=signoff,
            no_verify=no_verify,
            gpg_sign=gpg_sign,
            only_if_changes=only_if_changes,
            push=PushTarget(remote=remote, branch=branch, set_upstream=set_upstream) if push else None,
        )
        spec.validate()

        context, config = prepare(ctx, repo)
        if not spec.paths:
            spec.paths = list(config.commit.default_paths)

        console.print(f"[bold cyan]Commit[/bold cyan] {display_path(context.path)}")
        result = CommitOrchestrator(context, spec, config=config, dry_run=dry_run).run()

        if result.status is OutcomeStatus.NOOP_SKIPPED:
            console.print(f"[yellow]No changes to commit[/yellow] ({escape(result.reason)})")
        elif dry_run:
            console.print("[green]✓[/green] Dry run complete; no changes made")
        else:
            console.print(f"[green]✓[/green] Created commit: {short_sha(result.commit_sha)}")
            if result.status is OutcomeStatus.PUSHED:
                console.print(f"[green]✓[/green] Pushed to {escape(f'{result.remote}/{result.branch}')}")

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
        logger.exception("commit command failed")
        raise SystemExit(ExitCode.FAILURE) from e
