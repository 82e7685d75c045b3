"""repokeeper eol command - apply line-ending policy and renormalize."""

import click
from rich.markup import escape

from repokeeper.commands._utils import console, display_path, err_console, prepare, report_error, short_sha
from repokeeper.constants import ExitCode
from repokeeper.exceptions import RepoKeeperError
from repokeeper.git.eol import EolConfigurator
from repokeeper.logging import get_logger

logger = get_logger("commands.eol")


@click.command("eol")
@click.argument("repo", default=".", type=click.Path(file_okay=False))
@click.option("--commit-message", "-m", help="Commit the renormalization with this message")
@click.option("--dry-run", "dry_run", is_flag=True, help="Report mutating steps without running them")
@click.pass_context
def eol_cmd(ctx: click.Context, repo: str, commit_message: str | None, dry_run: bool) -> None:
    """Apply the .gitattributes EOL policy and renormalize tracked files.

    The last "*" rule in .gitattributes decides core.eol and core.autocrlf
    (eol=lf -> input, eol=crlf -> true). Without such a rule the existing
    settings are left alone. core.safecrlf is enabled when unset.

    Examples:

        repokeeper eol

        repokeeper eol path/to/repo --dry-run

        repokeeper eol -m "chore: normalize line endings"
    """
    try:
        context, config = prepare(ctx, repo)
        console.print(f"[bold cyan]EOL policy[/bold cyan] {display_path(context.path)}")

        result = EolConfigurator(context, config=config, dry_run=dry_run, commit_message=commit_message).run()

        if result.policy.is_empty:
            console.print("  No wildcard eol rule; core.eol/core.autocrlf unchanged")
        else:
            console.print(f"  core.eol=[cyan]{result.policy.eol}[/cyan] core.autocrlf=[cyan]{result.policy.autocrlf}[/cyan]")
        if result.safecrlf_written:
            console.print("  core.safecrlf=[cyan]true[/cyan]")

        if not result.renormalized:
            console.print("  No .gitattributes; renormalization skipped")
        elif result.affected_count == 0:
            console.print("[green]✓[/green] Line endings already normalized (0 files)")
        else:
            console.print(f"[green]✓[/green] Renormalized {result.affected_count} file(s):")
            for entry in result.preview(config.eol.preview_limit):
                console.print(f"    {escape(entry)}", highlight=False)
            if result.commit_sha:
                console.print(f"[green]✓[/green] Committed {short_sha(result.commit_sha)}")

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
        logger.exception("eol command failed")
        raise SystemExit(ExitCode.FAILURE) from e
