"""repokeeper check command - read-only readiness report."""

import click
from rich.markup import escape
from rich.table import Table

from repokeeper.commands._utils import console
from repokeeper.constants import ExitCode
from repokeeper.preflight import PreflightChecker


@click.command("check")
@click.argument("repo", default=".", type=click.Path(file_okay=False))
@click.pass_context
def check_cmd(ctx: click.Context, repo: str) -> None:
    """Report whether REPO is ready for eol, commit and submodule.

    Exits 1 when an error-level check fails; warnings do not fail.
    """
    git_binary = ctx.ensure_object(dict).get("git_binary") or "git"
    report = PreflightChecker(repo, git_binary=git_binary).run_all()

    table = Table(title="Pre-flight")
    table.add_column("Check")
    table.add_column("Status")
    table.add_column("Detail")

    for check in report.checks:
        if check.passed:
            status = "[green]PASS[/green]"
        elif check.severity == "warning":
            status = "[yellow]WARN[/yellow]"
        else:
            status = "[red]FAIL[/red]"
        table.add_row(check.name, status, escape(check.message))

    console.print(table)
    raise SystemExit(ExitCode.SUCCESS if report.passed else ExitCode.FAILURE)
