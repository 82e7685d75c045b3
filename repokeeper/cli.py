"""repokeeper command-line interface."""

import click

from repokeeper import __version__
from repokeeper.commands import check_cmd, commit_cmd, eol_cmd, submodule_cmd


@click.group()
@click.version_option(version=__version__, prog_name="repokeeper")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Config file (default: <repo>/.repokeeper/config.yaml)")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warn", "error"]),
    default=None,
    help="Log level (overrides config)",
)
@click.option("--log-dir", type=click.Path(file_okay=False), default=None, help="Write JSON logs to this directory")
@click.option("--git", "git_binary", default=None, help="git executable to use (default: git on PATH)")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: str | None,
    log_level: str | None,
    log_dir: str | None,
    git_binary: str | None,
) -> None:
    """repokeeper - idempotent git working-tree automation.

    Every command is safe to re-run and exits 0 when there is nothing to do.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["log_level"] = log_level
    ctx.obj["log_dir"] = log_dir
    ctx.obj["git_binary"] = git_binary


cli.add_command(eol_cmd, name="eol")
cli.add_command(commit_cmd, name="commit")
cli.add_command(submodule_cmd, name="submodule")
cli.add_command(check_cmd, name="check")


if __name__ == "__main__":
    cli()
