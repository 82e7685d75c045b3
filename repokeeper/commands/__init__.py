"""repokeeper CLI commands."""

from repokeeper.commands.check_cmd import check_cmd
from repokeeper.commands.commit_cmd import commit_cmd
from repokeeper.commands.eol_cmd import eol_cmd
from repokeeper.commands.submodule_cmd import submodule_cmd

__all__ = [
    "check_cmd",
    "commit_cmd",
    "eol_cmd",
    "submodule_cmd",
]
