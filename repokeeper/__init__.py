"""repokeeper - idempotent git working-tree automation.

Applies line-ending policy, orchestrates commits, and provisions
submodules, each safe to re-run from build pipelines.
"""

__version__ = "0.1.0"

from repokeeper.constants import OutcomeStatus
from repokeeper.exceptions import RepoKeeperError

__all__ = [
    "__version__",
    "OutcomeStatus",
    "RepoKeeperError",
]
