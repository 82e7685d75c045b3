"""repokeeper constants and enumerations."""

from enum import Enum, StrEnum

DEFAULT_GIT_BINARY = "git"
DEFAULT_TIMEOUT_SECONDS = 300
DEFAULT_REMOTE = "origin"

ATTRIBUTES_FILE = ".gitattributes"
MODULES_FILE = ".gitmodules"
CONFIG_DIR = ".repokeeper"
CONFIG_FILE = "config.yaml"

# Affected-file preview shown after renormalization
PREVIEW_LIMIT = 50

WILDCARD_PATTERN = "*"

# Maps a governing eol= value to the matching core.autocrlf value
EOL_TO_AUTOCRLF: dict[str, str] = {
    "lf": "input",
    "crlf": "true",
}

# Substrings git prints when a commit has no content to record
NOTHING_TO_COMMIT_MARKERS = (
    "nothing to commit",
    "nothing added to commit",
    "no changes added to commit",
)

DEFAULT_ADD_MESSAGE = "chore: add submodule {name} at {path}"
DEFAULT_UPDATE_MESSAGE = "chore: update submodule {name} at {path}"


class LineSeverity(Enum):
    """Classification of a single stderr line."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class OutcomeStatus(StrEnum):
    """Terminal success states of an operation."""

    NOOP_SKIPPED = "noop-skipped"
    APPLIED = "applied"
    COMMITTED = "committed"
    PUSHED = "pushed"
    CONFIGURED = "configured"


class ExitCode:
    """Process exit codes for the CLI."""

    SUCCESS = 0
    FAILURE = 1
    INTERRUPTED = 130
