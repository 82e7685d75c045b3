"""repokeeper logging: git-aware console lines and JSON log files.

Records emitted while a repository operation runs carry that operation's
name, repository path and dry-run flag. The executor tags records with the
git command, its exit code, and ``stream="stderr"`` for lines git itself
printed, so both formatters can tell git's voice apart from ours.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

LOG_FILE = "repokeeper.log"

# Record attributes copied into JSON output when the emitter set them
_COMMAND_FIELDS = ("command", "exit_code", "stream")

_LEVEL_ALIASES = {"warn": "warning"}

_operation_context: dict[str, Any] = {}


class JsonFormatter(logging.Formatter):
    """One JSON object per record, for the log file."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
            **_operation_context,
        }

        for key in _COMMAND_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class ConsoleFormatter(logging.Formatter):
    """Colored single-line console output.

    Lines are prefixed with the running operation (``[eol]``, or
    ``[eol dry-run]`` when nothing is being changed). Lines relayed from
    git's stderr are marked ``git:`` and keep git's wording untouched.
    """

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        timestamp = datetime.now().strftime("%H:%M:%S")

        message = record.getMessage()
        if getattr(record, "stream", None) == "stderr":
            message = f"git: {message}"

        return f"{color}{timestamp} {record.levelname:8s}{self.RESET} {_context_label()}{message}"


def _context_label() -> str:
    operation = _operation_context.get("operation")
    if operation is None:
        return ""
    if _operation_context.get("dry_run"):
        return f"[{operation} dry-run] "
    return f"[{operation}] "


def set_operation_context(
    operation: str | None = None,
    repo: str | Path | None = None,
    **kwargs: Any,
) -> None:
    """Replace the context attached to subsequent log records.

    Called with no arguments it clears the context.

    Args:
        operation: Operation name (eol, commit, submodule)
        repo: Repository path the operation targets
        **kwargs: Additional context fields, e.g. ``dry_run``
    """
    global _operation_context
    _operation_context = {}

    if operation is not None:
        _operation_context["operation"] = operation
    if repo is not None:
        _operation_context["repo"] = str(repo)
    _operation_context.update(kwargs)


@contextmanager
def operation_context(operation: str, repo: str | Path, dry_run: bool = False) -> Iterator[None]:
    """Attach operation context for the duration of a block.

    Whatever context was active before is restored on exit, including
    when the block raises.
    """
    global _operation_context
    previous = _operation_context
    set_operation_context(operation=operation, repo=repo, dry_run=dry_run)
    try:
        yield
    finally:
        _operation_context = previous


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``repokeeper`` namespace, e.g. ``repokeeper.git.eol``."""
    return logging.getLogger(f"repokeeper.{name}")


def setup_logging(
    level: str = "info",
    log_dir: str | Path | None = None,
    json_output: bool = True,
    console_output: bool = True,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> None:
    """Configure the ``repokeeper`` logger tree.

    Re-running replaces the previous handlers, so the CLI can apply
    config-file settings after the import-time default.

    Args:
        level: Log level (debug, info, warn, error)
        log_dir: Directory for ``repokeeper.log``; no file without it
        json_output: Write the file as JSON lines
        console_output: Log to stderr
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files to keep
    """
    level = _LEVEL_ALIASES.get(level.lower(), level.lower())
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger("repokeeper")
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers:
        handler.close()
    root_logger.handlers = []

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(ConsoleFormatter())
        root_logger.addHandler(console_handler)

    if log_dir and json_output:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(log_path / LOG_FILE, maxBytes=max_bytes, backupCount=backup_count)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(JsonFormatter())
        root_logger.addHandler(file_handler)

    root_logger.propagate = False


# Warnings and errors reach stderr even before the CLI configures logging
setup_logging(level="warning", console_output=True, json_output=False)
