"""GitExecutor -- synchronous git subprocess execution with stderr classification.

Every git invocation made by repokeeper goes through this module. stdout and
stderr are captured as separate streams; each stderr line is tagged as info,
warning or error by :func:`classify_stderr_line` and forwarded to the logger
at that level. Only a nonzero exit code is treated as failure.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from repokeeper.constants import DEFAULT_GIT_BINARY, DEFAULT_TIMEOUT_SECONDS, LineSeverity
from repokeeper.exceptions import CommandTimeoutError, SubprocessFailedError
from repokeeper.logging import get_logger

logger = get_logger("git.executor")

_ERROR_MARKER = "error:"
_WARNING_MARKER = "warning:"

# Forced onto every child process: stable English output, no credential prompts
_GIT_ENV_OVERRIDES = {
    "LC_ALL": "C",
    "GIT_TERMINAL_PROMPT": "0",
}


def classify_stderr_line(line: str) -> LineSeverity:
    """Classify one line of git stderr.

    git's stderr is not a structured protocol: progress text, hints and
    diagnostics share the stream. The test is a case-insensitive substring
    match; a line carrying both markers counts as an error.

    Args:
        line: A single stderr line without its trailing newline

    Returns:
        The line's severity
    """
    lowered = line.lower()
    if _ERROR_MARKER in lowered:
        return LineSeverity.ERROR
    if _WARNING_MARKER in lowered:
        return LineSeverity.WARNING
    return LineSeverity.INFO


@dataclass(frozen=True)
class StderrLine:
    """A classified stderr line."""

    text: str
    severity: LineSeverity


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of one git invocation."""

    argv: tuple[str, ...]
    stdout_lines: tuple[str, ...]
    stderr_lines: tuple[StderrLine, ...]
    exit_code: int
    simulated: bool = False
    raw_stdout: str = field(default="", repr=False)

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def stdout(self) -> str:
        return "\n".join(self.stdout_lines)

    @property
    def stderr(self) -> str:
        return "\n".join(line.text for line in self.stderr_lines)

    @property
    def warnings(self) -> list[str]:
        return [line.text for line in self.stderr_lines if line.severity is LineSeverity.WARNING]

    @property
    def errors(self) -> list[str]:
        return [line.text for line in self.stderr_lines if line.severity is LineSeverity.ERROR]

    def records(self) -> tuple[str, ...]:
        """NUL-terminated records from a ``-z`` invocation, verbatim."""
        return tuple(record for record in self.raw_stdout.split("\0") if record)

    def output_contains(self, needle: str) -> bool:
        """Case-insensitive search across both streams."""
        needle = needle.lower()
        return needle in self.stdout.lower() or needle in self.stderr.lower()


def _split_lines(text: str | bytes | None) -> tuple[str, ...]:
    if not text:
        return ()
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    return tuple(text.splitlines())


def classify_stderr(text: str | bytes | None) -> tuple[StderrLine, ...]:
    """Split raw stderr into classified lines, dropping blank ones."""
    return tuple(
        StderrLine(text=line, severity=classify_stderr_line(line))
        for line in _split_lines(text)
        if line.strip()
    )


def git_available(binary: str = DEFAULT_GIT_BINARY) -> bool:
    """Check whether the git executable can be found on PATH."""
    return shutil.which(binary) is not None


@dataclass
class GitExecutor:
    """Runs git rooted at a fixed working directory.

    Attributes:
        cwd: Directory every command runs in
        binary: git executable name or path
        timeout: Per-command wait budget in seconds
        dry_run: When True, ``mutate`` reports instead of executing
        planned: argv of every mutating command suppressed by dry run
    """

    cwd: Path
    binary: str = DEFAULT_GIT_BINARY
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    dry_run: bool = False
    planned: list[tuple[str, ...]] = field(default_factory=list)

    def run(self, *args: str, check: bool = True, timeout: float | None = None) -> CommandResult:
        """Run a git command and capture its output.

        Args:
            *args: git arguments (without the executable)
            check: Raise on nonzero exit
            timeout: Override the executor's wait budget

        Returns:
            The captured CommandResult

        Raises:
            SubprocessFailedError: Nonzero exit with check=True
            CommandTimeoutError: The command did not finish in time
        """
        argv = (self.binary, *args)
        budget = self.timeout if timeout is None else timeout
        logger.debug(f"Running: {' '.join(argv)}", extra={"command": " ".join(argv)})

        try:
            completed = subprocess.run(
                list(argv),
                cwd=self.cwd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=budget,
                env={**os.environ, **_GIT_ENV_OVERRIDES},
            )
        except subprocess.TimeoutExpired as e:
            raise CommandTimeoutError(
                f"Git command timed out after {budget}s: {' '.join(args)}",
                argv=argv,
                timeout_seconds=budget,
                stdout="\n".join(_split_lines(e.stdout)),
                stderr="\n".join(_split_lines(e.stderr)),
            ) from e

        result = CommandResult(
            argv=argv,
            stdout_lines=_split_lines(completed.stdout),
            raw_stdout=completed.stdout or "",
            stderr_lines=classify_stderr(completed.stderr),
            exit_code=completed.returncode,
        )
        logger.debug(
            f"Exit {result.exit_code}: {' '.join(argv)}",
            extra={"command": " ".join(argv), "exit_code": result.exit_code},
        )
        self._forward_stderr(result)

        if check and not result.ok:
            raise self.failure(result)
        return result

    def mutate(self, *args: str, check: bool = True, timeout: float | None = None) -> CommandResult:
        """Run a command that changes the repository, honoring dry run."""
        if self.dry_run:
            argv = (self.binary, *args)
            self.planned.append(argv)
            logger.info(f"[dry-run] would run: {' '.join(argv)}")
            return CommandResult(argv=argv, stdout_lines=(), stderr_lines=(), exit_code=0, simulated=True)
        return self.run(*args, check=check, timeout=timeout)

    @staticmethod
    def failure(result: CommandResult) -> SubprocessFailedError:
        """Build the structured failure for a nonzero result."""
        summary = result.errors[0] if result.errors else f"exit code {result.exit_code}"
        return SubprocessFailedError(
            f"Git command failed: {' '.join(result.argv[1:])} ({summary})",
            argv=result.argv,
            exit_code=result.exit_code,
            stdout=result.stdout,
            stderr=result.stderr,
        )

    @staticmethod
    def _forward_stderr(result: CommandResult) -> None:
        for line in result.stderr_lines:
            if line.severity is LineSeverity.ERROR:
                logger.error(line.text, extra={"stream": "stderr"})
            elif line.severity is LineSeverity.WARNING:
                logger.warning(line.text, extra={"stream": "stderr"})
            else:
                logger.info(line.text, extra={"stream": "stderr"})
