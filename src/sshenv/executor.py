"""Shell command execution and console output used by the planners."""

import logging
import subprocess
from typing import NamedTuple, Optional

import click


logger = logging.getLogger(__name__)


class CommandResult(NamedTuple):
    """Outcome of a finished shell command."""

    exit_code: int
    stdout: str
    stderr: str


class ShellExecutor:
    """Runs shell command strings synchronously and captures their output."""

    def __init__(self, timeout: Optional[float] = None) -> None:
        """
        Initialize the executor.

        Args:
            timeout: Seconds to wait for a command before giving up (default: no limit)
        """
        self.timeout = timeout

    def run(self, command: str) -> CommandResult:
        """
        Run a command through the shell.

        Args:
            command: Complete shell command line (pipes and redirects allowed)

        Returns:
            CommandResult with exit code, stdout and stderr

        Raises:
            subprocess.TimeoutExpired: If the command exceeds the timeout
        """
        logger.debug(f"Executing: {command}")
        completed = subprocess.run(
            command,
            shell=True,
            capture_output=True,
            text=True,
            timeout=self.timeout,
        )
        logger.debug(f"Exit code {completed.returncode} for: {command}")
        return CommandResult(completed.returncode, completed.stdout, completed.stderr)


class ConsoleOutput:
    """Writes human-readable progress lines to the terminal."""

    def __init__(self, err: bool = True) -> None:
        self.err = err

    def writeln(self, line: str) -> None:
        click.echo(line, err=self.err)
