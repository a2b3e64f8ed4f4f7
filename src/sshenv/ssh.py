"""SSH reachability checks for remote environments."""

import logging
import os
import shlex
from typing import List, Optional, Tuple

from .config import DEFAULT_SSH_PORT
from .errors import ConfigurationError


logger = logging.getLogger(__name__)

SSH_PROBE_OPTIONS = "-o BatchMode=yes -o ConnectTimeout=1 -o StrictHostKeyChecking=no -Tq"


def split_target(target: str) -> Tuple[List[str], str]:
    """
    Split an ``envs.<env>.ssh`` value into ssh options and the destination.

    The destination is the last word, everything before it is passed on as
    options.

    Examples:
        "deploy@example.org" -> ([], "deploy@example.org")
        "-p 2222 deploy@example.org" -> (["-p", "2222"], "deploy@example.org")

    Raises:
        ConfigurationError: If the value is empty or cannot be split
    """
    try:
        words = shlex.split(str(target))
    except ValueError as e:
        raise ConfigurationError(f"Invalid ssh target {target!r}: {e}") from e
    if not words:
        raise ConfigurationError("Empty ssh target")
    return words[:-1], words[-1]


def scp_options(options: List[str]) -> List[str]:
    """Translate ssh options for scp, which takes the port as ``-P``."""
    return ["-P" if option == "-p" else option for option in options]


def quote_words(words: List[str]) -> str:
    # quoting disables the shell's tilde expansion, so expand here
    return " ".join(shlex.quote(os.path.expanduser(word)) for word in words)


def connectable_command(target: str, port: Optional[int] = None) -> str:
    """Build the non-interactive ssh command used to test a target."""
    target_options, destination = split_target(target)
    options = SSH_PROBE_OPTIONS
    if port:
        options += f" -p {int(port)}"
    if target_options:
        options += f" {quote_words(target_options)}"
    return f'ssh {options} {shlex.quote(destination)} "echo 1" 2>/dev/null'


def ssh_connectable(executor, target: str, port: Optional[int] = None) -> bool:
    """
    Check whether an SSH target accepts a non-interactive login.

    One attempt, no retries. Host keys are not checked and password prompts
    are disabled, so a target that needs interaction counts as unreachable.

    Args:
        executor: Object with ``run(command) -> CommandResult``
        target: SSH destination such as ``deploy@example.org``
        port: SSH port (default: ssh's own default)

    Returns:
        True if the remote command ran and printed output
    """
    result = executor.run(connectable_command(target, port))
    reachable = result.exit_code == 0 and bool(result.stdout.strip())
    logger.debug(f"SSH target {target} reachable: {reachable}")
    return reachable


def env_connectable(config, executor, env: str) -> bool:
    """Check reachability of the ``envs.<env>.ssh`` target."""
    target = config.resolve(["envs", env, "ssh"])
    port = config.get(["envs", env, "ssh_port"], DEFAULT_SSH_PORT)
    return ssh_connectable(executor, target, port)
