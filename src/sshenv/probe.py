"""Local TCP port availability checks."""

import logging

from .errors import ProbeExecutionError


logger = logging.getLogger(__name__)


class LocalPortProbe:
    """Checks whether the local system is listening on a TCP port."""

    def __init__(self, executor, output, explain: bool = False) -> None:
        """
        Initialize the probe.

        Args:
            executor: Object with ``run(command) -> CommandResult``
            output: Object with ``writeln(line)`` for explain mode
            explain: Print the probe command instead of running it
        """
        self.executor = executor
        self.output = output
        self.explain = explain

    @staticmethod
    def command(port: int) -> str:
        """
        Build the shell command listing listeners on ``port``.

        The local address column must end in ``.<port>`` or ``:<port>`` so
        port 80 does not match 8080 or an address like 10.0.0.80.
        """
        return (
            "netstat -lnt | "
            f"awk '$6 == \"LISTEN\" && $4 ~ /[.:]{int(port)}$/'"
        )

    def is_free(self, port: int) -> bool:
        """
        Check whether nothing listens on the port.

        On a match netstat prints something like
        ``tcp6  0  0 :::80  :::*  LISTEN``, so empty output means free.

        Args:
            port: Local TCP port

        Returns:
            True when the port is free (always True in explain mode)

        Raises:
            ProbeExecutionError: If the probe command exits non-zero
        """
        cmd = self.command(port)

        if self.explain:
            self.output.writeln(f"# Check if port {port} is used")
            self.output.writeln(f"( {cmd.strip()} );")
            return True

        result = self.executor.run(cmd)
        if result.exit_code != 0:
            raise ProbeExecutionError(result.exit_code, result.stderr)

        used = bool(result.stdout.strip())
        logger.debug(f"Port {port} is {'used' if used else 'free'}")
        return not used
