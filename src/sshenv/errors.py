"""Exceptions raised while planning port forwards and resolving environments."""

from typing import Optional


class SshEnvError(Exception):
    """Base class for all sshenv errors."""


class ConfigurationError(SshEnvError):
    """Configuration is missing a value or holds inconsistent values."""


class InvalidPortError(ConfigurationError):
    """A port token is not a valid port number."""

    def __init__(self, token: str) -> None:
        super().__init__(f"{token} is not a valid port")
        self.token = token


class PortUnavailableError(SshEnvError):
    """An explicitly configured local port is already in use."""

    def __init__(self, port: int) -> None:
        super().__init__(
            f"System already listening to port {port}, try using a different port"
        )
        self.port = port


class PortRangeExhaustedError(SshEnvError):
    """No free local port was found while searching upwards from a start port."""

    def __init__(self, start_port: int, attempts: int) -> None:
        super().__init__(
            f"No free local port found starting at {start_port} "
            f"(tried {attempts} port(s))"
        )
        self.start_port = start_port
        self.attempts = attempts


class ProbeExecutionError(SshEnvError):
    """The local port probe command itself failed."""

    def __init__(self, exit_code: int, stderr: Optional[str] = None) -> None:
        super().__init__(
            f"Checking if port was used failed [{exit_code}] {(stderr or '').strip()}".rstrip()
        )
        self.exit_code = exit_code
        self.stderr = stderr
