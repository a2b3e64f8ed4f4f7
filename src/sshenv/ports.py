"""Port lists, port specs and the SSH ``-L`` bind parameters built from them."""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .errors import ConfigurationError, InvalidPortError


MIN_PORT = 1
MAX_PORT = 65535
DEFAULT_HOST = "localhost"
# Derived local ports: remote port plus this offset (moves < 1024 out of the
# privileged range).
LOCAL_PORT_OFFSET = 2000
# ASCII digits only; str.isdigit() also accepts superscripts and other scripts.
PORT_TOKEN = re.compile(r"[0-9]+")


def process_port_string(ports: str) -> List[int]:
    """
    Split a comma-separated port list and validate every token.

    Args:
        ports: Ports like "80, 443,3306"

    Returns:
        List of port numbers in the given order

    Raises:
        InvalidPortError: If a token is not a number between 1 and 65535
    """
    result = []
    for token in str(ports).split(","):
        value = token.strip()
        if not PORT_TOKEN.fullmatch(value) or not MIN_PORT <= int(value) <= MAX_PORT:
            raise InvalidPortError(token.strip() or token)
        result.append(int(value))
    return result


def split_hosts(hosts: str) -> List[str]:
    return [host.strip() for host in str(hosts).split(",")]


def derived_local_port(remote_port: int) -> int:
    return remote_port + LOCAL_PORT_OFFSET


@dataclass(frozen=True)
class PortEntry:
    """One remote port with its (possibly not yet assigned) local port and host."""

    remote_port: int
    local_port: Optional[int] = None
    host: str = DEFAULT_HOST


@dataclass(frozen=True)
class PortSpec:
    """Validated, ordered set of ports to forward."""

    entries: Tuple[PortEntry, ...]
    explicit_local: bool = False

    @classmethod
    def from_strings(
        cls,
        remote: str,
        local: Optional[str] = None,
        hosts: Optional[str] = None,
    ) -> "PortSpec":
        """
        Build a port spec from comma-separated configuration strings.

        Entries at the same index of each list belong together.

        Args:
            remote: Remote ports, e.g. "80,443"
            local: Local ports, one per remote port (derived later when None)
            hosts: Hosts, one per remote port (default: localhost for all)

        Returns:
            PortSpec whose entries follow the order of ``remote``

        Raises:
            InvalidPortError: If a port token is not valid
            ConfigurationError: If list lengths differ or a local port repeats
        """
        remote_ports = process_port_string(remote)

        local_ports: List[Optional[int]] = [None] * len(remote_ports)
        if local is not None:
            local_ports = list(process_port_string(local))
            if len(local_ports) != len(remote_ports):
                raise ConfigurationError(
                    "Defined local and remote ports does not match, check settings "
                    f"({len(local_ports)} local, {len(remote_ports)} remote)"
                )
            seen = set()
            for port in local_ports:
                if port in seen:
                    raise ConfigurationError(f"Local port {port} is defined more than once")
                seen.add(port)

        host_names = [DEFAULT_HOST] * len(remote_ports)
        if hosts is not None:
            host_names = split_hosts(hosts)
            if len(host_names) != len(remote_ports):
                raise ConfigurationError(
                    "Defined host(s) does not match defined remote port(s), check settings "
                    f"({len(host_names)} host(s), {len(remote_ports)} remote)"
                )

        entries = tuple(
            PortEntry(remote_port=remote_port, local_port=local_port, host=host)
            for remote_port, local_port, host in zip(remote_ports, local_ports, host_names)
        )
        return cls(entries=entries, explicit_local=local is not None)


@dataclass(frozen=True)
class Binding:
    """A single ``-L local:host:remote`` forward."""

    local_port: int
    host: str
    remote_port: int

    def to_arg(self) -> str:
        return f"-L {self.local_port}:{self.host}:{self.remote_port}"


@dataclass(frozen=True)
class BindParameter:
    """Ordered bindings rendered as arguments for an ssh invocation."""

    bindings: Tuple[Binding, ...] = ()

    def __str__(self) -> str:
        return "".join(f"{binding.to_arg()} " for binding in self.bindings)

    def __len__(self) -> int:
        return len(self.bindings)

    def __iter__(self):
        return iter(self.bindings)
