"""Planning of SSH local port forwards."""

import concurrent.futures
import logging
import socket
from typing import List, Optional, Set

from .errors import InvalidPortError, PortRangeExhaustedError, PortUnavailableError
from .ports import (
    DEFAULT_HOST,
    MAX_PORT,
    BindParameter,
    Binding,
    PortSpec,
    derived_local_port,
    process_port_string,
)


logger = logging.getLogger(__name__)


class PortForwardPlanner:
    """Turns port forward configuration into ``-L`` bind parameters."""

    def __init__(
        self,
        probe,
        output,
        verbose: bool = False,
        explain: bool = False,
        max_attempts: Optional[int] = None,
        max_workers: int = 1,
        hostname: Optional[str] = None,
    ) -> None:
        """
        Initialize the planner.

        Args:
            probe: LocalPortProbe (or compatible ``is_free(port)`` object)
            output: Object with ``writeln(line)`` for progress lines
            verbose: Report every probe and every conflict
            explain: Dry-run mode, suppresses the forwarding summary
            max_attempts: Maximum probes per derived port (default: no limit)
            max_workers: Parallel probes for explicit local ports (default: 1)
            hostname: Name shown for the local side (default: this host)
        """
        self.probe = probe
        self.output = output
        self.verbose = verbose
        self.explain = explain
        self.max_attempts = max_attempts
        self.max_workers = max_workers
        self.hostname = hostname

    def plan(self, config) -> BindParameter:
        """
        Compute bind parameters from configuration.

        Single-pair mode is used when ``port_remote`` is set (with optional
        ``port_local`` and ``host``). Otherwise the comma-separated lists
        ``portforward.remote``, ``portforward.local`` and ``portforward.host``
        are used.

        Args:
            config: Object with ``has(key)`` and ``resolve(key)``

        Returns:
            BindParameter in configuration order

        Raises:
            ConfigurationError: If the configured lists are inconsistent
            PortUnavailableError: If an explicit local port is in use
            PortRangeExhaustedError: If no free port is found for a derived port
            ProbeExecutionError: If the probe command fails
        """
        if config.has("port_remote"):
            bindings = [self._plan_single(config)]
        elif config.has("portforward.remote"):
            spec = PortSpec.from_strings(
                config.resolve("portforward.remote"),
                local=config.resolve("portforward.local") if config.has("portforward.local") else None,
                hosts=config.resolve("portforward.host") if config.has("portforward.host") else None,
            )
            bindings = self.plan_spec(spec)
        else:
            logger.debug("No remote ports configured, nothing to forward")
            bindings = []

        self._report(bindings)
        return BindParameter(tuple(bindings))

    def _plan_single(self, config) -> Binding:
        remote_port = self._single_port(config.resolve("port_remote"))
        host = str(config.resolve("host")).strip() if config.has("host") else DEFAULT_HOST

        if config.has("port_local"):
            start = self._single_port(config.resolve("port_local"))
        else:
            start = derived_local_port(remote_port)

        local_port = self.find_free_port(start)
        return Binding(local_port=local_port, host=host, remote_port=remote_port)

    @staticmethod
    def _single_port(value) -> int:
        ports = process_port_string(str(value))
        if len(ports) != 1:
            raise InvalidPortError(str(value))
        return ports[0]

    def plan_spec(self, spec: PortSpec) -> List[Binding]:
        """
        Assign local ports for a validated spec.

        Derived ports are searched upwards from ``remote + 2000``, skipping
        ports already taken by earlier entries. Explicit ports are only
        checked, never reassigned.
        """
        if spec.explicit_local:
            self._check_explicit([entry.local_port for entry in spec.entries])
            return [
                Binding(local_port=entry.local_port, host=entry.host, remote_port=entry.remote_port)
                for entry in spec.entries
            ]

        claimed: Set[int] = set()
        bindings = []
        for entry in spec.entries:
            local_port = self.find_free_port(derived_local_port(entry.remote_port), claimed)
            claimed.add(local_port)
            bindings.append(
                Binding(local_port=local_port, host=entry.host, remote_port=entry.remote_port)
            )
        return bindings

    def find_free_port(self, start: int, claimed: Optional[Set[int]] = None) -> int:
        """
        Return the first free port at or above ``start``.

        Args:
            start: First candidate port
            claimed: Ports to skip without probing

        Returns:
            Free local port

        Raises:
            PortRangeExhaustedError: If ``max_attempts`` probes or the top of
                the port range are reached without finding a free port
        """
        claimed = claimed or set()
        port = start
        attempts = 0
        while True:
            if port > MAX_PORT or (
                self.max_attempts is not None and attempts >= self.max_attempts
            ):
                raise PortRangeExhaustedError(start, attempts)

            if port in claimed:
                port += 1
                continue

            if self.verbose:
                self.output.writeln(f"Checking if system is listening to port {port}")
            attempts += 1
            if self.probe.is_free(port):
                return port

            if self.verbose:
                self.output.writeln(f"Port {port} is used by system, trying next one")
            port += 1

    def _check_explicit(self, ports: List[int]) -> None:
        if self.max_workers > 1 and not self.explain and len(ports) > 1:
            if self.verbose:
                for port in ports:
                    self.output.writeln(f"Checking if system is listening to port {port}")
            with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = [executor.submit(self.probe.is_free, port) for port in ports]
                # input order, not completion order
                for port, future in zip(ports, futures):
                    if not future.result():
                        raise PortUnavailableError(port)
            return

        for port in ports:
            if self.verbose:
                self.output.writeln(f"Checking if system is listening to port {port}")
            if not self.probe.is_free(port):
                raise PortUnavailableError(port)

    def _report(self, bindings: List[Binding]) -> None:
        if self.explain or not bindings:
            return
        hostname = self.hostname or socket.gethostname()
        for binding in bindings:
            self.output.writeln(
                f"Forwarding  {binding.host}:{binding.remote_port} => "
                f"{hostname}:{binding.local_port}"
            )
            logger.info(f"Planned forward {binding.to_arg()}")
