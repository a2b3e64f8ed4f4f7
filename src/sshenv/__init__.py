"""sshenv - SSH port forward planning and remote environment versions."""

__version__ = "0.1.0"

from .config import Config
from .errors import (
    ConfigurationError,
    InvalidPortError,
    PortRangeExhaustedError,
    PortUnavailableError,
    ProbeExecutionError,
    SshEnvError,
)
from .forward import PortForwardPlanner
from .ports import BindParameter, Binding, PortEntry, PortSpec, process_port_string
from .probe import LocalPortProbe
from .ssh import ssh_connectable
from .version import RemoteVersionResolver, VersionCache

__all__ = [
    "BindParameter",
    "Binding",
    "Config",
    "ConfigurationError",
    "InvalidPortError",
    "LocalPortProbe",
    "PortEntry",
    "PortForwardPlanner",
    "PortRangeExhaustedError",
    "PortSpec",
    "PortUnavailableError",
    "ProbeExecutionError",
    "RemoteVersionResolver",
    "SshEnvError",
    "VersionCache",
    "process_port_string",
    "ssh_connectable",
]
