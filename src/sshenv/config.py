"""Key/value configuration loaded from a YAML file."""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import yaml

from .errors import ConfigurationError


logger = logging.getLogger(__name__)

Key = Union[str, Sequence[str]]

DEFAULT_SSH_PORT = 22
DEFAULTS_FILE_OPTION = " --defaults-extra-file="


def split_key(key: Key) -> List[str]:
    """
    Turn a dotted key or a path of segments into a list of segments.

    Examples:
        "portforward.local" -> ["portforward", "local"]
        ["envs", "production", "root"] -> ["envs", "production", "root"]
    """
    if isinstance(key, str):
        return key.split(".")
    return [str(segment) for segment in key]


def normalize_envs(envs: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply environment defaults and value normalization.

    Each environment gets ``ssh_port`` 22 and ``db_defaults_file`` None when
    unset. ``root`` always ends with a slash and ``db_defaults_file`` is
    rendered as a mysql client option.

    Args:
        envs: Mapping of environment name to its settings

    Returns:
        New mapping with normalized settings
    """
    normalized = {}
    for name, settings in (envs or {}).items():
        if not isinstance(settings, dict):
            raise ConfigurationError(f"Environment '{name}' must be a mapping")
        env = dict(settings)
        env.setdefault("ssh_port", DEFAULT_SSH_PORT)

        root = env.get("root")
        if isinstance(root, str) and not root.endswith("/"):
            env["root"] = root + "/"

        defaults_file = env.get("db_defaults_file")
        if not isinstance(defaults_file, str):
            env["db_defaults_file"] = None
        elif not defaults_file.startswith(DEFAULTS_FILE_OPTION):
            env["db_defaults_file"] = f"{DEFAULTS_FILE_OPTION}{defaults_file} "

        normalized[str(name)] = env
    return normalized


class Config:
    """Nested configuration values addressed by dotted keys or segment paths."""

    def __init__(self, values: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize configuration.

        Args:
            values: Nested mapping of settings; ``envs`` is normalized
        """
        self.values: Dict[str, Any] = copy.deepcopy(values) if values else {}
        if "envs" in self.values:
            self.values["envs"] = normalize_envs(self.values["envs"])

    @classmethod
    def load(cls, path: str) -> "Config":
        """
        Load configuration from a YAML file.

        Args:
            path: Path to the YAML file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If the file does not exist
            ConfigurationError: If the document is not a mapping
        """
        config_path = Path(path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(config_path, "r") as f:
            document = yaml.safe_load(f)

        if document is None:
            document = {}
        if not isinstance(document, dict):
            raise ConfigurationError(
                f"Configuration file {path} must contain a mapping at the top level"
            )

        logger.debug(f"Loaded configuration from {config_path}")
        return cls(document)

    def _lookup(self, key: Key):
        node: Any = self.values
        for segment in split_key(key):
            if not isinstance(node, dict) or segment not in node:
                return False, None
            node = node[segment]
        return True, node

    def has(self, key: Key) -> bool:
        """Whether a value is set (and not null) for the key."""
        found, value = self._lookup(key)
        return found and value is not None

    def resolve(self, key: Key) -> Any:
        """
        Return the value for a key.

        Raises:
            ConfigurationError: If no value is set for the key
        """
        found, value = self._lookup(key)
        if not found or value is None:
            raise ConfigurationError(f"Missing configuration value: {'.'.join(split_key(key))}")
        return value

    def get(self, key: Key, default: Any = None) -> Any:
        found, value = self._lookup(key)
        return value if found and value is not None else default

    def set(self, key: Key, value: Any) -> None:
        """Set a value, creating intermediate mappings as needed."""
        segments = split_key(key)
        node = self.values
        for segment in segments[:-1]:
            child = node.get(segment)
            if not isinstance(child, dict):
                child = {}
                node[segment] = child
            node = child
        node[segments[-1]] = value
        if segments[0] == "envs":
            self.values["envs"] = normalize_envs(self.values["envs"])
