"""Resolution of the version deployed on a remote environment."""

import logging
import os
import shlex
import tempfile
import threading
from typing import Callable, Dict, Optional

from .config import DEFAULT_SSH_PORT
from .ssh import quote_words, scp_options, split_target
from .vcs import parse_version_id as default_parse_version_id


logger = logging.getLogger(__name__)

# Raw marker used when the remote revision file cannot be fetched.
EMPTY_MARKER = "commit 0000000"
DEFAULT_CONNECT_TIMEOUT = 7


class VersionCache:
    """Raw revision markers per environment, filled lazily once per run."""

    def __init__(self) -> None:
        self._markers: Dict[str, str] = {}
        self._lock = threading.Lock()
        self._env_locks: Dict[str, threading.Lock] = {}

    def __contains__(self, env: str) -> bool:
        return env in self._markers

    def __len__(self) -> int:
        return len(self._markers)

    def get(self, env: str) -> Optional[str]:
        return self._markers.get(env)

    def get_or_fetch(self, env: str, fetch: Callable[[], str]) -> str:
        """
        Return the cached marker for ``env``, calling ``fetch`` on first use.

        Concurrent first requests for the same environment wait for a single
        fetch instead of starting their own.
        """
        if env in self._markers:
            logger.debug(f"Revision marker for {env} served from cache")
            return self._markers[env]

        with self._lock:
            env_lock = self._env_locks.setdefault(env, threading.Lock())

        with env_lock:
            if env not in self._markers:
                self._markers[env] = fetch()
            return self._markers[env]


class RemoteVersionResolver:
    """Fetches and caches the revision file of remote environments."""

    def __init__(
        self,
        config,
        executor,
        parse_version_id: Callable[[str], str] = default_parse_version_id,
        cache: Optional[VersionCache] = None,
        connect_timeout: int = DEFAULT_CONNECT_TIMEOUT,
    ) -> None:
        """
        Initialize the resolver.

        Args:
            config: Object with ``has(key)`` and ``resolve(key)``
            executor: Object with ``run(command) -> CommandResult``
            parse_version_id: Turns a raw marker into a version id
            cache: Shared cache for this run (default: a new one)
            connect_timeout: scp connect timeout in seconds
        """
        self.config = config
        self.executor = executor
        self.parse_version_id = parse_version_id
        self.cache = cache if cache is not None else VersionCache()
        self.connect_timeout = connect_timeout

    def revision_path(self, env: str) -> str:
        """Path of the revision file on the remote side of ``env``."""
        root = str(self.config.resolve(["envs", env, "root"])).rstrip("/")
        revfile = self.config.resolve(["vcs", "export", "revfile"])
        return f"{root}/{revfile}"

    def copy_command(self, env: str, destination: str) -> str:
        """
        Build the scp command fetching the revision file of ``env``.

        Options in ``envs.<env>.ssh`` (``-p 2222 deploy@host``) are passed
        to scp after the configured ``ssh_port``. A failing copy still exits
        zero, leaving ``destination`` empty.
        """
        target_options, target = split_target(self.config.resolve(["envs", env, "ssh"]))
        options = []
        if self.config.has(["envs", env, "ssh_port"]):
            port = int(self.config.resolve(["envs", env, "ssh_port"]))
            if port != DEFAULT_SSH_PORT:
                options += ["-P", str(port)]
        options += scp_options(target_options)

        option_args = f"{quote_words(options)} " if options else ""
        source = shlex.quote(f"{target}:{self.revision_path(env)}")
        return (
            f"scp -o ConnectTimeout={self.connect_timeout} {option_args}"
            f"{source} {shlex.quote(destination)} || true"
        )

    def fetch(self, env: str) -> str:
        """
        Copy the revision file of ``env`` and return its contents.

        Never raises for copy or read failures: an empty or unreadable file
        yields ``EMPTY_MARKER``.
        """
        fd, tmp = tempfile.mkstemp(prefix="z_rev_")
        os.close(fd)
        try:
            command = self.copy_command(env, tmp)
            result = self.executor.run(command)
            if result.exit_code != 0:
                logger.warning(f"Fetching revision of {env} exited with {result.exit_code}")
            with open(tmp, "r", encoding="utf-8") as f:
                marker = f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read revision of {env}: {e}")
            marker = ""
        finally:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass

        if not marker.strip():
            logger.info(f"No revision found for {env}, using {EMPTY_MARKER!r}")
            return EMPTY_MARKER
        return marker

    def version_at(self, env: str, verbose: bool = False) -> str:
        """
        Return the version deployed on an environment.

        The remote file is fetched at most once per environment for the
        lifetime of the cache.

        Args:
            env: Environment name (key under ``envs``)
            verbose: Return the raw marker instead of the parsed version id

        Returns:
            Raw marker or parsed version id

        Raises:
            ConfigurationError: If the environment or revfile is not configured
        """
        raw = self.cache.get_or_fetch(env, lambda: self.fetch(env))
        if verbose:
            return raw
        return self.parse_version_id(raw)
