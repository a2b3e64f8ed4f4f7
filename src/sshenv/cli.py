"""CLI interface for sshenv."""

import logging
import os
import sys
from typing import Optional

import click
import yaml

from .config import Config
from .errors import SshEnvError
from .executor import ConsoleOutput, ShellExecutor
from .forward import PortForwardPlanner
from .probe import LocalPortProbe
from .ssh import env_connectable
from .version import RemoteVersionResolver


DEFAULT_CONFIG = "z.yml"


def load_config(path: Optional[str]) -> Config:
    """
    Load the configuration file.

    A missing default file yields an empty configuration, a missing file
    given explicitly is an error.
    """
    if path is None:
        if not os.path.exists(DEFAULT_CONFIG):
            return Config()
        path = DEFAULT_CONFIG
    return Config.load(path)


def fail(error: Exception) -> None:
    click.echo(f"Error: {error}", err=True)
    sys.exit(1)


@click.group()
@click.option(
    "--config",
    "config_path",
    envvar="SSHENV_CONFIG",
    type=click.Path(),
    help=f"YAML configuration file (default: ./{DEFAULT_CONFIG} if present)",
)
@click.option("--debug", is_flag=True, help="Log executed commands to stderr")
@click.version_option()
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], debug: bool) -> None:
    """Plan SSH port forwards and inspect remote environments."""
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )
    try:
        ctx.obj = load_config(config_path)
    except (SshEnvError, OSError, yaml.YAMLError) as e:
        fail(e)


@main.command()
@click.option("--remote-port", type=int, help="Single remote port to forward")
@click.option("--local-port", type=int, help="Local port for --remote-port (default: remote + 2000)")
@click.option("--host", help="Host for --remote-port as seen from the SSH server (default: localhost)")
@click.option("--remote", "remote_ports", metavar="PORTS", help="Comma-separated remote ports")
@click.option("--local", "local_ports", metavar="PORTS", help="Comma-separated local ports")
@click.option("--hosts", metavar="HOSTS", help="Comma-separated hosts, one per remote port")
@click.option("--verbose", "-v", is_flag=True, help="Report every port check")
@click.option("--explain", is_flag=True, help="Print probe commands instead of running them")
@click.option(
    "--max-attempts",
    type=click.IntRange(min=1),
    help="Give up after this many ports per derived local port (default: no limit)",
)
@click.option(
    "--max-workers",
    type=click.IntRange(min=1),
    default=1,
    help="Parallel checks for explicit local ports (default: 1)",
)
@click.pass_obj
def forward(
    config: Config,
    remote_port: Optional[int],
    local_port: Optional[int],
    host: Optional[str],
    remote_ports: Optional[str],
    local_ports: Optional[str],
    hosts: Optional[str],
    verbose: bool,
    explain: bool,
    max_attempts: Optional[int],
    max_workers: int,
) -> None:
    """Print ssh -L arguments for the configured port forwards."""
    if remote_port is not None:
        config.set("port_remote", remote_port)
        if local_port is not None:
            config.set("port_local", local_port)
        if host:
            config.set("host", host)
    elif local_port is not None or host:
        raise click.UsageError("--local-port and --host require --remote-port")

    for key, value in (
        ("portforward.remote", remote_ports),
        ("portforward.local", local_ports),
        ("portforward.host", hosts),
    ):
        if value is not None:
            config.set(key, value)

    output = ConsoleOutput()
    planner = PortForwardPlanner(
        probe=LocalPortProbe(ShellExecutor(), output, explain=explain),
        output=output,
        verbose=verbose,
        explain=explain,
        max_attempts=max_attempts,
        max_workers=max_workers,
    )

    try:
        bind_param = planner.plan(config)
    except SshEnvError as e:
        fail(e)

    click.echo(str(bind_param).rstrip())


@main.command()
@click.argument("env")
@click.option("--raw", is_flag=True, help="Print the raw revision marker")
@click.pass_obj
def version(config: Config, env: str, raw: bool) -> None:
    """Print the version deployed on ENV."""
    resolver = RemoteVersionResolver(config, ShellExecutor())
    try:
        click.echo(resolver.version_at(env, verbose=raw).rstrip("\n"))
    except SshEnvError as e:
        fail(e)


@main.command()
@click.argument("env")
@click.pass_obj
def connectable(config: Config, env: str) -> None:
    """Check whether ENV accepts non-interactive SSH logins."""
    try:
        reachable = env_connectable(config, ShellExecutor(), env)
    except SshEnvError as e:
        fail(e)

    click.echo("yes" if reachable else "no")
    if not reachable:
        sys.exit(1)


if __name__ == "__main__":
    main()
