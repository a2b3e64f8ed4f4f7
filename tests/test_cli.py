"""Tests for the command line interface."""

from unittest.mock import patch

from click.testing import CliRunner

from sshenv.cli import main
from sshenv.executor import CommandResult


CONFIG = """
portforward:
  remote: "80,443"
  local: "8080,8443"
envs:
  prod:
    ssh: deploy@prod.example.org
    root: /var/www
vcs:
  export:
    revfile: .z.rev
"""


def write_config(tmp_path, text=CONFIG):
    path = tmp_path / "z.yml"
    path.write_text(text)
    return str(path)


@patch("sshenv.cli.ShellExecutor")
def test_forward_from_config(mock_executor_class, tmp_path, busy_executor):
    """Test the bind parameters are printed to stdout."""
    mock_executor_class.return_value = busy_executor()
    runner = CliRunner()

    result = runner.invoke(main, ["--config", write_config(tmp_path), "forward"])

    assert result.exit_code == 0
    assert result.stdout.strip() == "-L 8080:localhost:80 -L 8443:localhost:443"


@patch("sshenv.cli.ShellExecutor")
def test_forward_single_pair(mock_executor_class, tmp_path, busy_executor):
    """Test options select single-pair mode."""
    mock_executor_class.return_value = busy_executor(5306)
    runner = CliRunner()

    result = runner.invoke(
        main,
        ["--config", write_config(tmp_path), "forward", "--remote-port", "3306", "--host", "db1"],
    )

    assert result.exit_code == 0
    assert result.stdout.strip() == "-L 5307:db1:3306"


@patch("sshenv.cli.ShellExecutor")
def test_forward_busy_explicit_port(mock_executor_class, tmp_path, busy_executor):
    """Test planning errors exit with status 1."""
    mock_executor_class.return_value = busy_executor(8080)
    runner = CliRunner()

    result = runner.invoke(main, ["--config", write_config(tmp_path), "forward"])

    assert result.exit_code == 1
    assert "System already listening to port 8080" in result.output


@patch("sshenv.cli.ShellExecutor")
def test_forward_explain(mock_executor_class, tmp_path, busy_executor):
    """Test explain mode runs nothing."""
    executor = busy_executor()
    mock_executor_class.return_value = executor
    runner = CliRunner()

    result = runner.invoke(
        main, ["--config", write_config(tmp_path), "forward", "--remote", "22", "--local", "2222", "--explain"]
    )

    assert result.exit_code == 0
    assert executor.commands == []
    assert "# Check if port 2222 is used" in result.output


def test_forward_local_port_requires_remote_port(tmp_path):
    """Test --local-port alone is a usage error."""
    runner = CliRunner()

    result = runner.invoke(main, ["--config", write_config(tmp_path), "forward", "--local-port", "9000"])

    assert result.exit_code == 2


@patch("sshenv.cli.ShellExecutor")
def test_version_sentinel(mock_executor_class, tmp_path, make_executor):
    """Test an unreachable environment prints the sentinel version."""
    mock_executor_class.return_value = make_executor(lambda command: CommandResult(0, "", ""))
    runner = CliRunner()

    result = runner.invoke(main, ["--config", write_config(tmp_path), "version", "prod", "--raw"])

    assert result.exit_code == 0
    assert result.stdout.strip() == "commit 0000000"


@patch("sshenv.cli.ShellExecutor")
def test_connectable(mock_executor_class, tmp_path, make_executor):
    """Test reachability output and exit status."""
    mock_executor_class.return_value = make_executor(lambda command: CommandResult(255, "", ""))
    runner = CliRunner()

    result = runner.invoke(main, ["--config", write_config(tmp_path), "connectable", "prod"])

    assert result.exit_code == 1
    assert result.stdout.strip() == "no"


def test_missing_config_file(tmp_path):
    """Test an explicit but missing config file is an error."""
    runner = CliRunner()

    result = runner.invoke(main, ["--config", str(tmp_path / "nope.yml"), "forward"])

    assert result.exit_code == 1
    assert "Configuration file not found" in result.output
