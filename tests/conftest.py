"""Shared fixtures: scripted executor and recording output."""

import pytest

from sshenv.executor import CommandResult


class FakeExecutor:
    """Returns scripted results and records every command."""

    def __init__(self, handler=None):
        self.commands = []
        self.handler = handler or (lambda command: CommandResult(0, "", ""))

    def run(self, command):
        self.commands.append(command)
        return self.handler(command)


class RecordingOutput:
    def __init__(self):
        self.lines = []

    def writeln(self, line):
        self.lines.append(line)


def busy_ports_handler(busy):
    """Executor handler reporting the given ports as listening."""

    def handler(command):
        for port in busy:
            if f"/[.:]{port}$/" in command:
                return CommandResult(0, f"tcp  0  0 0.0.0.0:{port}  0.0.0.0:*  LISTEN\n", "")
        return CommandResult(0, "", "")

    return handler


@pytest.fixture
def output():
    return RecordingOutput()


@pytest.fixture
def make_executor():
    return FakeExecutor


@pytest.fixture
def busy_executor():
    """Factory for an executor whose probe reports ``busy`` ports as used."""

    def factory(*busy):
        return FakeExecutor(busy_ports_handler(busy))

    return factory
