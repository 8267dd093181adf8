import logging
import subprocess

import pytest

from ipsetctl.ipset import IPSet

LIST_OUTPUT = """Name: blocklist
Type: hash:net
Revision: 6
Header: family inet hashsize 1024 maxelem 65536 timeout 0
Size in memory: 600
References: 1
Number of entries: 2
Members:
10.0.0.0/8 timeout 100
192.168.1.0/24 timeout 200
"""


class FakeRunner:
    """Stands in for LocalRunner: records command lines, replays canned results."""

    def __init__(self, path="/usr/sbin/ipset"):
        self.path = path
        self.calls = []
        self.responses = {}
        self.closed = False
        self.on("--version", stdout="ipset v7.15, protocol version: 7\n")

    def on(self, *args, returncode=0, stdout="", stderr=""):
        self.responses[args] = (returncode, stdout, stderr)

    def which(self, name):
        return self.path

    def close(self):
        self.closed = True

    def run(self, args, input=None, combined=False):
        self.calls.append((list(args), input, combined))
        returncode, stdout, stderr = self.responses.get(tuple(args[1:]), (0, "", ""))
        if combined:
            return subprocess.CompletedProcess(args, returncode, stdout + stderr, None)
        return subprocess.CompletedProcess(args, returncode, stdout, stderr)

    @property
    def commands(self):
        """Command lines without the binary and without the version check."""
        return [c[0][1:] for c in self.calls if c[0][1:] != ["--version"]]


@pytest.fixture()
def runner():
    return FakeRunner()


@pytest.fixture()
def ipset(runner):
    return IPSet(runner=runner)


@pytest.fixture()
def list_output():
    return LIST_OUTPUT


@pytest.fixture(autouse=True)
def _check_no_errors(caplog):
    yield
    for when in ('setup', 'call'):
        messages = [x.message for x in caplog.get_records(when) if x.levelno >= logging.ERROR]
        if messages:
            pytest.fail(f'error messages encountered during testing: {messages!r}')
