"""Shared fixtures: real loopback listeners and fake collaborators."""

import socket
import subprocess
import sys
import textwrap
import time

import pytest

from portinv.models import ProcessInfo

LISTENER_SCRIPT = textwrap.dedent(
    """
    import socket

    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.bind(("127.0.0.1", 0))
    srv.listen(16)
    print(srv.getsockname()[1], flush=True)
    while True:
        conn, _ = srv.accept()
        conn.close()
    """
)


class FakeProber:
    """Prober double that returns canned states per port."""

    def __init__(self, states):
        self.states = dict(states)
        self.probed: list[int] = []

    def probe(self, port):
        self.probed.append(port)
        return self.states.get(port)


class FakeResolver:
    """Resolver double that returns a fresh ProcessInfo per call."""

    def __init__(self, owners=None):
        self.owners = dict(owners or {})
        self.resolved: list[int] = []

    def resolve(self, port):
        self.resolved.append(port)
        owner = self.owners.get(port)
        if owner is None:
            return None
        return ProcessInfo(*owner)


@pytest.fixture
def free_port() -> int:
    """A loopback port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def listening_socket():
    """An in-process listening socket; yields its port."""
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.bind(("127.0.0.1", 0))
    srv.listen(16)
    try:
        yield srv.getsockname()[1]
    finally:
        srv.close()


@pytest.fixture
def single_peer_socket():
    """
    A listener with room for exactly one more peer.

    Nothing ever calls accept(). A backlog of 1 lets the kernel queue two
    connections; one slot is taken up front, so the next handshake
    succeeds and any further SYN is dropped until it times out.
    """
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.bind(("127.0.0.1", 0))
    srv.listen(1)
    port = srv.getsockname()[1]
    occupant = socket.create_connection(("127.0.0.1", port), timeout=2.0)
    time.sleep(0.05)
    try:
        yield port
    finally:
        occupant.close()
        srv.close()


@pytest.fixture
def listener_process():
    """A child process listening on a loopback port; yields (process, port)."""
    proc = subprocess.Popen(
        [sys.executable, "-c", LISTENER_SCRIPT],
        stdout=subprocess.PIPE,
        text=True,
    )
    try:
        port = int(proc.stdout.readline().strip())
        yield proc, port
    finally:
        proc.terminate()
        proc.wait(timeout=5)
        proc.stdout.close()
