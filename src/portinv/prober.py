"""TCP reachability and state probing against the loopback address."""

import logging
import socket
from collections.abc import Callable

from portinv.config import LOOPBACK_ADDRESS
from portinv.models import PortState

logger = logging.getLogger(__name__)

SocketFactory = Callable[[], socket.socket]


def _tcp_socket() -> socket.socket:
    return socket.socket(socket.AF_INET, socket.SOCK_STREAM)


class Prober:
    """
    Classifies a local port with two connection attempts.

    A first handshake decides reachability. While that connection is still
    held, a second independent handshake tells a listening socket (accepts
    any number of peers) from a single established stream (refuses a second
    peer). Every endpoint is closed on every exit path.
    """

    def __init__(
        self,
        address: str = LOOPBACK_ADDRESS,
        timeout: float | None = None,
        socket_factory: SocketFactory = _tcp_socket,
    ) -> None:
        """
        Initialize the Prober.

        Args:
            address: Target address. Always the loopback address in practice.
            timeout: Per-attempt connect timeout in seconds. None keeps the
                platform's blocking connect behaviour.
            socket_factory: Creates one fresh TCP endpoint per attempt.
        """
        self._address = address
        self._timeout = timeout
        self._socket_factory = socket_factory

    @property
    def address(self) -> str:
        """Get the probed address."""
        return self._address

    def _open_endpoint(self) -> socket.socket:
        sock = self._socket_factory()
        if self._timeout is not None:
            sock.settimeout(self._timeout)
        return sock

    def _connects(self, sock: socket.socket, port: int) -> bool:
        try:
            sock.connect((self._address, port))
        except OSError:
            return False
        return True

    def probe(self, port: int) -> PortState | None:
        """
        Probe a port and return its state.

        Returns None when no endpoint could be created for the first
        attempt; such a port is skipped rather than reported.
        """
        try:
            sock = self._open_endpoint()
        except OSError as exc:
            logger.debug("Skipping port %d: cannot create endpoint (%s)", port, exc)
            return None

        with sock:
            if not self._connects(sock, port):
                return PortState.UNREACHABLE
            return self._classify(port)

    def _classify(self, port: int) -> PortState:
        """Second handshake, made while the first connection is held."""
        try:
            sock = self._open_endpoint()
        except OSError as exc:
            logger.debug("Port %d: no endpoint for second probe (%s)", port, exc)
            return PortState.OPEN

        with sock:
            if self._connects(sock, port):
                return PortState.LISTENING
            return PortState.ESTABLISHED
