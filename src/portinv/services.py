"""Well-known service name lookup."""

import socket

from portinv.models import UNKNOWN


def lookup_service(port: int, protocol: str = "tcp") -> str:
    """Return the registered service name for a port, or "unknown"."""
    try:
        return socket.getservbyport(port, protocol)
    except (OSError, OverflowError):
        return UNKNOWN
