"""Reader for the kernel's line-oriented TCP connection tables.

Each table starts with one header line, followed by one record per socket::

    sl  local_address rem_address   st ...
     0: 0100007F:1F90 00000000:0000 0A ...

Addresses are hex encoded: the IPv4/IPv6 address in host byte order, then
the port after a colon.
"""

from collections.abc import Iterable, Iterator
from pathlib import Path

PROC_ROOT = Path("/proc")
TCP_TABLES = ("tcp", "tcp6")


def parse_local_port(line: str) -> int | None:
    """Return the local port of one table record, or None if malformed."""
    fields = line.split()
    if len(fields) < 2 or not fields[0].endswith(":"):
        return None
    _, sep, port_hex = fields[1].rpartition(":")
    if not sep:
        return None
    try:
        return int(port_hex, 16)
    except ValueError:
        return None


def iter_local_ports(lines: Iterable[str]) -> Iterator[int]:
    """Yield local ports from a table's lines, skipping the header line."""
    records = iter(lines)
    next(records, None)
    for line in records:
        port = parse_local_port(line)
        if port is not None:
            yield port


def table_holds_port(pid: int, port: int, root: Path = PROC_ROOT) -> bool:
    """
    Check whether a process's TCP tables list ``port`` as a local port.

    Raises OSError when a table cannot be opened, e.g. across a privilege
    boundary or when the process has exited.
    """
    for table in TCP_TABLES:
        path = root / str(pid) / "net" / table
        try:
            with path.open(encoding="ascii", errors="replace") as fp:
                if port in iter_local_ports(fp):
                    return True
        except FileNotFoundError:
            # tcp6 is absent when IPv6 is disabled
            if table == TCP_TABLES[0]:
                raise
    return False
