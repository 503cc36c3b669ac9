"""Attribution of open local ports to the processes holding them."""

import logging
import pwd
from pathlib import Path

import psutil

from portinv.config import AttributionStrategy
from portinv.models import UNKNOWN, ProcessInfo
from portinv.proctable import PROC_ROOT, table_holds_port

logger = logging.getLogger(__name__)

# Errors from a single process record; they never stop the sweep
_SKIPPABLE = (
    psutil.NoSuchProcess,
    psutil.AccessDenied,
    psutil.ZombieProcess,
    OSError,
    ValueError,
)


def lookup_username(uid: int) -> str:
    """Resolve a uid through the user database, or "unknown"."""
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return UNKNOWN


class ProcessResolver:
    """
    Finds the process that holds a local TCP port.

    Processes are visited in the order ``psutil.pids()`` yields them
    (ascending on current psutil) and the first match wins, so when several
    processes share a port only one of them is reported. The scanner's own
    pid is always excluded. Unreadable records are skipped; ``resolve``
    never raises.
    """

    def __init__(
        self,
        self_pid: int,
        strategy: AttributionStrategy = AttributionStrategy.SOCKETS,
        proc_root: Path = PROC_ROOT,
    ) -> None:
        """
        Initialize the ProcessResolver.

        Args:
            self_pid: Pid of the scanning process, captured once at startup.
            strategy: How a process is matched against the port.
            proc_root: Mount point of the process filesystem.
        """
        self._self_pid = self_pid
        self._strategy = strategy
        self._proc_root = proc_root

    @property
    def self_pid(self) -> int:
        """Get the excluded scanner pid."""
        return self._self_pid

    @property
    def strategy(self) -> AttributionStrategy:
        """Get the matching strategy."""
        return self._strategy

    def resolve(self, port: int) -> ProcessInfo | None:
        """Return a fresh ProcessInfo for the first process holding ``port``."""
        try:
            pids = psutil.pids()
        except OSError as exc:
            logger.debug("Process registry unavailable: %s", exc)
            return None

        for pid in pids:
            if pid == self._self_pid:
                continue
            try:
                if not self._holds_port(pid, port):
                    continue
                return self._describe(pid)
            except _SKIPPABLE as exc:
                logger.debug("Skipping pid %d for port %d: %r", pid, port, exc)
                continue

        return None

    def _holds_port(self, pid: int, port: int) -> bool:
        if self._strategy is AttributionStrategy.PROC_TCP:
            return table_holds_port(pid, port, root=self._proc_root)

        connections = psutil.Process(pid).net_connections(kind="tcp")
        return any(conn.laddr and conn.laddr.port == port for conn in connections)

    def _describe(self, pid: int) -> ProcessInfo:
        proc = psutil.Process(pid)
        with proc.oneshot():
            name = proc.name()
            uid = proc.uids().real
        return ProcessInfo(name=name, pid=pid, owner=lookup_username(uid))
