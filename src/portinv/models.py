"""Data models for portinv."""

from dataclasses import dataclass
from enum import Enum

UNKNOWN = "unknown"

MIN_PORT = 1
MAX_PORT = 65535


class PortState(Enum):
    """Coarse state of a probed port."""

    LISTENING = "LISTENING"
    ESTABLISHED = "ESTABLISHED"
    OPEN = "OPEN"
    UNREACHABLE = "UNREACHABLE"


@dataclass(slots=True, frozen=True)
class ProcessInfo:
    """Process that holds a local port."""

    name: str  # Short name, may be truncated by the kernel (comm)
    pid: int
    owner: str  # Username or "unknown"


@dataclass(slots=True, frozen=True)
class PortProbeResult:
    """Immutable outcome of scanning a single port."""

    port: int
    state: PortState
    service_name: str | None = None
    owning_process: ProcessInfo | None = None

    def __post_init__(self) -> None:
        if not MIN_PORT <= self.port <= MAX_PORT:
            raise ValueError(f"Invalid port: {self.port}")
        if self.state is PortState.UNREACHABLE and (
            self.service_name is not None or self.owning_process is not None
        ):
            raise ValueError("Unreachable ports carry no service or process")

    @property
    def reachable(self) -> bool:
        """Whether the first connection attempt succeeded."""
        return self.state is not PortState.UNREACHABLE

    def to_dict(self) -> dict:
        """Serialize to a JSON-ready record with "unknown" placeholders."""
        proc = self.owning_process
        return {
            "port": self.port,
            "state": self.state.value,
            "service": self.service_name or UNKNOWN,
            "process": {
                "name": proc.name,
                "pid": proc.pid,
                "owner": proc.owner,
            }
            if proc
            else UNKNOWN,
        }
