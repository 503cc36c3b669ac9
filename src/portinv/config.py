"""Scan configuration for portinv."""

import os
from dataclasses import dataclass, field
from enum import Enum

from portinv.ports import FULL_RANGE, parse_ports

LOOPBACK_ADDRESS = "127.0.0.1"


class AttributionStrategy(Enum):
    """How the resolver decides that a process holds a port."""

    SOCKETS = "sockets"  # Sockets the process itself has open
    PROC_TCP = "proc-tcp"  # Per-process view of the namespace TCP table


class OutputFormat(Enum):
    """Report formats."""

    TEXT = "text"
    JSON = "json"


@dataclass(slots=True, frozen=True)
class ScanConfig:
    """
    Immutable settings for one scan run.

    The target address is always the loopback address. ``self_pid`` is
    captured once when the config is built and handed to the resolver so
    the scanner never attributes its own probe connections.
    """

    ports: tuple[int, ...] = field(default_factory=lambda: tuple(parse_ports(FULL_RANGE)))
    timeout: float | None = None  # None: platform default connect behaviour
    attribution: AttributionStrategy = AttributionStrategy.SOCKETS
    output_format: OutputFormat = OutputFormat.TEXT
    self_pid: int = field(default_factory=os.getpid)
    address: str = field(default=LOOPBACK_ADDRESS, init=False)

    def __post_init__(self) -> None:
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"Timeout must be positive, got {self.timeout}")

    @classmethod
    def from_port_spec(cls, spec: str = FULL_RANGE, **kwargs) -> "ScanConfig":
        """Build a config from a textual port spec such as "1-1024,8080"."""
        return cls(ports=tuple(parse_ports(spec)), **kwargs)
