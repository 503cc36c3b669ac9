"""Sequential scan driver for portinv."""

import logging
import threading
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from queue import Queue

from portinv.config import ScanConfig
from portinv.models import PortProbeResult, PortState
from portinv.prober import Prober
from portinv.resolver import ProcessResolver
from portinv.services import lookup_service

logger = logging.getLogger(__name__)


class PortScanner:
    """
    Composes the prober, service lookup and process resolver per port.

    Ports are scanned one at a time in ascending order. There is no
    cancellation: a scan runs to completion or the process is terminated.
    """

    def __init__(
        self,
        config: ScanConfig,
        prober: Prober | None = None,
        resolver: ProcessResolver | None = None,
        service_lookup: Callable[[int], str] = lookup_service,
    ) -> None:
        self._config = config
        self._prober = prober or Prober(address=config.address, timeout=config.timeout)
        self._resolver = resolver or ProcessResolver(
            self_pid=config.self_pid,
            strategy=config.attribution,
        )
        self._service_lookup = service_lookup

    @property
    def config(self) -> ScanConfig:
        """Get the scan configuration."""
        return self._config

    def scan_port(self, port: int) -> PortProbeResult | None:
        """Scan one port. Returns None when the port had to be skipped."""
        state = self._prober.probe(port)
        if state is None:
            return None
        if state is PortState.UNREACHABLE:
            return PortProbeResult(port=port, state=state)

        service = self._service_lookup(port)
        process = self._resolver.resolve(port)
        logger.debug("Port %d %s service=%s process=%s", port, state.value, service, process)
        return PortProbeResult(
            port=port,
            state=state,
            service_name=service,
            owning_process=process,
        )

    def scan(self, ports: Iterable[int] | None = None) -> Iterator[PortProbeResult]:
        """Yield a result for every probed port in ascending order."""
        for port in sorted(self._config.ports if ports is None else ports):
            result = self.scan_port(port)
            if result is not None:
                yield result

    def open_ports(self, ports: Iterable[int] | None = None) -> Iterator[PortProbeResult]:
        """Yield only the reachable results."""
        return (result for result in self.scan(ports) if result.reachable)


@dataclass(slots=True)
class ScanUpdate:
    """Progress message pushed by the ScanWorker after each port."""

    scanned: int
    total: int
    result: PortProbeResult | None
    finished: bool = False


class ScanWorker:
    """
    Runs a sequential scan in a background thread for the terminal UI.

    Pushes one ScanUpdate per port to a thread-safe Queue, then a final
    update with ``finished`` set. A stop request is honoured between ports.
    """

    def __init__(self, scanner: PortScanner, update_queue: Queue[ScanUpdate]) -> None:
        """
        Initialize the ScanWorker.

        Args:
            scanner: Scanner whose configured ports are walked.
            update_queue: Thread-safe queue to push updates to.
        """
        self._scanner = scanner
        self._queue = update_queue
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        """Check if the worker thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the scan thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._scan_loop,
            daemon=True,
            name="ScanWorker",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Ask the scan thread to stop after the current port.

        Args:
            timeout: How long to wait for the thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def _scan_loop(self) -> None:
        ports = sorted(self._scanner.config.ports)
        total = len(ports)
        scanned = 0
        for port in ports:
            if self._stop_event.is_set():
                break
            result = self._scanner.scan_port(port)
            scanned += 1
            self._queue.put(ScanUpdate(scanned=scanned, total=total, result=result))
        self._queue.put(ScanUpdate(scanned=scanned, total=total, result=None, finished=True))
