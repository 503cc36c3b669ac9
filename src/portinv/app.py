"""portinv - Interactive Textual front end."""

import time
from enum import Enum
from queue import Empty, Queue

from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import DataTable, Footer, Static

from portinv.models import UNKNOWN, PortProbeResult, PortState
from portinv.report import format_process
from portinv.scanner import PortScanner, ScanUpdate, ScanWorker


class SortKey(Enum):
    """Sort keys for the results table."""

    PORT = "port"
    STATE = "state"
    SERVICE = "service"
    PID = "pid"


def format_progress(scanned: int, total: int) -> str:
    """Format scan progress as "scanned/total (pct%)"."""
    percent = (scanned / total * 100) if total else 100.0
    return f"{scanned}/{total} ({percent:5.1f}%)"


class ScanStats(Static):
    """Header widget showing scan progress."""

    DEFAULT_CSS = """
    ScanStats {
        height: auto;
        min-height: 3;
        padding: 0 1;
        background: $surface;
    }
    """

    def __init__(self, address: str, *args, **kwargs) -> None:
        """Initialize ScanStats."""
        super().__init__(*args, **kwargs)
        self._address = address
        self._scanned: int = 0
        self._total: int = 0
        self._open: int = 0
        self._finished: bool = False
        self._started: float = time.monotonic()

    def on_mount(self) -> None:
        self.update(self._stats_text())

    def update_progress(self, update: ScanUpdate) -> None:
        """Update counters from a worker message."""
        self._scanned = update.scanned
        self._total = update.total
        self._finished = update.finished
        if update.result is not None and update.result.reachable:
            self._open += 1
        self.update(self._stats_text())

    def _stats_text(self) -> str:
        elapsed = time.monotonic() - self._started
        status = "[green]done[/green]" if self._finished else "[yellow]scanning[/yellow]"
        return (
            f"Target: {self._address}  Status: {status}\n"
            f"Scanned: {format_progress(self._scanned, self._total)}  "
            f"Open: {self._open}  Elapsed: {elapsed:.1f}s"
        )


class ResultTable(Container):
    """Container for the open port table."""

    DEFAULT_CSS = """
    ResultTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize ResultTable."""
        super().__init__(*args, **kwargs)
        self._results: dict[int, PortProbeResult] = {}
        self._sort_key: SortKey = SortKey.PORT

    @property
    def sort_key(self) -> SortKey:
        """Get current sort key."""
        return self._sort_key

    @property
    def ports(self) -> list[int]:
        """Ports currently shown."""
        return list(self._results)

    def cycle_sort(self) -> SortKey:
        """Cycle to the next sort key, redraw and return it."""
        keys = list(SortKey)
        self._sort_key = keys[(keys.index(self._sort_key) + 1) % len(keys)]
        self._redraw()
        return self._sort_key

    def compose(self) -> ComposeResult:
        """Compose the results table."""
        yield DataTable(id="result-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#result-table", DataTable)
        table.cursor_type = "row"

        table.add_column("PORT", key="port", width=8)
        table.add_column("STATE", key="state", width=12)
        table.add_column("SERVICE", key="service", width=20)
        table.add_column("PROCESS", key="process")

    def add_result(self, result: PortProbeResult) -> None:
        """Show a reachable result; unreachable ones are ignored."""
        if not result.reachable:
            return
        table = self.query_one("#result-table", DataTable)
        if result.port in self._results:
            self._update_row(table, result)
        else:
            self._add_row(table, result)
        self._results[result.port] = result

    def _sorted_results(self) -> list[PortProbeResult]:
        states = list(PortState)
        key_func = {
            SortKey.PORT: lambda r: r.port,
            SortKey.STATE: lambda r: (states.index(r.state), r.port),
            SortKey.SERVICE: lambda r: ((r.service_name or UNKNOWN).lower(), r.port),
            SortKey.PID: lambda r: (r.owning_process.pid if r.owning_process else -1, r.port),
        }
        return sorted(self._results.values(), key=key_func[self._sort_key])

    def _redraw(self) -> None:
        table = self.query_one("#result-table", DataTable)
        table.clear()
        for result in self._sorted_results():
            self._add_row(table, result)

    def _update_row(self, table: DataTable, result: PortProbeResult) -> None:
        try:
            row_key = str(result.port)
            table.update_cell(row_key, "state", result.state.value)
            table.update_cell(row_key, "service", result.service_name or UNKNOWN)
            table.update_cell(row_key, "process", format_process(result.owning_process))
        except Exception:
            pass  # Row may have been removed

    def _add_row(self, table: DataTable, result: PortProbeResult) -> None:
        try:
            table.add_row(
                str(result.port),
                result.state.value,
                result.service_name or UNKNOWN,
                format_process(result.owning_process),
                key=str(result.port),
            )
        except Exception:
            pass  # Row may already exist


class PortInventoryApp(App):
    """Main portinv application."""

    TITLE = "portinv"
    SUB_TITLE = "Localhost TCP Port Inventory"

    CSS = """
    Screen {
        layout: vertical;
    }

    #scan-stats {
        dock: top;
        height: auto;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("f6", "sort", "Sort"),
    ]

    def __init__(self, scanner: PortScanner) -> None:
        """Initialize the PortInventoryApp."""
        super().__init__()
        self._scanner = scanner
        self._update_queue: Queue[ScanUpdate] = Queue()
        self._worker = ScanWorker(scanner, self._update_queue)
        self._finished = False

    @property
    def finished(self) -> bool:
        """Whether the worker reported the end of the scan."""
        return self._finished

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield ScanStats(self._scanner.config.address, id="scan-stats")
        yield ResultTable()
        yield Footer()

    def on_mount(self) -> None:
        """Start the scan worker when the app is mounted."""
        self._worker.start()
        self.set_interval(0.2, self._check_for_updates)

    def _check_for_updates(self) -> None:
        """Drain the queue and apply every update in order."""
        while True:
            try:
                update = self._update_queue.get_nowait()
            except Empty:
                break
            self._apply_update(update)

    def _apply_update(self, update: ScanUpdate) -> None:
        # A widget error must never take the app down
        try:
            self.query_one("#scan-stats", ScanStats).update_progress(update)
        except Exception:
            pass

        if update.result is not None:
            try:
                self.query_one(ResultTable).add_result(update.result)
            except Exception:
                pass

        if update.finished:
            self._finished = True
            self.notify("Scan complete")

    def action_sort(self) -> None:
        """Handle sort action - cycle through sort keys."""
        try:
            new_sort_key = self.query_one(ResultTable).cycle_sort()
            self.notify(f"Sort: {new_sort_key.value.upper()}")
        except Exception:
            pass

    def action_quit(self) -> None:
        """Stop the scan worker and exit."""
        self._worker.stop(timeout=0.5)
        self.exit()
