"""Text and JSON rendering of scan results."""

import json
from collections.abc import Iterable
from typing import TextIO

from portinv.models import UNKNOWN, PortProbeResult, ProcessInfo

COL_PORT = 8
COL_STATE = 12
COL_SERVICE = 20
COL_PROC = 30

TITLE = "Port Scanner Results"


def _row(port: str, state: str, service: str, process: str) -> str:
    return f"{port:<{COL_PORT}} {state:<{COL_STATE}} {service:<{COL_SERVICE}} {process}"


HEADER = _row("PORT", "STATE", "SERVICE", "PROCESS")
SEPARATOR = _row("-" * COL_PORT, "-" * (COL_STATE - 1), "-" * (COL_SERVICE - 1), "-" * COL_PROC)


def format_process(proc: ProcessInfo | None) -> str:
    """Format the PROCESS cell."""
    if proc is None:
        return UNKNOWN
    return f"{proc.name:<15}  PID: {proc.pid:<6}  User: {proc.owner:<8}".rstrip()


def format_row(result: PortProbeResult) -> str:
    """Format one reachable result as a report row."""
    return _row(
        str(result.port),
        result.state.value,
        result.service_name or UNKNOWN,
        format_process(result.owning_process),
    )


def render_report(results: Iterable[PortProbeResult]) -> list[str]:
    """Header, separator and one row per reachable result."""
    lines = [HEADER, SEPARATOR]
    lines.extend(format_row(r) for r in results if r.reachable)
    return lines


def write_report(results: Iterable[PortProbeResult], stream: TextIO) -> int:
    """
    Stream the text report, one row as soon as each port is scanned.

    Returns the number of data rows written.
    """
    stream.write(f"{HEADER}\n{SEPARATOR}\n")
    stream.flush()
    rows = 0
    for result in results:
        if not result.reachable:
            continue
        stream.write(format_row(result) + "\n")
        stream.flush()
        rows += 1
    return rows


def write_json(results: Iterable[PortProbeResult], stream: TextIO) -> int:
    """Write reachable results as a JSON list. Returns the record count."""
    payload = [r.to_dict() for r in results if r.reachable]
    json.dump(payload, stream, indent=2)
    stream.write("\n")
    return len(payload)
