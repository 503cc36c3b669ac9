"""Command line entry point for portinv."""

import argparse
import logging
import sys

from portinv.config import AttributionStrategy, OutputFormat, ScanConfig
from portinv.ports import FULL_RANGE
from portinv.report import TITLE, write_json, write_report
from portinv.scanner import PortScanner

logger = logging.getLogger("portinv")


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Attach a single stderr handler to the package logger."""
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    # Prevent duplicate handlers when main() runs more than once
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    return logger


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="portinv",
        description="Inventory open TCP ports on 127.0.0.1 and the processes holding them.",
    )
    p.add_argument(
        "--ports",
        default=FULL_RANGE,
        help=f"Port spec: 1-1024 or 22,80,443 or mixed (default: {FULL_RANGE})",
    )
    p.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Connect timeout in seconds (default: platform connect behaviour)",
    )
    p.add_argument(
        "--attribution",
        choices=[s.value for s in AttributionStrategy],
        default=AttributionStrategy.SOCKETS.value,
        help="How open ports are matched to processes (default: sockets)",
    )
    p.add_argument(
        "--format",
        choices=[f.value for f in OutputFormat],
        default=OutputFormat.TEXT.value,
        help="Report format (default: text)",
    )
    p.add_argument("--tui", action="store_true", help="Show results in an interactive terminal UI")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging on stderr")
    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = ScanConfig.from_port_spec(
            args.ports,
            timeout=args.timeout,
            attribution=AttributionStrategy(args.attribution),
            output_format=OutputFormat(args.format),
        )
    except ValueError as exc:
        parser.error(str(exc))

    scanner = PortScanner(config)

    if args.tui:
        from portinv.app import PortInventoryApp

        PortInventoryApp(scanner).run()
        return 0

    if config.output_format is OutputFormat.JSON:
        write_json(scanner.scan(), sys.stdout)
        return 0

    ports = config.ports
    print(f"Scanning {config.address} ports {ports[0]} to {ports[-1]}...\n")
    print(TITLE)
    write_report(scanner.scan(), sys.stdout)
    return 0
