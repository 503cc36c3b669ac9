"""Port specification parsing."""

from portinv.models import MAX_PORT, MIN_PORT

FULL_RANGE = f"{MIN_PORT}-{MAX_PORT}"


def _parse_port(text: str) -> int:
    try:
        port = int(text)
    except ValueError:
        raise ValueError(f"Invalid port: {text!r}") from None
    if port < MIN_PORT or port > MAX_PORT:
        raise ValueError(f"Invalid port: {port}")
    return port


def parse_ports(spec: str) -> list[int]:
    """
    Parse a port specification string into a sorted list of ports.

    Supports single ports ("80"), ranges ("1-1024"), comma-separated
    lists ("22,80,443") and any mix of them ("1-1024,8080,9000-9005").
    Duplicates are dropped.
    """
    spec = spec.strip()
    if not spec:
        raise ValueError("Empty port spec")

    ports: set[int] = set()
    for part in spec.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            start_s, end_s = part.split("-", 1)
            start = _parse_port(start_s.strip())
            end = _parse_port(end_s.strip())
            if start > end:
                raise ValueError(f"Invalid port range: {part}")
            ports.update(range(start, end + 1))
        else:
            ports.add(_parse_port(part))

    if not ports:
        raise ValueError("Empty port spec")
    return sorted(ports)
