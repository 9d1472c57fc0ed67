from __future__ import annotations

from typing import Iterable, List, Set

MIN_PORT = 1
MAX_PORT = 65535

# Expansion of the "common" keyword.
COMMON_PORTS = (
    21, 22, 23, 25, 53, 80, 110, 135, 139, 143, 443, 445, 993, 995,
    1723, 3306, 3389, 5432, 5900, 8080, 8443, 9200, 27017,
)


class PortSpecError(ValueError):
    def __init__(self, message: str, token: str = ""):
        super().__init__(message)
        self.token = token


def _to_port(text: str, token: str) -> int:
    text = text.strip()
    if not (text.isascii() and text.isdigit()):
        raise PortSpecError(f"Invalid port {text!r} in {token!r}", token)
    port = int(text)
    if port < MIN_PORT or port > MAX_PORT:
        raise PortSpecError(f"Port out of range ({MIN_PORT}-{MAX_PORT}): {token}", token)
    return port


def _expand_token(token: str) -> Iterable[int]:
    if token.lower() == "common":
        return COMMON_PORTS

    if "-" in token:
        start_s, end_s = token.split("-", 1)
        start = _to_port(start_s, token)
        end = _to_port(end_s, token)
        if start > end:
            raise PortSpecError(f"Invalid port range: {token}", token)
        return range(start, end + 1)

    return (_to_port(token, token),)


def parse_ports(spec: str) -> List[int]:
    """
    Parses a port specification string into a sorted list of unique ports.
    Supports:
    - Single ports: "80"
    - Ranges: "1-1024"
    - Comma-separated: "22,80,443"
    - The keyword "common" (see COMMON_PORTS)
    - Mixed: "1-1024,8080,common"
    """
    spec = spec.strip()
    if not spec:
        raise PortSpecError("Empty port spec")

    ports: Set[int] = set()
    for part in spec.split(","):
        part = part.strip()
        if not part:
            continue
        ports.update(_expand_token(part))

    if not ports:
        raise PortSpecError(f"No ports in spec: {spec!r}", spec)
    return sorted(ports)


def normalize_ports(ports: Iterable[int]) -> List[int]:
    """Validate an already-expanded port collection; dedupe and sort it."""
    unique: Set[int] = set()
    for p in ports:
        if isinstance(p, bool) or not isinstance(p, int):
            raise PortSpecError(f"Invalid port: {p!r}", str(p))
        if p < MIN_PORT or p > MAX_PORT:
            raise PortSpecError(f"Port out of range ({MIN_PORT}-{MAX_PORT}): {p}", str(p))
        unique.add(p)
    return sorted(unique)
