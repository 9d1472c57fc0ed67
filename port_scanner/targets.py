from __future__ import annotations

import ipaddress
import logging
import socket

log = logging.getLogger(__name__)


class TargetError(ValueError):
    pass


def resolve_target(target: str) -> str:
    """
    Supports:
      - IPv4 address: "172.20.0.10" (returned as-is)
      - Hostname: "webapp" (resolves to one IPv4 address)
    """
    target = target.strip()
    if not target:
        raise TargetError("Empty target")

    try:
        ip = ipaddress.ip_address(target)
    except ValueError:
        pass
    else:
        if ip.version != 4:
            raise TargetError(f"Only IPv4 targets are supported: {target}")
        return str(ip)

    try:
        resolved = socket.gethostbyname(target)
    except OSError as e:
        raise TargetError(f"Could not resolve target '{target}': {e}") from e
    log.debug("Resolved %s -> %s", target, resolved)
    return resolved
