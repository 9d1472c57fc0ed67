from __future__ import annotations

import errno
import socket
import time
from typing import Optional, Tuple

from .banner import DEFAULT_BANNER_TIMEOUT_S, grab_banner
from .models import PortStatus, ProbeOutcome
from .services import service_name

# POSIX ECONNREFUSED + Windows WSAECONNREFUSED
_REFUSED_ERRNOS = {errno.ECONNREFUSED, 10061}


def classify_error(exc: BaseException) -> PortStatus:
    """
    Map a failed connect to a port status.

    Only an explicit refusal is CLOSED. Timeouts and every other failure
    (unreachable, resolution errors, ...) are FILTERED.
    """
    if isinstance(exc, socket.timeout):
        return PortStatus.FILTERED
    if isinstance(exc, ConnectionRefusedError):
        return PortStatus.CLOSED
    if isinstance(exc, OSError) and exc.errno in _REFUSED_ERRNOS:
        return PortStatus.CLOSED
    return PortStatus.FILTERED


def _error_detail(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _connect(sock: socket.socket, address: str, port: int, timeout_s: float) -> Tuple[PortStatus, int, Optional[str]]:
    start = time.perf_counter()
    try:
        sock.settimeout(timeout_s)
        sock.connect((address, port))
    except OSError as e:
        return classify_error(e), _elapsed_ms(start), _error_detail(e)
    return PortStatus.OPEN, _elapsed_ms(start), None


def probe_port(
    address: str,
    port: int,
    timeout_s: float,
    banner_timeout_s: float = DEFAULT_BANNER_TIMEOUT_S,
    grab_banners: bool = True,
) -> ProbeOutcome:
    """
    One connect attempt to address:port, plus a banner read when open.
    Never raises for network failures; the socket is always closed.
    """
    sock: Optional[socket.socket] = None
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        status, latency_ms, error = _connect(sock, address, port, timeout_s)
        if status is not PortStatus.OPEN:
            return ProbeOutcome(port=port, status=status, latency_ms=latency_ms, error_detail=error)

        banner = grab_banner(sock, port, banner_timeout_s) if grab_banners else ""
        return ProbeOutcome(
            port=port,
            status=PortStatus.OPEN,
            service_name=service_name(port),
            banner=banner or None,
            latency_ms=latency_ms,
        )
    except OSError as e:
        # socket() itself failed, e.g. out of file descriptors
        return ProbeOutcome(
            port=port,
            status=PortStatus.FILTERED,
            error_detail=_error_detail(e),
        )
    finally:
        if sock is not None:
            sock.close()
