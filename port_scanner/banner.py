from __future__ import annotations

import logging
import re
import socket
from typing import Dict

log = logging.getLogger(__name__)

BANNER_BUFSIZE = 1024
BANNER_MAX_LEN = 100
DEFAULT_BANNER_TIMEOUT_S = 2.0

_HTTP_GET = b"GET / HTTP/1.0\r\nHost: test\r\n\r\n"

# Greeting sent right after connect. Ports missing here get nothing and
# we wait for a server-initiated banner (SSH, MySQL, ...).
GREETINGS: Dict[int, bytes] = {
    21: b"HELP\r\n",
    25: b"EHLO test\r\n",
    80: _HTTP_GET,
    8080: _HTTP_GET,
    110: b"USER test\r\n",
    143: b"A001 CAPABILITY\r\n",
}

_NON_PRINTABLE = re.compile(r"[^\x09\x0a\x0d\x20-\x7e]")


def clean_banner(data: bytes, max_len: int = BANNER_MAX_LEN) -> str:
    s = data.decode(errors="ignore")
    s = _NON_PRINTABLE.sub("", s)
    s = s.strip()
    s = s.replace("\r", "\\r").replace("\n", "\\n")
    if len(s) > max_len:
        return s[:max_len] + "..."
    return s


def grab_banner(sock: socket.socket, port: int, timeout_s: float = DEFAULT_BANNER_TIMEOUT_S) -> str:
    """
    Called only after connect() succeeds.

    Sends the greeting for `port` (if any) and reads one response chunk
    within `timeout_s`. Errors and timeouts give an empty string.
    """
    sock.settimeout(timeout_s)
    try:
        greeting = GREETINGS.get(port)
        if greeting:
            sock.sendall(greeting)
        data = sock.recv(BANNER_BUFSIZE)
    except OSError as e:
        log.debug("Port %d: no banner (%r)", port, e)
        return ""
    return clean_banner(data)
