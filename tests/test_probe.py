import errno
import socket

import pytest

from conftest import http_responder, ssh_responder
from port_scanner import banner, probe
from port_scanner.models import PortStatus
from port_scanner.probe import classify_error, probe_port


@pytest.mark.parametrize("exc, status", [
    (socket.timeout("timed out"), PortStatus.FILTERED),
    (ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused"), PortStatus.CLOSED),
    (OSError(10061, "No connection could be made"), PortStatus.CLOSED),
    (OSError(errno.EHOSTUNREACH, "No route to host"), PortStatus.FILTERED),
    (OSError(errno.ENETUNREACH, "Network is unreachable"), PortStatus.FILTERED),
    (socket.gaierror(-2, "Name or service not known"), PortStatus.FILTERED),
    (ValueError("weird"), PortStatus.FILTERED),
])
def test_classify_error(exc, status):
    assert classify_error(exc) is status


class FakeSocket:
    def __init__(self, connect_error=None, data=b""):
        self.connect_error = connect_error
        self.data = data
        self.closed = False
        self.recv_calls = 0

    def settimeout(self, t):
        pass

    def connect(self, addr):
        if self.connect_error:
            raise self.connect_error

    def sendall(self, data):
        pass

    def recv(self, n):
        self.recv_calls += 1
        return self.data

    def close(self):
        self.closed = True


def _patch_socket(monkeypatch, fake):
    monkeypatch.setattr(probe.socket, "socket", lambda *a, **kw: fake)


def test_timeout_is_filtered_and_socket_closed(monkeypatch):
    fake = FakeSocket(connect_error=socket.timeout("timed out"))
    _patch_socket(monkeypatch, fake)

    r = probe_port("192.0.2.1", 443, timeout_s=0.01)

    assert r.status is PortStatus.FILTERED
    assert r.error_detail == "timed out"
    assert r.banner is None and r.service_name is None
    assert fake.closed


def test_unreachable_is_filtered(monkeypatch):
    fake = FakeSocket(connect_error=OSError(errno.EHOSTUNREACH, "No route to host"))
    _patch_socket(monkeypatch, fake)

    r = probe_port("192.0.2.1", 22, timeout_s=0.01)

    assert r.status is PortStatus.FILTERED
    assert "No route to host" in r.error_detail
    assert fake.closed


def test_open_socket_closed_after_banner(monkeypatch):
    fake = FakeSocket(data=b"SSH-2.0-test\r\n")
    _patch_socket(monkeypatch, fake)

    r = probe_port("192.0.2.1", 22, timeout_s=0.01)

    assert r.status is PortStatus.OPEN
    assert r.service_name == "ssh"
    assert r.banner == "SSH-2.0-test"
    assert r.error_detail is None
    assert fake.closed


def test_banner_grab_can_be_disabled(monkeypatch):
    fake = FakeSocket(data=b"SSH-2.0-test\r\n")
    _patch_socket(monkeypatch, fake)

    r = probe_port("192.0.2.1", 22, timeout_s=0.01, grab_banners=False)

    assert r.status is PortStatus.OPEN
    assert r.banner is None
    assert fake.recv_calls == 0


def test_socket_creation_failure_is_filtered(monkeypatch):
    def boom(*a, **kw):
        raise OSError(errno.EMFILE, "Too many open files")

    monkeypatch.setattr(probe.socket, "socket", boom)

    r = probe_port("127.0.0.1", 80, timeout_s=0.01)
    assert r.status is PortStatus.FILTERED
    assert "Too many open files" in r.error_detail


def test_refused_port_is_closed(closed_port):
    r = probe_port("127.0.0.1", closed_port, timeout_s=1.0)
    assert r.status is PortStatus.CLOSED
    assert r.error_detail
    assert r.latency_ms >= 0


def test_open_port_with_server_banner(tcp_server):
    port = tcp_server(ssh_responder)

    r = probe_port("127.0.0.1", port, timeout_s=1.0, banner_timeout_s=1.0)

    assert r.status is PortStatus.OPEN
    assert r.banner == "SSH-2.0-OpenSSH_9.6"
    assert r.service_name == "unknown"


def test_http_greeting_gets_http_banner(tcp_server, monkeypatch):
    port = tcp_server(http_responder)
    # the listener is on an ephemeral port; give it the port-80 greeting
    monkeypatch.setitem(banner.GREETINGS, port, banner.GREETINGS[80])

    r = probe_port("127.0.0.1", port, timeout_s=1.0, banner_timeout_s=1.0)

    assert r.status is PortStatus.OPEN
    assert "HTTP" in r.banner


def test_silent_open_port_has_no_banner(tcp_server):
    port = tcp_server(lambda conn: conn.recv(16))

    r = probe_port("127.0.0.1", port, timeout_s=1.0, banner_timeout_s=0.1)

    assert r.status is PortStatus.OPEN
    assert r.banner is None
