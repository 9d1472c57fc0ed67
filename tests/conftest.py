import socket
import socketserver
import threading

import pytest


@pytest.fixture
def tcp_server():
    """
    Start loopback TCP servers on ephemeral ports.

    Call with a function taking the accepted connection; returns the port.
    """
    servers = []

    def start(handle):
        class Handler(socketserver.BaseRequestHandler):
            def handle(self):
                handle(self.request)

        srv = socketserver.ThreadingTCPServer(("127.0.0.1", 0), Handler)
        srv.daemon_threads = True
        threading.Thread(target=srv.serve_forever, daemon=True).start()
        servers.append(srv)
        return srv.server_address[1]

    yield start

    for srv in servers:
        srv.shutdown()
        srv.server_close()


@pytest.fixture
def closed_port():
    """A loopback port with nothing listening on it."""
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


def read_request(conn: socket.socket) -> bytes:
    data = b""
    conn.settimeout(2.0)
    while b"\r\n\r\n" not in data:
        chunk = conn.recv(1024)
        if not chunk:
            break
        data += chunk
    return data


def http_responder(conn: socket.socket) -> None:
    read_request(conn)
    conn.sendall(b"HTTP/1.0 200 OK\r\nServer: test\r\n\r\n")


def ssh_responder(conn: socket.socket) -> None:
    conn.sendall(b"SSH-2.0-OpenSSH_9.6\r\n")
