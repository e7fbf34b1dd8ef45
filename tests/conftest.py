"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Generator, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rawhttpd import HTTPServer, ServerConfig, create_app


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /echo/abc?page=1&limit=10 HTTP/1.1\r\n"
        b"Host: localhost\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept-Encoding: gzip\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request uploading a file."""
    body = b"hello world"
    return (
        b"POST /files/greeting.txt HTTP/1.1\r\n"
        b"Host: localhost\r\n"
        b"Content-Type: application/octet-stream\r\n"
        b"Content-Length: 11\r\n"
        b"\r\n"
    ) + body


@pytest.fixture
def files_root(tmp_path: Path) -> Path:
    """Directory used as the file store root (not created yet)."""
    return tmp_path / "files"


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


def send_raw(port: int, data: bytes, timeout: float = 5.0) -> bytes:
    """Send raw bytes to the server and read until it closes the connection."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as s:
        if data:
            s.sendall(data)
        chunks = []
        while True:
            chunk = s.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def split_response(raw: bytes):
    """
    Split raw response bytes into (status_code, reason, headers, body).
    """
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    version, code, reason = lines[0].split(" ", 2)
    assert version == "HTTP/1.1"

    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(": ")
        headers[name] = value
    return int(code), reason, headers, body


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # not a test class despite the name

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def request(self, data: bytes):
        """Send raw request bytes, return split_response() of the reply."""
        return split_response(send_raw(self.port, data))


@pytest.fixture
def server_config(files_root: Path) -> ServerConfig:
    """Test server configuration on an ephemeral port."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        directory=str(files_root),
        accept_poll_interval=0.1,
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def test_server(server_config: ServerConfig) -> Generator[TestServer, None, None]:
    """A running create_app() server."""
    test_srv = TestServer(create_app(server_config))
    test_srv.start()

    yield test_srv

    test_srv.stop()


@pytest.fixture
def raw_send():
    """send_raw(port, data) as a fixture."""
    return send_raw


@pytest.fixture
def parse_response():
    """split_response(raw) as a fixture."""
    return split_response


@pytest.fixture
def start_server() -> Generator:
    """Start arbitrary HTTPServer instances; all are stopped at teardown."""
    started = []

    def start(server: HTTPServer) -> TestServer:
        test_srv = TestServer(server)
        test_srv.start()
        started.append(test_srv)
        return test_srv

    yield start

    for test_srv in started:
        test_srv.stop()
