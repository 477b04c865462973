"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Generator
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from staticserver import HTTPServer, ServerConfig


# 0x00..0xff twice, so every offset has a predictable byte value
BINARY_CONTENT = bytes(range(256)) * 2


@pytest.fixture
def public_dir(tmp_path: Path) -> Path:
    """
    A small served tree:

        public/
            a.txt            "hello world\\n"
            data.bin         512 bytes, byte i == i % 256
            empty.txt        0 bytes
            sub/
                page.html
    """
    root = tmp_path / "public"
    root.mkdir()
    (root / "a.txt").write_text("hello world\n")
    (root / "data.bin").write_bytes(BINARY_CONTENT)
    (root / "empty.txt").write_bytes(b"")
    (root / "sub").mkdir()
    (root / "sub" / "page.html").write_text("<p>hi</p>")
    return root


@pytest.fixture
def secret_file(tmp_path: Path) -> Path:
    """A file next to the served root, never reachable through it."""
    path = tmp_path / "secret.txt"
    path.write_text("top secret")
    return path


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request with a Range header."""
    return (
        b"GET /videos/intro%20clip.mp4?t=10 HTTP/1.1\r\n"
        b"Host: localhost:3000\r\n"
        b"User-Agent: pytest\r\n"
        b"Range: bytes=0-1023\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread and wait until it listens."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_listening(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


@pytest.fixture
def test_server(public_dir: Path, free_port: int) -> Generator[TestServer, None, None]:
    """A server on a free port, serving ``public_dir``."""
    server = HTTPServer(ServerConfig(
        public_dir=str(public_dir),
        host="127.0.0.1",
        port=free_port,
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        keep_alive_timeout=1.0,
        chunk_size=100,
        log_level="WARNING",
    ))

    test_srv = TestServer(server)
    test_srv.start()

    yield test_srv

    test_srv.stop()
