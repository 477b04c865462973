"""
=============================================================================
CLIENT CONNECTIONS
=============================================================================

A Connection wraps one accepted socket for its whole life: it frames
requests out of the TCP byte stream and writes responses back.

=============================================================================
FRAMING A REQUEST
=============================================================================

TCP delivers bytes, not messages. One recv() may hold half a request line
or two pipelined requests, so reads accumulate in a buffer:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   recv() ──► _buffer ──► "\r\n\r\n" found? ── no ──► recv() again    │
    │                               │                                      │
    │                              yes                                     │
    │                               │                                      │
    │                               ▼                                      │
    │                  Content-Length: N ──► read until N body bytes       │
    │                               │                                      │
    │                               ▼                                      │
    │            return head + body, keep the rest for the next call       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WRITING A RESPONSE
=============================================================================

File bodies are never held in memory as a whole. The server writes the
head with send_response() and then hands the body iterator to send_body(),
which sends each chunk as it is produced. A failure part way through a
body cannot be turned into an error response (the status line is already
on the wire), so send_body() raises and the caller drops the connection.

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Where a connection is in its lifecycle."""
    NEW = "new"
    READING = "reading"
    WRITING = "writing"
    KEEP_ALIVE = "keep_alive"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    One client connection.

    Attributes:
        socket: The accepted client socket.
        address: Client's (ip, port).
        id: Short identifier used in log lines.
        state: Current lifecycle state.
        requests_handled: Requests read so far on this connection.
    """

    socket: socket.socket
    address: Tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)
    requests_handled: int = 0

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    keep_alive_timeout: float = 5.0
    max_request_size: int = 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> Optional[bytes]:
        """
        Read one complete HTTP request.

        Returns:
            The request bytes (head and body), or None when the client
            closed the connection or went idle between keep-alive requests.

        Raises:
            TimeoutError: The first request did not arrive in time.
            ValueError: The request grew past ``max_request_size``.
        """
        self.state = ConnectionState.READING
        self.last_activity = time.time()

        # A client that already got a response has less time to send the next
        if self.requests_handled > 0:
            self.socket.settimeout(self.keep_alive_timeout)

        try:
            # ─────────────────────────────────────────────────────────────
            # Head: read until the blank line
            # ─────────────────────────────────────────────────────────────
            while b"\r\n\r\n" not in self._buffer:
                chunk = self._recv()
                if not chunk:
                    return None
                self._buffer += chunk
                self._check_size()

            header_end = self._buffer.find(b"\r\n\r\n")
            body_start = header_end + 4
            content_length = self._parse_content_length(self._buffer[:header_end])

            # ─────────────────────────────────────────────────────────────
            # Body: exactly Content-Length bytes, if any
            # ─────────────────────────────────────────────────────────────
            while len(self._buffer) - body_start < content_length:
                chunk = self._recv()
                if not chunk:
                    break
                self._buffer += chunk
                self._check_size()

            request_end = body_start + content_length
            request_data = self._buffer[:request_end]
            self._buffer = self._buffer[request_end:]

            self.requests_handled += 1
            self.last_activity = time.time()
            return request_data

        except socket.timeout:
            if self.requests_handled > 0:
                logger.debug(f"[{self.id}] Keep-alive timeout")
                return None
            raise TimeoutError("Request read timeout")

        finally:
            self.socket.settimeout(self.timeout)

    def _recv(self) -> bytes:
        try:
            data = self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""
        self.last_activity = time.time()
        return data

    def _check_size(self):
        if len(self._buffer) > self.max_request_size:
            raise ValueError(f"Request too large: {len(self._buffer)} bytes")

    @staticmethod
    def _parse_content_length(head: bytes) -> int:
        """Content-Length from raw header bytes, 0 when absent or malformed."""
        for line in head.decode("latin-1").lower().split("\r\n"):
            if line.startswith("content-length:"):
                try:
                    return max(int(line.split(":", 1)[1].strip()), 0)
                except ValueError:
                    return 0
        return 0

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send ``data`` in full.

        Returns:
            False if the client has gone away.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False
        self.last_activity = time.time()
        return True

    def send_body(self, chunks: Iterable[bytes]) -> int:
        """
        Send a body chunk by chunk as the iterator produces it.

        Returns:
            Number of bytes sent.

        Raises:
            OSError: Reading a chunk or writing it to the socket failed.
                     Whatever was sent before stays sent.
        """
        self.state = ConnectionState.WRITING
        sent = 0
        for chunk in chunks:
            self.socket.sendall(chunk)
            sent += len(chunk)
            self.last_activity = time.time()
        return sent

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection: FIN, drain, release the descriptor.

        Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # peer already gone

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.requests_handled} requests")

    def set_keep_alive(self):
        self.state = ConnectionState.KEEP_ALIVE

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
