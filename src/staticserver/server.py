"""
=============================================================================
STATIC FILE SERVER
=============================================================================

Ties the pieces together: socket server, thread pool, request parser,
middleware and the static file handler.

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. SocketServer accepts a TCP connection
    2. The connection is queued on the ThreadPool (503 if the queue is full)
    3. A worker reads and parses a request (400/405/413/505 on bad input)
    4. LoggingMiddleware → StaticFileHandler.handle → HTTPResponse
    5. The head is written, then the body chunk by chunk (nothing for HEAD)
    6. Keep-alive: back to 3. Otherwise the connection is closed.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   accept ──► pool ──► read ──► parse ──► middleware ──► handler      │
    │                        ▲                                   │         │
    │                        │                                   ▼         │
    │                        └──── keep-alive ◄──── write head + body      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
FAILURES
=============================================================================

    Bad configuration      ConfigError from __init__, nothing is bound
    Malformed request      error status from HTTPParseError, then close
    Handler raises         500, connection stays usable
    Body stream fails      logged, connection dropped (head already sent)
    Client disconnects     connection dropped quietly

No per-request failure stops the server.

=============================================================================
"""

import logging
from typing import Callable, Optional, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, ThreadPool
from .handlers import StaticFileHandler
from .http import (
    HTTPRequest, RequestParser, HTTPParseError,
    HTTPResponse, HTTPStatus, error_response, internal_error,
)
from .middleware import LoggingMiddleware, Middleware, MiddlewarePipeline


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Static file server over HTTP/1.1.

        config = ServerConfig(public_dir="./public", port=3000)
        server = HTTPServer(config)
        server.run()  # blocks until Ctrl+C / SIGTERM / shutdown()

    Any method on any path is served from ``config.public_dir``.
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Raises:
            ConfigError: The configuration is invalid. No socket has been
                         created at this point.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._static = StaticFileHandler(self.config.public_dir, self.config.chunk_size)

        self._middleware = MiddlewarePipeline()
        self._middleware.add(LoggingMiddleware(log_format=self.config.log_format))

        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None
        self._running = False

    def use(self, middleware: Middleware) -> "HTTPServer":
        """Add middleware inside the access logger. Call before run()."""
        self._middleware.add(middleware)
        return self

    @property
    def address(self) -> Tuple[str, int]:
        """(host, port) served; the actual port once listening."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._running

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Serve until stopped. Blocks.

        Args:
            host: Override the configured host.
            port: Override the configured port.
        """
        if host is not None or port is not None:
            self.config = self.config.with_overrides(host=host, port=port)
            self._socket_server = SocketServer(self.config)

        self._setup_logging()
        self._handler = self._middleware.wrap(self._static.handle)
        self._running = True
        self._thread_pool.start()

        logger.info(f"Serving {self._static.root_dir}")

        try:
            self._socket_server.start(self._handle_connection, on_listening=self._on_listening)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_listening(timeout)

    def shutdown(self):
        """Stop accepting; run() returns once in-flight work is done."""
        self._socket_server.shutdown()

    def _on_listening(self, address: Tuple[str, int]):
        logger.info(f"Server running at port {address[1]}")

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("staticserver").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(wait=True, timeout=self.config.keep_alive_timeout + 1)
        logger.info("Server stopped")

    # =========================================================================
    # CONNECTIONS
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Runs on the accept thread: hand the connection to a worker."""
        if not self._thread_pool.submit(self._process_connection, args=(conn,)):
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Service Unavailable")
            conn.close()

    def _process_connection(self, conn: Connection):
        """Keep-alive loop for one connection. Runs on a worker thread."""
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request Timeout")
                    break
                except ValueError as e:
                    logger.warning(f"[{conn.id}] {e}")
                    self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE, "Payload Too Large")
                    break

                if raw_request is None:
                    break

                try:
                    request = self._parser.parse(raw_request, conn.address)
                except HTTPParseError as e:
                    logger.info(f"[{conn.id}] Bad request: {e}")
                    self._send_error(conn, HTTPStatus(e.status_code), str(e))
                    break

                try:
                    response = self._handler(request)
                except Exception as e:
                    logger.exception(f"[{conn.id}] Handler error: {e}")
                    response = internal_error()

                keep_alive = request.is_keep_alive and self.config.keep_alive
                if keep_alive:
                    response.headers.setdefault("Connection", "keep-alive")
                    response.headers.setdefault(
                        "Keep-Alive", f"timeout={int(self.config.keep_alive_timeout)}"
                    )
                else:
                    response.headers["Connection"] = "close"

                if not self._send(conn, request, response):
                    break

                if not keep_alive:
                    break

                conn.set_keep_alive()

    def _send(self, conn: Connection, request: HTTPRequest, response: HTTPResponse) -> bool:
        """
        Write one response: head, then body unless HEAD.

        Returns:
            False if the connection can't be used for another request.
        """
        if not conn.send_response(response.head_bytes(self.config.server_name)):
            _close_stream(response)
            return False

        if request.is_head:
            _close_stream(response)
            return True

        try:
            conn.send_body(response.iter_body())
        except OSError as e:
            logger.warning(f"[{conn.id}] Body aborted for {request.path}: {e}")
            return False
        finally:
            _close_stream(response)

        return True

    def _send_error(self, conn: Connection, status: HTTPStatus, message: str):
        """Plain-text error for failures before a request reaches the handler."""
        response = error_response(status, message)
        response.set_header("Connection", "close")
        conn.send_response(response.to_bytes(self.config.server_name))


def _close_stream(response: HTTPResponse):
    """Release a body generator that was not (fully) consumed."""
    close = getattr(response.stream, "close", None)
    if close is not None:
        close()
