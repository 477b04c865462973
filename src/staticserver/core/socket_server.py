"""
=============================================================================
TCP SOCKET SERVER
=============================================================================

Owns the listening socket: create, bind, listen, accept, close. Each
accepted client is wrapped in a Connection and passed to a callback; what
happens to it after that is the HTTP layer's business.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   start(handler)                                                     │
    │       ├──► _create_socket()   SO_REUSEADDR, TCP_NODELAY, 1s timeout │
    │       ├──► bind() / listen()                                         │
    │       ├──► _setup_signals()   SIGINT / SIGTERM → shutdown()          │
    │       └──► _accept_loop()     blocks until shutdown()                │
    │                 └──► handler(Connection(...))                        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

accept() times out every second so the loop notices shutdown() promptly
without needing to close the socket from another thread.

Port 0 asks the OS for a free port; ``address`` reports the port actually
bound once the server is listening.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Accept loop over one listening socket.

    Usage:
        server = SocketServer(config)
        server.start(handle_connection)  # blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._bound_port: Optional[int] = None
        self._listening = threading.Event()
        self._shutdown_event = threading.Event()
        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """(host, port) being served; the real port once bound."""
        port = self._bound_port if self._bound_port is not None else self.config.port
        return (self.config.host, port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Rebind immediately after a restart instead of waiting out TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        sock.settimeout(1.0)
        return sock

    def _setup_signals(self):
        """
        Turn SIGINT (Ctrl+C) and SIGTERM (kill, docker stop) into a
        graceful shutdown.

        Python only lets the main thread install handlers, so a server
        started from any other thread (tests, embedding) skips this and
        must be stopped with shutdown().
        """
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
            self.shutdown()

        for sig in (signal.SIGTERM, signal.SIGINT):
            self._original_handlers[sig] = signal.signal(sig, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(
        self,
        connection_handler: Callable[[Connection], None],
        on_listening: Optional[Callable[[Tuple[str, int]], None]] = None,
    ):
        """
        Bind, listen and accept until shutdown() is called.

        Args:
            connection_handler: Called with each accepted Connection, on
                                the accept thread. It must not block.
            on_listening: Called with the bound (host, port) once the
                          socket is listening.

        Raises:
            OSError: The address could not be bound.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)
        self._bound_port = self._socket.getsockname()[1]

        self._running = True
        self._shutdown_event.clear()
        self._setup_signals()
        self._listening.set()

        logger.info(f"Listening on {self.config.host}:{self._bound_port}")

        if on_listening is not None:
            on_listening(self.address)

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                keep_alive_timeout=self.config.keep_alive_timeout,
                max_request_size=self.config.max_request_size,
            )
            connection_handler(conn)

    def shutdown(self):
        """Ask the accept loop to stop. Idempotent, callable from any thread."""
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False
        self._shutdown_event.set()

    def _cleanup(self):
        self._restore_signals()
        self._listening.clear()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        logger.info("Socket server stopped")

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is bound and listening."""
        return self._listening.wait(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        return self._shutdown_event.wait(timeout)
