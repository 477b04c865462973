"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing under the HTTP layer:

    SocketServer   listening socket and accept loop
    Connection     one client socket; frames requests, writes responses
    ThreadPool     workers that serve accepted connections

    SocketServer ──Connection──► ThreadPool ──► HTTPServer._handle_connection

=============================================================================
"""

from .connection import Connection, ConnectionState
from .socket_server import SocketServer
from .thread_pool import ThreadPool, Worker, WorkerState

__all__ = [
    "Connection",
    "ConnectionState",
    "SocketServer",
    "ThreadPool",
    "Worker",
    "WorkerState",
]
