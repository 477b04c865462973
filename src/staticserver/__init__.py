"""
=============================================================================
STATICSERVER
=============================================================================

A static file server over HTTP/1.1, built on raw sockets and a thread pool.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   GET /videos/intro.mp4          Range: bytes=0-1048575              │
    │       │                                                              │
    │       ▼                                                              │
    │   resolve under public_dir ──► 403 if it escapes, 404 if missing     │
    │       │                                                              │
    │       ├── directory ──► 200 HTML listing                             │
    │       └── file ───────► 200 whole / 206 range / 416, streamed        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Usage:

    from staticserver import HTTPServer, ServerConfig

    server = HTTPServer(ServerConfig(public_dir="./public", port=3000))
    server.run()

Or from the shell: ``python -m staticserver 3000 --public-dir ./public``

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer
from .config import ServerConfig

__all__ = ["HTTPServer", "ServerConfig", "__version__"]
