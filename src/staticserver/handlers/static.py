"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

The request dispatcher: every request, whatever its method, ends up here.

=============================================================================
DISPATCH ORDER
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   request.path                                                       │
    │       │                                                              │
    │       ▼                                                              │
    │   resolve() ──── escapes root? ────────────────► 403 Forbidden      │
    │       │                                                              │
    │       ▼                                                              │
    │   exists? ────── no ───────────────────────────► 404 Not found      │
    │       │                                                              │
    │       ▼                                                              │
    │   directory? ─── yes ──────────────────────────► 200 HTML listing   │
    │       │                                                              │
    │       ▼                                                              │
    │   parse_range(Range, size)                                           │
    │       ├── NO_RANGE ────────────────────────────► 200 whole file     │
    │       ├── SATISFIABLE ─────────────────────────► 206 byte range     │
    │       └── UNSATISFIABLE ───────────────────────► 416                │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The order is fixed: safety, then existence, then type. Each request is
handled once; nothing is retried and nothing is shared between requests
except the (read-only) root directory.

=============================================================================
"""

import logging
import os
from typing import Union
from pathlib import Path

from ..exceptions import ForbiddenPath, NotFound, RangeUnsatisfiable
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, forbidden, not_found
from ..http.mime_types import get_mime_type
from .paths import resolve
from .ranges import parse_range
from .files import DEFAULT_CHUNK_SIZE, respond_file, range_not_satisfiable
from .listing import respond_directory


logger = logging.getLogger(__name__)


class StaticFileHandler:
    """
    Serves files and directory listings from a root directory.

        handler = StaticFileHandler("/srv/public")
        response = handler.handle(request)

    The handler holds no per-request state, so one instance is shared by
    all worker threads.
    """

    def __init__(self, root_dir: Union[str, Path], chunk_size: int = DEFAULT_CHUNK_SIZE):
        """
        Args:
            root_dir: Directory (or single file) to serve.
            chunk_size: Read size when streaming file bodies.
        """
        self.root_dir = os.path.abspath(root_dir)
        self.chunk_size = chunk_size

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """Map a request to a response. Never raises for per-request errors."""
        try:
            return self._dispatch(request)
        except ForbiddenPath:
            return forbidden()
        except NotFound:
            return not_found()
        except RangeUnsatisfiable as e:
            logger.debug(f"Unsatisfiable range {request.range!r} for {request.path}")
            return range_not_satisfiable(e.size)

    def _dispatch(self, request: HTTPRequest) -> HTTPResponse:
        resolved = resolve(request.path, self.root_dir)

        if not resolved.exists:
            raise NotFound(request.path)

        if resolved.is_directory:
            return respond_directory(resolved.absolute_path, request.path)

        outcome = parse_range(request.range, resolved.size_bytes)
        return respond_file(
            resolved,
            outcome,
            get_mime_type(resolved.absolute_path),
            self.chunk_size,
        )
