"""
=============================================================================
MIDDLEWARE PIPELINE
=============================================================================

Middleware wraps the request handler. Each one receives the request and
a ``next`` callable, and may act before calling it, after it returns, or
instead of calling it at all.

    pipeline = MiddlewarePipeline()
    pipeline.add(LoggingMiddleware())
    handler = pipeline.wrap(static_handler.handle)

    request ──► LoggingMiddleware ──► ... ──► StaticFileHandler.handle
    response ◄───────────────────────────────────────────────┘

The first middleware added is the outermost layer, so it sees the request
first and the response last.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, List
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)

NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Base class for middleware.

        class ServerTiming(Middleware):
            def __call__(self, request, next):
                response = next(request)
                response.set_header("X-Served-By", "staticserver")
                return response
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """Handle ``request``, normally by returning ``next(request)``."""

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """Ordered middleware, folded around a final handler by wrap()."""

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """Append ``middleware`` as the innermost layer so far."""
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Build the chain around ``handler``.

        Wrapping runs back to front: the last middleware wraps the handler,
        the one before it wraps that, and so on out to the first.
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._bind(middleware, current)
        return current

    @staticmethod
    def _bind(middleware: Middleware, next_handler: NextHandler) -> NextHandler:
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)
        return wrapped

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self):
        return iter(self._middleware)
