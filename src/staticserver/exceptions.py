"""
=============================================================================
STATIC SERVER ERRORS
=============================================================================

Every failure the server knows how to name has a class here.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ Error                │ Scope        │ Outcome                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │ ConfigError          │ startup      │ process exits before binding  │
    │ ForbiddenPath        │ per request  │ 403 Forbidden                 │
    │ NotFound             │ per request  │ 404 Not found                 │
    │ RangeUnsatisfiable   │ per request  │ 416 Range Not Satisfiable     │
    └─────────────────────────────────────────────────────────────────────┘

Per-request errors never stop the server. Only ConfigError is fatal, and
only before the listener is bound.

Transport failures (client reset, broken pipe) are not modelled here:
they surface as OSError from the socket layer and simply close the
connection.

=============================================================================
"""


class StaticServerError(Exception):
    """Base class for all errors raised by staticserver."""


class ConfigError(StaticServerError):
    """Invalid or missing configuration. Raised at startup only."""


class ForbiddenPath(StaticServerError):
    """
    The requested path resolves outside the served root.

    Attributes:
        path: The decoded URL path the client asked for.
    """

    def __init__(self, path: str):
        super().__init__(f"Path escapes served root: {path!r}")
        self.path = path


class NotFound(StaticServerError):
    """No filesystem entry exists at the resolved path."""

    def __init__(self, path: str):
        super().__init__(f"Not found: {path!r}")
        self.path = path


class RangeUnsatisfiable(StaticServerError):
    """
    The Range header cannot be served for a resource of this size.

    Attributes:
        size: Size of the resource in bytes, used for ``Content-Range: bytes */size``.
    """

    def __init__(self, size: int):
        super().__init__(f"Range not satisfiable for resource of {size} bytes")
        self.size = size
