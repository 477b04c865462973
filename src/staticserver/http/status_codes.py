"""
=============================================================================
HTTP STATUS CODES (RFC 7231, RFC 7233)
=============================================================================

The status codes a static file server actually emits, with their reason
phrases for the status line.

    ┌────────────────────────────────────────────────────────────────────┐
    │                  STATUS CODES USED BY THIS SERVER                  │
    ├────────┬───────────────────────────────────────────────────────────┤
    │  200   │ Full file or directory listing                            │
    │  206   │ Byte range of a file (Range: bytes=start-end)             │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  400   │ Request line or headers could not be parsed               │
    │  403   │ Path escapes the served root                              │
    │  404   │ Nothing on disk at that path                              │
    │  416   │ Range outside the file                                    │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  500   │ Handler crashed                                           │
    │  503   │ Worker queue full                                         │
    └────────┴───────────────────────────────────────────────────────────┘

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    Being an IntEnum, members compare equal to plain integers:

        >>> HTTPStatus.PARTIAL_CONTENT == 206
        True
        >>> HTTPStatus.PARTIAL_CONTENT.phrase
        'Partial Content'
    """

    # 2xx SUCCESS
    OK = 200
    PARTIAL_CONTENT = 206               # Range request fulfilled

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400
    FORBIDDEN = 403                     # Path traversal attempt
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    PAYLOAD_TOO_LARGE = 413
    RANGE_NOT_SATISFIABLE = 416

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503           # Thread pool saturated
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line, e.g. ``Partial Content``."""
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        """True for 2xx codes."""
        return 200 <= self < 300

    @property
    def is_client_error(self) -> bool:
        """True for 4xx codes."""
        return 400 <= self < 500

    @property
    def is_server_error(self) -> bool:
        """True for 5xx codes."""
        return 500 <= self < 600

    @property
    def is_error(self) -> bool:
        """True for any 4xx or 5xx code."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.PARTIAL_CONTENT: "Partial Content",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.RANGE_NOT_SATISFIABLE: "Range Not Satisfiable",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}
