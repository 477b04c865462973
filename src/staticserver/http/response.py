"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses, with either an in-memory body or a streamed one.

=============================================================================
TWO KINDS OF BODY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  BUFFERED                         │  STREAMED                       │
    │  ────────                         │  ────────                       │
    │  body=b"Not found"                │  stream=iter_file(path, 0, n)   │
    │  Content-Length computed          │  Content-Length set by caller   │
    │  Error pages, directory listings  │  File contents, byte ranges     │
    └─────────────────────────────────────────────────────────────────────┘

A streamed response is sent as its head first, then one ``sendall`` per
chunk the iterator yields. The file is never read into memory as a whole.

    HTTP/1.1 206 Partial Content\r\n      ← status line
    Content-Range: bytes 0-99/5000\r\n    ← headers
    Accept-Ranges: bytes\r\n
    Content-Type: video/mp4\r\n
    Content-Length: 100\r\n
    Date: Mon, 19 Oct 2026 12:00:00 GMT\r\n
    Server: staticserver/1.0\r\n
    \r\n
    <100 bytes, streamed>

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, Iterator, Optional, Union

from .status_codes import HTTPStatus


@dataclass
class HTTPResponse:
    """
    An HTTP response to be sent to the client.

    Use ResponseBuilder rather than constructing this by hand.

    Attributes:
        status:  Status code.
        headers: Header name → value, names as they will be sent.
        body:    In-memory body. Ignored when ``stream`` is set.
        stream:  Iterable of body chunks, consumed exactly once.
        version: Protocol version on the status line.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    stream: Optional[Iterable[bytes]] = field(default=None, repr=False)
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """e.g. ``HTTP/1.1 206 Partial Content``"""
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def is_streamed(self) -> bool:
        return self.stream is not None

    @property
    def content_length(self) -> int:
        """Declared body size: the Content-Length header if set, else len(body)."""
        declared = self.headers.get("Content-Length")
        if declared is not None:
            return int(declared)
        return len(self.body)

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a header; returns self for chaining."""
        self.headers[name] = value
        return self

    def head_bytes(self, server_name: str = "staticserver/1.0") -> bytes:
        """
        Serialize the status line and headers, including the blank line.

        Content-Length is filled in for buffered bodies. Streamed bodies
        must already carry it, since the stream cannot be measured
        without consuming it.
        """
        response_headers = dict(self.headers)

        if "Content-Length" not in response_headers:
            if self.is_streamed:
                raise ValueError("Streamed response needs an explicit Content-Length")
            response_headers["Content-Length"] = str(len(self.body))

        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))

        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        return "\r\n".join(lines).encode("latin-1") + b"\r\n"

    def iter_body(self) -> Iterator[bytes]:
        """Yield the body in the chunks it will be written in."""
        if self.stream is None:
            if self.body:
                yield self.body
            return
        for chunk in self.stream:
            if chunk:
                yield chunk

    def to_bytes(self, server_name: str = "staticserver/1.0") -> bytes:
        """
        Serialize the complete response, head and body.

        Consumes the stream of a streamed response; the server writes
        streamed bodies chunk by chunk instead of calling this.
        """
        return self.head_bytes(server_name) + b"".join(self.iter_body())


class ResponseBuilder:
    """
    Fluent builder for HTTP responses.

        response = (ResponseBuilder()
            .status(HTTPStatus.PARTIAL_CONTENT)
            .header("Content-Range", "bytes 0-99/5000")
            .content_type("video/mp4")
            .stream(chunks, length=100)
            .build())

    Every method except build() returns the builder.
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""
        self._stream: Optional[Iterable[bytes]] = None

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        self._headers.update(headers)
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set an in-memory body. Strings are UTF-8 encoded."""
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        self._stream = None
        return self

    def text(self, text: str, content_type: str = "text/plain; charset=utf-8") -> "ResponseBuilder":
        self._body = text.encode("utf-8")
        self._stream = None
        self._headers["Content-Type"] = content_type
        return self

    def html(self, html: str) -> "ResponseBuilder":
        self._body = html.encode("utf-8")
        self._stream = None
        self._headers["Content-Type"] = "text/html; charset=utf-8"
        return self

    def stream(self, chunks: Iterable[bytes], length: int) -> "ResponseBuilder":
        """
        Set a streamed body.

        Args:
            chunks: Iterable of byte chunks; consumed once, when sent.
            length: Total number of bytes the chunks add up to.
        """
        self._stream = chunks
        self._body = b""
        self._headers["Content-Length"] = str(length)
        return self

    def close_connection(self) -> "ResponseBuilder":
        self._headers["Connection"] = "close"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
            stream=self._stream,
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231), always in GMT.

    Example: ``Mon, 19 Oct 2026 12:00:00 GMT``
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# Plain-text error responses with the short bodies clients of this server
# have always seen.
#
# =============================================================================

def error_response(status: HTTPStatus, message: str) -> HTTPResponse:
    """A plain-text response with the given status and body."""
    return ResponseBuilder().status(status).text(message).build()


def forbidden(message: str = "Forbidden") -> HTTPResponse:
    """403 for paths outside the served root."""
    return error_response(HTTPStatus.FORBIDDEN, message)


def not_found(message: str = "Not found") -> HTTPResponse:
    """404 for paths with nothing on disk."""
    return error_response(HTTPStatus.NOT_FOUND, message)


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    """500 when a handler raises."""
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, message)
