"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

Turns the raw bytes read from a client socket into an HTTPRequest.

=============================================================================
REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────┐
    │  GET /videos/intro%20clip.mp4 HTTP/1.1\r\n    ← request line    │
    │  Host: localhost:3000\r\n                     ← headers         │
    │  Range: bytes=0-1023\r\n                                        │
    │  \r\n                                         ← end of headers  │
    │  (body, Content-Length bytes, usually empty for GET)            │
    └─────────────────────────────────────────────────────────────────┘

The request target is split into two views of the same path:

    target  "/videos/intro%20clip.mp4"   exactly as the client sent it
    path    "/videos/intro clip.mp4"     percent-decoded, used on disk

=============================================================================
WHAT THE PARSER DOES NOT DO
=============================================================================

The parser never judges whether a path is *safe*. A request for
``/../secret`` parses fine; it is the path resolver's job to notice that
it escapes the served root and answer 403.

=============================================================================
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import parse_qs, unquote, urlsplit


class HTTPParseError(Exception):
    """
    Raised when a request cannot be parsed.

    Carries the status code the server should answer with.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Header names are stored lowercase, so ``headers["range"]`` works no
    matter how the client capitalised it.

    Attributes:
        method:         Request method (GET, HEAD, ...).
        path:           Percent-decoded path, without query string.
        target:         Path exactly as sent on the request line.
        version:        "HTTP/1.0" or "HTTP/1.1".
        headers:        Lowercase header name → value.
        query_params:   Parsed query string.
        body:           Raw body bytes.
        client_address: (ip, port) of the peer.
        raw:            The unparsed request bytes.
    """

    method: str
    path: str
    target: str = ""
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, list[str]] = field(default_factory=dict)
    body: bytes = b""
    client_address: tuple[str, int] = ("", 0)
    raw: bytes = b""

    def __post_init__(self):
        if not self.target:
            self.target = self.path

    @property
    def host(self) -> str:
        """Value of the Host header."""
        return self.headers.get("host", "")

    @property
    def user_agent(self) -> str:
        """Value of the User-Agent header."""
        return self.headers.get("user-agent", "")

    @property
    def content_length(self) -> int:
        """Content-Length as an int, 0 if missing or invalid."""
        try:
            return int(self.headers.get("content-length", 0))
        except ValueError:
            return 0

    @property
    def range(self) -> Optional[str]:
        """The raw Range header, or None when the client sent none."""
        return self.headers.get("range")

    @property
    def is_head(self) -> bool:
        """HEAD requests get the same head as GET but no body."""
        return self.method == "HEAD"

    @property
    def is_keep_alive(self) -> bool:
        """
        Should the connection stay open after this request?

        HTTP/1.1 keeps alive unless ``Connection: close``.
        HTTP/1.0 closes unless ``Connection: keep-alive``.
        """
        connection = self.headers.get("connection", "").lower()
        if self.version == "HTTP/1.1":
            return connection != "close"
        return connection == "keep-alive"

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

    ==========================================================================
    PARSING STEPS
    ==========================================================================

        1. Size check              too large   → HTTPParseError(413)
        2. Split at \\r\\n\\r\\n       missing     → HTTPParseError(400)
        3. Request line            malformed   → 400
                                   bad method  → 405
                                   bad version → 505
        4. Headers                 lowercase names, folded duplicates
        5. Body                    exactly Content-Length bytes

    ==========================================================================
    """

    # Every method is served as a retrieval; unknown tokens are still refused.
    VALID_METHODS = {
        "GET", "HEAD", "POST", "PUT", "DELETE",
        "PATCH", "OPTIONS", "TRACE", "CONNECT",
    }

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    def __init__(self, max_request_size: int = 10 * 1024 * 1024):
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse raw HTTP request data into an HTTPRequest object.

        Args:
            data: Raw request bytes from the socket.
            client_address: Peer (ip, port), kept for logging.

        Returns:
            The parsed request.

        Raises:
            HTTPParseError: If the request is malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413,
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        header_section = data[:header_end].decode("latin-1")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        method, target, query_params, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        try:
            content_length = int(headers.get("content-length", 0))
        except ValueError:
            raise HTTPParseError("Invalid Content-Length header")
        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        return HTTPRequest(
            method=method,
            path=unquote(target),
            target=target,
            version=version,
            headers=headers,
            query_params=query_params,
            body=body[:content_length],
            client_address=client_address,
            raw=data,
        )

    def _parse_request_line(
        self,
        line: str
    ) -> tuple[str, str, Dict[str, list[str]], str]:
        """
        Split ``METHOD SP TARGET SP VERSION`` into its parts.

        The target keeps its percent-encoding; the caller decodes it.
        Absolute-form targets (``http://host/path``) are reduced to
        their path.
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, uri, version = match.groups()

        if method not in self.VALID_METHODS:
            raise HTTPParseError(f"Invalid method: {method}", status_code=405)

        if version not in ("HTTP/1.0", "HTTP/1.1"):
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505,
            )

        parsed = urlsplit(uri)
        target = parsed.path or "/"
        query_params = parse_qs(parsed.query, keep_blank_values=True)

        return method, target, query_params, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse header lines into a dict with lowercase names.

        Repeated headers are joined with ``", "`` (RFC 7230 §3.2.2);
        obsolete line folding is appended to the previous value.
        Malformed lines are skipped.
        """
        headers: Dict[str, str] = {}
        current_name: Optional[str] = None

        for line in lines:
            if not line:
                continue

            # obs-fold continuation
            if line[0] in (" ", "\t"):
                if current_name is not None:
                    headers[current_name] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()
            current_name = name

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers


def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
    max_size: int = 10 * 1024 * 1024
) -> HTTPRequest:
    """Parse one request with a throwaway RequestParser."""
    return RequestParser(max_request_size=max_size).parse(data, client_address)
