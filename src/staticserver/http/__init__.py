"""
HTTP protocol pieces: request parsing, response building, status codes
and MIME type lookup. No sockets here; see ``staticserver.core``.
"""

from .status_codes import HTTPStatus
from .request import HTTPRequest, RequestParser, HTTPParseError, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    format_http_date,
    error_response,
    forbidden,
    not_found,
    internal_error,
)
from .mime_types import get_mime_type, DEFAULT_MIME_TYPE

__all__ = [
    "HTTPStatus",
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "parse_request",
    "HTTPResponse",
    "ResponseBuilder",
    "format_http_date",
    "error_response",
    "forbidden",
    "not_found",
    "internal_error",
    "get_mime_type",
    "DEFAULT_MIME_TYPE",
]
