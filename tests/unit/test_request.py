"""
Unit tests for HTTP request parsing.
"""

import pytest

from staticserver.http.request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    parse_request,
)


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self, sample_get_request: bytes):
        parser = RequestParser()
        request = parser.parse(sample_get_request, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)

    def test_path_is_decoded_target_is_not(self, sample_get_request: bytes):
        """The on-disk path is percent-decoded; the raw target is kept."""
        request = parse_request(sample_get_request)

        assert request.path == "/videos/intro clip.mp4"
        assert request.target == "/videos/intro%20clip.mp4"

    def test_query_string_is_not_part_of_path(self, sample_get_request: bytes):
        request = parse_request(sample_get_request)

        assert "?" not in request.path
        assert request.query_params == {"t": ["10"]}

    def test_parse_headers(self, sample_get_request: bytes):
        request = parse_request(sample_get_request)

        assert request.host == "localhost:3000"
        assert request.user_agent == "pytest"
        assert request.range == "bytes=0-1023"
        assert request.is_keep_alive is True

    def test_header_names_are_case_insensitive(self):
        raw = b"GET / HTTP/1.1\r\nRANGE: bytes=5-\r\n\r\n"
        request = parse_request(raw)

        assert request.range == "bytes=5-"
        assert request.get_header("Range") == "bytes=5-"

    def test_missing_range_is_none(self):
        request = parse_request(b"GET / HTTP/1.1\r\nHost: test\r\n\r\n")
        assert request.range is None

    def test_duplicate_headers_are_joined(self):
        raw = b"GET / HTTP/1.1\r\nAccept: a\r\nAccept: b\r\n\r\n"
        request = parse_request(raw)

        assert request.headers["accept"] == "a, b"

    def test_dot_dot_is_left_for_the_resolver(self):
        """Traversal is parsed normally and judged later, as a 403."""
        request = parse_request(b"GET /../etc/passwd HTTP/1.1\r\n\r\n")
        assert request.path == "/../etc/passwd"

    def test_encoded_separators_are_decoded(self):
        request = parse_request(b"GET /%2e%2e%2f%2e%2e%2fetc HTTP/1.1\r\n\r\n")
        assert request.path == "/../../etc"

    def test_absolute_form_target(self):
        request = parse_request(b"GET http://example.com/a.txt HTTP/1.1\r\n\r\n")
        assert request.path == "/a.txt"

    def test_any_known_method_is_accepted(self):
        for method in ("GET", "HEAD", "POST", "DELETE", "OPTIONS"):
            request = parse_request(f"{method} /a.txt HTTP/1.1\r\n\r\n".encode())
            assert request.method == method

    def test_body_is_read_to_content_length(self):
        raw = b"POST /a.txt HTTP/1.1\r\nContent-Length: 5\r\n\r\nhelloEXTRA"
        request = parse_request(raw)

        assert request.body == b"hello"
        assert request.content_length == 5

    def test_parse_invalid_method(self):
        raw = b"INVALID /path HTTP/1.1\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 405

    def test_parse_invalid_request_line(self):
        raw = b"GET\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 400

    def test_unsupported_version(self):
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(b"GET / HTTP/2.0\r\n\r\n")

        assert exc_info.value.status_code == 505

    def test_incomplete_request(self):
        with pytest.raises(HTTPParseError):
            parse_request(b"GET / HTTP/1.1\r\nHost: test\r\n")

    def test_invalid_content_length(self):
        with pytest.raises(HTTPParseError):
            parse_request(b"GET / HTTP/1.1\r\nContent-Length: lots\r\n\r\n")

    def test_request_too_large(self):
        raw = b"GET / HTTP/1.1\r\nX-Pad: " + b"a" * 200 + b"\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw, max_size=100)

        assert exc_info.value.status_code == 413


class TestHTTPRequest:
    """Tests for HTTPRequest properties."""

    def test_keep_alive_http11_default(self):
        request = HTTPRequest(method="GET", path="/", version="HTTP/1.1")
        assert request.is_keep_alive is True

    def test_keep_alive_http11_close(self):
        request = HTTPRequest(
            method="GET", path="/", version="HTTP/1.1",
            headers={"connection": "close"},
        )
        assert request.is_keep_alive is False

    def test_keep_alive_http10(self):
        request = HTTPRequest(method="GET", path="/", version="HTTP/1.0")
        assert request.is_keep_alive is False

        request = HTTPRequest(
            method="GET", path="/", version="HTTP/1.0",
            headers={"connection": "keep-alive"},
        )
        assert request.is_keep_alive is True

    def test_is_head(self):
        assert HTTPRequest(method="HEAD", path="/").is_head is True
        assert HTTPRequest(method="GET", path="/").is_head is False

    def test_target_defaults_to_path(self):
        assert HTTPRequest(method="GET", path="/a.txt").target == "/a.txt"
