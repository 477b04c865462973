"""
Unit tests for the middleware pipeline and access logging.
"""

import json
import logging

import pytest

from staticserver.http.request import HTTPRequest
from staticserver.http.response import HTTPResponse, ResponseBuilder
from staticserver.middleware import LoggingMiddleware, Middleware, MiddlewarePipeline


class Recorder(Middleware):
    def __init__(self, label: str, calls: list):
        self.label = label
        self.calls = calls

    def __call__(self, request, next):
        self.calls.append(f"{self.label} in")
        response = next(request)
        self.calls.append(f"{self.label} out")
        return response


def request(path: str = "/a.txt", **headers) -> HTTPRequest:
    return HTTPRequest(
        method="GET",
        path=path,
        headers=headers,
        client_address=("10.0.0.1", 5555),
    )


class TestMiddlewarePipeline:

    def test_order(self):
        calls = []
        pipeline = MiddlewarePipeline().add(Recorder("A", calls)).add(Recorder("B", calls))

        def handler(req):
            calls.append("handler")
            return HTTPResponse()

        pipeline.wrap(handler)(request())

        assert calls == ["A in", "B in", "handler", "B out", "A out"]

    def test_empty_pipeline(self):
        pipeline = MiddlewarePipeline()
        response = HTTPResponse(body=b"x")

        assert pipeline.wrap(lambda req: response)(request()) is response
        assert len(pipeline) == 0


class TestLoggingMiddleware:

    def test_text_line(self, caplog):
        middleware = LoggingMiddleware()
        response = ResponseBuilder().stream(iter([b"abc"]), length=300).build()

        with caplog.at_level(logging.INFO, logger="staticserver.access"):
            middleware(request(), lambda req: response)

        line = caplog.records[-1].getMessage()
        assert line.startswith("10.0.0.1 - - [")
        assert '"GET /a.txt" 200 300' in line

    def test_json_line(self, caplog):
        middleware = LoggingMiddleware(log_format="json")

        with caplog.at_level(logging.INFO, logger="staticserver.access"):
            response = middleware(request(range="bytes=0-9"), lambda req: HTTPResponse(body=b"12345"))

        entry = json.loads(caplog.records[-1].getMessage())
        assert entry["path"] == "/a.txt"
        assert entry["range"] == "bytes=0-9"
        assert entry["status_code"] == 200
        assert entry["content_length"] == 5
        assert entry["request_id"] == response.headers["X-Request-ID"]

    def test_request_id_optional(self):
        middleware = LoggingMiddleware(include_request_id=False)
        response = middleware(request(), lambda req: HTTPResponse())

        assert "X-Request-ID" not in response.headers

    def test_handler_error_is_logged_and_raised(self, caplog):
        def broken(req):
            raise RuntimeError("boom")

        with caplog.at_level(logging.ERROR, logger="staticserver.access"):
            with pytest.raises(RuntimeError):
                LoggingMiddleware()(request(), broken)

        assert "RuntimeError: boom" in caplog.records[-1].getMessage()
