"""
Unit tests for request dispatch in StaticFileHandler.
"""

import os
import sys
from pathlib import Path

import pytest

from staticserver.handlers import StaticFileHandler
from staticserver.http.request import HTTPRequest
from staticserver.http.status_codes import HTTPStatus


def get(path: str, **headers) -> HTTPRequest:
    return HTTPRequest(
        method="GET",
        path=path,
        headers={name.lower().replace("_", "-"): value for name, value in headers.items()},
    )


def body_of(response) -> bytes:
    return b"".join(response.iter_body())


@pytest.fixture
def handler(public_dir: Path) -> StaticFileHandler:
    return StaticFileHandler(public_dir, chunk_size=64)


class TestDispatch:

    def test_file(self, handler: StaticFileHandler):
        response = handler.handle(get("/a.txt"))

        assert response.status == HTTPStatus.OK
        assert response.headers["Content-Type"] == "text/plain"
        assert body_of(response) == b"hello world\n"

    def test_mime_type_from_extension(self, handler: StaticFileHandler):
        response = handler.handle(get("/sub/page.html"))
        assert response.headers["Content-Type"].startswith("text/html")

    def test_directory(self, handler: StaticFileHandler):
        response = handler.handle(get("/sub"))

        assert response.status == HTTPStatus.OK
        assert response.headers["Content-Type"] == "text/html"
        assert b'href="/sub/page.html"' in response.body

    def test_root_directory(self, handler: StaticFileHandler):
        response = handler.handle(get("/"))

        assert response.status == HTTPStatus.OK
        assert b'href="/a.txt"' in response.body

    def test_missing(self, handler: StaticFileHandler):
        response = handler.handle(get("/nope.txt"))

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.body == b"Not found"

    def test_traversal(self, handler: StaticFileHandler, secret_file: Path):
        response = handler.handle(get("/../" + secret_file.name))

        assert response.status == HTTPStatus.FORBIDDEN
        assert response.body == b"Forbidden"

    def test_traversal_to_missing_file_is_forbidden(self, handler: StaticFileHandler):
        """Safety is checked before existence."""
        response = handler.handle(get("/../does-not-exist"))
        assert response.status == HTTPStatus.FORBIDDEN

    def test_range(self, handler: StaticFileHandler):
        response = handler.handle(get("/a.txt", range="bytes=0-4"))

        assert response.status == HTTPStatus.PARTIAL_CONTENT
        assert response.headers["Content-Range"] == "bytes 0-4/12"
        assert body_of(response) == b"hello"

    def test_unsatisfiable_range(self, handler: StaticFileHandler):
        response = handler.handle(get("/a.txt", range="bytes=50-60"))

        assert response.status == HTTPStatus.RANGE_NOT_SATISFIABLE
        assert response.headers["Content-Range"] == "bytes */12"

    def test_range_on_directory_is_ignored(self, handler: StaticFileHandler):
        response = handler.handle(get("/sub", range="bytes=0-4"))

        assert response.status == HTTPStatus.OK
        assert response.headers["Content-Type"] == "text/html"

    def test_method_is_ignored(self, handler: StaticFileHandler):
        request = HTTPRequest(method="DELETE", path="/a.txt")
        response = handler.handle(request)

        assert response.status == HTTPStatus.OK
        assert body_of(response) == b"hello world\n"

    def test_repeatable(self, handler: StaticFileHandler):
        first = handler.handle(get("/a.txt", range="bytes=6-"))
        second = handler.handle(get("/a.txt", range="bytes=6-"))

        assert first.status == second.status == HTTPStatus.PARTIAL_CONTENT
        assert first.headers == second.headers
        assert body_of(first) == body_of(second) == b"world\n"

    def test_file_as_root(self, public_dir: Path):
        """A single file can be served as the root."""
        handler = StaticFileHandler(public_dir / "a.txt")
        response = handler.handle(get("/"))

        assert response.status == HTTPStatus.OK
        assert body_of(response) == b"hello world\n"


def make_symlink(link: Path, target) -> None:
    try:
        os.symlink(target, link)
    except (OSError, NotImplementedError):
        pytest.skip("cannot create symlinks here")


class TestAwkwardEntries:

    def test_symlink_loop_is_not_found(self, handler: StaticFileHandler, public_dir: Path):
        make_symlink(public_dir / "loop", "loop")

        response = handler.handle(get("/loop"))
        assert response.status == HTTPStatus.NOT_FOUND

    def test_missing_name_behind_escaping_link_is_forbidden(
        self, handler: StaticFileHandler, public_dir: Path, secret_file: Path
    ):
        make_symlink(public_dir / "out", secret_file.parent)

        assert handler.handle(get("/out/" + secret_file.name)).status == HTTPStatus.FORBIDDEN
        assert handler.handle(get("/out/nope.txt")).status == HTTPStatus.FORBIDDEN

    @pytest.mark.skipif(sys.platform in ("win32", "darwin"), reason="names must be valid Unicode")
    def test_directory_with_undecodable_name(self, handler: StaticFileHandler, public_dir: Path):
        try:
            fd = os.open(os.fsencode(public_dir) + b"/bad\xff.txt", os.O_CREAT | os.O_WRONLY)
        except OSError:
            pytest.skip("filesystem rejects non-UTF-8 names")
        os.close(fd)

        response = handler.handle(get("/"))

        assert response.status == HTTPStatus.OK
        assert b'href="/bad%FF.txt"' in response.body
        assert "bad\ufffd.txt".encode() in response.body
