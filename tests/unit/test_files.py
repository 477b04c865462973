"""
Unit tests for the file responder.
"""

from pathlib import Path

import pytest

from staticserver.exceptions import RangeUnsatisfiable
from staticserver.handlers.files import iter_file, respond_file, range_not_satisfiable
from staticserver.handlers.paths import resolve
from staticserver.handlers.ranges import NO_RANGE, UNSATISFIABLE, parse_range
from staticserver.http.status_codes import HTTPStatus

BINARY_CONTENT = bytes(range(256)) * 2


class TestIterFile:

    def test_whole_file(self, public_dir: Path):
        data = b"".join(iter_file(public_dir / "data.bin", 0, 511))
        assert data == BINARY_CONTENT

    def test_chunks_are_bounded(self, public_dir: Path):
        chunks = list(iter_file(public_dir / "data.bin", 0, 511, chunk_size=100))

        assert [len(c) for c in chunks] == [100, 100, 100, 100, 100, 12]

    def test_slice(self, public_dir: Path):
        data = b"".join(iter_file(public_dir / "data.bin", 10, 19, chunk_size=3))
        assert data == BINARY_CONTENT[10:20]

    def test_empty_interval(self, public_dir: Path):
        assert list(iter_file(public_dir / "empty.txt", 0, -1)) == []

    def test_file_is_opened_lazily(self, tmp_path: Path):
        chunks = iter_file(tmp_path / "gone.bin", 0, 9)

        with pytest.raises(OSError):
            next(chunks)

    def test_short_file(self, public_dir: Path):
        with pytest.raises(OSError):
            b"".join(iter_file(public_dir / "a.txt", 0, 1000))


class TestRespondFile:

    def test_full_file(self, public_dir: Path):
        resolved = resolve("/data.bin", str(public_dir))
        response = respond_file(resolved, NO_RANGE, "application/octet-stream")

        assert response.status == HTTPStatus.OK
        assert response.headers["Content-Type"] == "application/octet-stream"
        assert response.headers["Content-Length"] == "512"
        assert "Content-Range" not in response.headers
        assert b"".join(response.iter_body()) == BINARY_CONTENT

    def test_partial_content(self, public_dir: Path):
        resolved = resolve("/data.bin", str(public_dir))
        outcome = parse_range("bytes=100-199", resolved.size_bytes)
        response = respond_file(resolved, outcome, "application/octet-stream")

        assert response.status == HTTPStatus.PARTIAL_CONTENT
        assert response.headers["Content-Range"] == "bytes 100-199/512"
        assert response.headers["Accept-Ranges"] == "bytes"
        assert response.headers["Content-Length"] == "100"
        assert b"".join(response.iter_body()) == BINARY_CONTENT[100:200]

    def test_body_length_matches_header(self, public_dir: Path):
        resolved = resolve("/data.bin", str(public_dir))
        for header in ("bytes=0-0", "bytes=511-", "bytes=-10", "bytes=37-300"):
            outcome = parse_range(header, resolved.size_bytes)
            response = respond_file(resolved, outcome, "application/octet-stream", chunk_size=7)

            body = b"".join(response.iter_body())
            assert len(body) == int(response.headers["Content-Length"])

    def test_unsatisfiable(self, public_dir: Path):
        resolved = resolve("/data.bin", str(public_dir))

        with pytest.raises(RangeUnsatisfiable) as exc_info:
            respond_file(resolved, UNSATISFIABLE, "application/octet-stream")

        assert exc_info.value.size == 512

    def test_empty_file(self, public_dir: Path):
        resolved = resolve("/empty.txt", str(public_dir))
        response = respond_file(resolved, NO_RANGE, "text/plain")

        assert response.status == HTTPStatus.OK
        assert response.headers["Content-Length"] == "0"
        assert b"".join(response.iter_body()) == b""


def test_range_not_satisfiable():
    response = range_not_satisfiable(512)

    assert response.status == HTTPStatus.RANGE_NOT_SATISFIABLE
    assert response.headers["Content-Range"] == "bytes */512"
    assert response.body == b"Range Not Satisfiable"
