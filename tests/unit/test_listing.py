"""
Unit tests for directory listings.
"""

import re
from pathlib import Path

from staticserver.handlers.listing import (
    DirectoryEntry,
    display_name,
    list_directory,
    render_listing,
    respond_directory,
)
from staticserver.http.status_codes import HTTPStatus


def links(page: str):
    """(href, label) pairs from a rendered listing."""
    return re.findall(r'<li><a href="([^"]*)">([^<]*)</a></li>', page)


class TestListDirectory:

    def test_entries_sorted_with_types(self, public_dir: Path):
        entries = list_directory(public_dir)

        assert entries == [
            DirectoryEntry("a.txt", False),
            DirectoryEntry("data.bin", False),
            DirectoryEntry("empty.txt", False),
            DirectoryEntry("sub", True),
        ]

    def test_not_recursive(self, public_dir: Path):
        names = [entry.name for entry in list_directory(public_dir)]
        assert "page.html" not in names

    def test_empty_directory(self, tmp_path: Path):
        assert list_directory(tmp_path) == []


class TestRenderListing:

    def test_file_and_directory(self):
        page = render_listing("/", [
            DirectoryEntry("a.txt", False),
            DirectoryEntry("sub", True),
        ])

        assert links(page) == [("/a.txt", "a.txt"), ("/sub/", "sub/")]

    def test_links_are_relative_to_request_path(self):
        page = render_listing("/docs", [DirectoryEntry("a.txt", False)])
        assert links(page) == [("/docs/a.txt", "a.txt")]

    def test_trailing_slash_is_not_doubled(self):
        page = render_listing("/docs/", [DirectoryEntry("a.txt", False)])
        assert links(page) == [("/docs/a.txt", "a.txt")]

    def test_title(self):
        page = render_listing("/docs/", [])

        assert "<title>Directory listing for /docs/</title>" in page
        assert "<h1>Directory listing for /docs/</h1>" in page
        assert '<meta charset="utf-8">' in page
        assert links(page) == []

    def test_names_are_escaped(self):
        page = render_listing("/", [DirectoryEntry('<script>"x"</script>', False)])

        assert "<script>" not in page
        assert "&lt;script&gt;" in page

    def test_path_is_escaped(self):
        page = render_listing("/<b>/", [])

        assert "<b>" not in page
        assert "Directory listing for /&lt;b&gt;/" in page

    def test_links_are_percent_encoded(self):
        page = render_listing("/my docs/", [DirectoryEntry("a b#1.txt", False)])
        assert links(page) == [("/my%20docs/a%20b%231.txt", "a b#1.txt")]


def test_respond_directory(public_dir: Path):
    response = respond_directory(public_dir, "/")

    assert response.status == HTTPStatus.OK
    assert response.headers["Content-Type"] == "text/html"
    assert b'href="/sub/"' in response.body
    assert response.content_length == len(response.body)


class TestUndecodableNames:
    """Names that are not valid UTF-8 arrive from os.scandir with lone surrogates."""

    def test_display_name(self):
        assert display_name("bad\udcff.txt") == "bad\ufffd.txt"
        assert display_name("café") == "café"

    def test_href_keeps_original_bytes(self):
        page = render_listing("/", [DirectoryEntry("bad\udcff.txt", False)])

        assert links(page) == [("/bad%FF.txt", "bad\ufffd.txt")]
        page.encode("utf-8")
