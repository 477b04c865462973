"""
Directory responder: an HTML page listing a directory's immediate entries.

Directories get a trailing ``/`` on both link and label. Names and the
URL path are HTML-escaped; link targets are percent-encoded.
"""

import html
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union
from urllib.parse import quote

from ..http.response import HTTPResponse, ResponseBuilder


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    is_directory: bool


def list_directory(path: Union[str, Path]) -> List[DirectoryEntry]:
    """Immediate entries of ``path``, sorted by name. Not recursive."""
    with os.scandir(path) as it:
        entries = [DirectoryEntry(entry.name, entry.is_dir()) for entry in it]
    return sorted(entries, key=lambda entry: entry.name)


def display_name(name: str) -> str:
    """
    Make a filesystem name printable as UTF-8.

    Bytes that are not valid UTF-8 arrive from ``os.scandir`` as lone
    surrogates; they are shown as U+FFFD.
    """
    return name.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def render_listing(url_path: str, entries: List[DirectoryEntry]) -> str:
    """
    Render the listing page.

    Args:
        url_path: Decoded request path, shown in the title and used as
                  the base of every link.
        entries: Entries to list, in display order.
    """
    base = url_path if url_path.endswith("/") else url_path + "/"
    title = html.escape(url_path)

    items = []
    for entry in entries:
        suffix = "/" if entry.is_directory else ""
        href = quote(base + entry.name + suffix, errors="surrogateescape")
        label = html.escape(display_name(entry.name) + suffix)
        items.append(f'<li><a href="{href}">{label}</a></li>')

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Directory listing for {title}</title>
</head>
<body>
    <h1>Directory listing for {title}</h1>
    <ul>
        {"".join(items)}
    </ul>
</body>
</html>
"""


def respond_directory(path: Union[str, Path], url_path: str) -> HTTPResponse:
    """200 ``text/html`` listing of ``path``."""
    page = render_listing(url_path, list_directory(path))
    return ResponseBuilder().body(page).content_type("text/html").build()
