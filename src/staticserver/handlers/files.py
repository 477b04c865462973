"""
File responder: status, headers and a streamed body for a regular file.

    NO_RANGE        200  Content-Type, Content-Length: size, whole file
    SATISFIABLE     206  Content-Range, Accept-Ranges, Content-Type,
                         Content-Length: end-start+1, bytes [start, end]
    UNSATISFIABLE   416  Content-Range: bytes */size, short text body

Bodies are generators over the open file, read in ``chunk_size`` pieces.
The file is opened when the server starts writing the body, so a file
that disappears after the stat surfaces as an OSError mid-response and
the connection is dropped.
"""

import logging
from pathlib import Path
from typing import Iterator, Union

from ..exceptions import RangeUnsatisfiable
from ..http.response import HTTPResponse, ResponseBuilder
from ..http.status_codes import HTTPStatus
from .paths import ResolvedPath
from .ranges import RangeOutcome


logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


def iter_file(
    path: Union[str, Path],
    start: int,
    end: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[bytes]:
    """
    Yield bytes ``[start, end]`` of a file, inclusive.

    Raises:
        OSError: The file cannot be opened, or ends before ``end``.
    """
    remaining = end - start + 1
    if remaining <= 0:
        return

    with open(path, "rb") as f:
        f.seek(start)
        while remaining > 0:
            chunk = f.read(min(chunk_size, remaining))
            if not chunk:
                raise OSError(f"{path} ended {remaining} bytes early")
            remaining -= len(chunk)
            yield chunk


def respond_file(
    resolved: ResolvedPath,
    outcome: RangeOutcome,
    mime_type: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> HTTPResponse:
    """
    Build the response for a regular file.

    Args:
        resolved: The resolved, existing file.
        outcome: Parsed Range header.
        mime_type: Value for Content-Type.
        chunk_size: Read size for streaming.

    Raises:
        RangeUnsatisfiable: The Range header cannot be served.
    """
    size = resolved.size_bytes

    if outcome.is_unsatisfiable:
        raise RangeUnsatisfiable(size)

    if outcome.is_satisfiable:
        byte_range = outcome.byte_range
        logger.debug(f"Serving {byte_range.content_range(size)} of {resolved.absolute_path}")
        return (ResponseBuilder()
            .status(HTTPStatus.PARTIAL_CONTENT)
            .header("Content-Range", byte_range.content_range(size))
            .header("Accept-Ranges", "bytes")
            .content_type(mime_type)
            .stream(
                iter_file(resolved.absolute_path, byte_range.start, byte_range.end, chunk_size),
                length=byte_range.length,
            )
            .build())

    return (ResponseBuilder()
        .status(HTTPStatus.OK)
        .content_type(mime_type)
        .stream(
            iter_file(resolved.absolute_path, 0, size - 1, chunk_size),
            length=size,
        )
        .build())


def range_not_satisfiable(size: int) -> HTTPResponse:
    """416 with ``Content-Range: bytes */size``."""
    return (ResponseBuilder()
        .status(HTTPStatus.RANGE_NOT_SATISFIABLE)
        .header("Content-Range", f"bytes */{size}")
        .text("Range Not Satisfiable")
        .build())
