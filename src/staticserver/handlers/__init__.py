"""
=============================================================================
HANDLERS
=============================================================================

Everything between a parsed request and the response that answers it.

    static.py    StaticFileHandler: the dispatcher, entry point
    paths.py     resolve(): request path → file on disk, traversal guard
    ranges.py    parse_range(): Range header → byte interval
    files.py     respond_file(): 200 / 206 / 416 with a streamed body
    listing.py   respond_directory(): HTML directory listing

=============================================================================
"""

from .static import StaticFileHandler
from .paths import ResolvedPath, resolve, is_within_root
from .ranges import ByteRange, RangeKind, RangeOutcome, parse_range, NO_RANGE, UNSATISFIABLE
from .files import iter_file, respond_file, range_not_satisfiable
from .listing import DirectoryEntry, list_directory, render_listing, respond_directory

__all__ = [
    "StaticFileHandler",
    "ResolvedPath",
    "resolve",
    "is_within_root",
    "ByteRange",
    "RangeKind",
    "RangeOutcome",
    "parse_range",
    "NO_RANGE",
    "UNSATISFIABLE",
    "iter_file",
    "respond_file",
    "range_not_satisfiable",
    "DirectoryEntry",
    "list_directory",
    "render_listing",
    "respond_directory",
]
