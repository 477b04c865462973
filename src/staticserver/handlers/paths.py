"""
=============================================================================
PATH RESOLVER
=============================================================================

Maps a request path onto the filesystem below the served root, and
refuses anything that would land outside it.

=============================================================================
PATH TRAVERSAL
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  root        /srv/public                                            │
    │                                                                      │
    │  /docs/a.txt          → /srv/public/docs/a.txt          OK          │
    │  /../secret           → /srv/secret                     FORBIDDEN   │
    │  /%2e%2e/%2e%2e/etc   → decoded first, then normalized  FORBIDDEN   │
    │  /link-to-etc/passwd  → symlink target outside root     FORBIDDEN   │
    │  /link-to-etc/nope    → same, even though nothing there FORBIDDEN   │
    │  /loop                → symlink loop                    NOT FOUND   │
    └─────────────────────────────────────────────────────────────────────┘

Two checks run, in order:

    1. LEXICAL   is_within_root() on normalized strings. Pure, touches
                 nothing on disk; catches "..", encoded separators and
                 absolute-path injection.
    2. PHYSICAL  the candidate with every symlink in its existing prefix
                 followed must sit under the symlink-resolved root.

A request target of ``//etc/passwd`` never reaches here as such: the
request parser reads it as an authority and passes ``/passwd``. Called
directly, resolve() keeps a doubled leading slash under the root.

Only when both pass is the candidate stat'ed. Existence is reported, not
enforced: a safe path with nothing behind it comes back with
``exists=False`` and the dispatcher turns that into a 404.

=============================================================================
"""

import os
import stat
import logging
from dataclasses import dataclass
from pathlib import Path

from ..exceptions import ForbiddenPath


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedPath:
    """
    Where a request path points on disk, and what is there.

    Built per request and discarded with it.
    """

    absolute_path: Path
    exists: bool
    is_directory: bool
    size_bytes: int


def is_within_root(candidate: str, root: str) -> bool:
    """
    Check that ``candidate`` is ``root`` itself or lies below it.

    Both paths are made absolute and normalized (``..`` and duplicate
    separators collapsed) before comparison. Symlinks are not followed.

        >>> is_within_root("/srv/public/a/../b", "/srv/public")
        True
        >>> is_within_root("/srv/public/../secret", "/srv/public")
        False
        >>> is_within_root("/srv/public-old/x", "/srv/public")
        False
    """
    root = os.path.normpath(os.path.abspath(root))
    candidate = os.path.normpath(os.path.abspath(candidate))
    try:
        return os.path.commonpath([root, candidate]) == root
    except ValueError:
        # Different drives on Windows
        return False


def join_url_path(root: str, url_path: str) -> str:
    """
    Append a decoded URL path to the root.

    Plain concatenation: a leading ``/`` (or several) in ``url_path``
    never replaces the root the way ``os.path.join`` would.
    """
    return root.rstrip("/\\") + "/" + url_path.lstrip("/\\")


def resolve(url_path: str, root: str) -> ResolvedPath:
    """
    Resolve a decoded URL path against the served root.

    Args:
        url_path: Percent-decoded request path, e.g. ``/docs/a.txt``.
        root: The served root directory.

    Returns:
        The candidate path with existence, type and size filled in.

    Raises:
        ForbiddenPath: The path escapes ``root``, lexically or via a
                       symlink, or contains a NUL byte.
    """
    root = os.path.abspath(root)
    candidate = os.path.normpath(join_url_path(root, url_path))

    # ─────────────────────────────────────────────────────────────────
    # LEXICAL CHECK
    # ─────────────────────────────────────────────────────────────────
    if "\x00" in url_path or not is_within_root(candidate, root):
        logger.warning(f"Path traversal attempt: {url_path!r}")
        raise ForbiddenPath(url_path)

    full_path = Path(candidate)

    # ─────────────────────────────────────────────────────────────────
    # PHYSICAL CHECK (symlinks)
    # ─────────────────────────────────────────────────────────────────
    # Non-strict resolve() follows every link in the existing prefix, so a
    # missing name behind an escaping link is refused like a present one.
    try:
        real_root = Path(root).resolve()
        real_path = full_path.resolve()
    except (OSError, RuntimeError) as e:
        # Symlink loop
        logger.debug(f"Cannot resolve {url_path!r}: {e}")
        return ResolvedPath(full_path, exists=False, is_directory=False, size_bytes=0)

    if not is_within_root(str(real_path), str(real_root)):
        logger.warning(f"Symlink escapes served root: {url_path!r} -> {real_path}")
        raise ForbiddenPath(url_path)

    # ─────────────────────────────────────────────────────────────────
    # STAT
    # ─────────────────────────────────────────────────────────────────
    try:
        st = full_path.stat()
    except OSError:
        return ResolvedPath(full_path, exists=False, is_directory=False, size_bytes=0)

    return ResolvedPath(
        absolute_path=full_path,
        exists=True,
        is_directory=stat.S_ISDIR(st.st_mode),
        size_bytes=st.st_size,
    )
