"""
=============================================================================
RANGE PARSER
=============================================================================

Turns a ``Range`` header into a concrete byte interval of a resource.

Only a single ``start-end`` pair is understood (a simplified RFC 7233):

    ┌─────────────────────────────────────────────────────────────────────┐
    │  Range header          size=1000     outcome                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │  (absent)                            NO_RANGE         → 200         │
    │  bytes=0-99                          bytes 0-99       → 206         │
    │  bytes=500-                          bytes 500-999    → 206         │
    │  bytes=-1                            bytes 0-1        → 206         │
    │  bytes=abc-10                        bytes 0-10       → 206         │
    │  bytes=0-1000                        UNSATISFIABLE    → 416         │
    │  bytes=900-100                       UNSATISFIABLE    → 416         │
    │  bytes=0-9,20-29                     bytes 0-999      → 206         │
    └─────────────────────────────────────────────────────────────────────┘

Missing or non-numeric bounds take defaults (start 0, end size-1) rather
than failing. A list of ranges is not split: only the text up to the
second ``-`` is read, so ``0-9,20-29`` has a non-numeric end.

An inverted range (start > end) is unsatisfiable.

=============================================================================
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional


_DIGITS = re.compile(r"[0-9]+")


class RangeKind(Enum):
    """What a Range header asked for, once checked against the size."""

    NONE = "none"
    SATISFIABLE = "satisfiable"
    UNSATISFIABLE = "unsatisfiable"


@dataclass(frozen=True)
class ByteRange:
    """Inclusive byte interval ``[start, end]``."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, size: int) -> str:
        """Value for the Content-Range header, e.g. ``bytes 0-99/5000``."""
        return f"bytes {self.start}-{self.end}/{size}"


@dataclass(frozen=True)
class RangeOutcome:
    """
    Result of parsing a Range header.

    ``byte_range`` is set only when ``kind`` is SATISFIABLE.
    """

    kind: RangeKind
    byte_range: Optional[ByteRange] = None

    @property
    def is_satisfiable(self) -> bool:
        return self.kind is RangeKind.SATISFIABLE

    @property
    def is_unsatisfiable(self) -> bool:
        return self.kind is RangeKind.UNSATISFIABLE


NO_RANGE = RangeOutcome(RangeKind.NONE)
UNSATISFIABLE = RangeOutcome(RangeKind.UNSATISFIABLE)


def _parse_bound(text: str) -> Optional[int]:
    """An unsigned decimal, or None for anything else."""
    text = text.strip()
    if _DIGITS.fullmatch(text):
        return int(text)
    return None


def parse_range(header: Optional[str], size: int) -> RangeOutcome:
    """
    Parse a Range header against a resource of ``size`` bytes.

    Args:
        header: The raw header value, or None when absent.
        size: Resource size in bytes.

    Returns:
        NO_RANGE, UNSATISFIABLE, or a satisfiable outcome carrying the
        ByteRange to send.
    """
    if header is None:
        return NO_RANGE

    value = header.strip().replace("bytes=", "", 1)
    parts = value.split("-")

    req_start = _parse_bound(parts[0])
    req_end = _parse_bound(parts[1]) if len(parts) > 1 else None

    start = 0 if req_start is None else req_start
    end = size - 1 if req_end is None else req_end

    # Some clients probe for range support with -1
    start = max(start, 0)
    end = max(end, 0)

    if start >= size or end >= size or start > end:
        return UNSATISFIABLE

    return RangeOutcome(RangeKind.SATISFIABLE, ByteRange(start, end))
