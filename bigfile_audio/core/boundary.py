"""Terminator-based block boundary detection.

WHY: Nothing in the archive records how long a block is. Blocks are
followed by an ad hoc sentinel of six 0x2D bytes, so the end of an asset
is "the next terminator run, or the end of the volume".

HOW: A forward linear search for the terminator starting at the asset's
first byte. The end of the buffer counts as an implicit terminator, which
tolerates truncated or concatenated volumes.

RULES:
- find_terminator never fails; it returns len(buffer) when no run exists
- carve() returns None for zero-or-negative-length ranges
- carve() copies bytes out of the container
"""

from __future__ import annotations

from typing import Optional

from bigfile_audio.core.scanner import Buffer, find_pattern
from bigfile_audio.core.signatures import TERMINATOR, Signature


def find_terminator(
    buffer: Buffer,
    from_offset: int,
    terminator: Signature = TERMINATOR,
) -> int:
    """Offset of the first terminator run at or after ``from_offset``, else len(buffer)."""
    end = find_pattern(buffer, terminator.pattern, from_offset)
    return len(buffer) if end == -1 else end


def carve(
    buffer: Buffer,
    start: int,
    terminator: Signature = TERMINATOR,
) -> Optional[bytes]:
    """Copy ``buffer[start:find_terminator(start))``, or None if that range is empty."""
    if start < 0 or start >= len(buffer):
        return None
    end = find_terminator(buffer, start, terminator)
    if end - start <= 0:
        return None
    return bytes(buffer[start:end])
