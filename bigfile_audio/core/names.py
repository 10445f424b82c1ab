"""Length-prefixed name decoding with bounded resynchronisation.

WHY: Bank names are stored near a name marker as ``[1 byte][int32 LE
length][UTF-8 text]``, but the marker byte can recur and the first text
field is often an unused placeholder. The true name is usually the
*second* of two adjacent length-prefixed fields.

HOW: Starting at the marker, skip one byte and read a signed 32-bit
length. Implausible lengths (outside (0, max_length] or running past the
buffer) make the reader advance and try again. Once a non-empty candidate
decodes, up to ``probe_count`` following byte positions are reinterpreted
as a new length field; the first non-empty secondary decode supersedes
the first candidate.

RULES:
- Text is decoded as strict UTF-8; a decode error counts as no match
- An empty decode is not a match; the reader keeps scanning
- Returns None when the buffer ends without a viable candidate
"""

from __future__ import annotations

import struct
from typing import Optional

from bigfile_audio.core.scanner import Buffer

_LENGTH = struct.Struct("<i")

DEFAULT_MAX_NAME_LENGTH = 1000
DEFAULT_PROBE_COUNT = 0x20


def _decode(raw: Buffer) -> Optional[str]:
    try:
        return bytes(raw).decode("utf-8")
    except UnicodeDecodeError:
        return None


def _probe_following_field(
    buffer: Buffer,
    start: int,
    max_length: int,
    probe_count: int,
) -> Optional[str]:
    """Look for a second length-prefixed field in the bytes after a candidate."""
    size = len(buffer)
    probe = start
    for _ in range(probe_count):
        if probe + _LENGTH.size >= size:
            break
        (length,) = _LENGTH.unpack_from(buffer, probe)
        body = probe + _LENGTH.size
        if 0 < length <= max_length and body + length <= size:
            text = _decode(buffer[body:body + length])
            if text:
                return text
        probe += 1
    return None


def read_length_prefixed_name(
    buffer: Buffer,
    offset: int,
    max_length: int = DEFAULT_MAX_NAME_LENGTH,
    probe_count: int = DEFAULT_PROBE_COUNT,
) -> Optional[str]:
    """Decode the name stored after ``offset``, or None.

    Args:
        buffer: The container bytes.
        offset: Offset of the name marker.
        max_length: Largest plausible length field.
        probe_count: How many positions after the first candidate are
            tried as a superseding length field.

    Returns:
        The decoded name (the later field when one follows), or None.
    """
    size = len(buffer)
    pos = offset
    while pos < size:
        pos += 1
        if pos + _LENGTH.size > size:
            return None
        (length,) = _LENGTH.unpack_from(buffer, pos)
        pos += _LENGTH.size

        if length <= 0 or length > max_length:
            continue
        if pos + length > size:
            continue

        candidate = _decode(buffer[pos:pos + length])
        if candidate:
            better = _probe_following_field(buffer, pos + length, max_length, probe_count)
            return better if better else candidate

        pos += length
    return None
