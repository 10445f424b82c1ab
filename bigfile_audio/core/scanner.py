"""Exact multi-occurrence byte-pattern search.

WHY: Every asset in the archive is located by a marker, and a marker can
appear thousands of times in a multi-gigabyte volume. The scanner must
report every occurrence, including overlapping ones, in order.

HOW: Knuth–Morris–Pratt. The failure table is built once per pattern in
O(|pattern|), then the buffer is walked once in O(|buffer|). After a full
match the scan falls back through the failure table instead of restarting,
so "AA" in "AAA" matches at 0 and 1. While no prefix is matched the scan
jumps straight to the next byte equal to the pattern's first byte.

RULES:
- Empty patterns raise InvalidPattern (never an empty result)
- Offsets are strictly ascending and deterministic
- Pure functions: no state survives between calls
"""

from __future__ import annotations

from typing import List, Union

from bigfile_audio.core.errors import InvalidPattern
from bigfile_audio.core.ir import Occurrence
from bigfile_audio.core.signatures import Signature

Buffer = Union[bytes, bytearray, memoryview]


def build_failure_table(pattern: bytes) -> List[int]:
    """Longest proper prefix that is also a suffix, for each prefix of pattern."""
    table = [0] * len(pattern)
    length = 0
    i = 1
    while i < len(pattern):
        if pattern[i] == pattern[length]:
            length += 1
            table[i] = length
            i += 1
        elif length:
            length = table[length - 1]
        else:
            table[i] = 0
            i += 1
    return table


def scan(buffer: Buffer, pattern: bytes) -> List[int]:
    """Return every offset where ``pattern`` occurs in ``buffer``.

    Overlapping occurrences are all reported.

    Raises:
        InvalidPattern: if ``pattern`` is empty.
    """
    if not pattern:
        raise InvalidPattern("cannot scan for an empty pattern")

    data = bytes(buffer) if isinstance(buffer, memoryview) else buffer
    table = build_failure_table(pattern)
    size = len(pattern)
    first = pattern[0]
    end = len(data)
    matches: List[int] = []

    j = 0
    i = 0
    while i < end:
        if j == 0:
            # Nothing matched yet: skip ahead to the next candidate start.
            i = data.find(first, i)
            if i == -1:
                break
        byte = data[i]
        while j > 0 and byte != pattern[j]:
            j = table[j - 1]
        if byte == pattern[j]:
            j += 1
            if j == size:
                matches.append(i - size + 1)
                j = table[j - 1]
        i += 1
    return matches


def scan_signature(buffer: Buffer, signature: Signature) -> List[Occurrence]:
    """Scan for a named signature and wrap each hit as an Occurrence."""
    return [Occurrence(offset, signature) for offset in scan(buffer, signature.pattern)]


def find_pattern(buffer: Buffer, pattern: bytes, start: int = 0) -> int:
    """Return the first offset >= ``start`` where ``pattern`` occurs, or -1.

    Raises:
        InvalidPattern: if ``pattern`` is empty.
    """
    if not pattern:
        raise InvalidPattern("cannot search for an empty pattern")
    if start < 0:
        start = 0
    if start >= len(buffer):
        return -1
    data = bytes(buffer) if isinstance(buffer, memoryview) else buffer
    return data.find(pattern, start)
