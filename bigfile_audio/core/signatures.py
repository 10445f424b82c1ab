"""Byte signatures and the shared scan profile.

WHY: The archive has no schema, only recurring markers. Every extractor
relies on the same marker bytes and on a handful of heuristic constants
(terminator run, name-length ceiling, probe counts). Declaring them once
keeps the extractors from drifting apart.

HOW: Signature is a frozen (name, pattern) pair. ScanProfile bundles all
signatures plus the heuristic tunables into one frozen object that is
passed into every extractor. DEFAULT_PROFILE is the profile observed in
the retail PC archive.

RULES:
- Signatures are never mutated after import
- A Signature with an empty pattern cannot be constructed
- ScanProfile is read-only and safe to share between threads
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from bigfile_audio.config import LANGUAGE_MAP
from bigfile_audio.core.errors import InvalidPattern


@dataclass(frozen=True)
class Signature:
    """A named, immutable byte pattern."""

    name: str
    pattern: bytes

    def __post_init__(self) -> None:
        if not self.pattern:
            raise InvalidPattern("signature {!r} has an empty pattern".format(self.name))

    def __len__(self) -> int:
        return len(self.pattern)

    def matches_at(self, buffer: bytes, offset: int) -> bool:
        """True if the pattern sits at ``offset`` (bounds-checked)."""
        if offset < 0 or offset + len(self.pattern) > len(buffer):
            return False
        return buffer[offset:offset + len(self.pattern)] == self.pattern


# ---------------------------------------------------------------------------
# Archive markers
# ---------------------------------------------------------------------------

BANK_DATA = Signature("bank-data", b"CSNDBKDT")
BANK_NAME = Signature("bank-name", b"CSNDBNK_")
DIALOGUE_CONTAINER = Signature("dialogue-container", b"CSNDDATA")
RIFF = Signature("riff", b"RIFF")
MIDI_RAW_FILE = Signature("midi-raw-file", b"QZIP\x00RAW_FILE")
MIDI = Signature("midi", b"MIDI")
MTHD = Signature("mthd", b"MThd")
MTRK = Signature("mtrk", b"MTrk")
BANK_HEADER = Signature("bkhd", b"BKHD")
TERMINATOR = Signature("terminator", b"\x2D" * 6)


@dataclass(frozen=True)
class ScanProfile:
    """All signatures and heuristic constants used by one scan.

    RULES:
    - max_name_length: length fields outside (0, max_name_length] are rejected
    - name_probe_count: lookahead probes for a superseding name field
    - midi_magic_gap: bytes between the raw-file marker and the MIDI magic
    - mthd_gap: bytes between the MIDI magic and the MThd header
    - midi_name_window: bytes after MTrk searched for a name meta-event
    - large_numeric_length: all-digit path segments longer than this are noise
    - language_map: 3-letter code -> output folder name
    """

    bank_data: Signature = BANK_DATA
    bank_name: Signature = BANK_NAME
    dialogue_container: Signature = DIALOGUE_CONTAINER
    riff: Signature = RIFF
    midi_raw_file: Signature = MIDI_RAW_FILE
    midi: Signature = MIDI
    mthd: Signature = MTHD
    mtrk: Signature = MTRK
    bank_header: Signature = BANK_HEADER
    terminator: Signature = TERMINATOR

    max_name_length: int = 1000
    name_probe_count: int = 0x20
    midi_magic_gap: int = 12
    mthd_gap: int = 4
    midi_name_window: int = 200
    large_numeric_length: int = 10
    language_map: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(dict(LANGUAGE_MAP)),
        hash=False,
    )


DEFAULT_PROFILE = ScanProfile()
