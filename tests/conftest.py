"""Shared fixtures for the bigfile_audio test suite.

WHY: Real archive volumes are multi-gigabyte and copyrighted, so every
test works on small synthetic containers assembled from the same marker
layout the extractors expect. Centralizing the builders keeps the byte
layouts in one place.

HOW: ContainerBuilder appends marker blocks (bank names, bank data,
dialogue, MIDI records) and returns the container bytes. make_bank builds
a minimal Wwise sound bank with BKHD, DIDX and DATA sections.

RULES:
- Every block ends with the six-byte terminator run
- Bank-name blocks are followed by zero padding so the superseding-field
  search never reaches the next block
- Payload bytes never contain 0x2D runs, 0xFF, or marker text
"""

import struct
from typing import Dict, Optional

import pytest

from bigfile_audio.core.signatures import (
    BANK_DATA,
    BANK_NAME,
    DIALOGUE_CONTAINER,
    MIDI_RAW_FILE,
    TERMINATOR,
)

NAME_PADDING = b"\x00" * 40

# MThd chunk: length 6, format 0, one track, 96 ticks per quarter note
MTHD_CHUNK = b"MThd" + struct.pack(">IHHH", 6, 0, 1, 96)
NOTE_EVENTS = b"\x00\x90\x3c\x40\x60\x80\x3c\x00"


def length_prefixed(text: str) -> bytes:
    raw = text.encode("utf-8")
    return struct.pack("<i", len(raw)) + raw


class ContainerBuilder:
    """Assembles a synthetic container volume block by block."""

    def __init__(self) -> None:
        self._parts = []

    def raw(self, data: bytes) -> "ContainerBuilder":
        self._parts.append(data)
        return self

    def bank_name(self, name: str, placeholder: Optional[str] = None) -> "ContainerBuilder":
        """Bank-name marker, 3 filler bytes, then one or two length-prefixed fields."""
        block = BANK_NAME.pattern + b"\x00\x00\x00"
        if placeholder is not None:
            block += length_prefixed(placeholder)
        block += length_prefixed(name)
        return self.raw(block + NAME_PADDING)

    def bank(self, body: bytes, garbage: bytes = b"\x01\x02\x03") -> "ContainerBuilder":
        """Bank-data marker, pre-header garbage, the bank body, terminator."""
        return self.raw(BANK_DATA.pattern + garbage + body + TERMINATOR.pattern)

    def dialogue(self, label: bytes, payload: bytes) -> "ContainerBuilder":
        return self.raw(
            DIALOGUE_CONTAINER.pattern + label + b"RIFF" + payload + TERMINATOR.pattern
        )

    def midi(
        self,
        track_name: Optional[str] = None,
        meta_type: int = 0x03,
        magic: bytes = b"MIDI",
    ) -> "ContainerBuilder":
        """Raw-file record wrapping a one-track standard MIDI file."""
        track = b""
        if track_name is not None:
            name = track_name.encode("ascii")
            track += b"\x00\xff" + bytes([meta_type, len(name)]) + name
        track += NOTE_EVENTS + b"\x00\xff\x2f\x00"
        smf = MTHD_CHUNK + b"MTrk" + struct.pack(">I", len(track)) + track
        record = (
            MIDI_RAW_FILE.pattern
            + b"\x00" * 12
            + magic
            + struct.pack("<I", len(smf))
            + smf
        )
        return self.raw(record + TERMINATOR.pattern)

    def build(self) -> bytes:
        return b"".join(self._parts)


def build_bank(wems: Dict[int, bytes], bank_id: int = 0x1234, version: int = 113) -> bytes:
    """A minimal sound bank: BKHD, DIDX (one entry per WEM) and DATA."""
    bkhd_body = struct.pack("<II", version, bank_id)
    didx_body = b""
    data_body = b""
    for wem_id, payload in wems.items():
        didx_body += struct.pack("<III", wem_id, len(data_body), len(payload))
        data_body += payload
    sections = [(b"BKHD", bkhd_body), (b"DIDX", didx_body), (b"DATA", data_body)]
    return b"".join(tag + struct.pack("<I", len(body)) + body for tag, body in sections)


@pytest.fixture
def builder():
    """A fresh ContainerBuilder."""
    return ContainerBuilder()


@pytest.fixture
def make_bank():
    """The build_bank() factory."""
    return build_bank


@pytest.fixture
def sample_container():
    """One named bank, one English and one French dialogue clip, one named MIDI track."""
    return (
        ContainerBuilder()
        .bank_name("Music_Main")
        .bank(b"BKHD" + b"\x08\x00\x00\x00" + b"\x71\x00\x00\x00\x01\x00\x00\x00")
        .dialogue(b"\x00\x01GARBAGEX_PATHA_PATHB_12345678901_FILE_ENG\x00", b"\x10" * 30)
        .dialogue(b"\x00\x01GARBAGEX_PATHA_OTHER_FRE\x00", b"\x11" * 20)
        .midi("Battle Theme")
        .build()
    )
