"""Wwise sound bank (.bnk) splitter.

WHY: Carved banks still bundle their embedded WEM streams. Downstream
converters work on individual WEM files, so each bank is unpacked into
``wem/banks/<bank name>/<wem id>.wem``.

HOW: A bank is a flat sequence of ``[4-byte tag][u32 size][body]``
sections. BKHD holds the bank version and id, DIDX holds 12-byte
``(id, offset, size)`` entries, and DATA holds the streams; every DIDX
offset is relative to the start of the DATA body. Other sections (HIRC,
STID, ...) are skipped by size.

RULES:
- Sizes are little-endian unless swap_byte_order is set (console banks)
- A section running past the end of the bank raises BankFormatError
- A bank without DIDX or DATA has nothing to split (empty result)
- A DIDX entry pointing outside the bank raises BankFormatError
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from bigfile_audio.core.errors import BankFormatError

logger = logging.getLogger(__name__)

SECTION_HEADER_SIZE = 8
DIDX_ENTRY_SIZE = 12


@dataclass
class BankIndexEntry:
    wem_id: int
    offset: int
    size: int


@dataclass
class BankInfo:
    """Parsed section layout of one sound bank."""

    version: int
    bank_id: int
    entries: List[BankIndexEntry] = field(default_factory=list)
    data_offset: Optional[int] = None
    sections: List[str] = field(default_factory=list)


def read_bank(data: bytes, swap_byte_order: bool = False) -> BankInfo:
    """Walk the sections of a bank and collect its header and WEM index.

    Raises:
        BankFormatError: if BKHD is missing or a section overruns the data.
    """
    endian = ">" if swap_byte_order else "<"
    section_size = struct.Struct(endian + "I")
    header = struct.Struct(endian + "II")
    entry = struct.Struct(endian + "III")

    version: Optional[int] = None
    bank_id = 0
    entries: List[BankIndexEntry] = []
    data_offset: Optional[int] = None
    sections: List[str] = []

    pos = 0
    while pos + SECTION_HEADER_SIZE <= len(data):
        tag = data[pos:pos + 4]
        (size,) = section_size.unpack_from(data, pos + 4)
        body = pos + SECTION_HEADER_SIZE
        if body + size > len(data):
            raise BankFormatError(
                "section {!r} at 0x{:X} overruns the bank ({} bytes)".format(tag, pos, size)
            )
        sections.append(tag.decode("ascii", errors="replace"))

        if tag == b"BKHD" and size >= header.size:
            version, bank_id = header.unpack_from(data, body)
        elif tag == b"DIDX":
            for start in range(body, body + size - size % DIDX_ENTRY_SIZE, DIDX_ENTRY_SIZE):
                entries.append(BankIndexEntry(*entry.unpack_from(data, start)))
        elif tag == b"DATA":
            data_offset = body

        pos = body + size

    if version is None:
        raise BankFormatError("no BKHD section")
    return BankInfo(version, bank_id, entries, data_offset, sections)


def iter_wems(data: bytes, info: BankInfo) -> Iterator[Tuple[int, bytes]]:
    """Yield ``(wem_id, bytes)`` for every DIDX entry."""
    if info.data_offset is None:
        return
    for item in info.entries:
        start = info.data_offset + item.offset
        end = start + item.size
        if end > len(data):
            raise BankFormatError(
                "WEM {} (0x{:X}+{}) lies outside the bank".format(item.wem_id, start, item.size)
            )
        yield item.wem_id, data[start:end]


def split_bank(data: bytes, out_dir: Path, swap_byte_order: bool = False) -> List[Path]:
    """Write every WEM in a bank to ``out_dir/<id>.wem``."""
    info = read_bank(data, swap_byte_order)
    logger.debug("Bank id %d, version %d, sections %s", info.bank_id, info.version, info.sections)
    if info.data_offset is None or not info.entries:
        logger.info("No WEM files discovered in bank %d", info.bank_id)
        return []

    out_dir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []
    for wem_id, payload in iter_wems(data, info):
        path = out_dir / "{}.wem".format(wem_id)
        path.write_bytes(payload)
        written.append(path)
    return written


def split_bank_file(bank_path: Path, wem_root: Path, swap_byte_order: bool = False) -> List[Path]:
    """Split ``bank_path`` into ``wem_root/<bank stem>/``."""
    bank_path = Path(bank_path)
    return split_bank(bank_path.read_bytes(), Path(wem_root) / bank_path.stem, swap_byte_order)
