"""Named MIDI track extraction.

WHY: Music cues are stored as standard MIDI files wrapped in a raw-file
record. The record has no usable name field, but most tracks carry a
track-name meta-event right after the first MTrk chunk header.

HOW: For each raw-file marker, check the fixed record layout, find the
first MTrk after MThd, and scan a bounded window behind it for a name
meta-event. The payload runs from MThd to the next terminator.

Assumed record layout (offsets relative to the marker)::

    +0   "QZIP\\0RAW_FILE"   13-byte raw-file marker
    +13  12 bytes            record fields (not interpreted)
    +25  "MIDI"              type tag
    +29  4 bytes             payload size (not trusted)
    +33  "MThd"              start of the standard MIDI file

RULES:
- A layout mismatch skips the occurrence; a record cut off by the end
  of the buffer fails it
- Strict names: FF 01/03 <len:1> <text>, cleaned length > 2
- Fallback names: FF 01..0F with length > 5 and a letter in the text
- The whole window is tried strictly before the fallback pass
- No name: UnknownMidi_<n>, n counting unnamed tracks from 0
"""

from __future__ import annotations

import functools
import itertools
import logging
from typing import Iterator, Optional

from bigfile_audio.core.boundary import carve, find_terminator
from bigfile_audio.core.errors import MalformedOccurrence
from bigfile_audio.core.ir import ExtractionRecord, MidiAsset
from bigfile_audio.core.scanner import Buffer, find_pattern, scan_signature
from bigfile_audio.core.signatures import DEFAULT_PROFILE, ScanProfile
from bigfile_audio.extractors.base import BaseExtractor, ExtractionContext
from bigfile_audio.output import strip_invalid_filename_chars

logger = logging.getLogger(__name__)

KIND = "midi"
FALLBACK_NAME = "UnknownMidi_{}"

META_EVENT = 0xFF
TEXT_META_TYPES = (0x01, 0x03)  # text event, sequence/track name
LOOSE_META_TYPES = range(0x01, 0x10)
MIN_STRICT_NAME = 3
MIN_LOOSE_NAME = 6


def clean_midi_name(raw: bytes) -> str:
    """Printable ASCII only, minus characters that are invalid in file names."""
    printable = "".join(chr(b) for b in bytes(raw) if 0x20 <= b <= 0x7E)
    return strip_invalid_filename_chars(printable).strip()


def _meta_text(buffer: Buffer, index: int, limit: int) -> Optional[tuple]:
    """(type, length, cleaned text) of a meta-event at ``index``, or None.

    Nothing at or past ``limit`` is read.
    """
    if buffer[index] != META_EVENT or index + 2 >= limit:
        return None
    event_type = buffer[index + 1]
    length = buffer[index + 2]
    body = index + 3
    return event_type, length, clean_midi_name(buffer[body:min(body + length, limit)])


def find_track_name(
    buffer: Buffer,
    mthd_offset: int,
    profile: ScanProfile = DEFAULT_PROFILE,
) -> Optional[str]:
    """Find a usable track name in the window after the first MTrk, or None.

    The search stays inside this record's payload (MThd up to the next
    terminator), so a record without its own MTrk never borrows the name
    of the record behind it.
    """
    payload_end = find_terminator(buffer, mthd_offset, profile.terminator)
    mtrk = find_pattern(buffer, profile.mtrk.pattern, mthd_offset + len(profile.mthd))
    if mtrk == -1 or mtrk + len(profile.mtrk) > payload_end:
        return None
    start = mtrk + len(profile.mtrk)
    end = min(start + profile.midi_name_window, payload_end)

    for index in range(start, end):
        event = _meta_text(buffer, index, payload_end)
        if event and event[0] in TEXT_META_TYPES and len(event[2]) >= MIN_STRICT_NAME:
            return event[2]

    for index in range(start, end):
        event = _meta_text(buffer, index, payload_end)
        if not event or event[0] not in LOOSE_META_TYPES or event[1] < MIN_LOOSE_NAME:
            continue
        text = event[2]
        if len(text) >= MIN_LOOSE_NAME and any(ch.isalpha() for ch in text):
            return text
    return None


class MidiExtractor(BaseExtractor):
    """Carves ``midi/<name>.mid`` assets."""

    @property
    def kind(self) -> str:
        return KIND

    def extract(self, buffer: Buffer, context: ExtractionContext) -> Iterator[ExtractionRecord]:
        unnamed = itertools.count()
        for occurrence in scan_signature(buffer, context.profile.midi_raw_file):
            context.check_cancelled()
            work = functools.partial(self._carve, buffer, occurrence.offset, context, unnamed)
            yield self.guard(occurrence.offset, work)

    def _carve(
        self,
        buffer: Buffer,
        offset: int,
        context: ExtractionContext,
        unnamed: Iterator[int],
    ) -> ExtractionRecord:
        profile = context.profile
        midi_at = offset + len(profile.midi_raw_file) + profile.midi_magic_gap
        mthd_at = midi_at + len(profile.midi) + profile.mthd_gap
        if mthd_at + len(profile.mthd) > len(buffer):
            raise MalformedOccurrence(offset, "raw-file record truncated by end of buffer")

        if not profile.midi.matches_at(buffer, midi_at):
            return ExtractionRecord.skipped(
                KIND, offset, "no MIDI magic at +0x{:X}".format(midi_at - offset),
            )
        if not profile.mthd.matches_at(buffer, mthd_at):
            return ExtractionRecord.skipped(
                KIND, offset, "no MThd header at +0x{:X}".format(mthd_at - offset),
            )

        data = carve(buffer, mthd_at, profile.terminator)
        if data is None:
            return ExtractionRecord.skipped(KIND, offset, "empty MIDI payload")

        name = find_track_name(buffer, mthd_at, profile)
        fallback = name is None
        if name is None:
            name = context.fallback_name(FALLBACK_NAME.format(next(unnamed)))
            logger.debug("No track name for MIDI at 0x%X, using %s", offset, name)

        asset = MidiAsset(name=name, data=data, source_offset=offset, fallback_name=fallback)
        return ExtractionRecord.extracted(KIND, asset, name)
