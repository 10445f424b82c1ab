"""Language-tagged dialogue extraction.

WHY: Spoken dialogue is stored as loose WEM payloads, each preceded by a
dialogue-container marker and a noisy label that encodes the clip's
logical path and a trailing 3-letter language tag, e.g.
``..X_Chapter_Scene_12345678901_Line_ENG`` followed by ``RIFF``.

HOW: For each dialogue marker, take the bytes up to the next RIFF magic,
keep only ``[A-Za-z0-9_]``, trim through the leading ``X`` (the second
one when the first sits in the first 3 characters), pull the language
code off the end, and split the rest on underscores into path segments.
The last segment is the file name. The WEM payload runs from RIFF to the
next terminator.

RULES:
- No RIFF after the marker: skip the occurrence
- Language code: first 3 letters after the last usable underscore, else "UNK"
- Candidates whose code is not selected are skipped, not failed
- Empty segments and all-digit segments longer than 10 chars are dropped
- No segments left: the single segment "UnknownDialogue"
"""

from __future__ import annotations

import functools
import logging
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from bigfile_audio.config import UNKNOWN_LANGUAGE_CODE, UNKNOWN_LANGUAGE_FOLDER
from bigfile_audio.core.boundary import carve
from bigfile_audio.core.ir import DialogueAsset, ExtractionRecord
from bigfile_audio.core.scanner import Buffer, find_pattern, scan_signature
from bigfile_audio.core.signatures import DEFAULT_PROFILE, ScanProfile
from bigfile_audio.extractors.base import BaseExtractor, ExtractionContext

logger = logging.getLogger(__name__)

KIND = "dialogue"
FALLBACK_LEAF = "UnknownDialogue"

_NOT_TOKEN_RE = re.compile(rb"[^A-Za-z0-9_]+")


@dataclass
class DialogueLabel:
    """The parsed label of one dialogue clip."""

    language_code: str
    language_folder: str
    path_segments: List[str]
    file_name_leaf: str
    code_found: bool = True

    @property
    def fallback(self) -> bool:
        return not self.code_found or self.file_name_leaf == FALLBACK_LEAF

    @property
    def display_name(self) -> str:
        return "/".join(self.path_segments + [self.file_name_leaf])


def clean_label(raw: bytes) -> str:
    """Keep ASCII letters, digits and underscores; drop everything else."""
    return _NOT_TOKEN_RE.sub(b"", bytes(raw)).decode("ascii")


def trim_leading_noise(text: str) -> str:
    """Drop everything up to and including the path-start ``X``.

    An ``X`` within the first 3 characters is leftover marker noise, so
    the second ``X`` is used instead. Without any ``X`` the text is
    returned unchanged.
    """
    index = text.find("X")
    if index != -1 and index < 3:
        index = text.find("X", index + 1)
    if index == -1:
        return text
    return text[index + 1:]


def split_language_code(text: str) -> Tuple[Optional[str], str]:
    """Split the trailing language code off ``text``.

    Walks underscores from the last one backwards; the first underscore
    followed by three letters wins.

    Returns:
        (code, remainder). code is None and text unchanged when no
        underscore yields three letters.
    """
    underscore = text.rfind("_")
    while underscore != -1:
        candidate = text[underscore + 1:underscore + 4].upper()
        code = "".join(ch for ch in candidate if ch.isalpha())
        if len(code) == 3:
            return code, text[:underscore]
        underscore = text.rfind("_", 0, underscore)
    return None, text


def is_noise_segment(segment: str, max_digits: int = 10) -> bool:
    """All-digit segments longer than ``max_digits`` are hashes/ids, not path parts."""
    return segment.isdigit() and len(segment) > max_digits


def split_path_segments(text: str, max_digits: int = 10) -> List[str]:
    segments = [s for s in text.split("_") if s and not is_noise_segment(s, max_digits)]
    return segments or [FALLBACK_LEAF]


def parse_dialogue_label(raw: bytes, profile: ScanProfile = DEFAULT_PROFILE) -> DialogueLabel:
    """Turn the raw bytes between a dialogue marker and RIFF into a label."""
    text = trim_leading_noise(clean_label(raw))
    code, text = split_language_code(text)
    code_found = code is not None
    if code is None:
        code = UNKNOWN_LANGUAGE_CODE

    segments = split_path_segments(text, profile.large_numeric_length)
    return DialogueLabel(
        language_code=code,
        language_folder=profile.language_map.get(code, UNKNOWN_LANGUAGE_FOLDER),
        path_segments=segments[:-1],
        file_name_leaf=segments[-1],
        code_found=code_found,
    )


class DialogueExtractor(BaseExtractor):
    """Carves ``wem/dialogue/<LANGUAGE>/.../<leaf>.wem`` assets."""

    @property
    def kind(self) -> str:
        return KIND

    def extract(self, buffer: Buffer, context: ExtractionContext) -> Iterator[ExtractionRecord]:
        if not context.languages:
            return
        for occurrence in scan_signature(buffer, context.profile.dialogue_container):
            context.check_cancelled()
            work = functools.partial(self._carve, buffer, occurrence.offset, context)
            yield self.guard(occurrence.offset, work)

    def _carve(self, buffer: Buffer, offset: int, context: ExtractionContext) -> ExtractionRecord:
        profile = context.profile
        start = offset + len(profile.dialogue_container)
        if start >= len(buffer):
            return ExtractionRecord.skipped(KIND, offset, "marker at end of buffer")

        riff = find_pattern(buffer, profile.riff.pattern, start)
        if riff == -1:
            return ExtractionRecord.skipped(KIND, offset, "no RIFF payload after marker")
        if riff - start <= 0:
            return ExtractionRecord.skipped(KIND, offset, "empty label")

        label = parse_dialogue_label(buffer[start:riff], profile)
        if not label.code_found:
            logger.warning("No language code in dialogue at 0x%X, using %s", offset, UNKNOWN_LANGUAGE_CODE)

        if label.language_code not in context.languages:
            logger.debug("Skipping dialogue at 0x%X with language %s", offset, label.language_code)
            return ExtractionRecord.skipped(
                KIND, offset, "language {} not selected".format(label.language_code),
                name=label.display_name,
            )

        data = carve(buffer, riff, profile.terminator)
        if data is None:
            return ExtractionRecord.skipped(KIND, offset, "empty WEM payload", name=label.display_name)

        asset = DialogueAsset(
            language_code=label.language_code,
            language_folder=label.language_folder,
            path_segments=label.path_segments,
            file_name_leaf=label.file_name_leaf,
            data=data,
            source_offset=offset,
            fallback_name=label.fallback,
        )
        return ExtractionRecord.extracted(KIND, asset, label.display_name)
