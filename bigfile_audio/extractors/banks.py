"""Sound bank extraction.

WHY: Wwise sound banks sit in the archive behind a bank-data marker, with
their names stored separately behind bank-name markers. Neither carries a
length or a back-reference, so banks are carved to the next terminator
and paired with names purely by position.

HOW: Scan both markers. Resolve every name occurrence through the
length-prefixed name reader, keeping successes in scan order. For the
i-th bank-data occurrence, carve to the next terminator, drop everything
before the BKHD sub-header, and name it with the i-th resolved name or
``UNK_BANK_<i>``.

RULES:
- Unresolved names are dropped, which can shift later pairings
- Diverging name/bank counts are logged and added to the volume warnings
- A range without BKHD yields an empty BankAsset, recorded as skipped
- Each bank occurrence is guarded individually
"""

from __future__ import annotations

import functools
import logging
from typing import Iterator, List

from bigfile_audio.core.boundary import carve
from bigfile_audio.core.ir import BankAsset, ExtractionRecord
from bigfile_audio.core.names import read_length_prefixed_name
from bigfile_audio.core.scanner import Buffer, scan_signature
from bigfile_audio.core.signatures import BANK_HEADER, DEFAULT_PROFILE, ScanProfile, Signature
from bigfile_audio.extractors.base import OCCURRENCE_ERRORS, BaseExtractor, ExtractionContext

logger = logging.getLogger(__name__)

KIND = "banks"
FALLBACK_NAME = "UNK_BANK_{}"


def resolve_bank_names(buffer: Buffer, profile: ScanProfile = DEFAULT_PROFILE) -> List[str]:
    """Resolve every bank-name occurrence, in scan order, dropping misses."""
    names: List[str] = []
    misses = 0
    for occurrence in scan_signature(buffer, profile.bank_name):
        try:
            name = read_length_prefixed_name(
                buffer,
                occurrence.offset,
                max_length=profile.max_name_length,
                probe_count=profile.name_probe_count,
            )
        except OCCURRENCE_ERRORS as exc:
            logger.debug("Bank name at 0x%X unreadable: %s", occurrence.offset, exc)
            name = None
        if name is None:
            misses += 1
            continue
        names.append(name)
    if misses:
        logger.warning("%d bank name(s) could not be resolved; later pairings may drift", misses)
    return names


def fix_bank_header(data: bytes, header: Signature = BANK_HEADER) -> bytes:
    """Strip everything before the first BKHD; empty if there is none."""
    index = data.find(header.pattern)
    if index == -1:
        return b""
    return data[index:]


class BankExtractor(BaseExtractor):
    """Carves ``banks/<name>.bnk`` assets."""

    @property
    def kind(self) -> str:
        return KIND

    def extract(self, buffer: Buffer, context: ExtractionContext) -> Iterator[ExtractionRecord]:
        profile = context.profile
        names = resolve_bank_names(buffer, profile)
        occurrences = scan_signature(buffer, profile.bank_data)

        if len(names) != len(occurrences):
            message = (
                "bank name/offset count mismatch: {} resolved names for {} bank markers; "
                "positional pairing needs review".format(len(names), len(occurrences))
            )
            logger.warning(message)
            context.warnings.append(message)

        for index, occurrence in enumerate(occurrences):
            context.check_cancelled()
            work = functools.partial(self._carve, buffer, occurrence.offset, index, names, context)
            yield self.guard(occurrence.offset, work)

    def _carve(
        self,
        buffer: Buffer,
        offset: int,
        index: int,
        names: List[str],
        context: ExtractionContext,
    ) -> ExtractionRecord:
        profile = context.profile
        raw = carve(buffer, offset, profile.terminator)
        if raw is None:
            return ExtractionRecord.skipped(KIND, offset, "empty range before terminator")

        if index < len(names):
            name, fallback = names[index], False
        else:
            name, fallback = context.fallback_name(FALLBACK_NAME.format(index)), True

        asset = BankAsset(
            name=name,
            data=fix_bank_header(raw, profile.bank_header),
            source_offset=offset,
            fallback_name=fallback,
        )
        if not asset.data:
            logger.warning("Bank %s at 0x%X has no BKHD sub-header", name, offset)
            return ExtractionRecord.skipped(
                KIND, offset, "no BKHD sub-header", name=name, fallback_name=fallback, asset=asset,
            )
        return ExtractionRecord.extracted(KIND, asset, name)


def extract_banks(buffer: Buffer, context: ExtractionContext | None = None) -> List[BankAsset]:
    """Carve every bank in ``buffer`` without writing anything.

    Returns the BankAssets in occurrence order, including empty ones for
    ranges without a BKHD sub-header. Failed occurrences are omitted.
    """
    context = context or ExtractionContext()
    return [
        record.asset
        for record in BankExtractor().extract(buffer, context)
        if isinstance(record.asset, BankAsset)
    ]
