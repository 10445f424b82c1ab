"""Intermediate representation dataclasses for carved assets and results.

WHY: The archive has no schema, so extraction is a stream of guesses.
Downstream code (the session's writer, the CLI summary, the JSON report,
tests) needs every guess as a typed value, either an asset with bytes or
an explicit reason why nothing was carved, instead of console output.

HOW: Three asset dataclasses (one per kind) hold copied-out bytes.
ExtractionRecord wraps one occurrence's outcome. VolumeReport aggregates
the records of one container volume.

RULES:
- Asset bytes are copies, never views into the container buffer
- Every occurrence produces exactly one ExtractionRecord
- Records are kept in scan order; partitions are derived, not stored
- The asset reference on a record is cleared once the asset is written
"""

from __future__ import annotations

import enum
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from bigfile_audio.core.signatures import Signature


@dataclass(frozen=True)
class Occurrence:
    """One signature hit inside a container."""

    offset: int
    signature: Signature


@dataclass
class BankAsset:
    """A sound bank carved from a bank-data occurrence.

    RULES:
    - data starts at the BKHD sub-header, or is empty if none was found
    - fallback_name is True when name is a synthetic UNK_BANK_<i>
    """

    name: str
    data: bytes
    source_offset: int
    fallback_name: bool = False


@dataclass
class DialogueAsset:
    """A language-tagged dialogue WEM carved from a dialogue container.

    RULES:
    - language_code: 3 upper-case letters as found (may be missing from the table)
    - language_folder: LANGUAGE_MAP value, or "UNKNOWN"
    - path_segments: directories below the language folder, in order
    - file_name_leaf: file name without extension
    """

    language_code: str
    language_folder: str
    path_segments: List[str]
    file_name_leaf: str
    data: bytes
    source_offset: int
    fallback_name: bool = False


@dataclass
class MidiAsset:
    """A MIDI file carved from a raw-file record (starts at MThd)."""

    name: str
    data: bytes
    source_offset: int
    fallback_name: bool = False


Asset = Union[BankAsset, DialogueAsset, MidiAsset]


class Outcome(str, enum.Enum):
    """What happened to one occurrence.

    RULES:
    - extracted: an asset was carved (and written, once the session is done)
    - skipped: intentionally dropped (no payload, language not selected, ...)
    - failed: a malformed occurrence; scanning continued past it
    """

    EXTRACTED = "extracted"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class ExtractionRecord:
    """The structured result of one extraction attempt.

    HOW: Extractors yield one record per occurrence. The session writes
    the asset (if any), fills in path and volume, and drops the asset.
    """

    kind: str
    outcome: Outcome
    offset: int
    reason: Optional[str] = None
    name: Optional[str] = None
    path: Optional[Path] = None
    volume: Optional[str] = None
    fallback_name: bool = False
    asset: Optional[Asset] = field(default=None, repr=False)

    @classmethod
    def extracted(cls, kind: str, asset: Asset, name: str) -> ExtractionRecord:
        return cls(
            kind=kind,
            outcome=Outcome.EXTRACTED,
            offset=asset.source_offset,
            name=name,
            fallback_name=asset.fallback_name,
            asset=asset,
        )

    @classmethod
    def skipped(cls, kind: str, offset: int, reason: str, **extra) -> ExtractionRecord:
        return cls(kind=kind, outcome=Outcome.SKIPPED, offset=offset, reason=reason, **extra)

    @classmethod
    def failed(cls, kind: str, offset: int, reason: str) -> ExtractionRecord:
        return cls(kind=kind, outcome=Outcome.FAILED, offset=offset, reason=reason)


@dataclass
class VolumeReport:
    """Aggregated results for one container volume.

    RULES:
    - volume: display name of the container (file name or caller label)
    - error: set when the volume could not be read; records is then empty
    - cancelled: True when the scan stopped early on request
    - warnings: volume-level findings, e.g. bank name/offset count drift
    """

    volume: str
    records: List[ExtractionRecord] = field(default_factory=list)
    cancelled: bool = False
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def extracted(self) -> List[ExtractionRecord]:
        return [r for r in self.records if r.outcome is Outcome.EXTRACTED]

    @property
    def skipped(self) -> List[ExtractionRecord]:
        return [r for r in self.records if r.outcome is Outcome.SKIPPED]

    @property
    def failed(self) -> List[ExtractionRecord]:
        return [r for r in self.records if r.outcome is Outcome.FAILED]

    @property
    def fallbacks(self) -> List[ExtractionRecord]:
        return [r for r in self.records if r.fallback_name and r.outcome is Outcome.EXTRACTED]

    @property
    def ok(self) -> bool:
        return self.error is None and not self.cancelled

    def counts(self) -> Dict[str, Dict[str, int]]:
        """Per-kind outcome counts, plus a ``fallback`` count per kind."""
        tally: Dict[str, Counter] = {}
        for record in self.records:
            kind_counts = tally.setdefault(record.kind, Counter())
            kind_counts[record.outcome.value] += 1
            if record.fallback_name and record.outcome is Outcome.EXTRACTED:
                kind_counts["fallback"] += 1
        return {kind: dict(c) for kind, c in tally.items()}
