"""Abstract base extractor and the per-scan context.

WHY: Banks, dialogue, and MIDI are carved by different heuristics but
share one contract: walk the occurrences of a marker in one container
buffer and yield exactly one ExtractionRecord per occurrence. A common
base lets the session and CLI treat every kind generically.

HOW: BaseExtractor is an ABC with a ``kind`` property and an
``extract()`` generator. ExtractionContext carries the shared scan
profile, the dialogue language selection, the cancellation event, and
the fallback-name prefix. ``guard()`` turns a per-occurrence exception
into a FAILED record so one malformed candidate never ends the scan.

RULES:
- extract() yields records in ascending occurrence order
- Cancellation is checked at every occurrence boundary
- Only ScanCancelled and InvalidPattern escape extract()
- Extractors never touch the filesystem; the session writes assets

To add a new asset kind:
1. Create a new module in extractors/
2. Subclass BaseExtractor and implement ``kind`` and ``extract()``
3. Register it in EXTRACTORS in extractors/__init__.py
"""

from __future__ import annotations

import logging
import struct
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterator, Optional

from bigfile_audio.core.errors import InvalidPattern, MalformedOccurrence, ScanCancelled
from bigfile_audio.core.ir import ExtractionRecord
from bigfile_audio.core.scanner import Buffer
from bigfile_audio.core.signatures import DEFAULT_PROFILE, ScanProfile

logger = logging.getLogger(__name__)

# Errors that mean "this one candidate is malformed", never "stop the scan".
OCCURRENCE_ERRORS = (
    MalformedOccurrence,
    IndexError,
    ValueError,
    struct.error,
    UnicodeDecodeError,
)


@dataclass
class ExtractionContext:
    """Everything an extractor needs besides the buffer.

    RULES:
    - profile: shared immutable signatures and heuristic constants
    - languages: upper-case dialogue codes; empty disables dialogue
    - cancel_event: optional threading.Event checked per occurrence
    - fallback_prefix: prepended to synthetic names (per-volume namespace)
    - warnings: volume-level findings appended by extractors
    """

    profile: ScanProfile = DEFAULT_PROFILE
    languages: FrozenSet[str] = frozenset()
    cancel_event: Optional[threading.Event] = None
    fallback_prefix: str = ""
    warnings: list = field(default_factory=list)

    def check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise ScanCancelled("scan cancelled")

    def fallback_name(self, name: str) -> str:
        if not self.fallback_prefix:
            return name
        return "{}_{}".format(self.fallback_prefix, name)


class BaseExtractor(ABC):
    """Abstract base for all asset extractors."""

    @property
    @abstractmethod
    def kind(self) -> str:
        """Short asset kind, e.g. 'banks'. Also the registry key."""

    @abstractmethod
    def extract(self, buffer: Buffer, context: ExtractionContext) -> Iterator[ExtractionRecord]:
        """Yield one ExtractionRecord per marker occurrence in ``buffer``.

        Args:
            buffer: The complete, immutable container volume.
            context: Profile, language selection, and cancellation state.
        """

    def guard(
        self,
        offset: int,
        work: Callable[[], ExtractionRecord],
    ) -> ExtractionRecord:
        """Run one occurrence's work, converting malformed input into a FAILED record."""
        try:
            return work()
        except InvalidPattern:
            raise
        except OCCURRENCE_ERRORS as exc:
            logger.warning("Error extracting %s at offset 0x%X: %s", self.kind, offset, exc)
            return ExtractionRecord.failed(self.kind, offset, str(exc))
