"""Exception taxonomy for the extraction engine.

WHY: Callers need to tell apart the few failures that must propagate
(unreadable input, programming-contract violations, cancellation) from the
many per-occurrence problems that are expected in an undocumented format
and must only skip one candidate.

HOW: A small hierarchy rooted at ExtractionError. Per-occurrence errors
carry the offset they were raised at so the extractor loop can turn them
into FAILED records.

RULES:
- InvalidPattern is a contract violation: fail fast, never recovered
- InputUnavailable aborts one volume only
- MalformedOccurrence is always caught at the occurrence boundary
- ScanCancelled stops a scan but keeps the records collected so far
"""

from __future__ import annotations

from pathlib import Path


class ExtractionError(Exception):
    """Base class for all extractor errors."""


class InvalidPattern(ExtractionError, ValueError):
    """Raised when a signature scan is asked to search for an empty pattern."""


class InputUnavailable(ExtractionError):
    """Raised when a container volume cannot be read.

    RULES:
    - path is the volume that failed
    - Only that volume's scan is aborted
    """

    def __init__(self, path: str | Path, message: str) -> None:
        self.path = Path(path)
        super().__init__("{}: {}".format(self.path, message))


class MalformedOccurrence(ExtractionError):
    """Raised when a single candidate asset cannot be carved.

    Typical causes: a length field pointing out of bounds, a structural
    check failing at a fixed offset, or text that does not decode.
    """

    def __init__(self, offset: int, message: str) -> None:
        self.offset = offset
        super().__init__("offset 0x{:X}: {}".format(offset, message))


class ScanCancelled(ExtractionError):
    """Raised at an occurrence boundary once cancellation was requested."""


class BankFormatError(ExtractionError):
    """Raised when an extracted sound bank cannot be split into WEM files."""


class ConversionError(ExtractionError):
    """Raised when an external converter is missing or exits with an error."""
