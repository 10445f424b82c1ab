"""Asset extractor registry, one extractor per asset kind.

WHY: The CLI and the session need a single lookup to find the extractors
for the requested asset kinds. A central dict keeps adding a new kind to
one import and one line.

HOW: EXTRACTORS maps kind keys to extractor *classes* (not instances),
in the order a session runs them: banks, dialogue, midi.

RULES:
- Keys are the kind names used in CLI flags and report records
- Values are BaseExtractor subclasses (not instances)
- Every extractor listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from bigfile_audio.extractors.banks import BankExtractor
from bigfile_audio.extractors.dialogue import DialogueExtractor
from bigfile_audio.extractors.midi import MidiExtractor

if TYPE_CHECKING:
    from bigfile_audio.extractors.base import BaseExtractor

EXTRACTORS: dict[str, type[BaseExtractor]] = {
    "banks": BankExtractor,
    "dialogue": DialogueExtractor,
    "midi": MidiExtractor,
}
