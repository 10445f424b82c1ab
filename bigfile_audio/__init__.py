"""BigFile audio extractor: signature-scanning asset carver.

WHY: The game ships its audio inside one monolithic, undocumented archive
(``BigFile_PC.dat`` plus optional extra volumes). There is no table of
contents, so sound banks, dialogue clips, and MIDI tracks can only be found
by scanning for byte signatures and guessing where each block ends.

HOW: Three-stage pipeline: scan (core signature search and boundary
heuristics), extract (pluggable per-kind extractors that turn offsets into
typed assets), write (the session's output tree). Each stage is
independently testable.

RULES:
- The engine never decodes audio or MIDI payloads, it only delimits bytes
- One container volume is scanned in memory, single-threaded
- Volumes are independent and may be scanned concurrently
- Per-occurrence problems become records, never abort a scan
"""

__version__ = "0.1.0"
